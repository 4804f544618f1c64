"""
Card registry loaded from JSON.

The registry is a list of card objects. Each is turned into one of the
immutable Card variants from ``src.game.card`` and the whole set is frozen
into a name-keyed mapping that the simulator only ever reads.

Example:
    db = CardDatabase.from_json()          # bundled cards.json or $CARDS_PATH
    bringer = db.get("Bringer of the Last Gift")
"""

import json
import logging
import os
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Optional

from src.game.card import (
    SPIDER_MAN,
    Ability,
    Card,
    CardKind,
    Color,
    CreatureCard,
    LandCard,
    LandSubtype,
    ManaCost,
    SagaCard,
    SpellCard,
)

logger = logging.getLogger(__name__)

BUNDLED_CARDS_PATH = Path(__file__).parent / "cards.json"

# Printed name -> name the game logic uses
CANONICAL_NAMES = {
    "Kavaero, Mind-Bitten": SPIDER_MAN,
}

# Subtypes whose tapped status depends on the game
_CONDITIONAL_SUBTYPES = frozenset({LandSubtype.SHOCK, LandSubtype.FASTLAND, LandSubtype.TOWN})

_COLOR_CODES = {c.value: c for c in Color}


class UnknownCardError(KeyError):
    """A card name that is not in the registry."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown card: {self.name!r}"


class CardDataError(ValueError):
    """A registry entry that can't be turned into a card."""


def default_cards_path() -> Path:
    """$CARDS_PATH if set, otherwise the bundled registry."""
    env_path = os.environ.get("CARDS_PATH")
    return Path(env_path) if env_path else BUNDLED_CARDS_PATH


# =============================================================================
# Record parsing
# =============================================================================


def _require(record: dict, key: str):
    if key not in record:
        raise CardDataError(f"{record.get('name', '<unnamed>')}: missing field {key!r}")
    return record[key]


def _parse_abilities(name: str, values) -> tuple[Ability, ...]:
    abilities = []
    for value in values or ():
        try:
            abilities.append(Ability(value))
        except ValueError:
            raise CardDataError(f"{name}: unknown ability {value!r}") from None
    return tuple(abilities)


def _parse_colors(name: str, values) -> tuple[Color, ...]:
    colors = []
    for value in values or ():
        if value not in _COLOR_CODES:
            raise CardDataError(f"{name}: unknown color {value!r}")
        colors.append(_COLOR_CODES[value])
    return tuple(colors)


def _parse_cost(value) -> ManaCost:
    if value is None:
        return ManaCost()
    if isinstance(value, str):
        return ManaCost.from_string(value)
    return ManaCost.from_dict(value)


def parse_card(record: dict) -> Card:
    """
    Build a Card from one registry record.

    Raises:
        CardDataError: unknown card_type, subtype, color or ability, or a
            missing required field
    """
    printed_name = _require(record, "name")
    name = CANONICAL_NAMES.get(printed_name, printed_name)
    card_type = _require(record, "card_type")
    cost = _parse_cost(record.get("mana_cost"))

    mana_value = record.get("mana_value")
    if mana_value is not None and mana_value != cost.cmc:
        logger.warning(f"{name}: mana_value {mana_value} does not match cost {cost}")

    match card_type:
        case "land":
            try:
                subtype = LandSubtype(record.get("subtype", "basic"))
            except ValueError:
                raise CardDataError(f"{name}: unknown land subtype {record.get('subtype')!r}") from None
            surveil = int(record.get("surveil_amount", 0))
            if record.get("has_surveil") and surveil == 0:
                surveil = 1
            return LandCard(
                name=name,
                mana_cost=cost,
                subtype=subtype,
                enters_tapped=bool(record.get("enters_tapped", False)),
                conditional_tapped=bool(
                    record.get("conditional_tapped", subtype in _CONDITIONAL_SUBTYPES)
                ),
                colors=_parse_colors(name, record.get("colors")),
                surveil_amount=surveil,
            )

        case "creature":
            impending = record.get("impending_cost")
            return CreatureCard(
                name=name,
                mana_cost=cost,
                power=int(_require(record, "power")),
                toughness=int(_require(record, "toughness")),
                creature_types=tuple(record.get("creature_types", ())),
                creature_abilities=_parse_abilities(name, record.get("abilities")),
                is_legendary=bool(record.get("is_legendary", False)),
                impending_cost=_parse_cost(impending) if impending is not None else None,
                impending_counters=int(record.get("impending_counters", 0)),
            )

        case "instant" | "sorcery" | "enchantment":
            return SpellCard(
                name=name,
                mana_cost=cost,
                spell_kind=CardKind[card_type.upper()],
                spell_abilities=_parse_abilities(name, record.get("abilities")),
            )

        case "saga":
            return SagaCard(
                name=name,
                mana_cost=cost,
                chapters=_parse_abilities(name, _require(record, "chapters")),
            )

        case _:
            raise CardDataError(f"{name}: unknown card_type {card_type!r}")


# =============================================================================
# Registry
# =============================================================================


class CardDatabase:
    """
    Read-only name to Card mapping.

    Printed names listed in CANONICAL_NAMES resolve to the same card as
    their canonical name.
    """

    def __init__(self, cards: dict[str, Card]):
        self._cards = MappingProxyType(dict(cards))

    @classmethod
    def from_records(cls, records: list[dict]) -> "CardDatabase":
        if not isinstance(records, list):
            raise CardDataError("card registry must be a JSON list of card objects")

        cards: dict[str, Card] = {}
        for record in records:
            if not isinstance(record, dict):
                raise CardDataError(f"card entry must be an object, got {record!r}")
            card = parse_card(record)
            if card.name in cards:
                raise CardDataError(f"duplicate card {card.name!r}")
            cards[card.name] = card
            if record["name"] != card.name:
                cards[record["name"]] = card

        return cls(cards)

    @classmethod
    def from_json(cls, path: Optional[Path] = None) -> "CardDatabase":
        path = Path(path) if path else default_cards_path()
        try:
            with open(path) as f:
                records = json.load(f)
        except json.JSONDecodeError as e:
            raise CardDataError(f"{path}: invalid JSON ({e})") from e

        db = cls.from_records(records)
        logger.debug(f"Loaded {len(db)} cards from {path}")
        return db

    def get(self, name: str) -> Card:
        try:
            return self._cards[name]
        except KeyError:
            raise UnknownCardError(name) from None

    def names(self, kind: Optional[CardKind] = None) -> list[str]:
        """Canonical card names, sorted, optionally of one kind."""
        return sorted(
            name
            for name, card in self._cards.items()
            if name == card.name and (kind is None or card.kind is kind)
        )

    def __contains__(self, name: object) -> bool:
        return name in self._cards

    def __len__(self) -> int:
        return len(self.names())

    def __iter__(self) -> Iterator[Card]:
        return (self._cards[name] for name in self.names())
