"""
Card representation: immutable card definitions and mana bookkeeping.

Cards form a closed set of variants (land, creature, spell, saga). Every
variant is a frozen dataclass, so a card placed in a zone is a value that can
never be mutated by another zone.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional
import re


class CardKind(Enum):
    LAND = auto()
    CREATURE = auto()
    INSTANT = auto()
    SORCERY = auto()
    ENCHANTMENT = auto()
    SAGA = auto()


class Color(Enum):
    WHITE = "W"
    BLUE = "U"
    BLACK = "B"
    RED = "R"
    GREEN = "G"
    COLORLESS = "C"


# Payment order used when iterating pips
PIP_ORDER = (
    Color.WHITE,
    Color.BLUE,
    Color.BLACK,
    Color.RED,
    Color.GREEN,
    Color.COLORLESS,
)

ALL_COLORS = PIP_ORDER


# Card names the engine reasons about directly
BRINGER = "Bringer of the Last Gift"
TERROR = "Terror of the Peaks"
SPIDER_MAN = "Superior Spider-Man"
KIORA = "Kiora, the Rising Tide"
OVERLORD = "Overlord of the Balemurk"
TOWN_GREETER = "Town Greeter"
SPEAKER = "Formidable Speaker"
ARDYN = "Ardyn, the Usurper"
AWAKEN = "Awaken the Honored Dead"
CACHE_GRAB = "Cache Grab"
DREDGERS_INSIGHT = "Dredger's Insight"
POLLEN = "Analyze the Pollen"

STARTING_TOWN = "Starting Town"
CAVERN_OF_SOULS = "Cavern of Souls"
MULTIVERSAL_PASSAGE = "Multiversal Passage"
GLOOMLAKE_VERGE = "Gloomlake Verge"
WASTEWOOD_VERGE = "Wastewood Verge"

COMBO_PIECES = frozenset({BRINGER, TERROR})
MILL_ENABLERS = frozenset(
    {TOWN_GREETER, OVERLORD, KIORA, CACHE_GRAB, DREDGERS_INSIGHT, AWAKEN}
)


class LandSubtype(Enum):
    BASIC = "basic"
    SHOCK = "shock"
    SURVEIL = "surveil"
    FASTLAND = "fastland"
    UTILITY = "utility"
    TOWN = "town"
    CONDITIONAL = "conditional"


class Ability(Enum):
    """Ability tags attached to cards; the resolver dispatches on these."""

    ETB_DAMAGE_TRIGGER = "etb_damage_trigger"
    ETB_MASS_REANIMATE = "etb_mass_reanimate"
    ETB_OR_ATTACK_MILL_4_RETURN = "etb_or_attack_mill_4_return"
    IMPENDING_5 = "impending_5"
    ETB_DRAW_2_DISCARD_2 = "etb_draw_2_discard_2"
    ETB_MILL_4_RETURN_LAND = "etb_mill_4_return_land"
    MIND_SWAP_COPY = "mind_swap_copy"
    ETB_DISCARD_TUTOR_CREATURE = "etb_discard_tutor_creature"
    STARSCOURGE = "starscourge"
    MILL_4_RETURN_PERMANENT = "mill_4_return_permanent"
    ETB_MILL_4_RETURN_ARTIFACT_CREATURE_LAND = "etb_mill_4_return_artifact_creature_land"
    SEARCH_LAND_OR_CREATURE_WITH_EVIDENCE = "search_land_or_creature_with_evidence"
    # Saga chapters
    DESTROY = "destroy"
    MILL_3 = "mill_3"
    DISCARD_RETURN = "discard_return"


@dataclass(frozen=True)
class ManaCost:
    """Represents a mana cost like {2}{U}{B}."""

    white: int = 0
    blue: int = 0
    black: int = 0
    red: int = 0
    green: int = 0
    colorless: int = 0  # {C} pips, payable only with colorless mana
    generic: int = 0

    @classmethod
    def from_string(cls, mana_string: str) -> "ManaCost":
        """Parse a mana cost string like '{2}{U}{U}' or '2UU'."""
        if not mana_string:
            return cls()

        generic = 0
        for match in re.findall(r"\{(\d+)\}|^(\d+)", mana_string):
            num = match[0] or match[1]
            if num:
                generic += int(num)

        mana_upper = mana_string.upper()
        return cls(
            white=mana_upper.count("W"),
            blue=mana_upper.count("U"),
            black=mana_upper.count("B"),
            red=mana_upper.count("R"),
            green=mana_upper.count("G"),
            colorless=mana_upper.count("C"),
            generic=generic,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "ManaCost":
        """Build from a registry object like {"generic": 2, "U": 1, "B": 1}."""
        return cls(
            white=int(data.get("W", 0)),
            blue=int(data.get("U", 0)),
            black=int(data.get("B", 0)),
            red=int(data.get("R", 0)),
            green=int(data.get("G", 0)),
            colorless=int(data.get("C", 0)),
            generic=int(data.get("generic", 0)),
        )

    def amount(self, color: Color) -> int:
        """Pips of one color."""
        match color:
            case Color.WHITE:
                return self.white
            case Color.BLUE:
                return self.blue
            case Color.BLACK:
                return self.black
            case Color.RED:
                return self.red
            case Color.GREEN:
                return self.green
            case Color.COLORLESS:
                return self.colorless

    @property
    def cmc(self) -> int:
        """Mana value: every pip plus generic."""
        return (
            self.white
            + self.blue
            + self.black
            + self.red
            + self.green
            + self.colorless
            + self.generic
        )

    @property
    def colors(self) -> set[Color]:
        """Colored pips present in this cost (excludes {C})."""
        return {c for c in PIP_ORDER[:5] if self.amount(c) > 0}

    def __str__(self) -> str:
        parts = [f"{{{self.generic}}}"] if self.generic else []
        for color in PIP_ORDER:
            parts.extend(f"{{{color.value}}}" for _ in range(self.amount(color)))
        return "".join(parts) or "{0}"


@dataclass
class ManaPool:
    """Mana produced by tapping lands during a single payment."""

    white: int = 0
    blue: int = 0
    black: int = 0
    red: int = 0
    green: int = 0
    colorless: int = 0

    def add(self, color: Color, amount: int = 1) -> None:
        """Add mana to the pool."""
        match color:
            case Color.WHITE:
                self.white += amount
            case Color.BLUE:
                self.blue += amount
            case Color.BLACK:
                self.black += amount
            case Color.RED:
                self.red += amount
            case Color.GREEN:
                self.green += amount
            case Color.COLORLESS:
                self.colorless += amount

    def get(self, color: Color) -> int:
        match color:
            case Color.WHITE:
                return self.white
            case Color.BLUE:
                return self.blue
            case Color.BLACK:
                return self.black
            case Color.RED:
                return self.red
            case Color.GREEN:
                return self.green
            case Color.COLORLESS:
                return self.colorless

    def can_pay(self, cost: ManaCost) -> bool:
        """Check if the pool covers a cost."""
        for color in PIP_ORDER:
            if self.get(color) < cost.amount(color):
                return False
        leftover = self.total - (cost.cmc - cost.generic)
        return leftover >= cost.generic

    def pay(self, cost: ManaCost) -> bool:
        """
        Pay a mana cost from this pool.
        Returns True if successful, False if insufficient mana.
        Modifies pool in place.
        """
        if not self.can_pay(cost):
            return False

        for color in PIP_ORDER:
            self.add(color, -cost.amount(color))

        # Generic drains colorless first, then colors in WUBRG order
        remaining = cost.generic
        for color in (Color.COLORLESS,) + PIP_ORDER[:5]:
            if remaining <= 0:
                break
            to_use = min(self.get(color), remaining)
            self.add(color, -to_use)
            remaining -= to_use

        return True

    def clear(self) -> None:
        """Empty the mana pool."""
        self.white = 0
        self.blue = 0
        self.black = 0
        self.red = 0
        self.green = 0
        self.colorless = 0

    @property
    def total(self) -> int:
        """Total mana available."""
        return self.white + self.blue + self.black + self.red + self.green + self.colorless

    def copy(self) -> "ManaPool":
        """Create a copy of this mana pool."""
        return ManaPool(
            white=self.white,
            blue=self.blue,
            black=self.black,
            red=self.red,
            green=self.green,
            colorless=self.colorless,
        )


# =============================================================================
# Card variants
# =============================================================================


@dataclass(frozen=True)
class Card:
    """Fields common to every card."""

    name: str
    mana_cost: ManaCost = field(default_factory=ManaCost)

    @property
    def kind(self) -> CardKind:
        raise NotImplementedError

    @property
    def mana_value(self) -> int:
        return self.mana_cost.cmc

    @property
    def is_land(self) -> bool:
        return self.kind is CardKind.LAND

    @property
    def is_creature(self) -> bool:
        return self.kind is CardKind.CREATURE

    @property
    def is_instant_or_sorcery(self) -> bool:
        return self.kind in (CardKind.INSTANT, CardKind.SORCERY)

    @property
    def abilities(self) -> tuple[Ability, ...]:
        return ()

    def __repr__(self) -> str:
        return f"Card({self.name}, {self.mana_value}mv)"


@dataclass(frozen=True, repr=False)
class LandCard(Card):
    subtype: LandSubtype = LandSubtype.BASIC
    enters_tapped: bool = False
    conditional_tapped: bool = False  # shock, fastland, town, Passage
    colors: tuple[Color, ...] = ()
    surveil_amount: int = 0

    @property
    def kind(self) -> CardKind:
        return CardKind.LAND

    @property
    def has_surveil(self) -> bool:
        return self.surveil_amount > 0

    def __repr__(self) -> str:
        return f"Land({self.name})"


@dataclass(frozen=True, repr=False)
class CreatureCard(Card):
    power: int = 0
    toughness: int = 0
    creature_types: tuple[str, ...] = ()
    creature_abilities: tuple[Ability, ...] = ()
    is_legendary: bool = False
    impending_cost: Optional[ManaCost] = None
    impending_counters: int = 0
    is_token: bool = False

    @property
    def kind(self) -> CardKind:
        return CardKind.CREATURE

    @property
    def abilities(self) -> tuple[Ability, ...]:
        return self.creature_abilities

    def has_type(self, creature_type: str) -> bool:
        return creature_type in self.creature_types

    def __repr__(self) -> str:
        return f"Card({self.name}, {self.mana_value}mv, {self.power}/{self.toughness})"


@dataclass(frozen=True, repr=False)
class SpellCard(Card):
    """Instant, sorcery, or (non-saga) enchantment."""

    spell_kind: CardKind = CardKind.SORCERY
    spell_abilities: tuple[Ability, ...] = ()

    @property
    def kind(self) -> CardKind:
        return self.spell_kind

    @property
    def abilities(self) -> tuple[Ability, ...]:
        return self.spell_abilities


@dataclass(frozen=True, repr=False)
class SagaCard(Card):
    chapters: tuple[Ability, ...] = ()

    @property
    def kind(self) -> CardKind:
        return CardKind.SAGA

    @property
    def abilities(self) -> tuple[Ability, ...]:
        return self.chapters
