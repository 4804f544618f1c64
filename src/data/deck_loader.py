"""
Deck list loading for simulation.

Deck lists are plain text, one entry per line:

    # Reanimator
    4 Bringer of the Last Gift
    4 Terror of the Peaks
    // lands
    4 Cavern of Souls

Lines starting with '#' or '//' and blank lines are ignored. Names are
resolved against the card registry before any game starts, so a typo fails
loudly instead of silently shrinking the deck.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from src.game.card import Card

from .card_db import CardDatabase

logger = logging.getLogger(__name__)

BUNDLED_DECK_PATH = Path(__file__).parent / "decks" / "reanimator.txt"

_LINE_RE = re.compile(r"^(\d+)x?\s+(.+?)\s*$")


class DeckParseError(ValueError):
    """A deck line that isn't 'N Card Name'."""

    def __init__(self, line_number: int, line: str, reason: str = "expected 'N Card Name'"):
        super().__init__(f"line {line_number}: {reason}: {line!r}")
        self.line_number = line_number
        self.line = line


@dataclass
class Deck:
    """A resolved deck list."""

    name: str
    cards: list[Card]  # Ordered multiset, in list order

    @property
    def size(self) -> int:
        return len(self.cards)

    @property
    def land_count(self) -> int:
        return sum(1 for c in self.cards if c.is_land)

    def counts(self) -> dict[str, int]:
        """Card name to copies, in list order."""
        return dict(Counter(c.name for c in self.cards))

    def nonland_counts(self) -> dict[str, int]:
        return dict(Counter(c.name for c in self.cards if not c.is_land))

    def land_counts(self) -> dict[str, int]:
        return dict(Counter(c.name for c in self.cards if c.is_land))


def parse_deck_text(text: str) -> list[tuple[int, str]]:
    """
    Parse deck list text into (count, name) pairs.

    Args:
        text: Deck list contents

    Returns:
        Entries in file order; repeated names are kept as separate entries

    Raises:
        DeckParseError: on a malformed line or a zero count
    """
    entries = []
    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#") or line.startswith("//"):
            continue

        match = _LINE_RE.match(line)
        if match is None:
            raise DeckParseError(line_number, raw)

        count = int(match.group(1))
        if count <= 0:
            raise DeckParseError(line_number, raw, "count must be positive")
        entries.append((count, match.group(2)))

    return entries


def build_deck(entries: list[tuple[int, str]], db: CardDatabase, name: str = "deck") -> Deck:
    """
    Resolve (count, name) pairs against the registry.

    Raises:
        UnknownCardError: if any name is not in the registry
    """
    cards: list[Card] = []
    for count, card_name in entries:
        card = db.get(card_name)
        cards.extend([card] * count)
    return Deck(name=name, cards=cards)


def load_deck(source: Union[Path, str], db: CardDatabase) -> Deck:
    """
    Load a deck from a file path or from deck list text.

    Args:
        source: Path to a deck file, or the deck list itself. A string that
            names an existing file is read as a path.
        db: Card registry to resolve names against

    Returns:
        Deck named after the file stem ("custom" for inline text)
    """
    path = Path(source) if isinstance(source, Path) else None
    if path is None and "\n" not in source and Path(source).is_file():
        path = Path(source)

    if path is not None:
        text = path.read_text()
        name = path.stem
    else:
        text = source
        name = "custom"

    deck = build_deck(parse_deck_text(text), db, name=name)
    logger.debug(f"Loaded deck {deck.name!r}: {deck.size} cards, {deck.land_count} lands")
    return deck


def load_decklist(lines: list[str], db: CardDatabase, name: str = "custom") -> Deck:
    """Load a deck from a list of 'N Card Name' strings (API request bodies)."""
    return build_deck(parse_deck_text("\n".join(lines)), db, name=name)


def write_deck(
    path: Path,
    lands: dict[str, int],
    fixed: dict[str, int],
    header_lines: list[str] | None = None,
) -> None:
    """
    Write a deck list: '#' header comments, the non-land cards, then the lands.

    Land entries with a zero count are skipped.
    """
    lines = [f"# {line}" for line in header_lines or []]
    if lines:
        lines.append("")

    lines.extend(f"{count} {name}" for name, count in fixed.items() if count > 0)
    lines.append("")
    lines.append("# Lands")
    lines.extend(
        f"{count} {name}"
        for name, count in sorted(lands.items(), key=lambda item: (-item[1], item[0]))
        if count > 0
    )

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n")
