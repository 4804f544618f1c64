"""
Game state representation with zones and turn tracking.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Iterator, Optional

from .card import (
    Card,
    CardKind,
    Color,
    CreatureCard,
    LandCard,
    ManaPool,
)
from .rng import GameRng


class Phase(Enum):
    """Turn phases, in the order they run."""

    UNTAP = auto()
    UPKEEP = auto()
    DRAW = auto()
    MAIN_1 = auto()
    COMBAT = auto()
    MAIN_2 = auto()
    END = auto()


class Counter(Enum):
    """
    Counter kinds on a permanent.

    TIME counts down on impending creatures, LORE counts up on sagas. They
    are stored separately so the end-step countdown never touches sagas.
    """

    TIME = auto()
    LORE = auto()


@dataclass
class Permanent:
    """
    A card on the battlefield with its current state.
    """

    card: Card
    turn_entered: int = 0
    tapped: bool = False
    counters: dict[Counter, int] = field(default_factory=dict)

    # Choices made as the permanent entered
    chosen_type: Optional[str] = None  # Cavern of Souls
    chosen_basic_type: Optional[Color] = None  # Multiversal Passage
    copy_of: Optional[Card] = None  # Superior Spider-Man / Starscourge tokens

    @property
    def name(self) -> str:
        return self.card.name

    @property
    def is_land(self) -> bool:
        return self.card.is_land

    @property
    def is_creature(self) -> bool:
        return self.card.is_creature

    @property
    def is_impending(self) -> bool:
        return self.get_counter(Counter.TIME) > 0

    @property
    def is_token(self) -> bool:
        return isinstance(self.card, CreatureCard) and self.card.is_token

    @property
    def power(self) -> int:
        # Copies take the copied creature's power; tokens keep their own
        if isinstance(self.copy_of, CreatureCard) and not self.is_token:
            return self.copy_of.power
        if isinstance(self.card, CreatureCard):
            return self.card.power
        return 0

    def acts_as(self, name: str) -> bool:
        """True if this permanent is the named card or a copy of it."""
        if self.card.name == name:
            return True
        return self.copy_of is not None and self.copy_of.name == name

    def has_creature_type(self, creature_type: str) -> bool:
        if isinstance(self.card, CreatureCard) and self.card.has_type(creature_type):
            return True
        copied = self.copy_of
        return isinstance(copied, CreatureCard) and copied.has_type(creature_type)

    def has_summoning_sickness(self, current_turn: int) -> bool:
        return self.turn_entered >= current_turn

    def tap(self) -> None:
        """Tap this permanent. Tapping twice is a bug in the caller."""
        if self.tapped:
            raise RuntimeError(f"{self.name} is already tapped")
        self.tapped = True

    def untap(self) -> None:
        """Untap this permanent."""
        self.tapped = False

    def get_counter(self, counter: Counter) -> int:
        return self.counters.get(counter, 0)

    def add_counter(self, counter: Counter, amount: int = 1) -> None:
        self.counters[counter] = self.get_counter(counter) + amount

    def remove_counter(self, counter: Counter, amount: int = 1) -> bool:
        """Remove counters; returns False (and changes nothing) if too few."""
        current = self.get_counter(counter)
        if current < amount:
            return False
        if current == amount:
            del self.counters[counter]
        else:
            self.counters[counter] = current - amount
        return True

    def __repr__(self) -> str:
        state = []
        if self.tapped:
            state.append("tapped")
        if self.copy_of is not None:
            state.append(f"copy of {self.copy_of.name}")
        for counter, amount in self.counters.items():
            state.append(f"{amount} {counter.name.lower()}")
        state_str = f" ({', '.join(state)})" if state else ""
        return f"Permanent({self.card.name}{state_str})"


# =============================================================================
# Zones
# =============================================================================


class CardZone:
    """An ordered bag of cards (hand, graveyard, exile)."""

    def __init__(self, cards: Optional[list[Card]] = None):
        self.cards: list[Card] = list(cards or [])

    def add(self, card: Card) -> None:
        self.cards.append(card)

    def extend(self, cards: list[Card]) -> None:
        self.cards.extend(cards)

    def remove(self, card: Card) -> Card:
        """Remove a specific card; it must be present."""
        try:
            self.cards.remove(card)
        except ValueError:
            raise ValueError(f"{card.name} is not in {type(self).__name__}") from None
        return card

    def remove_at(self, index: int) -> Card:
        return self.cards.pop(index)

    def take(self, name: str) -> Optional[Card]:
        """Remove and return the first card with this name, if any."""
        for i, card in enumerate(self.cards):
            if card.name == name:
                return self.cards.pop(i)
        return None

    def find(self, predicate: Callable[[Card], bool]) -> Optional[Card]:
        return next((c for c in self.cards if predicate(c)), None)

    def contains(self, name: str) -> bool:
        return any(c.name == name for c in self.cards)

    def count(self, name: str) -> int:
        return sum(1 for c in self.cards if c.name == name)

    def count_kind(self, kind: CardKind) -> int:
        return sum(1 for c in self.cards if c.kind is kind)

    def clear(self) -> list[Card]:
        cards, self.cards = self.cards, []
        return cards

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __len__(self) -> int:
        return len(self.cards)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({[c.name for c in self.cards]})"


class Hand(CardZone):
    @property
    def lands(self) -> list[LandCard]:
        return [c for c in self.cards if isinstance(c, LandCard)]

    @property
    def land_count(self) -> int:
        return len(self.lands)


class Graveyard(CardZone):
    @property
    def creatures(self) -> list[CreatureCard]:
        return [c for c in self.cards if isinstance(c, CreatureCard)]


class Exile(CardZone):
    pass


class Library(CardZone):
    """The deck. Index 0 is the top card."""

    def draw(self) -> Optional[Card]:
        if not self.cards:
            return None
        return self.cards.pop(0)

    def draw_many(self, count: int) -> list[Card]:
        drawn = self.cards[:count]
        del self.cards[:count]
        return drawn

    def peek(self) -> Optional[Card]:
        return self.cards[0] if self.cards else None

    def put_on_top(self, cards: list[Card]) -> None:
        self.cards[:0] = cards

    def put_on_bottom(self, cards: list[Card]) -> None:
        self.cards.extend(cards)

    def shuffle(self, rng: GameRng) -> None:
        rng.shuffle(self.cards)


class Battlefield:
    """Permanents in the order they entered."""

    def __init__(self):
        self.permanents: list[Permanent] = []

    def add(self, permanent: Permanent) -> Permanent:
        self.permanents.append(permanent)
        return permanent

    def remove(self, permanent: Permanent) -> Permanent:
        for i, existing in enumerate(self.permanents):
            if existing is permanent:
                return self.permanents.pop(i)
        raise ValueError(f"{permanent.name} is not on the battlefield")

    @property
    def lands(self) -> list[Permanent]:
        return [p for p in self.permanents if p.is_land]

    @property
    def untapped_lands(self) -> list[Permanent]:
        return [p for p in self.permanents if p.is_land and not p.tapped]

    @property
    def creatures(self) -> list[Permanent]:
        return [p for p in self.permanents if p.is_creature]

    def controls(self, name: str) -> bool:
        return any(p.name == name for p in self.permanents)

    def count_acting_as(self, name: str) -> int:
        return sum(1 for p in self.permanents if p.acts_as(name))

    def __iter__(self) -> Iterator[Permanent]:
        return iter(self.permanents)

    def __len__(self) -> int:
        return len(self.permanents)


# =============================================================================
# Game State
# =============================================================================


@dataclass
class GameState:
    """
    Complete state of one goldfish game.

    Owns every zone, the life totals and the game's RNG. Nothing here is
    shared between games.
    """

    rng: GameRng
    library: Library = field(default_factory=Library)
    hand: Hand = field(default_factory=Hand)
    graveyard: Graveyard = field(default_factory=Graveyard)
    exile: Exile = field(default_factory=Exile)
    battlefield: Battlefield = field(default_factory=Battlefield)
    mana_pool: ManaPool = field(default_factory=ManaPool)

    turn: int = 0
    phase: Phase = Phase.UNTAP
    on_the_play: bool = True
    land_played_this_turn: bool = False
    life: int = 20
    opponent_life: int = 20

    def draw(self) -> Optional[Card]:
        """Draw one card; an empty library is a no-op."""
        card = self.library.draw()
        if card is not None:
            self.hand.add(card)
        return card

    def mill(self, count: int) -> list[Card]:
        milled = self.library.draw_many(count)
        self.graveyard.extend(milled)
        return milled

    def put_onto_battlefield(self, card: Card) -> Permanent:
        return self.battlefield.add(Permanent(card=card, turn_entered=self.turn))

    def leave_battlefield(self, permanent: Permanent) -> None:
        """Move a permanent to the graveyard; tokens simply cease to exist."""
        self.battlefield.remove(permanent)
        if not permanent.is_token:
            self.graveyard.add(permanent.card)

    def discard(self, card: Card) -> None:
        self.hand.remove(card)
        self.graveyard.add(card)

    @property
    def lands_on_battlefield(self) -> int:
        return len(self.battlefield.lands)

    def card_count(self) -> int:
        """Non-token cards across every zone; constant for a whole game."""
        on_battlefield = sum(1 for p in self.battlefield if not p.is_token)
        return (
            len(self.library)
            + len(self.hand)
            + len(self.graveyard)
            + len(self.exile)
            + on_battlefield
        )

    def get_board_summary(self) -> dict:
        """Get a summary of the current board state."""
        return {
            "turn": self.turn,
            "phase": self.phase.name,
            "on_the_play": self.on_the_play,
            "life": self.life,
            "opponent_life": self.opponent_life,
            "library_size": len(self.library),
            "hand": [c.name for c in self.hand],
            "graveyard": [c.name for c in self.graveyard],
            "exile": [c.name for c in self.exile],
            "battlefield": [repr(p) for p in self.battlefield],
        }

    def __repr__(self) -> str:
        return (
            f"GameState(turn={self.turn}, phase={self.phase.name}, "
            f"life={self.life}, opponent={self.opponent_life})"
        )


def create_game(deck: list[Card], rng: GameRng) -> GameState:
    """Create a game with the deck as an unshuffled library."""
    return GameState(rng=rng, library=Library(list(deck)))
