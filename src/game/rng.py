"""
Seeded Mulberry32 generator shared by every random decision in a game.

The sequence must be bit-for-bit reproducible across runs so a seed always
replays the same game: coin flip for the play, deck shuffle, mulligan
tie-breaks, and every shuffle triggered by a card effect.
"""

from typing import MutableSequence, TypeVar

T = TypeVar("T")

_MASK = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    """32-bit wrapping multiply."""
    return (a * b) & _MASK


class GameRng:
    """
    Mulberry32 pseudo-random generator.

    Usage:
        rng = GameRng(12345)
        rng.random()        # 0.9797282677609473
        rng.shuffle(cards)  # in-place Fisher-Yates
    """

    def __init__(self, seed: int):
        # Only the low 32 bits of the seed matter
        self.state = seed & _MASK

    def random(self) -> float:
        """Next value in [0, 1)."""
        self.state = (self.state + _INCREMENT) & _MASK
        t = self.state
        t = _imul(t ^ (t >> 15), t | 1)
        t = (t ^ ((t + _imul(t ^ (t >> 7), t | 61)) & _MASK)) & _MASK
        return ((t ^ (t >> 14)) & _MASK) / _TWO_POW_32

    def random_range(self, upper: int) -> int:
        """Integer in [0, upper)."""
        return int(self.random() * upper)

    def shuffle(self, items: MutableSequence[T]) -> None:
        """Fisher-Yates shuffle in place, one draw per swap from the end down."""
        for i in range(len(items) - 1, 0, -1):
            j = int(self.random() * (i + 1))
            items[i], items[j] = items[j], items[i]

    def __repr__(self) -> str:
        return f"GameRng(state={self.state:#010x})"
