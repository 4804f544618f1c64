"""
Opening hand selection: pick the better of two sevens, then mulligan down.
"""

import logging

from .card import COMBO_PIECES, MILL_ENABLERS, Card
from .rng import GameRng

logger = logging.getLogger(__name__)

OPENING_HAND_SIZE = 7
MIN_HAND_SIZE = 4
MIN_LANDS = 2


def count_lands(cards: list[Card]) -> int:
    return sum(1 for c in cards if c.is_land)


def has_early_spell(cards: list[Card]) -> bool:
    """A non-land card with mana value 3 or less."""
    return any(not c.is_land and c.mana_value <= 3 for c in cards)


def should_mulligan(hand: list[Card]) -> bool:
    """Whether a kept hand should go back for a smaller one."""
    lands = count_lands(hand)

    if len(hand) <= MIN_HAND_SIZE:
        return lands < MIN_LANDS

    if any(c.name in MILL_ENABLERS for c in hand):
        return lands < MIN_LANDS

    if MIN_LANDS <= lands <= 5 and has_early_spell(hand):
        return False
    return lands < MIN_LANDS or not has_early_spell(hand)


def scry(library: list[Card], hand: list[Card], count: int) -> None:
    """
    Scry ``count`` off the top of ``library`` in place.

    Combo pieces always go to the bottom (they are no use drawn). Lands go
    to the bottom when the hand already has three, expensive spells when it
    has fewer than two lands. Kept cards stay on top in order.
    """
    if count <= 0:
        return

    lands_in_hand = count_lands(hand)
    looked_at = library[:count]
    to_top: list[Card] = []
    to_bottom: list[Card] = []

    for card in looked_at:
        if card.name in COMBO_PIECES:
            to_bottom.append(card)
        elif card.is_land and lands_in_hand >= 3:
            to_bottom.append(card)
        elif not card.is_land and card.mana_value >= 4 and lands_in_hand < MIN_LANDS:
            to_bottom.append(card)
        else:
            to_top.append(card)

    library[:] = to_top + library[count:] + to_bottom
    logger.debug(
        f"  Scry {count}: top {[c.name for c in to_top]}, "
        f"bottom {[c.name for c in to_bottom]}"
    )


def mulligan_hand(library: list[Card], size: int, rng: GameRng) -> list[Card]:
    """
    Draw a ``size`` card hand, going down one card each time it has too few lands.

    The hand is kept once it has two lands or is down to four cards, then
    the cards it is short of seven are scried.
    """
    while True:
        hand = library[:size]
        del library[:size]

        if count_lands(hand) < MIN_LANDS and size > MIN_HAND_SIZE:
            logger.debug(f"  Mulligan to {size - 1} ({count_lands(hand)} lands)")
            library.extend(hand)
            rng.shuffle(library)
            size -= 1
            continue

        scry(library, hand, OPENING_HAND_SIZE - size)
        return hand


def resolve_mulligans(library: list[Card], rng: GameRng) -> list[Card]:
    """
    Choose the opening hand from a shuffled library, removing it in place.

    Two sevens are drawn. Of those with at least two lands the one with fewer
    lands is kept (an RNG flip on a tie); if neither qualifies both go back
    and the player mulligans to six.
    """
    hand1 = library[:OPENING_HAND_SIZE]
    hand2 = library[OPENING_HAND_SIZE:2 * OPENING_HAND_SIZE]
    del library[:2 * OPENING_HAND_SIZE]

    lands1, lands2 = count_lands(hand1), count_lands(hand2)
    ok1, ok2 = lands1 >= MIN_LANDS, lands2 >= MIN_LANDS

    if ok1 and ok2:
        if lands1 == lands2:
            keep_first = rng.random() < 0.5
        else:
            keep_first = lands1 < lands2
    elif ok1 or ok2:
        keep_first = ok1
    else:
        logger.debug("  Neither seven has two lands, mulligan to 6")
        library.extend(hand1)
        library.extend(hand2)
        rng.shuffle(library)
        return mulligan_hand(library, OPENING_HAND_SIZE - 1, rng)

    chosen, rejected = (hand1, hand2) if keep_first else (hand2, hand1)
    library.extend(rejected)
    rng.shuffle(library)
    return _mulligan_kept_hand(library, chosen, rng)


def _mulligan_kept_hand(library: list[Card], hand: list[Card], rng: GameRng) -> list[Card]:
    while should_mulligan(hand) and len(hand) > MIN_HAND_SIZE:
        logger.debug(f"  Mulligan {len(hand)}-card hand: {[c.name for c in hand]}")
        library.extend(hand)
        rng.shuffle(library)
        hand = mulligan_hand(library, len(hand) - 1, rng)
    return hand
