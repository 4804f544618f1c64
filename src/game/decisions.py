"""
Heuristic decision functions that drive the goldfish player.

Every function here is a pure read of the game state: none of them draw from
the RNG, and ties always fall back to list order.
"""

from functools import cmp_to_key
from typing import Optional

from .card import (
    ARDYN,
    AWAKEN,
    BRINGER,
    CACHE_GRAB,
    CAVERN_OF_SOULS,
    COMBO_PIECES,
    DREDGERS_INSIGHT,
    KIORA,
    OVERLORD,
    SPEAKER,
    SPIDER_MAN,
    TERROR,
    TOWN_GREETER,
    Card,
    Color,
    CreatureCard,
    LandCard,
    LandSubtype,
)
from .mana import available_colors, can_cast, can_pay
from .state import GameState

# Cards whose main job is putting cards into the graveyard
MILL_SPELLS = frozenset({CACHE_GRAB, DREDGERS_INSIGHT, TOWN_GREETER, OVERLORD})

# Creatures a Spider-Man can copy to keep digging
MILL_CREATURES = (OVERLORD, KIORA, TOWN_GREETER)

# Cards cast before the land drop in the hope of finding a better land
LAND_FINDERS = frozenset({CACHE_GRAB, DREDGERS_INSIGHT, TOWN_GREETER})


# =============================================================================
# Lands
# =============================================================================


def land_enters_tapped(land: LandCard, state: GameState) -> bool:
    """Predict whether a land played now would enter tapped."""
    if land.enters_tapped:
        return True
    if not land.conditional_tapped:
        return False

    match land.subtype:
        case LandSubtype.FASTLAND:
            return state.lands_on_battlefield > 2
        case LandSubtype.TOWN:
            return state.turn > 3
        case _:
            # Shocks and Multiversal Passage pay 2 life instead
            return state.life <= 2


def _static_colors_available(state: GameState) -> set[Color]:
    colors: set[Color] = set()
    for permanent in state.battlefield.untapped_lands:
        colors.update(permanent.card.colors)
    return colors


def choose_land_to_play(state: GameState) -> Optional[LandCard]:
    """
    Pick the land to play this turn, or None if the hand holds no land.

    A land that lets something be cast this turn wins outright. Among lands
    that don't, prefer one adding a missing color, then surveil, then a land
    that enters tapped (keeping untapped ones for later turns). Among lands
    that do, prefer surveil, then more colors.
    """
    lands = state.hand.lands
    if not lands:
        return None

    mana_after_drop = len(state.battlefield.untapped_lands) + 1
    colors_available = _static_colors_available(state)
    spells = [c for c in state.hand if not c.is_land]

    missing_colors: set[Color] = set()
    for spell in spells:
        missing_colors.update(spell.mana_cost.colors - colors_available)

    def provides_missing(land: LandCard) -> bool:
        return any(c in missing_colors for c in land.colors)

    def enables_cast(land: LandCard) -> bool:
        if land_enters_tapped(land, state):
            return False
        colors_after = colors_available | set(land.colors)
        return any(
            spell.mana_value <= mana_after_drop
            and spell.mana_cost.colors <= colors_after
            for spell in spells
        )

    def compare(a: LandCard, b: LandCard) -> int:
        a_enables, b_enables = enables_cast(a), enables_cast(b)
        if a_enables != b_enables:
            return -1 if a_enables else 1

        if not a_enables:
            a_missing, b_missing = provides_missing(a), provides_missing(b)
            if a_missing != b_missing:
                return -1 if a_missing else 1
            if a.has_surveil != b.has_surveil:
                return -1 if a.has_surveil else 1
            a_tapped, b_tapped = land_enters_tapped(a, state), land_enters_tapped(b, state)
            if a_tapped != b_tapped:
                return -1 if a_tapped else 1
            return 0

        if a.has_surveil != b.has_surveil:
            return -1 if a.has_surveil else 1
        return len(b.colors) - len(a.colors)

    return sorted(lands, key=cmp_to_key(compare))[0]


def choose_cavern_type(state: GameState) -> str:
    """
    Creature type named by a Cavern of Souls entering now.

    The first Cavern names Human (Spider-Man, Town Greeter). Later ones cover
    whatever creature is stuck in hand, defaulting to Demon for Bringer.
    """
    creatures = {c.name for c in state.hand if c.is_creature}
    has_human_cavern = any(
        p.name == CAVERN_OF_SOULS and p.chosen_type == "Human"
        for p in state.battlefield.lands
    )
    caverns_in_hand = state.hand.count(CAVERN_OF_SOULS)

    # Kiora first to pitch a stuck combo piece, with Human coming next turn
    if (
        not has_human_cavern
        and KIORA in creatures
        and creatures & COMBO_PIECES
        and caverns_in_hand >= 1
    ):
        return "Noble"

    if not has_human_cavern:
        return "Human"

    if BRINGER in creatures:
        return "Demon"
    if KIORA in creatures:
        return "Noble"
    if OVERLORD in creatures:
        return "Avatar"
    if TERROR in creatures:
        return "Dragon"
    return "Demon"


def choose_passage_color(state: GameState) -> Color:
    """Basic land type for Multiversal Passage: fill the gap the hand needs."""
    have = available_colors(state)
    needed = set()
    for card in state.hand:
        needed.update(card.mana_cost.colors)

    for color in (Color.GREEN, Color.BLUE, Color.BLACK):
        if color in needed and color not in have:
            return color
    for color in (Color.BLUE, Color.BLACK, Color.GREEN):
        if color not in have:
            return color
    return Color.BLUE


# =============================================================================
# Mill and discard choices
# =============================================================================


def select_best_from_mill(cards: list[Card], state: GameState) -> Optional[Card]:
    """
    Choose which milled card to take back to hand.

    Bringer and Terror are never returned; they belong in the graveyard.
    """
    if not cards:
        return None

    has_spider_man = state.hand.contains(SPIDER_MAN)
    has_bringer_in_hand = state.hand.contains(BRINGER)
    lands_on_battlefield = state.lands_on_battlefield
    lands_in_hand = state.hand.land_count

    def first(predicate) -> Optional[Card]:
        return next((c for c in cards if predicate(c)), None)

    choice = None
    if not has_spider_man:
        choice = first(lambda c: c.name == SPIDER_MAN)
    if choice is None and has_bringer_in_hand:
        choice = first(lambda c: c.name == KIORA)
    if choice is None and lands_on_battlefield <= 1 and lands_in_hand == 0:
        choice = first(lambda c: c.is_land)
    if choice is None:
        choice = first(lambda c: c.is_creature and c.name in MILL_CREATURES)
    if choice is None and lands_on_battlefield < 4:
        choice = first(lambda c: c.is_land)
    if choice is None:
        choice = first(lambda c: c.is_creature and c.name not in COMBO_PIECES)
    if choice is None:
        choice = first(
            lambda c: not c.is_instant_or_sorcery and c.name not in COMBO_PIECES
        )
    return choice


def discard_priority(
    card: Card,
    lands_on_battlefield: int,
    bringer_in_graveyard: bool,
    hand: list[Card],
) -> int:
    """Score a card for discarding; higher goes first, negative is protected."""
    name = card.name

    if name == BRINGER:
        return 500
    if name == TERROR:
        return 490
    if name == ARDYN:
        return 480
    if name == OVERLORD and bringer_in_graveyard:
        return 470

    if card.is_land:
        lands_in_hand = sum(1 for c in hand if c.is_land)
        if lands_on_battlefield >= 4 and lands_in_hand > 1:
            return 300
        if lands_on_battlefield >= 3 and lands_in_hand > 2:
            return 250

    if card.is_creature and name != SPIDER_MAN:
        if sum(1 for c in hand if c.name == name) > 1:
            return 200

    if card.is_instant_or_sorcery:
        return 100

    if name == SPIDER_MAN:
        return -100
    if name == KIORA:
        return -50
    return 0


def select_discards(state: GameState, count: int) -> list[Card]:
    """
    Pick `count` cards to discard from hand, re-scoring after each pick.

    The discard is mandatory: when only protected cards remain, the best of
    them still goes.
    """
    hand = list(state.hand)
    bringer_in_graveyard = state.graveyard.contains(BRINGER)
    lands_on_battlefield = state.lands_on_battlefield
    chosen: list[Card] = []

    while len(chosen) < count and hand:
        scores = [
            discard_priority(c, lands_on_battlefield, bringer_in_graveyard, hand)
            for c in hand
        ]
        best = scores.index(max(scores))
        card = hand.pop(best)
        chosen.append(card)
        if card.name == BRINGER:
            bringer_in_graveyard = True

    return chosen


# =============================================================================
# Spell casting
# =============================================================================


def _spider_man_allowed(state: GameState, combo_is_lethal: bool) -> bool:
    if state.graveyard.contains(BRINGER):
        return combo_is_lethal
    # No Bringer yet: only worth casting to copy a mill creature, with a spare
    if state.hand.count(SPIDER_MAN) < 2:
        return False
    return any(state.graveyard.contains(name) for name in MILL_CREATURES)


def castable_spells(state: GameState, combo_is_lethal: bool) -> list[Card]:
    """Non-land cards in hand that can be and should be cast now."""
    spells = []
    for card in state.hand:
        if card.is_land or not can_cast(card, state):
            continue
        if card.name == SPIDER_MAN and not _spider_man_allowed(state, combo_is_lethal):
            continue
        spells.append(card)
    return spells


def choose_spell_to_cast(state: GameState, combo_is_lethal: bool) -> Optional[Card]:
    """
    Pick the next spell for the main phase.

    Order: Spider-Man when the combo kills, then Speaker and Kiora while a
    combo piece is stuck in hand, then mill spells, then Awaken, then
    cheapest first. The sort is stable so hand order breaks ties.
    """
    spells = castable_spells(state, combo_is_lethal)
    if not spells:
        return None

    combo_piece_in_hand = state.hand.contains(BRINGER) or state.hand.contains(TERROR)

    def priority(card: Card) -> tuple:
        lethal_first = 0 if combo_is_lethal and card.name == SPIDER_MAN else 1
        if combo_piece_in_hand and card.name == SPEAKER:
            discard_outlet = 0
        elif combo_piece_in_hand and card.name == KIORA:
            discard_outlet = 1
        else:
            discard_outlet = 2
        return (
            lethal_first,
            discard_outlet,
            0 if card.name in MILL_SPELLS else 1,
            0 if card.name == AWAKEN else 1,
            card.mana_value,
        )

    return sorted(spells, key=priority)[0]


def use_impending(card: CreatureCard, state: GameState) -> bool:
    """Impending is always preferred when it can be paid."""
    if card.impending_cost is None:
        return False
    return can_pay(state, card.impending_cost, card)
