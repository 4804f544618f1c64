"""
The turn structure: untap, upkeep, draw, main, combat, main, end.

Phases run in a fixed order with no skipping; the only player choices are
made inside the main phase by the heuristics in ``decisions``.
"""

import logging

from .card import (
    BRINGER,
    CAVERN_OF_SOULS,
    COMBO_PIECES,
    KIORA,
    MULTIVERSAL_PASSAGE,
    POLLEN,
    SPEAKER,
    SPIDER_MAN,
    TERROR,
    Card,
    Color,
    CreatureCard,
    LandCard,
    LandSubtype,
)
from .decisions import (
    LAND_FINDERS,
    choose_cavern_type,
    choose_land_to_play,
    choose_passage_color,
    choose_spell_to_cast,
    land_enters_tapped,
    use_impending,
)
from .mana import available_colors, battlefield_colors, can_cast, try_pay
from .resolver import (
    advance_sagas,
    cast_creature,
    cast_spell,
    has_ardyn,
    is_combo_lethal,
    resolve_starscourge,
    resolve_surveil,
)
from .state import Counter, GameState, Permanent, Phase

logger = logging.getLogger(__name__)

HAND_LIMIT = 7

SHOCK_LIFE_PAYMENT = 2

_DECK_COLORS = frozenset({Color.BLUE, Color.BLACK, Color.GREEN})


# =============================================================================
# Lands
# =============================================================================


def play_land(state: GameState, land: LandCard) -> Permanent:
    """
    Play a land from hand as this turn's land drop.

    Shocks and Multiversal Passage pay 2 life to enter untapped while the
    life total allows it. Surveil lands surveil after entering.
    """
    state.hand.remove(land)

    tapped = land.enters_tapped
    if not tapped and land.conditional_tapped:
        match land.subtype:
            case LandSubtype.FASTLAND:
                tapped = state.lands_on_battlefield > 2
            case LandSubtype.TOWN:
                tapped = state.turn > 3
            case _:
                if state.life > SHOCK_LIFE_PAYMENT:
                    state.life -= SHOCK_LIFE_PAYMENT
                else:
                    tapped = True

    permanent = state.put_onto_battlefield(land)
    permanent.tapped = tapped
    if land.name == CAVERN_OF_SOULS:
        permanent.chosen_type = choose_cavern_type(state)
    elif land.name == MULTIVERSAL_PASSAGE:
        permanent.chosen_basic_type = choose_passage_color(state)
    state.land_played_this_turn = True

    logger.debug(
        f"  [Land] {land.name}{' (tapped)' if tapped else ''}"
        f"{f' naming {permanent.chosen_type}' if permanent.chosen_type else ''}"
    )

    if land.surveil_amount > 0:
        resolve_surveil(state, land.surveil_amount)
    return permanent


# =============================================================================
# Casting from hand
# =============================================================================


def cast_from_hand(state: GameState, card: Card) -> bool:
    """
    Pay for and resolve a card from hand.

    Impending is used whenever it is affordable. Returns False, changing
    nothing, if the cost can't be paid.
    """
    creature = card if isinstance(card, CreatureCard) else None
    impending = creature is not None and use_impending(creature, state)
    cost = creature.impending_cost if impending else card.mana_cost

    if not try_pay(state, cost, creature):
        return False

    state.hand.remove(card)
    if creature is not None:
        cast_creature(state, creature, impending)
    else:
        cast_spell(state, card)
    return True


def _could_cast_kiora_after_land_drop(state: GameState) -> bool:
    kiora = state.hand.find(lambda c: c.name == KIORA)
    if kiora is None:
        return False
    if can_cast(kiora, state):
        return True
    if state.land_played_this_turn:
        return False
    if len(state.battlefield.untapped_lands) + 1 < kiora.mana_value:
        return False

    untapped_lands_in_hand = [
        land for land in state.hand.lands if not land_enters_tapped(land, state)
    ]
    if Color.BLUE in available_colors(state) and untapped_lands_in_hand:
        return True
    return any(Color.BLUE in land.colors for land in untapped_lands_in_hand)


def _should_prioritize_discard_spell(state: GameState) -> bool:
    """A combo piece is stuck in hand and a discard outlet is castable this turn."""
    hand = state.hand
    if not any(hand.contains(name) for name in COMBO_PIECES):
        return False
    if not (hand.contains(KIORA) or hand.contains(SPEAKER)):
        return False
    return _could_cast_kiora_after_land_drop(state)


def _combo_ready(state: GameState) -> bool:
    return state.hand.contains(SPIDER_MAN) and state.graveyard.contains(BRINGER)


def _should_cast_pollen_early(state: GameState) -> bool:
    missing = _DECK_COLORS - available_colors(state)
    if missing and not any(set(land.colors) & missing for land in state.hand.lands):
        return True

    if _combo_ready(state):
        untapped = len(state.battlefield.untapped_lands)
        has_land = state.hand.land_count > 0
        if untapped == 2 and has_land:
            return True
        if untapped == 3 and not has_land and not state.land_played_this_turn:
            return True
    return False


# =============================================================================
# Phases
# =============================================================================


def begin_turn(state: GameState) -> None:
    """Untap, upkeep and draw steps."""
    state.turn += 1
    state.phase = Phase.UNTAP
    for permanent in state.battlefield:
        permanent.untap()
    state.land_played_this_turn = False
    state.mana_pool.clear()

    logger.debug(f"=== Turn {state.turn} (opponent at {state.opponent_life}) ===")

    state.phase = Phase.UPKEEP

    state.phase = Phase.DRAW
    if state.turn == 1 and state.on_the_play:
        return
    card = state.draw()
    if card is not None:
        logger.debug(f"  [Draw] {card.name}")


def main_phase(state: GameState) -> None:
    """First main phase: set up the combo, make the land drop, cast spells."""
    hand = state.hand

    # Spider-Man is live next to a binned Bringer: hold up four untapped mana
    if (
        _combo_ready(state)
        and len(state.battlefield.untapped_lands) == 3
        and not state.land_played_this_turn
    ):
        land = hand.find(
            lambda c: isinstance(c, LandCard)
            and not c.enters_tapped
            and c.subtype is not LandSubtype.FASTLAND
        )
        if land is not None:
            play_land(state, land)

    prioritize_discard = _should_prioritize_discard_spell(state)

    pollen = hand.find(lambda c: c.name == POLLEN)
    if pollen is not None and can_cast(pollen, state) and _should_cast_pollen_early(state):
        cast_from_hand(state, pollen)

    # Dig for a land before committing the land drop
    if not prioritize_discard:
        while not state.land_played_this_turn:
            finders = [c for c in hand if c.name in LAND_FINDERS and can_cast(c, state)]
            if not finders:
                break
            finder = min(finders, key=lambda c: c.mana_value)
            if not cast_from_hand(state, finder):
                break

    if not state.land_played_this_turn:
        land = choose_land_to_play(state)
        if land is not None:
            play_land(state, land)

    while True:
        combo_is_lethal = state.graveyard.contains(BRINGER) and is_combo_lethal(state)
        card = choose_spell_to_cast(state, combo_is_lethal)
        if card is None or not cast_from_hand(state, card):
            break


def combat(state: GameState) -> int:
    """
    Attack with everything that can. Returns the damage dealt.

    With Ardyn out, Starscourge resolves first and Demons gain haste and
    lifelink.
    """
    state.phase = Phase.COMBAT
    ardyn = has_ardyn(state)
    if ardyn:
        resolve_starscourge(state)

    attackers = [
        p
        for p in state.battlefield.creatures
        if not p.is_impending
        and not p.tapped
        and (
            not p.has_summoning_sickness(state.turn)
            or (ardyn and p.has_creature_type("Demon"))
        )
    ]
    if not attackers:
        return 0

    damage = 0
    for permanent in attackers:
        permanent.tap()
        damage += permanent.power
        if ardyn and permanent.has_creature_type("Demon"):
            state.life += permanent.power

    state.opponent_life -= damage
    logger.debug(
        f"  [Combat] {', '.join(p.name for p in attackers)} attack for {damage} "
        f"(opponent at {state.opponent_life})"
    )
    return damage


def end_step(state: GameState) -> None:
    """Tick impending creatures down and discard to hand size."""
    state.phase = Phase.END

    for permanent in state.battlefield.creatures:
        if permanent.is_impending:
            permanent.remove_counter(Counter.TIME)
            if not permanent.is_impending:
                logger.debug(f"  {permanent.name} is now a creature")

    while len(state.hand) > HAND_LIMIT:
        card = state.hand.find(lambda c: c.name in (BRINGER, TERROR))
        if card is None:
            card = state.hand.cards[-1]
        state.discard(card)
        logger.debug(f"  [Hand size] Discarded {card.name}")

    state.mana_pool.clear()


def execute_turn(state: GameState) -> None:
    """Play one full turn."""
    begin_turn(state)

    state.phase = Phase.MAIN_1
    advance_sagas(state)
    main_phase(state)

    if state.opponent_life > 0:
        combat(state)

    state.phase = Phase.MAIN_2

    end_step(state)


def has_deck_colors(state: GameState) -> bool:
    """True when the lands in play make blue, black and green between them."""
    return _DECK_COLORS <= battlefield_colors(state)


