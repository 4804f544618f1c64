"""
Mana production and cost payment.

Payment is scarcity-based: colors that few lands can produce are paid first,
each from the least flexible land that can make them, and generic mana is
paid last from whatever is left. Naive land-order tapping fails costs that
are payable (e.g. {U}{B} from a Watery Grave plus an Island), so both the
affordability check and the real payment share one assignment routine.
"""

import logging
from typing import Optional

from .card import (
    ALL_COLORS,
    CAVERN_OF_SOULS,
    GLOOMLAKE_VERGE,
    MULTIVERSAL_PASSAGE,
    PIP_ORDER,
    STARTING_TOWN,
    WASTEWOOD_VERGE,
    Card,
    Color,
    CreatureCard,
    LandCard,
    ManaCost,
)
from .state import GameState, Permanent

logger = logging.getLogger(__name__)

# Lands carrying the basic types each verge checks for
_SWAMP_OR_FOREST = frozenset(
    {"Swamp", "Forest", "Watery Grave", "Underground Mortuary", "Undercity Sewers"}
)
_ISLAND_OR_SWAMP = frozenset({"Island", "Swamp", "Watery Grave", "Undercity Sewers"})


def _controls_any(state: GameState, names: frozenset[str]) -> bool:
    return any(p.is_land and p.name in names for p in state.battlefield)


def get_produced_colors(
    permanent: Permanent,
    state: GameState,
    for_creature: Optional[CreatureCard] = None,
) -> list[Color]:
    """
    Colors a land could produce right now.

    Tapped lands and non-lands produce nothing. Cavern of Souls only makes
    colored mana for a creature of its chosen type; pass the creature being
    cast as ``for_creature`` to get that context.
    """
    if permanent.tapped or not isinstance(permanent.card, LandCard):
        return []
    return _land_colors(permanent, state, for_creature)


def _land_colors(
    permanent: Permanent,
    state: GameState,
    for_creature: Optional[CreatureCard],
) -> list[Color]:
    land = permanent.card

    if land.name == CAVERN_OF_SOULS:
        if (
            for_creature is not None
            and permanent.chosen_type is not None
            and for_creature.has_type(permanent.chosen_type)
        ):
            return list(ALL_COLORS)
        return [Color.COLORLESS]

    if land.name == WASTEWOOD_VERGE:
        if _controls_any(state, _SWAMP_OR_FOREST):
            return [Color.GREEN, Color.BLACK]
        return [Color.GREEN]

    if land.name == GLOOMLAKE_VERGE:
        if _controls_any(state, _ISLAND_OR_SWAMP):
            return [Color.BLUE, Color.BLACK]
        return [Color.BLUE]

    if land.name == MULTIVERSAL_PASSAGE and permanent.chosen_basic_type is not None:
        return [permanent.chosen_basic_type]

    if land.name == STARTING_TOWN:
        # Colored mana costs 1 life, so it needs life to spare
        if state.life > 1:
            return [Color.COLORLESS] + list(PIP_ORDER[:5])
        return [Color.COLORLESS]

    return list(land.colors)


def available_colors(state: GameState) -> set[Color]:
    """Union of colors producible by untapped lands (no creature context)."""
    colors: set[Color] = set()
    for permanent in state.battlefield.lands:
        colors.update(get_produced_colors(permanent, state))
    return colors


def battlefield_colors(state: GameState) -> set[Color]:
    """Colors the lands in play make, tapped or not."""
    colors: set[Color] = set()
    for permanent in state.battlefield.lands:
        colors.update(_land_colors(permanent, state, None))
    return colors


def _assign_lands(
    state: GameState,
    cost: ManaCost,
    for_creature: Optional[CreatureCard],
) -> Optional[list[tuple[Permanent, Color]]]:
    """
    Pick which land produces which color, without touching state.

    Returns the assignment, or None if the cost cannot be paid.
    """
    lands = []
    for permanent in state.battlefield.lands:
        colors = get_produced_colors(permanent, state, for_creature)
        if colors:
            lands.append((permanent, colors))

    if len(lands) < cost.cmc:
        return None

    requirements = [(c, cost.amount(c)) for c in PIP_ORDER if cost.amount(c) > 0]
    # Rarest color first; stable so WUBRGC order breaks ties
    requirements.sort(key=lambda req: sum(1 for _, colors in lands if req[0] in colors))

    used: set[int] = set()
    assignment: list[tuple[Permanent, Color]] = []
    # Each colored pip from Starting Town costs 1 life; never pay down to 0
    life = state.life

    for color, amount in requirements:
        candidates = [
            (i, colors)
            for i, (_, colors) in enumerate(lands)
            if i not in used and color in colors
        ]
        candidates.sort(key=lambda cand: len(cand[1]))

        remaining = amount
        for i, _ in candidates:
            if remaining == 0:
                break
            if lands[i][0].name == STARTING_TOWN and color is not Color.COLORLESS:
                if life <= 1:
                    continue
                life -= 1
            assignment.append((lands[i][0], color))
            used.add(i)
            remaining -= 1

        if remaining > 0:
            return None

    leftovers = [(i, colors) for i, (_, colors) in enumerate(lands) if i not in used]
    leftovers.sort(key=lambda cand: len(cand[1]))

    generic = cost.generic
    for i, colors in leftovers:
        if generic == 0:
            break
        assignment.append((lands[i][0], colors[0]))
        generic -= 1

    if generic > 0:
        return None

    return assignment


def can_pay(
    state: GameState,
    cost: ManaCost,
    for_creature: Optional[CreatureCard] = None,
) -> bool:
    """Check whether untapped lands can pay a cost. Never mutates state."""
    return _assign_lands(state, cost, for_creature) is not None


def try_pay(
    state: GameState,
    cost: ManaCost,
    for_creature: Optional[CreatureCard] = None,
) -> bool:
    """
    Pay a cost by tapping lands.

    The whole assignment is worked out before anything is tapped, so a
    failed payment leaves every land untapped.
    """
    assignment = _assign_lands(state, cost, for_creature)
    if assignment is None:
        return False

    for permanent, color in assignment:
        permanent.tap()
        if permanent.name == STARTING_TOWN and color is not Color.COLORLESS:
            state.life -= 1
        state.mana_pool.add(color)

    paid = state.mana_pool.pay(cost)
    logger.debug(
        f"Paid {cost} with {[f'{p.name}:{c.value}' for p, c in assignment]}"
    )
    return paid


def can_cast(card: Card, state: GameState) -> bool:
    """
    Whether a non-land card in hand is castable right now.

    Creatures with an impending cost count as castable when either cost is
    affordable.
    """
    if card.is_land:
        return False

    for_creature = card if isinstance(card, CreatureCard) else None
    if for_creature is not None and for_creature.impending_cost is not None:
        if can_pay(state, for_creature.impending_cost, for_creature):
            return True

    return can_pay(state, card.mana_cost, for_creature)
