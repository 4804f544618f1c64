"""
Turn-4 readiness analysis: why didn't the combo go off?

Plays a game to the start of turn 4's main phase and names the first thing
standing between the hand and a lethal Spider-Man.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .card import BRINGER, SPIDER_MAN, TERROR, Card, Color
from .decisions import land_enters_tapped
from .mana import available_colors
from .resolver import advance_sagas, calculate_combo_damage
from .simulator import setup_game
from .state import GameState, Phase
from .turns import begin_turn, execute_turn

logger = logging.getLogger(__name__)

ANALYSIS_TURN = 4
COMBO_MANA = 4

# Failure reasons, in the order they are checked
NOT_ENOUGH_MANA = "not enough mana"
MISSING_COLORS = "missing colors"
NO_SPIDER_MAN = "no Superior Spider-Man in hand"
NO_BRINGER = "no Bringer in graveyard"
NO_TERROR = "no Terror in graveyard or battlefield"
NOT_LETHAL = "combo not lethal"
COMBO_AVAILABLE = "combo available"
WON_EARLY = "won before turn 4"

REASONS = (
    NOT_ENOUGH_MANA,
    MISSING_COLORS,
    NO_SPIDER_MAN,
    NO_BRINGER,
    NO_TERROR,
    NOT_LETHAL,
    COMBO_AVAILABLE,
    WON_EARLY,
)


@dataclass
class Turn4Analysis:
    """State of one game at the start of turn 4's main phase."""

    seed: int
    reason: str
    mana: int
    colors: frozenset[Color]
    combo_damage: int
    opponent_life: int
    hand: list[str]
    graveyard: list[str]

    @property
    def combo_ready(self) -> bool:
        return self.reason in (COMBO_AVAILABLE, WON_EARLY)


def _mana_and_colors(state: GameState) -> tuple[int, set[Color]]:
    mana = state.lands_on_battlefield
    colors = available_colors(state)

    land = next(
        (c for c in state.hand.lands if not land_enters_tapped(c, state)), None
    )
    if land is not None:
        mana += 1
        colors |= set(land.colors)
    return mana, colors


def classify(state: GameState) -> tuple[str, int, set[Color], int]:
    """Return (reason, mana, colors, combo damage) for the current state."""
    mana, colors = _mana_and_colors(state)
    damage = calculate_combo_damage(state)

    if mana < COMBO_MANA:
        reason = NOT_ENOUGH_MANA
    elif not {Color.BLUE, Color.BLACK, Color.GREEN} <= colors:
        reason = MISSING_COLORS
    elif not state.hand.contains(SPIDER_MAN):
        reason = NO_SPIDER_MAN
    elif not state.graveyard.contains(BRINGER):
        reason = NO_BRINGER
    elif not state.graveyard.contains(TERROR) and not state.battlefield.controls(TERROR):
        reason = NO_TERROR
    elif damage < state.opponent_life:
        reason = NOT_LETHAL
    else:
        reason = COMBO_AVAILABLE
    return reason, mana, colors, damage


def analyze_turn4(deck: list[Card], seed: int) -> Turn4Analysis:
    """Play turns 1-3, then stop turn 4 right before the main phase and classify."""
    state = setup_game(deck, seed)

    while state.turn < ANALYSIS_TURN - 1 and state.opponent_life > 0:
        execute_turn(state)

    if state.opponent_life <= 0:
        reason = WON_EARLY
        mana, colors = _mana_and_colors(state)
        damage = 0
    else:
        begin_turn(state)
        state.phase = Phase.MAIN_1
        advance_sagas(state)
        reason, mana, colors, damage = classify(state)

    logger.debug(f"Seed {seed}: turn 4 {reason} (mana {mana}, damage {damage})")
    return Turn4Analysis(
        seed=seed,
        reason=reason,
        mana=mana,
        colors=frozenset(colors),
        combo_damage=damage,
        opponent_life=state.opponent_life,
        hand=[c.name for c in state.hand],
        graveyard=[c.name for c in state.graveyard],
    )


def analyze_batch(deck: list[Card], num_games: int, seed: int) -> list[Turn4Analysis]:
    return [analyze_turn4(deck, seed + i) for i in range(num_games)]


def aggregate_analyses(analyses: list[Turn4Analysis]) -> dict:
    """
    Summarize a batch of analyses.

    Returns failure counts per reason, the average mana, and how often each
    of blue, black and green was available (as percentages).
    """
    total = len(analyses)
    counts = {reason: 0 for reason in REASONS}
    for analysis in analyses:
        counts[analysis.reason] += 1

    def pct(color: Color) -> Optional[float]:
        if not total:
            return None
        return 100.0 * sum(1 for a in analyses if color in a.colors) / total

    return {
        "games": total,
        "reasons": counts,
        "avg_mana": sum(a.mana for a in analyses) / total if total else None,
        "blue_pct": pct(Color.BLUE),
        "black_pct": pct(Color.BLACK),
        "green_pct": pct(Color.GREEN),
    }
