"""
Game runner: plays seeded goldfish games and aggregates batch statistics.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Optional

from tqdm import tqdm

from .card import Card
from .mulligan import resolve_mulligans
from .rng import GameRng
from .state import GameState, create_game
from .turns import HAND_LIMIT, execute_turn, has_deck_colors

logger = logging.getLogger(__name__)

MAX_TURNS = 20
STARTING_LIFE = 20
OPPONENT_STARTING_LIFE = 20

__all__ = [
    "HAND_LIMIT",
    "MAX_TURNS",
    "OPPONENT_STARTING_LIFE",
    "STARTING_LIFE",
    "BatchStats",
    "GameResult",
    "Simulator",
    "compare_decks",
    "run_batch",
    "run_game",
    "setup_game",
]


@dataclass
class GameResult:
    """Outcome of one goldfish game."""

    seed: int
    win_turn: Optional[int]  # None if the opponent survived MAX_TURNS
    ubg_turn: Optional[int]  # First turn blue, black and green were all available
    on_the_play: bool
    final_state: GameState

    @property
    def won(self) -> bool:
        return self.win_turn is not None

    def to_dict(self) -> dict:
        return {
            "seed": self.seed,
            "win_turn": self.win_turn,
            "ubg_turn": self.ubg_turn,
            "on_the_play": self.on_the_play,
            "board": self.final_state.get_board_summary(),
        }


@dataclass
class BatchStats:
    """Aggregate statistics over a batch of games."""

    games: int = 0
    wins: int = 0
    base_seed: Optional[int] = None
    turn_distribution: dict[int, int] = field(default_factory=dict)
    ubg_turns: list[int] = field(default_factory=list)

    @property
    def no_win(self) -> int:
        return self.games - self.wins

    @property
    def win_rate(self) -> float:
        return self.wins / self.games if self.games else 0.0

    @property
    def avg_win_turn(self) -> Optional[float]:
        if not self.wins:
            return None
        total = sum(turn * count for turn, count in self.turn_distribution.items())
        return total / self.wins

    @property
    def avg_ubg_turn(self) -> Optional[float]:
        if not self.ubg_turns:
            return None
        return sum(self.ubg_turns) / len(self.ubg_turns)

    def add(self, result: GameResult) -> None:
        self.games += 1
        if result.win_turn is not None:
            self.wins += 1
            self.turn_distribution[result.win_turn] = (
                self.turn_distribution.get(result.win_turn, 0) + 1
            )
        if result.ubg_turn is not None:
            self.ubg_turns.append(result.ubg_turn)

    def to_dict(self) -> dict:
        return {
            "games": self.games,
            "wins": self.wins,
            "no_win": self.no_win,
            "win_rate": self.win_rate,
            "avg_win_turn": self.avg_win_turn,
            "avg_ubg_turn": self.avg_ubg_turn,
            "turn_distribution": dict(sorted(self.turn_distribution.items())),
            "base_seed": self.base_seed,
        }


def setup_game(deck: list[Card], seed: int) -> GameState:
    """
    Create a game and resolve the opening hand.

    The on-the-play flip is drawn before the shuffle so a seed replays the
    same game everywhere.
    """
    rng = GameRng(seed)
    on_the_play = rng.random() < 0.5

    cards = list(deck)
    rng.shuffle(cards)
    hand = resolve_mulligans(cards, rng)

    state = create_game(cards, rng)
    state.hand.extend(hand)
    state.on_the_play = on_the_play
    state.life = STARTING_LIFE
    state.opponent_life = OPPONENT_STARTING_LIFE

    logger.debug(
        f"Seed {seed}: {'on the play' if on_the_play else 'on the draw'}, "
        f"keeping {[c.name for c in hand]}"
    )
    return state


class Simulator:
    """
    Plays goldfish games with a fixed turn ceiling.
    """

    def __init__(self, max_turns: int = MAX_TURNS):
        self.max_turns = max_turns

    def run_game(self, deck: list[Card], seed: int) -> GameResult:
        """Play one game to a win or the turn ceiling."""
        state = setup_game(deck, seed)
        ubg_turn = None

        while state.turn < self.max_turns and state.opponent_life > 0:
            execute_turn(state)
            if ubg_turn is None and has_deck_colors(state):
                ubg_turn = state.turn

        win_turn = state.turn if state.opponent_life <= 0 else None
        if win_turn is not None:
            logger.debug(f"Won on turn {win_turn}")
        else:
            logger.debug(f"No win by turn {state.turn} (opponent at {state.opponent_life})")

        return GameResult(
            seed=seed,
            win_turn=win_turn,
            ubg_turn=ubg_turn,
            on_the_play=state.on_the_play,
            final_state=state,
        )

    def run_batch(
        self,
        deck: list[Card],
        num_games: int,
        seed: Optional[int] = None,
        show_progress: bool = False,
    ) -> BatchStats:
        """
        Play ``num_games`` games; game ``i`` uses seed ``base + i``.

        Without a seed the base is drawn from the OS and reported back.

        Args:
            show_progress: Show a progress bar over the games
        """
        if num_games < 1:
            raise ValueError(f"num_games must be positive, got {num_games}")

        base_seed = seed if seed is not None else random.SystemRandom().randrange(2**31)
        stats = BatchStats(base_seed=base_seed)

        seeds = range(base_seed, base_seed + num_games)
        if show_progress:
            seeds = tqdm(seeds, desc="Simulating games")

        for game_seed in seeds:
            stats.add(self.run_game(deck, game_seed))

        logger.info(
            f"Ran {num_games} games from seed {base_seed}: "
            f"{stats.win_rate:.1%} wins, avg turn {stats.avg_win_turn}"
        )
        return stats


def run_game(deck: list[Card], seed: int) -> GameResult:
    return Simulator().run_game(deck, seed)


def run_batch(
    deck: list[Card],
    num_games: int,
    seed: Optional[int] = None,
    show_progress: bool = False,
) -> BatchStats:
    return Simulator().run_batch(deck, num_games, seed, show_progress)


def compare_decks(
    deck_a: list[Card],
    deck_b: list[Card],
    num_games: int,
    seed: Optional[int] = None,
    show_progress: bool = False,
) -> tuple[BatchStats, BatchStats]:
    """Run both decks over the same seeds."""
    first = run_batch(deck_a, num_games, seed, show_progress)
    second = run_batch(deck_b, num_games, first.base_seed, show_progress)
    return first, second
