"""
Random search over land configurations.

The non-land part of the deck stays fixed; each candidate fills the land
slots with a random mix within per-land limits and is scored by simulation.
Every random choice comes from a seeded GameRng, so a search is repeatable.
"""

import hashlib
import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol

from tqdm import tqdm

from .card import Card
from .rng import GameRng
from .simulator import BatchStats, run_batch

logger = logging.getLogger(__name__)

TOTAL_LANDS = 24
MAX_ATTEMPTS = 1000

# (name, min copies, max copies)
LAND_TYPES: tuple[tuple[str, int, int], ...] = (
    ("Forest", 0, 4),
    ("Island", 0, 4),
    ("Swamp", 0, 4),
    ("Watery Grave", 0, 4),
    ("Undercity Sewers", 0, 4),
    ("Underground Mortuary", 0, 4),
    ("Cavern of Souls", 4, 4),
    ("Restless Cottage", 0, 1),
    ("Wastewood Verge", 0, 4),
    ("Gloomlake Verge", 0, 4),
    ("Multiversal Passage", 0, 4),
    ("Blooming Marsh", 0, 4),
    ("Starting Town", 0, 4),
)

STRATEGIES = ("weighted", "shuffle")

LandConfig = dict[str, int]


class CardSource(Protocol):
    def get(self, name: str) -> Card: ...


def _with_minimums() -> tuple[LandConfig, int]:
    config = {name: minimum for name, minimum, _ in LAND_TYPES}
    return config, TOTAL_LANDS - sum(config.values())


def generate_weighted(rng: GameRng) -> LandConfig:
    """Random counts per land type in shuffled order, then top up one at a time."""
    config, remaining = _with_minimums()
    land_types = list(LAND_TYPES)
    rng.shuffle(land_types)

    for name, _, maximum in land_types:
        extra = rng.random_range(min(maximum - config[name], remaining) + 1)
        config[name] += extra
        remaining -= extra

    attempts = 0
    while remaining > 0 and attempts < MAX_ATTEMPTS:
        name, _, maximum = land_types[rng.random_range(len(land_types))]
        if config[name] < maximum:
            config[name] += 1
            remaining -= 1
        attempts += 1

    if remaining > 0:
        logger.warning(f"Could not place {remaining} lands within the limits")
    return config


def generate_shuffle(rng: GameRng) -> LandConfig:
    """Shuffle every copy still allowed into a pool and deal out the open slots."""
    config, remaining = _with_minimums()

    pool = []
    for name, _, maximum in LAND_TYPES:
        pool.extend([name] * (maximum - config[name]))
    rng.shuffle(pool)

    for name in pool[:remaining]:
        config[name] += 1
    return config


def generate_config(rng: GameRng, strategy: str) -> LandConfig:
    match strategy:
        case "weighted":
            return generate_weighted(rng)
        case "shuffle":
            return generate_shuffle(rng)
        case _:
            raise ValueError(f"Unknown strategy {strategy!r}, expected one of {STRATEGIES}")


def config_to_string(config: LandConfig) -> str:
    """'4 Cavern of Souls, 3 Watery Grave, ...', most copies first."""
    items = sorted(
        ((name, count) for name, count in config.items() if count > 0),
        key=lambda item: (-item[1], item[0]),
    )
    return ", ".join(f"{count} {name}" for name, count in items)


def build_deck(fixed: dict[str, int], config: LandConfig, db: CardSource) -> list[Card]:
    """Fixed non-lands followed by the configured lands."""
    cards = []
    for name, count in list(fixed.items()) + list(config.items()):
        card = db.get(name)
        cards.extend([card] * count)
    return cards


def deck_hash(cards: list[Card]) -> str:
    """First 8 hex characters of an md5 over the sorted card names."""
    names = "\n".join(sorted(c.name for c in cards))
    return hashlib.md5(names.encode()).hexdigest()[:8]


# =============================================================================
# Search
# =============================================================================


@dataclass
class ConfigResult:
    config: LandConfig
    stats: BatchStats

    @property
    def avg_win_turn(self) -> Optional[float]:
        return self.stats.avg_win_turn

    def to_dict(self) -> dict:
        return {
            "lands": {name: count for name, count in self.config.items() if count > 0},
            "description": config_to_string(self.config),
            **self.stats.to_dict(),
        }


@dataclass
class OptimizationResult:
    """Configs ranked by average win turn; configs that never won are dropped."""

    strategy: str
    games_per_config: int
    seed: int
    ranked: list[ConfigResult] = field(default_factory=list)
    evaluated: int = 0

    @property
    def best(self) -> Optional[ConfigResult]:
        return self.ranked[0] if self.ranked else None

    def top(self, n: int = 10) -> list[ConfigResult]:
        return self.ranked[:n]

    def land_frequency(self, n: int = 50) -> dict[str, float]:
        """Average copies of each land across the top ``n`` configs."""
        top = self.ranked[:n]
        if not top:
            return {}
        frequency = {
            name: sum(r.config.get(name, 0) for r in top) / len(top)
            for name, _, _ in LAND_TYPES
        }
        return dict(sorted(frequency.items(), key=lambda item: -item[1]))


def optimize_lands(
    fixed: dict[str, int],
    db: CardSource,
    configs: int,
    games: int,
    strategy: str = "weighted",
    seed: Optional[int] = None,
    show_progress: bool = False,
) -> OptimizationResult:
    """
    Evaluate ``configs`` random land configurations with ``games`` games each.

    All configs are played over the same game seeds so differences come from
    the lands, not the shuffles.

    Args:
        show_progress: Show a progress bar over the configs
    """
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown strategy {strategy!r}, expected one of {STRATEGIES}")

    base_seed = seed if seed is not None else random.SystemRandom().randrange(2**31)
    rng = GameRng(base_seed)
    result = OptimizationResult(strategy=strategy, games_per_config=games, seed=base_seed)

    iterator = range(configs)
    if show_progress:
        iterator = tqdm(iterator, desc="Evaluating configs")

    for _ in iterator:
        config = generate_config(rng, strategy)
        stats = run_batch(build_deck(fixed, config, db), games, base_seed)
        result.evaluated += 1
        if stats.wins:
            result.ranked.append(ConfigResult(config=config, stats=stats))

    result.ranked.sort(key=lambda r: r.avg_win_turn)
    if result.best is not None:
        logger.info(
            f"Best of {configs}: {config_to_string(result.best.config)} "
            f"(avg turn {result.best.avg_win_turn:.2f})"
        )
    return result


def save_best_deck(
    result: OptimizationResult,
    fixed: dict[str, int],
    db: CardSource,
    directory: Path,
) -> Optional[Path]:
    """Write the best config as ``deck_<hash>.txt`` in ``directory``."""
    # Imported here: the data layer depends on the game package
    from src.data.deck_loader import write_deck

    best = result.best
    if best is None:
        return None

    cards = build_deck(fixed, best.config, db)
    path = Path(directory) / f"deck_{deck_hash(cards)}.txt"
    header = [
        f"Optimized land configuration ({result.strategy}, seed {result.seed})",
        f"Average win turn {best.avg_win_turn:.2f} over {best.stats.games} games",
        f"Win rate {best.stats.win_rate:.1%}",
    ]
    write_deck(path, lands=best.config, fixed=fixed, header_lines=header)
    logger.info(f"Saved best deck to {path}")
    return path
