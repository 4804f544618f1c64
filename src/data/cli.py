"""
CLI for the reanimator simulator.

Commands:
- simulate: Run a batch of games and print win statistics
- game: Play one seeded game, optionally with a full trace
- compare: Run two decks over the same seeds
- analyze: Turn-4 combo readiness breakdown
- optimize: Random search over land configurations
- history: List saved simulation runs

Usage:
    reanimator-sim simulate -n 10000 -s 42
    reanimator-sim game -s 42 --verbose
    reanimator-sim compare decks/a.txt decks/b.txt -n 5000
    reanimator-sim analyze -n 1000
    reanimator-sim optimize --configs 200 --games 500 --strategy shuffle
    reanimator-sim history --limit 10
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from src.game.analyzer import aggregate_analyses, analyze_batch
from src.game.optimizer import config_to_string, optimize_lands, save_best_deck
from src.game.simulator import BatchStats, compare_decks, run_batch, run_game

from .card_db import CardDatabase, CardDataError, UnknownCardError
from .db_config import DatabaseManager
from .db_models import record_batch, recent_runs
from .deck_loader import BUNDLED_DECK_PATH, Deck, DeckParseError, load_deck

# Errors that mean the inputs are wrong, not the program
CONFIG_ERRORS = (UnknownCardError, CardDataError, DeckParseError, FileNotFoundError)

HISTOGRAM_WIDTH = 50


def _load(args: argparse.Namespace, deck_path: Optional[str] = None) -> tuple[CardDatabase, Deck]:
    db = CardDatabase.from_json(Path(args.cards) if args.cards else None)
    path = deck_path or args.deck
    deck = load_deck(Path(path) if path else BUNDLED_DECK_PATH, db)
    return db, deck


def _fmt_turn(value: Optional[float]) -> str:
    return f"{value:.2f}" if value is not None else "-"


def print_stats(stats: BatchStats, title: str = "Results") -> None:
    print(title)
    print("=" * 40)
    print(f"Games:         {stats.games:,}")
    print(f"Wins:          {stats.wins:,} ({stats.win_rate:.1%})")
    print(f"Avg win turn:  {_fmt_turn(stats.avg_win_turn)}")
    print(f"Avg UBG turn:  {_fmt_turn(stats.avg_ubg_turn)}")
    print(f"Base seed:     {stats.base_seed}")


def print_histogram(stats: BatchStats) -> None:
    if not stats.turn_distribution:
        return
    peak = max(stats.turn_distribution.values())
    print("\nWin turn distribution:")
    for turn in sorted(stats.turn_distribution):
        count = stats.turn_distribution[turn]
        bar = "#" * max(1, round(HISTOGRAM_WIDTH * count / peak))
        print(f"  T{turn:<3} {count:>7,} {100 * count / stats.games:5.1f}% {bar}")
    if stats.no_win:
        print(f"  none {stats.no_win:>7,} {100 * stats.no_win / stats.games:5.1f}%")


def cmd_simulate(args: argparse.Namespace) -> int:
    """Simulate command: run a batch and print statistics."""
    try:
        _, deck = _load(args)
    except CONFIG_ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Simulating {args.num_games:,} games of {deck.name} ({deck.size} cards)\n")
    stats = run_batch(deck.cards, args.num_games, args.seed, show_progress=not args.quiet)
    print_stats(stats)
    print_histogram(stats)

    if args.save:
        manager = DatabaseManager()
        manager.create_tables()
        with manager.session() as session:
            run = record_batch(session, deck, stats)
            print(f"\nSaved as run #{run.id}")
    return 0


def cmd_game(args: argparse.Namespace) -> int:
    """Game command: play one seeded game."""
    try:
        _, deck = _load(args)
    except CONFIG_ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.verbose:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        game_logger = logging.getLogger("src.game")
        game_logger.addHandler(handler)
        game_logger.setLevel(logging.DEBUG)
        game_logger.propagate = False

    result = run_game(deck.cards, args.seed)

    print(f"\nSeed {result.seed} ({'on the play' if result.on_the_play else 'on the draw'})")
    if result.won:
        print(f"Won on turn {result.win_turn}")
    else:
        print(f"No win (opponent at {result.final_state.opponent_life})")
    print(f"UBG available on turn {result.ubg_turn if result.ubg_turn else '-'}")
    return 0


def cmd_compare(args: argparse.Namespace) -> int:
    """Compare command: two decks over the same seeds."""
    try:
        _, deck_a = _load(args, args.deck1)
        _, deck_b = _load(args, args.deck2)
    except CONFIG_ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    stats_a, stats_b = compare_decks(
        deck_a.cards, deck_b.cards, args.num_games, args.seed, show_progress=not args.quiet
    )

    rows = [
        ("Win rate", f"{stats_a.win_rate:.1%}", f"{stats_b.win_rate:.1%}"),
        ("Avg win turn", _fmt_turn(stats_a.avg_win_turn), _fmt_turn(stats_b.avg_win_turn)),
        ("Avg UBG turn", _fmt_turn(stats_a.avg_ubg_turn), _fmt_turn(stats_b.avg_ubg_turn)),
    ]
    turns = sorted(set(stats_a.turn_distribution) | set(stats_b.turn_distribution))
    for turn in turns:
        rows.append(
            (
                f"Wins on T{turn}",
                f"{stats_a.turn_distribution.get(turn, 0):,}",
                f"{stats_b.turn_distribution.get(turn, 0):,}",
            )
        )

    print(f"Comparing over {args.num_games:,} games (base seed {stats_a.base_seed})")
    print("=" * 60)
    print(f"{'':<16}{deck_a.name:>22}{deck_b.name:>22}")
    for label, a, b in rows:
        print(f"{label:<16}{a:>22}{b:>22}")
    return 0


def cmd_analyze(args: argparse.Namespace) -> int:
    """Analyze command: why the combo wasn't ready on turn 4."""
    try:
        _, deck = _load(args)
    except CONFIG_ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    seed = args.seed if args.seed is not None else 0
    summary = aggregate_analyses(analyze_batch(deck.cards, args.num_games, seed))

    print(f"Turn 4 analysis over {summary['games']:,} games (seed {seed})")
    print("=" * 50)
    for reason, count in sorted(summary["reasons"].items(), key=lambda item: -item[1]):
        if count:
            print(f"  {reason:<40} {count:>6,} ({100 * count / summary['games']:.1f}%)")
    print()
    print(f"Avg mana:  {summary['avg_mana']:.2f}")
    print(f"Blue:      {summary['blue_pct']:.1f}%")
    print(f"Black:     {summary['black_pct']:.1f}%")
    print(f"Green:     {summary['green_pct']:.1f}%")
    return 0


def cmd_optimize(args: argparse.Namespace) -> int:
    """Optimize command: random search over land configurations."""
    try:
        db, deck = _load(args)
    except CONFIG_ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    fixed = deck.nonland_counts()
    print(
        f"Optimizing {sum(fixed.values())} fixed cards + lands: "
        f"{args.configs} configs x {args.games} games ({args.strategy})\n"
    )
    result = optimize_lands(
        fixed,
        db,
        args.configs,
        args.games,
        args.strategy,
        args.seed,
        show_progress=not args.quiet,
    )

    if result.best is None:
        print("No configuration won a game.")
        return 0

    print(f"Top {len(result.top(10))} of {result.evaluated} (seed {result.seed})")
    print("=" * 60)
    for rank, entry in enumerate(result.top(10), start=1):
        print(
            f"{rank:>2}. T{entry.avg_win_turn:.2f} "
            f"{entry.stats.win_rate:6.1%}  {config_to_string(entry.config)}"
        )

    print("\nAverage copies across the top 50:")
    for name, copies in result.land_frequency(50).items():
        if copies > 0:
            print(f"  {copies:4.2f} {name}")

    if args.save_best:
        path = save_best_deck(result, fixed, db, Path(args.output_dir))
        print(f"\nSaved best deck to {path}")
    return 0


def cmd_history(args: argparse.Namespace) -> int:
    """History command: list saved runs."""
    manager = DatabaseManager()
    manager.create_tables()
    with manager.session() as session:
        runs = recent_runs(session, args.limit)
        if not runs:
            print("No saved runs. Use 'simulate --save' to record one.")
            return 0

        print(f"{'ID':>4}  {'Created':<19}  {'Deck':<20} {'Games':>7} {'Win %':>6} {'Avg T':>6}")
        for run in runs:
            print(
                f"{run.id:>4}  {run.created_at:%Y-%m-%d %H:%M:%S}  {run.deck_name[:20]:<20} "
                f"{run.games:>7,} {100 * run.win_rate:>5.1f}% {_fmt_turn(run.avg_win_turn):>6}"
            )
    return 0


def _add_common(parser: argparse.ArgumentParser, deck: bool = True) -> None:
    if deck:
        parser.add_argument("--deck", "-d", help="Deck list file (default: bundled reanimator list)")
    parser.add_argument("--cards", "-c", help="Card registry JSON (default: $CARDS_PATH or bundled)")


def _add_quiet(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress progress bars",
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="reanimator-sim",
        description="Monte Carlo goldfish simulator for the Bringer / Terror reanimator deck",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Run a batch of games")
    simulate_parser.add_argument("--num-games", "-n", type=int, default=1000)
    simulate_parser.add_argument("--seed", "-s", type=int, help="Base seed (default: random)")
    simulate_parser.add_argument("--save", action="store_true", help="Record the run in the database")
    _add_common(simulate_parser)
    _add_quiet(simulate_parser)

    # Game command
    game_parser = subparsers.add_parser("game", help="Play a single seeded game")
    game_parser.add_argument("--seed", "-s", type=int, required=True)
    game_parser.add_argument("--verbose", "-v", action="store_true", help="Print the game trace")
    _add_common(game_parser)

    # Compare command
    compare_parser = subparsers.add_parser("compare", help="Compare two decks on the same seeds")
    compare_parser.add_argument("deck1")
    compare_parser.add_argument("deck2")
    compare_parser.add_argument("--num-games", "-n", type=int, default=1000)
    compare_parser.add_argument("--seed", "-s", type=int)
    _add_common(compare_parser, deck=False)
    _add_quiet(compare_parser)

    # Analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Turn-4 combo readiness analysis")
    analyze_parser.add_argument("--num-games", "-n", type=int, default=1000)
    analyze_parser.add_argument("--seed", "-s", type=int)
    _add_common(analyze_parser)

    # Optimize command
    optimize_parser = subparsers.add_parser("optimize", help="Search land configurations")
    optimize_parser.add_argument("--configs", type=int, default=100)
    optimize_parser.add_argument("--games", type=int, default=500)
    optimize_parser.add_argument("--strategy", choices=["weighted", "shuffle"], default="weighted")
    optimize_parser.add_argument("--seed", "-s", type=int)
    optimize_parser.add_argument("--save-best", action="store_true", help="Write the best deck list")
    optimize_parser.add_argument("--output-dir", default="decks", help="Where --save-best writes")
    _add_common(optimize_parser)
    _add_quiet(optimize_parser)

    # History command
    history_parser = subparsers.add_parser("history", help="List saved simulation runs")
    history_parser.add_argument("--limit", type=int, default=20)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    commands = {
        "simulate": cmd_simulate,
        "game": cmd_game,
        "compare": cmd_compare,
        "analyze": cmd_analyze,
        "optimize": cmd_optimize,
        "history": cmd_history,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
