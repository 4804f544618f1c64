"""
Goldfish simulator for the Bringer / Terror reanimator deck.
"""

from .analyzer import Turn4Analysis, aggregate_analyses, analyze_turn4
from .card import (
    Ability,
    Card,
    CardKind,
    Color,
    CreatureCard,
    LandCard,
    LandSubtype,
    ManaCost,
    ManaPool,
    SagaCard,
    SpellCard,
)
from .mana import can_cast, can_pay, get_produced_colors, try_pay
from .optimizer import optimize_lands, save_best_deck
from .rng import GameRng
from .simulator import (
    MAX_TURNS,
    BatchStats,
    GameResult,
    Simulator,
    compare_decks,
    run_batch,
    run_game,
)
from .state import Counter, GameState, Permanent, Phase, create_game
from .turns import execute_turn

__all__ = [
    # Cards
    "Ability",
    "Card",
    "CardKind",
    "Color",
    "CreatureCard",
    "LandCard",
    "LandSubtype",
    "ManaCost",
    "ManaPool",
    "SagaCard",
    "SpellCard",
    # State
    "Counter",
    "GameRng",
    "GameState",
    "Permanent",
    "Phase",
    "create_game",
    # Mana
    "can_cast",
    "can_pay",
    "get_produced_colors",
    "try_pay",
    # Simulation
    "MAX_TURNS",
    "BatchStats",
    "GameResult",
    "Simulator",
    "compare_decks",
    "execute_turn",
    "run_batch",
    "run_game",
    # Analysis
    "Turn4Analysis",
    "aggregate_analyses",
    "analyze_turn4",
    "optimize_lands",
    "save_best_deck",
]
