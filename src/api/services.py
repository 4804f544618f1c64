"""
Service layer for API endpoints.

Contains the business logic for:
- Batch simulation, with optional persistence
- Single seeded games
- Turn-4 analysis
- Land configuration search
- Simulation history

Caching:
    Batch results for requests that carry a seed are cached in Redis when
    available. The cache key is an md5 of the request body.
"""

import logging
from pathlib import Path
from typing import Optional

from src.data.card_db import CardDatabase
from src.data.db_config import DatabaseManager
from src.data.db_models import record_batch, recent_runs
from src.data.deck_loader import BUNDLED_DECK_PATH, Deck, load_deck, load_decklist
from src.game.analyzer import aggregate_analyses, analyze_batch
from src.game.card import CardKind
from src.game.optimizer import optimize_lands
from src.game.simulator import run_batch, run_game

from .cache import cache
from .models import (
    AnalyzeRequest,
    AnalyzeResponse,
    HealthResponse,
    LandConfigResult,
    OptimizeRequest,
    OptimizeResponse,
    RunsResponse,
    SimulateRequest,
    SimulateResponse,
    SingleGameRequest,
    SingleGameResponse,
)

logger = logging.getLogger(__name__)

SIMULATE_TTL = 3600  # 1 hour

_registry: Optional[CardDatabase] = None


# ============================================================================
# Registry & Decks
# ============================================================================


def get_registry() -> CardDatabase:
    """The card registry, loaded on first use."""
    global _registry
    if _registry is None:
        _registry = CardDatabase.from_json()
        logger.info(f"Loaded card registry ({len(_registry)} cards)")
    return _registry


def set_registry(registry: Optional[CardDatabase]) -> None:
    """Replace the registry; None forces a reload on next use."""
    global _registry
    _registry = registry


def resolve_deck(decklist: Optional[list[str]]) -> Deck:
    """
    The requested deck, or the bundled list when none is given.

    Raises:
        DeckParseError: malformed deck line
        UnknownCardError: card not in the registry
    """
    db = get_registry()
    if decklist is None:
        return load_deck(Path(BUNDLED_DECK_PATH), db)
    return load_decklist(decklist, db)


def _database() -> DatabaseManager:
    manager = DatabaseManager()
    manager.create_tables()
    return manager


# ============================================================================
# Health & Info Services
# ============================================================================


def get_health_status() -> HealthResponse:
    """Get health status of the API."""
    db_connected = DatabaseManager().ping()

    cards_loaded = 0
    try:
        cards_loaded = len(get_registry())
    except (OSError, ValueError) as e:
        logger.error(f"Health check could not load registry: {e}")

    return HealthResponse(
        status="healthy" if db_connected and cards_loaded else "degraded",
        database_connected=db_connected,
        cards_loaded=cards_loaded,
    )


def list_cards(card_type: Optional[str] = None) -> list[str]:
    """
    Registry names, optionally of one card type.

    Raises:
        ValueError: unknown card_type
    """
    kind = None
    if card_type:
        try:
            kind = CardKind[card_type.upper()]
        except KeyError:
            raise ValueError(f"Unknown card type: {card_type!r}") from None
    return get_registry().names(kind)


# ============================================================================
# Simulation Services
# ============================================================================


def run_simulation(request: SimulateRequest) -> SimulateResponse:
    """Run a batch of games, served from cache when the request is seeded."""
    cache_key = None
    if request.seed is not None and not request.save:
        cache_key = cache.make_key("simulate", request.model_dump(exclude={"save"}))
        cached = cache.get(cache_key)
        if cached is not None:
            return SimulateResponse(**{**cached, "cached": True})

    deck = resolve_deck(request.decklist)
    stats = run_batch(deck.cards, request.num_games, request.seed)
    logger.info(
        f"Simulated {stats.games} games of {deck.name}: {stats.win_rate:.1%} wins"
    )

    response = SimulateResponse(
        deck_name=deck.name,
        deck_size=deck.size,
        stats=stats.to_dict(),
    )

    if request.save:
        with _database().session() as session:
            run = record_batch(session, deck, stats)
            response.run_id = run.id

    if cache_key is not None:
        cache.set(cache_key, response.model_dump(), ttl=SIMULATE_TTL)

    return response


def run_single_game(request: SingleGameRequest) -> SingleGameResponse:
    deck = resolve_deck(request.decklist)
    result = run_game(deck.cards, request.seed)
    return SingleGameResponse(won=result.won, **result.to_dict())


def run_analysis(request: AnalyzeRequest) -> AnalyzeResponse:
    deck = resolve_deck(request.decklist)
    seed = request.seed if request.seed is not None else 0
    summary = aggregate_analyses(analyze_batch(deck.cards, request.num_games, seed))
    return AnalyzeResponse(seed=seed, **summary)


def _config_result(entry) -> LandConfigResult:
    data = entry.to_dict()
    return LandConfigResult(
        lands=data.pop("lands"),
        description=data.pop("description"),
        stats=data,
    )


def run_optimization(request: OptimizeRequest) -> OptimizeResponse:
    """Random search over land configurations around the deck's non-land cards."""
    deck = resolve_deck(request.decklist)
    result = optimize_lands(
        deck.nonland_counts(),
        get_registry(),
        request.configs,
        request.games,
        request.strategy,
        request.seed,
    )

    top = [_config_result(entry) for entry in result.top(request.top)]
    return OptimizeResponse(
        strategy=result.strategy,
        seed=result.seed,
        evaluated=result.evaluated,
        games_per_config=result.games_per_config,
        best=top[0] if top else None,
        top=top,
        land_frequency=result.land_frequency(),
    )


def list_runs(limit: int = 20) -> RunsResponse:
    with _database().session() as session:
        runs = [run.to_dict() for run in recent_runs(session, limit)]
    return RunsResponse(runs=runs, count=len(runs))
