"""
API package for serving reanimator simulations.

Quick start:
    # Run the API server
    uvicorn src.api.app:app --reload

    # Or from command line
    python -m src.api.app

Endpoints:
    GET  /health           - Health check
    GET  /cache/stats      - Cache statistics
    POST /cache/clear      - Clear cache
    GET  /cards            - List registry cards
    POST /simulate         - Run a batch of games
    POST /simulate/game    - Play one seeded game
    POST /analyze/turn4    - Turn-4 combo readiness
    POST /optimize/lands   - Land configuration search
    GET  /runs             - Saved simulation runs

Caching:
    Seeded simulation results are cached in Redis when available.
    Set REDIS_URL environment variable to enable caching.
"""

from .app import app, create_app
from .cache import RedisCache, cache
from .models import (
    AnalyzeRequest,
    AnalyzeResponse,
    BatchStatsResponse,
    BoardSummary,
    CardsResponse,
    ErrorResponse,
    HealthResponse,
    LandConfigResult,
    OptimizeRequest,
    OptimizeResponse,
    RunsResponse,
    SimulateRequest,
    SimulateResponse,
    SimulationRunResponse,
    SingleGameRequest,
    SingleGameResponse,
)
from .services import (
    get_health_status,
    get_registry,
    list_cards,
    list_runs,
    run_analysis,
    run_optimization,
    run_simulation,
    run_single_game,
)

__all__ = [
    # App
    "app",
    "create_app",
    # Request models
    "SimulateRequest",
    "SingleGameRequest",
    "AnalyzeRequest",
    "OptimizeRequest",
    # Response models
    "BatchStatsResponse",
    "BoardSummary",
    "SimulateResponse",
    "SingleGameResponse",
    "AnalyzeResponse",
    "LandConfigResult",
    "OptimizeResponse",
    "SimulationRunResponse",
    "RunsResponse",
    "CardsResponse",
    "HealthResponse",
    "ErrorResponse",
    # Services
    "get_health_status",
    "get_registry",
    "list_cards",
    "list_runs",
    "run_analysis",
    "run_optimization",
    "run_simulation",
    "run_single_game",
    # Caching
    "RedisCache",
    "cache",
]
