"""
FastAPI application for the reanimator simulator.

Provides endpoints for:
- Batch goldfish simulation (cached when seeded, optionally persisted)
- Single seeded games with the final board
- Turn-4 combo readiness analysis
- Land configuration search
- Simulation history

API Documentation:
- Swagger UI: http://localhost:8000/docs
- ReDoc: http://localhost:8000/redoc
- OpenAPI JSON: http://localhost:8000/openapi.json
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from src.data.card_db import CardDataError, UnknownCardError
from src.data.deck_loader import DeckParseError

from .cache import cache
from .models import (
    AnalyzeRequest,
    AnalyzeResponse,
    CardsResponse,
    ErrorResponse,
    HealthResponse,
    OptimizeRequest,
    OptimizeResponse,
    RunsResponse,
    SimulateRequest,
    SimulateResponse,
    SingleGameRequest,
    SingleGameResponse,
)
from .services import (
    get_health_status,
    list_cards,
    list_runs,
    run_analysis,
    run_optimization,
    run_simulation,
    run_single_game,
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# OpenAPI tag descriptions for Swagger UI organization
tags_metadata = [
    {
        "name": "Health",
        "description": "API health checks and cache status.",
    },
    {
        "name": "Info",
        "description": "Browse the card registry and saved runs.",
    },
    {
        "name": "Simulation",
        "description": "Run goldfish games of the reanimator deck.",
    },
    {
        "name": "Analysis",
        "description": "Combo readiness analysis and land configuration search.",
    },
]

DECK_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting reanimator simulator API...")
    yield
    logger.info("Shutting down reanimator simulator API...")


# Create FastAPI app
app = FastAPI(
    title="Reanimator Simulator API",
    description="""
## Goldfish simulation for the Bringer / Terror reanimator deck

Plays the deck against an opponent that does nothing and reports how fast
it wins.

### Features

- **Simulation**: Win rate, average win turn and turn distribution over many seeded games
- **Single games**: Replay one seed and inspect the final board
- **Turn 4 analysis**: Why the combo wasn't ready on turn 4
- **Land optimization**: Random search over land configurations

Omit `decklist` in any request to use the bundled 60-card list.
""",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=tags_metadata,
)

# Add CORS middleware for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _deck_error(e: Exception) -> HTTPException:
    """Map deck and registry errors to client errors."""
    if isinstance(e, UnknownCardError):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


# ============================================================================
# Health & Info Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Check API health, database connectivity and the card registry."""
    return get_health_status()


@app.get("/cache/stats", tags=["Health"])
async def cache_stats():
    """Get cache statistics."""
    return cache.stats()


@app.post("/cache/clear", tags=["Health"])
async def cache_clear():
    """Clear all cache entries."""
    deleted = cache.clear_all()
    return {"message": f"Cleared {deleted} cache entries"}


@app.get(
    "/cards",
    response_model=CardsResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["Info"],
)
async def get_cards(
    card_type: str | None = Query(
        default=None,
        description="Filter by type: land, creature, instant, sorcery, enchantment, saga",
    ),
):
    """List the card names in the registry."""
    try:
        cards = list_cards(card_type)
        return CardsResponse(cards=cards, count=len(cards))
    except CardDataError as e:
        logger.error(f"Card registry error: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get(
    "/runs",
    response_model=RunsResponse,
    responses={500: {"model": ErrorResponse}},
    tags=["Info"],
)
async def get_runs(limit: int = Query(default=20, ge=1, le=200)):
    """Most recent saved simulation runs."""
    try:
        return list_runs(limit)
    except Exception as e:
        logger.error(f"Error listing runs: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# ============================================================================
# Simulation Endpoints
# ============================================================================


@app.post(
    "/simulate",
    response_model=SimulateResponse,
    responses=DECK_ERROR_RESPONSES,
    tags=["Simulation"],
)
async def simulate(request: SimulateRequest):
    """
    Run a batch of goldfish games.

    Game ``i`` uses seed ``seed + i``, so a seeded request always returns
    the same statistics and is served from cache on repeat.
    """
    try:
        return run_simulation(request)
    except (DeckParseError, UnknownCardError) as e:
        raise _deck_error(e)
    except Exception as e:
        logger.error(f"Error running simulation: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post(
    "/simulate/game",
    response_model=SingleGameResponse,
    responses=DECK_ERROR_RESPONSES,
    tags=["Simulation"],
)
async def simulate_game(request: SingleGameRequest):
    """Play one seeded game and return the result with the final board."""
    try:
        return run_single_game(request)
    except (DeckParseError, UnknownCardError) as e:
        raise _deck_error(e)
    except Exception as e:
        logger.error(f"Error running game: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# ============================================================================
# Analysis Endpoints
# ============================================================================


@app.post(
    "/analyze/turn4",
    response_model=AnalyzeResponse,
    responses=DECK_ERROR_RESPONSES,
    tags=["Analysis"],
)
async def analyze_turn4(request: AnalyzeRequest):
    """
    Classify why the combo was or wasn't available on turn 4.

    Returns counts per reason plus the average mana and how often each of
    blue, black and green was available.
    """
    try:
        return run_analysis(request)
    except (DeckParseError, UnknownCardError) as e:
        raise _deck_error(e)
    except Exception as e:
        logger.error(f"Error running analysis: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post(
    "/optimize/lands",
    response_model=OptimizeResponse,
    responses=DECK_ERROR_RESPONSES,
    tags=["Analysis"],
)
async def optimize_lands_endpoint(request: OptimizeRequest):
    """
    Search land configurations for the deck's non-land cards.

    Every configuration plays the same seeds; configurations that never
    won are left out of the ranking.
    """
    try:
        return run_optimization(request)
    except (DeckParseError, UnknownCardError) as e:
        raise _deck_error(e)
    except Exception as e:
        logger.error(f"Error running optimization: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# ============================================================================
# Main entry point
# ============================================================================


def create_app() -> FastAPI:
    """Factory function for creating the app."""
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("src.api.app:app", host="0.0.0.0", port=8000, reload=True)
