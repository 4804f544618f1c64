"""
Pydantic models for API requests and responses.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

# ============================================================================
# Request Models
# ============================================================================


class SimulateRequest(BaseModel):
    """Request for a batch of goldfish games."""

    decklist: Optional[list[str]] = Field(
        default=None,
        description="Deck lines like '4 Bringer of the Last Gift'; the bundled list if omitted",
    )
    num_games: int = Field(default=1000, ge=1, le=5000, description="Number of games to simulate")
    seed: Optional[int] = Field(default=None, description="Base seed for reproducibility")
    save: bool = Field(default=False, description="Record the run in the database")


class SingleGameRequest(BaseModel):
    """Request for one seeded game."""

    decklist: Optional[list[str]] = Field(default=None, description="Deck lines; bundled list if omitted")
    seed: int = Field(..., description="Game seed")


class AnalyzeRequest(BaseModel):
    """Request for turn-4 combo readiness analysis."""

    decklist: Optional[list[str]] = Field(default=None, description="Deck lines; bundled list if omitted")
    num_games: int = Field(default=1000, ge=1, le=5000)
    seed: Optional[int] = Field(default=None, description="Base seed (default 0)")


class OptimizeRequest(BaseModel):
    """Request for a random search over land configurations."""

    decklist: Optional[list[str]] = Field(
        default=None,
        description="Deck whose non-land cards are kept fixed; bundled list if omitted",
    )
    configs: int = Field(default=50, ge=1, le=200, description="Land configurations to try")
    games: int = Field(default=200, ge=1, le=2000, description="Games per configuration")
    strategy: Literal["weighted", "shuffle"] = Field(default="weighted")
    seed: Optional[int] = Field(default=None)
    top: int = Field(default=10, ge=1, le=50, description="How many ranked configs to return")


# ============================================================================
# Response Models
# ============================================================================


class BatchStatsResponse(BaseModel):
    """Win statistics for a batch of games."""

    games: int
    wins: int
    no_win: int
    win_rate: float
    avg_win_turn: Optional[float] = None
    avg_ubg_turn: Optional[float] = Field(
        default=None, description="Average first turn with blue, black and green available"
    )
    turn_distribution: dict[int, int] = Field(..., description="Wins on each turn")
    base_seed: int


class SimulateResponse(BaseModel):
    """Response for a batch simulation."""

    deck_name: str
    deck_size: int
    stats: BatchStatsResponse
    cached: bool = False
    run_id: Optional[int] = Field(default=None, description="Saved run id when save=true")


class BoardSummary(BaseModel):
    """Zones at the end of a game."""

    turn: int
    phase: str
    on_the_play: bool
    life: int
    opponent_life: int
    library_size: int
    hand: list[str]
    graveyard: list[str]
    exile: list[str]
    battlefield: list[str]


class SingleGameResponse(BaseModel):
    """Response for one seeded game."""

    seed: int
    won: bool
    win_turn: Optional[int] = None
    ubg_turn: Optional[int] = None
    on_the_play: bool
    board: BoardSummary


class AnalyzeResponse(BaseModel):
    """Aggregated turn-4 analysis."""

    games: int
    seed: int
    reasons: dict[str, int] = Field(..., description="Games per classification")
    avg_mana: Optional[float] = None
    blue_pct: Optional[float] = None
    black_pct: Optional[float] = None
    green_pct: Optional[float] = None


class LandConfigResult(BaseModel):
    """One evaluated land configuration."""

    lands: dict[str, int]
    description: str
    stats: BatchStatsResponse


class OptimizeResponse(BaseModel):
    """Ranked land configurations."""

    strategy: str
    seed: int
    evaluated: int
    games_per_config: int
    best: Optional[LandConfigResult] = None
    top: list[LandConfigResult] = Field(default_factory=list)
    land_frequency: dict[str, float] = Field(
        default_factory=dict, description="Average copies of each land across the top configs"
    )


class SimulationRunResponse(BaseModel):
    """A persisted batch."""

    id: int
    created_at: Optional[str] = None
    deck_name: str
    deck_hash: str
    games: int
    wins: int
    win_rate: float
    avg_win_turn: Optional[float] = None
    avg_ubg_turn: Optional[float] = None
    base_seed: Optional[int] = None
    turn_distribution: dict[int, int]


class RunsResponse(BaseModel):
    runs: list[SimulationRunResponse]
    count: int


class CardsResponse(BaseModel):
    cards: list[str]
    count: int


class HealthResponse(BaseModel):
    """API health status."""

    status: str = Field(..., description="'healthy' or 'degraded'")
    database_connected: bool
    cards_loaded: int


class ErrorResponse(BaseModel):
    """Error response."""

    detail: str
    error_code: Optional[str] = None
