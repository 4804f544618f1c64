"""
SQLAlchemy ORM models for simulation history.

These models support both SQLite and PostgreSQL backends.
"""

import json
from datetime import datetime

from sqlalchemy import Column, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Session

from src.game.optimizer import deck_hash
from src.game.simulator import BatchStats


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class SimulationRun(Base):
    """
    One batch of simulated games.

    The full turn histogram is kept as JSON; the headline numbers get their
    own columns for sorting and filtering.
    """

    __tablename__ = "simulation_runs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    deck_name = Column(String(255), nullable=False)
    deck_hash = Column(String(8), nullable=False, index=True)
    games = Column(Integer, nullable=False)
    wins = Column(Integer, nullable=False)
    win_rate = Column(Float, nullable=False)
    avg_win_turn = Column(Float)
    avg_ubg_turn = Column(Float)
    base_seed = Column(Integer)
    turn_distribution_json = Column(Text, nullable=False, default="{}")

    __table_args__ = (Index("idx_runs_created", "created_at"),)

    @property
    def turn_distribution(self) -> dict[int, int]:
        raw = json.loads(self.turn_distribution_json or "{}")
        return {int(turn): count for turn, count in raw.items()}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "deck_name": self.deck_name,
            "deck_hash": self.deck_hash,
            "games": self.games,
            "wins": self.wins,
            "win_rate": self.win_rate,
            "avg_win_turn": self.avg_win_turn,
            "avg_ubg_turn": self.avg_ubg_turn,
            "base_seed": self.base_seed,
            "turn_distribution": self.turn_distribution,
        }

    def __repr__(self):
        return f"<SimulationRun {self.deck_name} {self.wins}/{self.games}>"


def record_batch(session: Session, deck, stats: BatchStats) -> SimulationRun:
    """Store one batch result and commit. ``deck`` is a loaded Deck."""
    run = SimulationRun(
        deck_name=deck.name,
        deck_hash=deck_hash(deck.cards),
        games=stats.games,
        wins=stats.wins,
        win_rate=stats.win_rate,
        avg_win_turn=stats.avg_win_turn,
        avg_ubg_turn=stats.avg_ubg_turn,
        base_seed=stats.base_seed,
        turn_distribution_json=json.dumps(
            {str(turn): count for turn, count in sorted(stats.turn_distribution.items())}
        ),
    )
    session.add(run)
    session.commit()
    session.refresh(run)
    return run


def recent_runs(session: Session, limit: int = 20) -> list[SimulationRun]:
    """Newest runs first."""
    return (
        session.query(SimulationRun)
        .order_by(SimulationRun.created_at.desc(), SimulationRun.id.desc())
        .limit(limit)
        .all()
    )
