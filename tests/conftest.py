"""
Shared fixtures: the bundled card registry, the reference deck and a
throwaway in-memory database.
"""

import pytest

from src.data.card_db import CardDatabase
from src.data.db_config import DatabaseConfig, DatabaseManager
from src.data.deck_loader import BUNDLED_DECK_PATH, load_deck
from src.game.rng import GameRng
from src.game.state import GameState


@pytest.fixture(scope="session")
def card_db():
    return CardDatabase.from_json()


@pytest.fixture(scope="session")
def deck(card_db):
    return load_deck(BUNDLED_DECK_PATH, card_db)


@pytest.fixture
def state():
    """Empty game on turn 1."""
    return GameState(rng=GameRng(0), turn=1)


@pytest.fixture
def memory_db():
    """Point the DatabaseManager singleton at a fresh in-memory SQLite."""
    DatabaseManager.reset()
    manager = DatabaseManager(DatabaseConfig.sqlite(":memory:"))
    manager.create_tables()
    yield manager
    DatabaseManager.reset()
