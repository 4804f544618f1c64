"""
Tests for database configuration and simulation history.
"""

import pytest

from src.data.db_config import DatabaseConfig, DatabaseManager
from src.data.db_models import SimulationRun, recent_runs, record_batch
from src.game.optimizer import deck_hash
from src.game.simulator import BatchStats


class TestDatabaseConfig:
    def test_database_url_wins(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db:5432/sims")
        monkeypatch.setenv("DB_TYPE", "sqlite")
        config = DatabaseConfig.from_env()
        assert config.url == "postgresql://u:p@db:5432/sims"
        assert not config.is_sqlite

    def test_postgresql_from_parts(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("DB_TYPE", "postgresql")
        monkeypatch.setenv("DB_HOST", "db")
        monkeypatch.setenv("DB_USER", "sim")
        monkeypatch.setenv("DB_PASSWORD", "secret")
        config = DatabaseConfig.from_env()
        assert config.url == "postgresql://sim:secret@db:5432/reanimator"

    def test_sqlite_path(self, monkeypatch, tmp_path):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("DB_TYPE", raising=False)
        monkeypatch.setenv("DB_PATH", str(tmp_path / "runs.db"))
        config = DatabaseConfig.from_env()
        assert config.is_sqlite
        assert config.url.endswith("runs.db")

    def test_unsupported_type(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("DB_TYPE", "oracle")
        with pytest.raises(ValueError):
            DatabaseConfig.from_env()

    def test_memory(self):
        config = DatabaseConfig.sqlite(":memory:")
        assert config.url == "sqlite://"
        assert config.sqlite_path is None

    def test_echo_flag(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("DB_TYPE", raising=False)
        monkeypatch.setenv("DB_ECHO", "true")
        assert DatabaseConfig.from_env().echo

    def test_password_is_masked(self):
        config = DatabaseConfig.postgresql(user="sim", password="secret")
        assert "secret" not in config.safe_url()
        assert config.sqlite_path is None


class TestDatabaseManager:
    def test_singleton(self, memory_db):
        assert DatabaseManager() is memory_db

    def test_ping(self, memory_db):
        assert memory_db.ping()

    def test_sqlite_file_directory_is_created(self, tmp_path):
        path = tmp_path / "nested" / "runs.db"
        DatabaseManager.reset()
        try:
            manager = DatabaseManager(DatabaseConfig.sqlite(str(path)))
            manager.create_tables()
            assert path.parent.is_dir()
            assert manager.ping()
        finally:
            DatabaseManager.reset()


class TestSimulationRuns:
    def test_record_and_list(self, memory_db, deck):
        stats = BatchStats(games=10, wins=4, base_seed=42, turn_distribution={5: 3, 7: 1})
        stats.ubg_turns.extend([2, 3])

        with memory_db.session() as session:
            run = record_batch(session, deck, stats)
            assert run.id is not None

            runs = recent_runs(session)
            assert len(runs) == 1
            data = runs[0].to_dict()

        assert data["deck_name"] == "reanimator"
        assert data["deck_hash"] == deck_hash(deck.cards)
        assert data["games"] == 10
        assert data["win_rate"] == pytest.approx(0.4)
        assert data["avg_win_turn"] == pytest.approx(5.5)
        assert data["avg_ubg_turn"] == pytest.approx(2.5)
        assert data["turn_distribution"] == {5: 3, 7: 1}

    def test_newest_first_with_limit(self, memory_db, deck):
        with memory_db.session() as session:
            for seed in range(3):
                record_batch(session, deck, BatchStats(games=1, base_seed=seed))

            runs = recent_runs(session, limit=2)
            assert [r.base_seed for r in runs] == [2, 1]
            assert session.query(SimulationRun).count() == 3
