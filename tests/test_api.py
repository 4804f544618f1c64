"""
Tests for the API endpoints.

Uses FastAPI TestClient for synchronous testing.
"""

import pytest
from fastapi.testclient import TestClient

from src.api import app
from src.api import services
from src.api.cache import RedisCache
from src.api.models import SimulateRequest
from src.api.services import get_health_status, run_simulation
from src.data.deck_loader import BUNDLED_DECK_PATH
from src.game.simulator import run_game

# Create test client
client = TestClient(app)

DECKLIST = [
    line.strip()
    for line in BUNDLED_DECK_PATH.read_text().splitlines()
    if line.strip() and not line.startswith("#")
]


class DictCache:
    """In-process stand-in for Redis."""

    def __init__(self):
        self.store = {}

    def make_key(self, namespace, payload):
        return RedisCache(url="redis://unused").make_key(namespace, payload)

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ttl=None):
        self.store[key] = value
        return True


@pytest.fixture(autouse=True)
def database(memory_db):
    yield memory_db


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    def test_health_check(self):
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["database_connected"] is True
        assert data["cards_loaded"] == 25

    def test_health_status_service(self):
        status = get_health_status()
        assert status.status in ("healthy", "degraded")


class TestCacheEndpoints:
    def test_cache_stats(self):
        response = client.get("/cache/stats")
        assert response.status_code == 200
        assert "connected" in response.json()

    def test_cache_clear(self):
        response = client.post("/cache/clear")
        assert response.status_code == 200
        assert "Cleared" in response.json()["message"]

    def test_unreachable_redis_is_a_miss(self):
        cache = RedisCache(url="redis://localhost:1")
        assert cache.get("anything") is None
        assert cache.set("anything", {"a": 1}) is False
        assert cache.clear_all() == 0
        assert cache.stats()["connected"] is False
        assert not cache.is_connected

    def test_key_depends_on_payload(self):
        cache = RedisCache(url="redis://unused")
        a = cache.make_key("simulate", {"seed": 1, "num_games": 10})
        b = cache.make_key("simulate", {"num_games": 10, "seed": 1})
        c = cache.make_key("simulate", {"seed": 2, "num_games": 10})
        assert a == b
        assert a != c
        assert a.startswith("reanimator:simulate:")


class TestCardsEndpoint:
    def test_all_cards(self):
        data = client.get("/cards").json()
        assert data["count"] == 25
        assert "Bringer of the Last Gift" in data["cards"]

    def test_filter_by_type(self):
        data = client.get("/cards", params={"card_type": "land"}).json()
        assert data["count"] == 13
        assert "Watery Grave" in data["cards"]

    def test_unknown_type(self):
        response = client.get("/cards", params={"card_type": "planeswalker"})
        assert response.status_code == 400


class TestSimulateEndpoint:
    def test_bundled_deck(self):
        response = client.post("/simulate", json={"num_games": 5, "seed": 1})
        assert response.status_code == 200

        data = response.json()
        assert data["deck_name"] == "reanimator"
        assert data["deck_size"] == 60
        assert data["stats"]["games"] == 5
        assert data["stats"]["base_seed"] == 1
        assert data["run_id"] is None

    def test_explicit_decklist(self):
        response = client.post("/simulate", json={"decklist": DECKLIST, "num_games": 3, "seed": 4})
        assert response.status_code == 200
        assert response.json()["deck_size"] == 60

    def test_num_games_bounds(self):
        assert client.post("/simulate", json={"num_games": 0}).status_code == 422
        assert client.post("/simulate", json={"num_games": 5001}).status_code == 422

    def test_unknown_card(self):
        response = client.post("/simulate", json={"decklist": ["4 Black Lotus"], "num_games": 1})
        assert response.status_code == 404
        assert "Black Lotus" in response.json()["detail"]

    def test_malformed_deck(self):
        response = client.post("/simulate", json={"decklist": ["Island"], "num_games": 1})
        assert response.status_code == 400
        assert "line 1" in response.json()["detail"]

    def test_save_and_list_runs(self):
        response = client.post("/simulate", json={"num_games": 2, "seed": 3, "save": True})
        assert response.status_code == 200
        run_id = response.json()["run_id"]
        assert run_id is not None

        runs = client.get("/runs", params={"limit": 5}).json()
        assert runs["count"] == 1
        assert runs["runs"][0]["id"] == run_id
        assert runs["runs"][0]["games"] == 2

    def test_seeded_results_are_cached(self, monkeypatch):
        fake = DictCache()
        monkeypatch.setattr(services, "cache", fake)

        request = SimulateRequest(num_games=3, seed=11)
        first = run_simulation(request)
        second = run_simulation(request)

        assert not first.cached
        assert second.cached
        assert second.stats == first.stats
        assert len(fake.store) == 1

    def test_unseeded_results_are_not_cached(self, monkeypatch):
        fake = DictCache()
        monkeypatch.setattr(services, "cache", fake)

        run_simulation(SimulateRequest(num_games=2))
        assert fake.store == {}


class TestSingleGameEndpoint:
    def test_matches_engine(self, deck):
        response = client.post("/simulate/game", json={"seed": 42})
        assert response.status_code == 200

        data = response.json()
        expected = run_game(deck.cards, 42)
        assert data["seed"] == 42
        assert data["win_turn"] == expected.win_turn
        assert data["won"] == expected.won
        assert data["board"]["opponent_life"] == expected.final_state.opponent_life

    def test_seed_required(self):
        assert client.post("/simulate/game", json={}).status_code == 422


class TestAnalyzeEndpoint:
    def test_turn4(self):
        response = client.post("/analyze/turn4", json={"num_games": 5, "seed": 0})
        assert response.status_code == 200

        data = response.json()
        assert data["games"] == 5
        assert data["seed"] == 0
        assert sum(data["reasons"].values()) == 5


class TestOptimizeEndpoint:
    def test_small_search(self):
        response = client.post("/optimize/lands", json={"configs": 2, "games": 3, "seed": 1})
        assert response.status_code == 200

        data = response.json()
        assert data["evaluated"] == 2
        assert data["seed"] == 1
        assert len(data["top"]) <= 2
        if data["best"] is not None:
            assert data["best"] == data["top"][0]
            assert sum(data["best"]["lands"].values()) == 24

    def test_bounds(self):
        assert client.post("/optimize/lands", json={"configs": 201}).status_code == 422
        assert client.post("/optimize/lands", json={"games": 2001}).status_code == 422
        assert client.post("/optimize/lands", json={"strategy": "greedy"}).status_code == 422
