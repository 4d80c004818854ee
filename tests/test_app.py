"""HTTP-level tests for the FastAPI app with upstream calls replaced by fakes."""

import pytest
from fastapi.testclient import TestClient

from app.cache import TtlCache
from app.main import app
from decksmith.api_client import CardDataError
from decksmith.generator import card_universe
from decksmith.model_cache import JsonFileStore, ModelCache
from decksmith.service import DeckService
from decksmith.trainer import TrainerConfig

from conftest import HOG_CYCLE, mixed_battles


@pytest.fixture
def client(registry, tmp_path):
    battles = mixed_battles(12)

    def fetch_battles(tag, limit):
        if tag == "MISSING":
            raise CardDataError("Card-data API returned 404", status_code=404)
        if tag == "DOWN":
            raise CardDataError("Request to card-data API failed")
        return battles[:limit]

    def fetch_owned_cards(tag):
        return set(card_universe())

    model_cache = ModelCache(JsonFileStore(tmp_path / "models"), fetch_battles, registry, TrainerConfig(epochs=20))
    app.state.service = DeckService(registry, fetch_battles, fetch_owned_cards, model_cache)
    app.state.registry = registry
    app.state.upstream_cache = TtlCache()
    # no context manager: startup would wire the real API client
    yield TestClient(app)
    app.state.service = None
    app.state.registry = None
    app.state.upstream_cache = None


def test_health(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "roles_available": True}


def test_service_not_ready():
    app.state.service = None
    resp = TestClient(app).post("/analyze-deck", json={"cards": HOG_CYCLE})
    assert resp.status_code == 503


def test_roles(client):
    body = client.get("/roles").json()
    assert body["COST"]["Hog Rider"] == 4
    assert "The Log" in body["ROLE"]["smallSpell"]


def test_cache_stats(client):
    body = client.get("/cache/stats").json()
    assert body["total_requests"] == 0
    assert body["hit_rate"] == 0.0


def test_analyze_deck(client):
    resp = client.post("/analyze-deck", json={"cards": HOG_CYCLE})
    assert resp.status_code == 200
    body = resp.json()
    assert body["archetype"] == "Cycle"
    assert body["avgElixir"] == 2.8
    assert body["roles"]["winCons"] == ["Hog Rider"]


def test_analyze_deck_requires_eight_cards(client):
    resp = client.post("/analyze-deck", json={"cards": HOG_CYCLE[:7]})
    assert resp.status_code == 422


def test_score_deck_without_tag(client):
    body = client.post("/score-deck", json={"cards": HOG_CYCLE}).json()
    assert body["heuristic"] == 2.6
    assert body["ml"] is None


def test_score_deck_with_tag(client):
    body = client.post("/score-deck", json={"cards": HOG_CYCLE, "tag": "#P2QRY8"}).json()
    assert body["ml"] is not None
    assert 0.0 <= body["ml"] <= 1.0


def test_analyze_player(client):
    body = client.get("/analyze-player/P2QRY8").json()
    assert body["sample"] == 12
    assert body["favoredArchetype"] == "Bait"


def test_suggest_heuristic(client):
    resp = client.get("/suggest/P2QRY8", params={"rank": "heuristic"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["archetype"] == "Cycle"
    assert body["ranker"] == "heuristic"
    assert body["mlInfo"]["used"] is False
    assert len(body["suggestions"]) == 5
    assert all(len(s["deck"]) == 8 for s in body["suggestions"])


def test_suggest_with_model_then_cached(client):
    first = client.get("/suggest/P2QRY8", params={"archetype": "siege"}).json()
    assert first["archetype"] == "Siege"
    assert first["ranker"] == "ml"
    assert first["mlInfo"] == {"used": True, "samples": 12, "oppDist": first["mlInfo"]["oppDist"], "fromCache": False}
    assert all(s["ml"] is not None for s in first["suggestions"])

    second = client.get("/suggest/P2QRY8").json()
    assert second["mlInfo"]["fromCache"] is True

    retrained = client.get("/suggest/P2QRY8", params={"rank": "retrain"}).json()
    assert retrained["mlInfo"]["fromCache"] is False


@pytest.mark.parametrize("params", [{"archetype": "Lavaloon"}, {"rank": "random"}])
def test_suggest_bad_input(client, params):
    assert client.get("/suggest/P2QRY8", params=params).status_code == 400


@pytest.mark.parametrize("tag,status", [("MISSING", 404), ("DOWN", 502)])
def test_upstream_errors(client, tag, status):
    assert client.get(f"/analyze-player/{tag}").status_code == status
