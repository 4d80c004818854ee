import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from app.cache import TtlCache
from decksmith.api_client import CardDataClient, CardDataError
from decksmith.archetypes import DeckAnalysis
from decksmith.config import get_settings
from decksmith.model_cache import JsonFileStore, ModelCache, safe_player_key
from decksmith.player_style import PlayerStyleProfile
from decksmith.roles import load_registry
from decksmith.service import DeckService, ScoreReport, SuggestionReport
from decksmith.trainer import DEFAULT_TRAINER_CONFIG

# --- Logging Setup (Top) ---
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# ----------------------------
# Pydantic Models
# ----------------------------
class AnalyzeDeckRequest(BaseModel):
    cards: List[str] = Field(..., min_length=8, max_length=8)

class ScoreDeckRequest(BaseModel):
    cards: List[str] = Field(..., min_length=8, max_length=8)
    tag: Optional[str] = None

class HealthResponse(BaseModel):
    ok: bool
    roles_available: bool

class CacheStatsResponse(BaseModel):
    hits: int
    misses: int
    total_requests: int
    hit_rate: float
    current_items: int
    expired_items_cleared: int
    last_cleanup: Optional[str] = None

# ----------------------------
# FastAPI App Initialization
# ----------------------------
app = FastAPI(
    title="Deck Archetype & Suggestion API",
    description="Classifies 8-card decks, profiles player style and ranks deck suggestions.",
    version="1.0.0",
)

# --- Global state ---
app.state.registry = None
app.state.service = None
app.state.upstream_cache = None


def build_service(settings=None, upstream_cache: Optional[TtlCache] = None) -> DeckService:
    """Wire the registry, API client and model cache into a DeckService."""
    settings = settings or get_settings()
    registry = load_registry(settings.roles_file)
    client = CardDataClient.from_settings(settings)
    upstream_cache = upstream_cache or TtlCache(ttl_seconds=120)
    battle_limit = DEFAULT_TRAINER_CONFIG.max_battles

    def fetch_battles(tag: str, limit: int):
        battles = upstream_cache.get_or_set(("battlelog", safe_player_key(tag)),
                                            lambda: client.get_battlelog(tag, battle_limit))
        return battles[:limit]

    def fetch_owned_cards(tag: str):
        return upstream_cache.get_or_set(("owned", safe_player_key(tag)), lambda: client.get_owned_cards(tag))

    model_cache = ModelCache(JsonFileStore(settings.model_dir), fetch_battles, registry)
    return DeckService(registry, fetch_battles, fetch_owned_cards, model_cache)


@app.on_event("startup")
async def load_resources():
    logger.info("API starting up. Loading role registry and wiring services...")
    app.state.upstream_cache = TtlCache(ttl_seconds=120)
    app.state.service = build_service(upstream_cache=app.state.upstream_cache)
    app.state.registry = app.state.service.registry
    if not app.state.registry.available:
        logger.warning("Role registry unavailable. Archetype classification will be degraded.")


def _service() -> DeckService:
    if app.state.service is None:
        raise HTTPException(status_code=503, detail="Service not ready.")
    return app.state.service


def _upstream_error(e: CardDataError) -> HTTPException:
    logger.error(f"Card-data API error: {e}")
    status = 404 if e.status_code == 404 else 502
    return HTTPException(status_code=status, detail=str(e))

# ----------------------------
# Endpoints
# ----------------------------

@app.get("/", response_model=HealthResponse, tags=["System"])
async def health_check():
    service = app.state.service
    return HealthResponse(ok=True, roles_available=bool(service is not None and service.registry.available))

@app.get("/roles", tags=["Cards"])
async def roles() -> Dict[str, Any]:
    return _service().registry.to_document()

@app.get("/cache/stats", response_model=CacheStatsResponse, tags=["System"])
async def cache_stats():
    if app.state.upstream_cache is None:
        raise HTTPException(status_code=503, detail="Cache not initialized.")
    return CacheStatsResponse(**app.state.upstream_cache.get_stats())

@app.post("/analyze-deck", response_model=DeckAnalysis, tags=["Decks"])
def analyze_deck_endpoint(request: AnalyzeDeckRequest):
    return _service().analyze_deck(request.cards)

@app.post("/score-deck", response_model=ScoreReport, tags=["Decks"])
def score_deck_endpoint(request: ScoreDeckRequest):
    try:
        return _service().score_deck(request.cards, request.tag)
    except CardDataError as e:
        raise _upstream_error(e)

@app.get("/analyze-player/{tag}", response_model=PlayerStyleProfile, tags=["Players"])
def analyze_player_endpoint(tag: str):
    try:
        return _service().analyze_player(tag)
    except CardDataError as e:
        raise _upstream_error(e)

@app.get("/suggest/{tag}", response_model=SuggestionReport, tags=["Players"])
def suggest_endpoint(
    tag: str,
    archetype: Optional[str] = Query(None),
    avg: Optional[float] = Query(None),
    rank: str = Query(""),
):
    try:
        return _service().suggest(tag, archetype=archetype, target_avg=avg, rank=rank)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CardDataError as e:
        raise _upstream_error(e)
