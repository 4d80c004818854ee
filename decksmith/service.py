"""Request-level orchestration: ties the card-data client, registry, model cache
and generator together and returns plain result models for the HTTP layer."""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Set

from pydantic import BaseModel, Field

from decksmith.archetypes import CYCLE, DeckAnalysis, analyze_deck, validate_archetype
from decksmith.battles import Battle
from decksmith.config import STYLE_BATTLE_LIMIT
from decksmith.generator import Suggestion, baseline_deck_score, score_deck_for_player, suggest_decks
from decksmith.model_cache import ModelCache, ModelLookup
from decksmith.player_style import PlayerStyleProfile, analyze_player_style
from decksmith.roles import RoleRegistry
from decksmith.trainer import expected_win_prob

logger = logging.getLogger(__name__)

BattleFetcher = Callable[[str, int], Sequence[Battle]]
OwnedCardsFetcher = Callable[[str], Set[str]]

RANK_MODES = ("", "heuristic", "none", "ml", "retrain")


class MlInfo(BaseModel):
    used: bool = False
    samples: Optional[int] = None
    oppDist: Optional[Dict[str, float]] = None
    fromCache: bool = False


class ScoreReport(BaseModel):
    analysis: DeckAnalysis
    heuristic: float
    ml: Optional[float] = None


class SuggestionReport(BaseModel):
    style: PlayerStyleProfile
    archetype: str
    ranker: str
    mlInfo: MlInfo = Field(default_factory=MlInfo)
    suggestions: List[Suggestion]


class DeckService:
    def __init__(self, registry: RoleRegistry, fetch_battles: BattleFetcher,
                 fetch_owned_cards: OwnedCardsFetcher, model_cache: ModelCache):
        self.registry = registry
        self.fetch_battles = fetch_battles
        self.fetch_owned_cards = fetch_owned_cards
        self.model_cache = model_cache

    def analyze_deck(self, cards: Sequence[str]) -> DeckAnalysis:
        return analyze_deck(cards, self.registry)

    def analyze_player(self, tag: str) -> PlayerStyleProfile:
        return analyze_player_style(self.fetch_battles(tag, STYLE_BATTLE_LIMIT), self.registry)

    def score_deck(self, cards: Sequence[str], tag: Optional[str] = None) -> ScoreReport:
        analysis = analyze_deck(cards, self.registry)
        if not tag:
            return ScoreReport(analysis=analysis, heuristic=baseline_deck_score(analysis))

        style = self.analyze_player(tag)
        heuristic = score_deck_for_player(cards, style, self.registry)["score"]
        lookup = self.model_cache.get(tag)
        ml = expected_win_prob(lookup.model, cards, lookup.opponent_distribution) if lookup.model is not None else None
        return ScoreReport(analysis=analysis, heuristic=heuristic, ml=ml)

    def suggest(self, tag: str, archetype: Optional[str] = None, target_avg: Optional[float] = None,
                rank: str = "") -> SuggestionReport:
        """Generate and rank candidate decks for a player.

        rank: '' tries the win-probability model and falls back to the heuristic,
        'heuristic'/'none' skip the model, 'ml' behaves like the default, 'retrain'
        forces a fresh model that replaces the cached one.
        """
        archetype = validate_archetype(archetype or CYCLE)
        rank = (rank or "").lower()
        if rank not in RANK_MODES:
            raise ValueError(f"Unknown rank mode '{rank}'. Expected one of {list(RANK_MODES)}.")

        owned = self.fetch_owned_cards(tag)
        style = self.analyze_player(tag)

        ml_info = MlInfo()
        lookup: Optional[ModelLookup] = None
        if rank not in ("heuristic", "none"):
            lookup = self.model_cache.get(tag, force=(rank == "retrain"))
            ml_info = MlInfo(used=lookup.model is not None, samples=lookup.samples,
                             oppDist=lookup.opponent_distribution, fromCache=lookup.from_cache)

        model = lookup.model if lookup is not None else None
        suggestions = suggest_decks(
            archetype, owned, style, self.registry, target_avg=target_avg, model=model,
            opponent_distribution=lookup.opponent_distribution if lookup is not None else None,
        )
        ranker = "ml" if model is not None else "heuristic"
        logger.info(f"Suggested {len(suggestions)} {archetype} decks for {tag} (ranker={ranker}).")
        return SuggestionReport(style=style, archetype=archetype, ranker=ranker, mlInfo=ml_info, suggestions=suggestions)
