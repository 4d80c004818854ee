"""Candidate deck generation and ranking.

generate_deck fills slots from per-archetype card pools in a fixed priority
order, keeping only cards the player owns. Ranking is by a heuristic fit to the
player's style, and by expected win probability when a trained model exists.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import BaseModel

from decksmith.archetypes import (
    BAIT, BEATDOWN, BRIDGE_SPAM, CONTROL, CYCLE, HYBRID, SIEGE,
    DeckAnalysis, analyze_deck, round_half_up, validate_archetype,
)
from decksmith.config import DECK_SIZE
from decksmith.player_style import PlayerStyleProfile
from decksmith.roles import RoleRegistry
from decksmith.trainer import WinProbModel, expected_win_prob

logger = logging.getLogger(__name__)

Deck = List[str]

POOLS: Dict[str, Dict[str, List[str]]] = {
    CYCLE: {
        "win_cons": ["Hog Rider", "Wall Breakers", "Royal Hogs"],
        "supports": ["Musketeer", "Archers", "Electro Wizard", "Phoenix", "Knight"],
        "cheap_cycle": ["Skeletons", "Ice Spirit", "Fire Spirit", "Ice Golem", "Bats"],
        "big_spells": ["Fireball", "Poison"],
        "small_spells": ["The Log", "Zap", "Barbarian Barrel", "Earthquake"],
        "buildings": ["Cannon", "Tesla"],
        "air": ["Musketeer", "Archers", "Phoenix"],
        "splash": ["Valkyrie", "Bomb Tower", "Baby Dragon"],
    },
    BEATDOWN: {
        "win_cons": ["Golem", "Giant", "Lava Hound", "Electro Giant"],
        "supports": ["Baby Dragon", "Mega Minion", "Inferno Dragon", "Night Witch", "Phoenix"],
        "cheap_cycle": ["Skeletons", "Ice Spirit", "Bats"],
        "big_spells": ["Lightning", "Fireball", "Poison", "Rocket"],
        "small_spells": ["Zap", "Barbarian Barrel", "Arrows"],
        "buildings": ["Bomb Tower", "Inferno Tower", "Goblin Cage"],
        "air": ["Mega Minion", "Baby Dragon", "Phoenix"],
        "splash": ["Baby Dragon", "Bomb Tower", "Valkyrie"],
    },
    CONTROL: {
        "win_cons": ["Miner", "Goblin Drill", "Graveyard", "Ram Rider"],
        "supports": ["Valkyrie", "Electro Wizard", "Phoenix", "Knight", "Baby Dragon"],
        "cheap_cycle": ["Skeletons", "Ice Spirit", "Bats"],
        "big_spells": ["Poison", "Fireball", "Rocket"],
        "small_spells": ["The Log", "Zap", "Barbarian Barrel", "Arrows", "Tornado"],
        "buildings": ["Bomb Tower", "Tesla", "Cannon"],
        "air": ["Musketeer", "Archers", "Phoenix", "Baby Dragon"],
        "splash": ["Valkyrie", "Bomb Tower", "Baby Dragon"],
    },
    SIEGE: {
        "win_cons": ["X-Bow", "Mortar"],
        "supports": ["Archers", "Knight", "Tesla", "Ice Golem", "Musketeer"],
        "cheap_cycle": ["Skeletons", "Ice Spirit", "Fire Spirit"],
        "big_spells": ["Fireball", "Rocket"],
        "small_spells": ["The Log", "Zap", "Barbarian Barrel"],
        "buildings": ["Tesla", "Cannon", "Bomb Tower"],
        "air": ["Musketeer", "Archers", "Tesla"],
        "splash": ["Bomb Tower", "Valkyrie"],
    },
    BRIDGE_SPAM: {
        "win_cons": ["Ram Rider", "Battle Ram", "Royal Hogs"],
        "supports": ["Bandit", "Royal Ghost", "Dark Prince", "P.E.K.K.A", "Magic Archer"],
        "cheap_cycle": ["Skeletons", "Ice Spirit", "Bats"],
        "big_spells": ["Fireball", "Poison", "Lightning"],
        "small_spells": ["The Log", "Zap", "Barbarian Barrel", "Arrows"],
        "buildings": ["Bomb Tower", "Tesla"],
        "air": ["Musketeer", "Phoenix", "Archers"],
        "splash": ["Valkyrie", "Bomb Tower", "Magic Archer"],
    },
    BAIT: {
        "win_cons": ["Goblin Barrel", "Goblin Drill", "Wall Breakers"],
        "supports": ["Princess", "Goblin Gang", "Dark Prince", "Knight"],
        "cheap_cycle": ["Skeletons", "Ice Spirit", "Fire Spirit", "Bats"],
        "big_spells": ["Rocket", "Fireball"],
        "small_spells": ["The Log", "Zap", "Barbarian Barrel"],
        "buildings": ["Inferno Tower", "Cannon", "Bomb Tower"],
        "air": ["Musketeer", "Archers", "Princess"],
        "splash": ["Valkyrie", "Bomb Tower", "Princess"],
    },
    HYBRID: {
        "win_cons": ["Royal Giant", "Hog Rider", "Miner"],
        "supports": ["Musketeer", "Electro Wizard", "Phoenix", "Valkyrie", "Knight"],
        "cheap_cycle": ["Skeletons", "Ice Spirit", "Bats"],
        "big_spells": ["Fireball", "Poison", "Rocket"],
        "small_spells": ["The Log", "Zap", "Barbarian Barrel", "Earthquake"],
        "buildings": ["Tesla", "Cannon", "Bomb Tower"],
        "air": ["Musketeer", "Archers", "Phoenix"],
        "splash": ["Valkyrie", "Bomb Tower", "Baby Dragon"],
    },
}

# One card from each, in this order. Bridge Spam skips the building slot.
SLOT_ORDER = ("win_cons", "small_spells", "big_spells", "buildings", "air", "splash")
NO_BUILDING_ARCHETYPES = frozenset({BRIDGE_SPAM})

FALLBACK_CARDS = [
    "Skeletons", "Ice Spirit", "Bats", "Knight", "Archers",
    "Musketeer", "Valkyrie", "Phoenix", "Cannon", "Tesla",
]

CANDIDATE_COUNT = 5


class Suggestion(BaseModel):
    deck: Deck
    score: float
    analysis: DeckAnalysis
    ml: Optional[float] = None


def card_universe() -> List[str]:
    """Every card any pool or the fallback list can produce."""
    seen: Dict[str, None] = {}
    for pool in POOLS.values():
        for cards in pool.values():
            seen.update(dict.fromkeys(cards))
    seen.update(dict.fromkeys(FALLBACK_CARDS))
    return list(seen)


def generate_deck(archetype: str, owned: Iterable[str], target_avg: Optional[float] = 3.0) -> Deck:
    """Build up to 8 owned cards for `archetype`.

    `target_avg` is accepted for interface compatibility but does not steer
    card selection. Sparse ownership can yield fewer than 8 cards.
    """
    archetype = validate_archetype(archetype)
    pool = POOLS[archetype]
    owned = set(owned)
    deck: Dict[str, None] = {}

    def add(card: str) -> None:
        if len(deck) < DECK_SIZE and card in owned:
            deck.setdefault(card, None)

    for slot in SLOT_ORDER:
        if slot == "buildings" and archetype in NO_BUILDING_ARCHETYPES:
            continue
        available = [c for c in pool[slot] if c in owned]
        if available:
            deck.setdefault(available[0], None)

    for card in pool["supports"] + pool["cheap_cycle"]:
        add(card)

    for card in FALLBACK_CARDS:
        add(card)

    result = list(deck)[:DECK_SIZE]
    if len(result) < DECK_SIZE:
        logger.info(f"Only {len(result)} owned cards available for a {archetype} deck.")
    return result


# ===========================================
# Scoring & ranking
# ===========================================

def composition_bonus(analysis: DeckAnalysis) -> float:
    bonus = 0.0
    if analysis.roles.hasSmallSpell: bonus += 0.6
    if analysis.roles.hasBigSpell: bonus += 0.6
    if analysis.roles.hasAirTargeting: bonus += 0.6
    if analysis.roles.hasSplash: bonus += 0.4
    return bonus


def score_deck_for_player(deck: Sequence[str], style: PlayerStyleProfile, registry: RoleRegistry) -> Dict[str, object]:
    """Heuristic fit of `deck` to a player's style: {'score', 'analysis'}."""
    analysis = analyze_deck(deck, registry)
    score = 0.0
    if analysis.archetype == style.favoredArchetype:
        score += 2.0
    score += max(0.0, 1.5 - abs(analysis.avgElixir - style.avgElixir))
    score += composition_bonus(analysis)
    return {"score": round_half_up(score, 2), "analysis": analysis}


def baseline_deck_score(analysis: DeckAnalysis, reference_elixir: float = 3.0) -> float:
    """Score without player context: composition bonuses plus closeness to 3.0 elixir."""
    score = composition_bonus(analysis) + max(0.0, 1.0 - abs(analysis.avgElixir - reference_elixir))
    return round_half_up(score, 2)


def rank_decks(decks: Sequence[Sequence[str]], style: PlayerStyleProfile, registry: RoleRegistry,
               model: Optional[WinProbModel] = None,
               opponent_distribution: Optional[Mapping[str, float]] = None) -> List[Suggestion]:
    """Sort by heuristic score; with a model, by expected win probability first."""
    ranked = []
    for deck in decks:
        scored = score_deck_for_player(deck, style, registry)
        ranked.append(Suggestion(deck=list(deck), score=scored["score"], analysis=scored["analysis"]))
    ranked.sort(key=lambda s: s.score, reverse=True)

    if model is not None:
        dist = opponent_distribution or {}
        for s in ranked:
            s.ml = expected_win_prob(model, s.deck, dist)
        ranked.sort(key=lambda s: (s.ml, s.score), reverse=True)
    return ranked


def suggest_decks(archetype: str, owned: Iterable[str], style: PlayerStyleProfile, registry: RoleRegistry,
                  target_avg: Optional[float] = None, model: Optional[WinProbModel] = None,
                  opponent_distribution: Optional[Mapping[str, float]] = None,
                  candidates: int = CANDIDATE_COUNT) -> List[Suggestion]:
    owned = set(owned)
    decks = [generate_deck(archetype, owned, target_avg) for _ in range(candidates)]
    return rank_decks(decks, style, registry, model, opponent_distribution)
