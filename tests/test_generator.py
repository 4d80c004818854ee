"""Tests for deck generation, heuristic scoring and ranking."""

import numpy as np
import pytest

from decksmith import generator
from decksmith.archetypes import ARCHETYPES, BRIDGE_SPAM, CYCLE, HYBRID, SIEGE
from decksmith.features import FEATURE_DIMS, feature_names
from decksmith.generator import (
    FALLBACK_CARDS, POOLS, baseline_deck_score, card_universe, generate_deck,
    rank_decks, score_deck_for_player, suggest_decks,
)
from decksmith.player_style import PlayerStyleProfile
from decksmith.trainer import WinProbModel, model_feature_fn

from conftest import HOG_CYCLE, LOG_BAIT, XBOW_SIEGE


def style(favored=CYCLE, avg=2.8) -> PlayerStyleProfile:
    return PlayerStyleProfile(sample=10, avgElixir=avg, favoredArchetype=favored,
                              archetypeHistogram={favored: 10}, avgCrownsForMe=1.5)


@pytest.mark.parametrize("archetype", ARCHETYPES)
def test_full_ownership_gives_eight_unique_pool_cards(archetype):
    deck = generate_deck(archetype, card_universe())
    assert len(deck) == 8
    assert len(set(deck)) == 8
    allowed = {c for cards in POOLS[archetype].values() for c in cards} | set(FALLBACK_CARDS)
    assert set(deck) <= allowed


def test_cycle_slot_priority():
    deck = generate_deck(CYCLE, card_universe())
    assert deck[:6] == ["Hog Rider", "The Log", "Fireball", "Cannon", "Musketeer", "Valkyrie"]
    assert deck[6:] == ["Archers", "Electro Wizard"]


def test_bridge_spam_skips_building_slot():
    deck = generate_deck(BRIDGE_SPAM, card_universe())
    assert deck[:5] == ["Ram Rider", "The Log", "Fireball", "Musketeer", "Valkyrie"]
    assert not set(deck) & set(POOLS[BRIDGE_SPAM]["buildings"])


def test_ownership_filters_pools():
    owned = {"Wall Breakers", "Zap", "Poison", "Tesla", "Bats", "Knight", "Goblins", "Miner"}
    deck = generate_deck(CYCLE, owned)
    assert deck[:4] == ["Wall Breakers", "Zap", "Poison", "Tesla"]
    assert set(deck) == {"Wall Breakers", "Zap", "Poison", "Tesla", "Bats", "Knight"}


def test_sparse_ownership_returns_short_deck():
    assert generate_deck(CYCLE, {"Hog Rider", "Zap"}) == ["Hog Rider", "Zap"]
    assert generate_deck(SIEGE, set()) == []


def test_fallback_backfills():
    owned = {"X-Bow", "Phoenix", "Cannon", "Tesla"}
    deck = generate_deck(SIEGE, owned)
    assert "Phoenix" in deck
    assert len(deck) == 4


def test_target_avg_does_not_change_output():
    universe = card_universe()
    assert generate_deck(HYBRID, universe, 2.6) == generate_deck(HYBRID, universe, 4.8) == generate_deck(HYBRID, universe, None)


def test_invalid_archetype_raises():
    with pytest.raises(ValueError):
        generate_deck("Lavaloon", card_universe())


def test_score_deck_for_player(registry):
    scored = score_deck_for_player(HOG_CYCLE, style(CYCLE, 2.8), registry)
    assert scored["analysis"].archetype == CYCLE
    # archetype match 2.0 + elixir closeness 1.5 + spells/air 1.8
    assert scored["score"] == 5.3

    off_style = score_deck_for_player(HOG_CYCLE, style(SIEGE, 5.0), registry)
    assert off_style["score"] == 1.8


def test_baseline_deck_score(registry):
    analysis = score_deck_for_player(HOG_CYCLE, style(), registry)["analysis"]
    assert baseline_deck_score(analysis) == 2.6


def test_rank_by_heuristic(registry):
    ranked = rank_decks([LOG_BAIT, HOG_CYCLE], style(CYCLE, 2.8), registry)
    assert [r.deck for r in ranked] == [HOG_CYCLE, LOG_BAIT]
    assert ranked[0].score >= ranked[1].score
    assert all(r.ml is None for r in ranked)


def test_rank_by_win_probability_first(registry):
    weights = np.zeros(FEATURE_DIMS)
    weights[feature_names().index("wincon_X-Bow")] = 2.0
    model = WinProbModel(weights, FEATURE_DIMS, model_feature_fn(registry))
    ranked = rank_decks([HOG_CYCLE, XBOW_SIEGE], style(CYCLE, 2.8), registry, model, {"Cycle": 1.0})
    assert ranked[0].deck == XBOW_SIEGE
    assert ranked[0].ml > ranked[1].ml == 0.5


def test_ml_ties_fall_back_to_heuristic(registry):
    model = WinProbModel(np.zeros(FEATURE_DIMS), FEATURE_DIMS, model_feature_fn(registry))
    ranked = rank_decks([LOG_BAIT, HOG_CYCLE], style(CYCLE, 2.8), registry, model, {"Bait": 1.0})
    assert [r.ml for r in ranked] == [0.5, 0.5]
    assert ranked[0].deck == HOG_CYCLE


def test_suggest_decks_generates_candidates(registry):
    suggestions = suggest_decks(CYCLE, card_universe(), style(), registry)
    assert len(suggestions) == generator.CANDIDATE_COUNT
    assert all(s.deck == suggestions[0].deck for s in suggestions)
