"""Tests for the player style profile built from battle logs."""

import pytest

from decksmith.player_style import analyze_player_style

from conftest import GOLEM_BEATDOWN, HOG_CYCLE, LOG_BAIT, make_battle


def test_profile_from_mixed_log(registry):
    battles = [
        make_battle(HOG_CYCLE, LOG_BAIT, 3, 0),
        make_battle(GOLEM_BEATDOWN, LOG_BAIT, 1, 2),
        make_battle(HOG_CYCLE, GOLEM_BEATDOWN, 0, 1),
        make_battle(HOG_CYCLE, LOG_BAIT, 2, 1),
        make_battle(None, LOG_BAIT, None, 1),
    ]
    style = analyze_player_style(battles, registry)
    assert style.sample == 4
    assert style.avgElixir == 3.2
    assert style.archetypeHistogram == {"Cycle": 3, "Beatdown": 1}
    assert style.favoredArchetype == "Cycle"
    # missing crowns count as zero across all five battles
    assert style.avgCrownsForMe == 1.2


def test_tie_goes_to_first_seen(registry):
    battles = [make_battle(GOLEM_BEATDOWN, HOG_CYCLE), make_battle(HOG_CYCLE, LOG_BAIT)]
    style = analyze_player_style(battles, registry)
    assert style.favoredArchetype == "Beatdown"


def test_empty_log(registry):
    style = analyze_player_style([], registry)
    assert style.sample == 0
    assert style.avgElixir == 0.0
    assert style.favoredArchetype == "Hybrid/Other"
    assert style.archetypeHistogram == {}
    assert style.avgCrownsForMe == 0.0


@pytest.mark.parametrize("crowns", ["3", True])
def test_non_numeric_crowns_are_zero(registry, crowns):
    battle = make_battle(HOG_CYCLE, LOG_BAIT)
    battle["team"][0]["crowns"] = crowns
    assert analyze_player_style([battle], registry).avgCrownsForMe == 0.0
