"""Shared fixtures: the bundled role registry, sample decks and battle-log builders."""

from typing import Dict, List, Optional

import pytest

from decksmith.config import DEFAULT_ROLES_FILE
from decksmith.roles import load_registry, RoleRegistry

HOG_CYCLE = ["Hog Rider", "The Log", "Fireball", "Cannon", "Musketeer", "Skeletons", "Ice Spirit", "Earthquake"]
GOLEM_BEATDOWN = ["Golem", "Night Witch", "Baby Dragon", "Lightning", "Zap", "Mega Minion", "Tornado", "Electro Dragon"]
LOG_BAIT = ["Goblin Barrel", "Princess", "Goblin Gang", "Knight", "Inferno Tower", "Rocket", "The Log", "Ice Spirit"]
XBOW_SIEGE = ["X-Bow", "Tesla", "Archers", "Knight", "Skeletons", "Ice Spirit", "Fireball", "The Log"]
BRIDGE_SPAM_DECK = ["Battle Ram", "Bandit", "Royal Ghost", "Magic Archer", "Electro Wizard", "Poison", "Zap", "Ice Spirit"]
MINER_CONTROL = ["Miner", "Poison", "Valkyrie", "Bats", "Electro Wizard", "Tornado", "Musketeer", "Knight"]


@pytest.fixture(scope="session")
def registry() -> RoleRegistry:
    """Registry loaded from the bundled data/roles.map.json."""
    reg = load_registry(DEFAULT_ROLES_FILE)
    assert reg.available, "bundled roles map failed to load"
    return reg


def make_battle(my_cards: Optional[List[str]], opp_cards: Optional[List[str]],
                my_crowns: Optional[int] = 1, opp_crowns: Optional[int] = 0) -> Dict:
    """Battle-log record in the card-data API shape; None leaves a field out."""
    team: Dict = {}
    opponent: Dict = {}
    if my_cards is not None: team["cards"] = [{"name": c} for c in my_cards]
    if opp_cards is not None: opponent["cards"] = [{"name": c} for c in opp_cards]
    if my_crowns is not None: team["crowns"] = my_crowns
    if opp_crowns is not None: opponent["crowns"] = opp_crowns
    return {"type": "PvP", "team": [team], "opponent": [opponent]}


def mixed_battles(n: int) -> List[Dict]:
    """n usable battles alternating wins vs Cycle and losses vs Beatdown."""
    battles = []
    for i in range(n):
        if i % 2 == 0:
            battles.append(make_battle(LOG_BAIT, HOG_CYCLE, 2, 0))
        else:
            battles.append(make_battle(LOG_BAIT, GOLEM_BEATDOWN, 0, 1))
    return battles


@pytest.fixture
def battle_factory():
    return make_battle
