"""Feature vectors for the per-player win-probability model.

Layout (FEATURE_DIMS = 33):
    [0]      bias (1.0)
    [1]      average elixir (2 decimals)
    [2:9]    bigSpell, smallSpell, building, airTarget, splash, reset, champion
    [9:25]   one-hot over WINCON_FEATURES
    [25:32]  one-hot over the opponent archetype (ARCHETYPES order)
    [32]     crown differential clamped to [-3, 3]

Changing this layout invalidates every cached model: bump
model_cache.MODEL_VERSION together with it.
"""

from typing import List, Sequence

from decksmith.archetypes import ARCHETYPES, average_elixir, round_half_up
from decksmith.roles import RoleRegistry, normalize_deck

FeatureVector = List[float]

FEATURE_ROLES = ("bigSpell", "smallSpell", "building", "airTarget", "splash", "reset", "champion")

# Kept separate from the registry's winCon set so that registry refreshes do
# not shift trained weights. New win conditions must be added here explicitly.
WINCON_FEATURES = (
    "Hog Rider", "X-Bow", "Mortar", "Royal Giant", "Lava Hound", "Balloon",
    "Giant", "Golem", "Miner", "Goblin Drill", "Graveyard", "Ram Rider",
    "Royal Hogs", "Wall Breakers", "Battle Ram", "Goblin Barrel",
)

CROWN_DIFF_LIMIT = 3

FEATURE_DIMS = 1 + 1 + len(FEATURE_ROLES) + len(WINCON_FEATURES) + len(ARCHETYPES) + 1


def feature_names() -> List[str]:
    """Column names matching the vector layout, useful for inspecting weights."""
    names = ["bias", "avg_elixir"]
    names += [f"role_{r}" for r in FEATURE_ROLES]
    names += [f"wincon_{w}" for w in WINCON_FEATURES]
    names += [f"opponent_archetype_{a}" for a in ARCHETYPES]
    names.append("crown_diff")
    return names


def build_features(deck: Sequence[str], opponent_archetype: str, registry: RoleRegistry, crown_diff: float = 0) -> FeatureVector:
    names = normalize_deck(deck)
    present = set(names)

    features: FeatureVector = [1.0, round_half_up(average_elixir(names, registry), 2)]
    features += [1.0 if registry.has_role(role, names) else 0.0 for role in FEATURE_ROLES]
    features += [1.0 if w in present else 0.0 for w in WINCON_FEATURES]
    features += [1.0 if a == opponent_archetype else 0.0 for a in ARCHETYPES]
    features.append(float(max(-CROWN_DIFF_LIMIT, min(CROWN_DIFF_LIMIT, crown_diff))))
    return features
