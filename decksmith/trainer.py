"""Per-player win-probability model.

Trains an L2-regularized logistic regression with plain SGD over a player's
recent 1v1 battles. Each battle becomes one example:
    x = build_features(my_deck, archetype(opp_deck), crown_diff)
    y = 1 if my crowns > opponent crowns else 0
Training is deterministic for a given battle order: weights start at zero and
every epoch visits the examples in the order the battles were supplied.
"""

import logging
from collections import Counter
from typing import Callable, Dict, List, Mapping, NamedTuple, Optional, Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from decksmith.archetypes import ARCHETYPES, analyze_deck, round_half_up
from decksmith.battles import Battle, extract_matchup
from decksmith.features import FeatureVector, build_features
from decksmith.roles import RoleRegistry

logger = logging.getLogger(__name__)

OpponentDistribution = Dict[str, float]
FeatureFn = Callable[[Sequence[str], str], FeatureVector]


class TrainerConfig(BaseModel):
    """Hyperparameters for train_log_reg / train_win_prob_model."""
    model_config = ConfigDict(frozen=True)

    epochs: int = Field(200, ge=1)
    learning_rate: float = Field(0.1, gt=0)
    l2: float = Field(1e-3, ge=0)
    max_battles: int = Field(50, ge=1)
    min_examples: int = Field(10, ge=1)


DEFAULT_TRAINER_CONFIG = TrainerConfig()


class Example(NamedTuple):
    x: FeatureVector
    y: int


class WinProbModel:
    """Trained weights plus the feature function they were fitted against."""

    def __init__(self, weights: Sequence[float], dims: int, feature_fn: FeatureFn):
        self.weights = np.asarray(weights, dtype=float)
        self.dims = int(dims)
        self.feature_fn = feature_fn

    def predict(self, deck: Sequence[str], opponent_archetype: str) -> float:
        return predict_win_prob(self, deck, opponent_archetype)

    def __repr__(self) -> str:
        return f"WinProbModel(dims={self.dims})"


class TrainingResult(NamedTuple):
    model: Optional[WinProbModel]
    opponent_distribution: OpponentDistribution
    samples: int


def _sigmoid(z: float) -> float:
    z = max(-500.0, min(500.0, z))
    return float(1.0 / (1.0 + np.exp(-z)))


def train_log_reg(examples: Sequence[Example], config: TrainerConfig = DEFAULT_TRAINER_CONFIG) -> np.ndarray:
    """SGD over `examples` for a fixed number of epochs; returns the weight vector."""
    if not examples:
        return np.zeros(0)
    X = np.asarray([ex.x for ex in examples], dtype=float)
    y = np.asarray([ex.y for ex in examples], dtype=float)
    w = np.zeros(X.shape[1])
    for _ in range(config.epochs):
        for x_i, y_i in zip(X, y):
            err = _sigmoid(float(np.dot(w, x_i))) - y_i
            w -= config.learning_rate * (err * x_i + config.l2 * w)
    return w


def model_feature_fn(registry: RoleRegistry) -> FeatureFn:
    """Feature function used at prediction time (crown differential unknown, so 0)."""
    def feat(deck: Sequence[str], opponent_archetype: str) -> FeatureVector:
        return build_features(deck, opponent_archetype, registry, 0)
    return feat


def normalize_distribution(counts: Mapping[str, int]) -> OpponentDistribution:
    """Frequencies over every archetype; unseen archetypes get 0.0."""
    total = sum(counts.values()) or 1
    return {a: counts.get(a, 0) / total for a in ARCHETYPES}


def build_examples(battles: Sequence[Battle], registry: RoleRegistry, config: TrainerConfig = DEFAULT_TRAINER_CONFIG):
    """Turn raw battles into (examples, opponent archetype counts)."""
    examples: List[Example] = []
    opp_counts: Counter = Counter()
    skipped = 0
    for battle in list(battles)[:config.max_battles]:
        matchup = extract_matchup(battle)
        if matchup is None:
            skipped += 1
            continue
        opp_arch = analyze_deck(matchup.opp_deck, registry).archetype
        opp_counts[opp_arch] += 1
        if matchup.my_crowns is None or matchup.opp_crowns is None:
            skipped += 1
            continue
        crown_diff = matchup.my_crowns - matchup.opp_crowns
        x = build_features(matchup.my_deck, opp_arch, registry, crown_diff)
        examples.append(Example(x, 1 if matchup.my_crowns > matchup.opp_crowns else 0))
    if skipped:
        logger.info(f"Skipped {skipped} battle(s) without usable decks or crowns.")
    return examples, opp_counts


def train_win_prob_model(battles: Sequence[Battle], registry: RoleRegistry, config: TrainerConfig = DEFAULT_TRAINER_CONFIG) -> TrainingResult:
    """Fit a model on up to `config.max_battles` battles.

    With fewer than `config.min_examples` usable examples no model is trained;
    the opponent distribution is still returned.
    """
    examples, opp_counts = build_examples(battles, registry, config)
    opp_dist = normalize_distribution(opp_counts)

    if len(examples) < config.min_examples:
        logger.info(f"Only {len(examples)} usable examples (need {config.min_examples}). Skipping training.")
        return TrainingResult(None, opp_dist, len(examples))

    weights = train_log_reg(examples, config)
    logger.info(f"Trained win-probability model on {len(examples)} examples ({config.epochs} epochs).")
    return TrainingResult(WinProbModel(weights, len(weights), model_feature_fn(registry)), opp_dist, len(examples))


# ===========================================
# Prediction
# ===========================================

def predict_win_prob(model: WinProbModel, deck: Sequence[str], opponent_archetype: str) -> float:
    """Win probability vs one archetype; 0.5 if the model does not fit the feature layout."""
    x = np.asarray(model.feature_fn(deck, opponent_archetype), dtype=float)
    if len(x) != model.dims or len(model.weights) != model.dims:
        logger.warning(f"Feature dims {len(x)} do not match model dims {model.dims}. Returning neutral 0.5.")
        return 0.5
    return _sigmoid(float(np.dot(model.weights, x)))


def expected_win_prob(model: WinProbModel, deck: Sequence[str], distribution: Mapping[str, float]) -> float:
    """Win probability averaged over the opponent-archetype distribution (4 decimals)."""
    p = 0.0
    for arch in ARCHETYPES:
        weight = distribution.get(arch, 0.0)
        if weight == 0:
            continue
        p += weight * predict_win_prob(model, deck, arch)
    return round_half_up(p, 4)

