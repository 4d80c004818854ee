"""On-disk memoization of trained win-probability models, one record per player.

Record schema (JSON):
    {"playerIdKey": "P2QRY8", "version": 1, "trainedAt": "...", "samples": 42,
     "dims": 33, "weights": [...], "opponentDistribution": {"Cycle": 0.25, ...}}

A record that is missing, unreadable, fails validation, or carries a version
other than MODEL_VERSION is a cache miss and triggers retraining.
"""

import os
import re
import json
import logging
import tempfile
import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from decksmith.battles import Battle
from decksmith.roles import RoleRegistry
from decksmith.trainer import (
    DEFAULT_TRAINER_CONFIG, OpponentDistribution, TrainerConfig, WinProbModel,
    model_feature_fn, train_win_prob_model,
)

logger = logging.getLogger(__name__)

# Bump whenever the feature layout in features.py changes.
MODEL_VERSION = 1

BattleSource = Callable[[str, int], Sequence[Battle]]


def safe_player_key(player_id: str) -> str:
    """'#p2qry8' -> 'P2QRY8'. Distinct ids that sanitize identically share a key."""
    key = re.sub(r"^#", "", str(player_id))
    key = re.sub(r"[^A-Za-z0-9_-]+", "_", key)
    return key.upper()


# ===========================================
# Storage
# ===========================================

class JsonFileStore:
    """Key -> JSON document store, one file per key, with atomic replacement on put."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        path = self.path_for(key)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Unreadable cache entry {path}: {e}")
            return None

    def put(self, key: str, payload: Dict[str, Any]) -> None:
        """Write to a temp file in the same directory, then rename over the target."""
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path_for(key))
        except BaseException:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise


class CachedModelRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    player_id_key: str = Field(alias="playerIdKey")
    version: int
    trained_at: str = Field(alias="trainedAt")
    samples: int
    dims: int
    weights: List[float]
    opponent_distribution: Dict[str, float] = Field(alias="opponentDistribution")


class ModelLookup(NamedTuple):
    model: Optional[WinProbModel]
    opponent_distribution: OpponentDistribution
    samples: int
    from_cache: bool


# ===========================================
# Cache
# ===========================================

class ModelCache:
    """Returns a cached model for a player, training (and persisting) one on a miss."""

    def __init__(self, store: JsonFileStore, battle_source: BattleSource, registry: RoleRegistry,
                 config: TrainerConfig = DEFAULT_TRAINER_CONFIG):
        self.store = store
        self.battle_source = battle_source
        self.registry = registry
        self.config = config

    def load(self, player_id: str) -> Optional[CachedModelRecord]:
        key = safe_player_key(player_id)
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            record = CachedModelRecord.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Discarding malformed cached model for {key}: {e.error_count()} error(s).")
            return None
        if record.version != MODEL_VERSION:
            logger.info(f"Cached model for {key} has version {record.version}, expected {MODEL_VERSION}. Retraining.")
            return None
        if len(record.weights) != record.dims:
            logger.warning(f"Cached model for {key} has {len(record.weights)} weights but dims={record.dims}. Retraining.")
            return None
        return record

    def save(self, player_id: str, model: WinProbModel, opponent_distribution: OpponentDistribution, samples: int) -> CachedModelRecord:
        record = CachedModelRecord(
            player_id_key=safe_player_key(player_id),
            version=MODEL_VERSION,
            trained_at=datetime.datetime.now(datetime.timezone.utc).isoformat(),
            samples=samples,
            dims=model.dims,
            weights=[float(w) for w in model.weights],
            opponent_distribution=dict(opponent_distribution),
        )
        self.store.put(record.player_id_key, record.model_dump(by_alias=True))
        return record

    def get(self, player_id: str, force: bool = False) -> ModelLookup:
        if not force:
            record = self.load(player_id)
            if record is not None:
                logger.debug(f"Using cached model for {record.player_id_key} (trained {record.trained_at}).")
                model = WinProbModel(record.weights, record.dims, model_feature_fn(self.registry))
                return ModelLookup(model, record.opponent_distribution, record.samples, True)

        battles = self.battle_source(player_id, self.config.max_battles)
        result = train_win_prob_model(battles, self.registry, self.config)
        if result.model is not None:
            try:
                self.save(player_id, result.model, result.opponent_distribution, result.samples)
            except OSError as e:
                logger.error(f"Failed to persist model for {safe_player_key(player_id)}: {e}", exc_info=True)
        return ModelLookup(result.model, result.opponent_distribution, result.samples, False)
