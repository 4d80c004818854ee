"""Card role / elixir cost registry.

The registry is built once from `roles.map.json` (see scripts/build_roles_map.py)
and passed explicitly to every component that needs card knowledge:

    {"COST": {"Hog Rider": 4, ...},
     "ROLE": {"winCon": [...], "bigSpell": [...], ..., "champion": [...]}}

Lookup policy for cards the registry does not know: cost 4, no role
membership. A missing or malformed document yields an *unavailable* registry
that applies that policy to every card; callers can check `available`.
"""

import re
import json
import logging
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_COST = 4

ROLE_NAMES = (
    "winCon", "bigSpell", "smallSpell", "building",
    "airTarget", "splash", "reset", "champion",
)

_VARIANT_SUFFIX = re.compile(r"\s*\(.*\)$")


def normalize_name(name: str) -> str:
    """Strip a trailing parenthetical variant, e.g. 'Knight (Evolved)' -> 'Knight'."""
    if name is None:
        return ""
    return _VARIANT_SUFFIX.sub("", str(name))


def normalize_deck(deck: Iterable[str]) -> List[str]:
    return [normalize_name(c) for c in deck]


class RoleLists(BaseModel):
    winCon: List[str] = Field(default_factory=list)
    bigSpell: List[str] = Field(default_factory=list)
    smallSpell: List[str] = Field(default_factory=list)
    building: List[str] = Field(default_factory=list)
    airTarget: List[str] = Field(default_factory=list)
    splash: List[str] = Field(default_factory=list)
    reset: List[str] = Field(default_factory=list)
    champion: List[str] = Field(default_factory=list)


class RolesDocument(BaseModel):
    """Schema of the on-disk roles map."""
    COST: Dict[str, float]
    ROLE: RoleLists


class RoleRegistry:
    """Immutable card-name -> cost / role-set lookup."""

    def __init__(self, costs: Mapping[str, float], roles: Mapping[str, Iterable[str]], available: bool = True):
        self._costs: Dict[str, float] = dict(costs)
        self._roles: Dict[str, FrozenSet[str]] = {
            role: frozenset(roles.get(role, ())) for role in ROLE_NAMES
        }
        self.available = available

    @classmethod
    def unavailable(cls) -> "RoleRegistry":
        """Registry with no card knowledge; every lookup falls back to the default policy."""
        return cls({}, {}, available=False)

    @classmethod
    def from_document(cls, doc: RolesDocument) -> "RoleRegistry":
        return cls(doc.COST, doc.ROLE.model_dump())

    def cost(self, card: str, default: float = DEFAULT_COST) -> float:
        """Elixir cost of `card` after normalization; `default` if unknown."""
        return self._costs.get(normalize_name(card), default)

    def known_cost(self, card: str) -> Optional[float]:
        return self._costs.get(normalize_name(card))

    def members(self, role: str) -> FrozenSet[str]:
        if role not in self._roles:
            raise KeyError(f"Unknown role set '{role}'. Expected one of {ROLE_NAMES}.")
        return self._roles[role]

    def is_role(self, role: str, card: str) -> bool:
        return normalize_name(card) in self.members(role)

    def has_role(self, role: str, deck: Iterable[str]) -> bool:
        """True iff any card of `deck` belongs to `role`."""
        members = self.members(role)
        return any(normalize_name(c) in members for c in deck)

    def to_document(self) -> Dict[str, Dict]:
        """Plain {COST, ROLE} payload with sorted role lists."""
        return {
            "COST": dict(self._costs),
            "ROLE": {role: sorted(self._roles[role]) for role in ROLE_NAMES},
        }

    def __len__(self) -> int:
        return len(self._costs)

    def __repr__(self) -> str:
        return f"RoleRegistry(cards={len(self._costs)}, available={self.available})"


def load_registry(path: Path) -> RoleRegistry:
    """Load the roles map from `path`, degrading to an unavailable registry on any problem."""
    path = Path(path)
    logger.info(f"Loading role registry from {path}...")
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        doc = RolesDocument.model_validate(raw)
    except FileNotFoundError:
        logger.warning(f"Roles map not found at {path}. Classification will use default costs and no roles.")
        return RoleRegistry.unavailable()
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Roles map at {path} is unreadable or malformed: {e}. Using empty registry.")
        return RoleRegistry.unavailable()

    registry = RoleRegistry.from_document(doc)
    logger.info(f"Role registry loaded ({len(registry)} cards).")
    return registry
