"""Deck archetype classification and composition notes.

`analyze_deck` turns an 8-card list into a DeckAnalysis: average elixir, role
flags, an archetype tag and advisory notes. The archetype is decided by the
first matching rule of ARCHETYPE_RULES, so the order of that list is the
tie-break between overlapping archetypes.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, List, NamedTuple, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from decksmith.roles import RoleRegistry, normalize_deck

logger = logging.getLogger(__name__)

# --- Archetypes ---
CYCLE = "Cycle"
BAIT = "Bait"
BEATDOWN = "Beatdown"
CONTROL = "Control"
SIEGE = "Siege"
BRIDGE_SPAM = "Bridge Spam"
HYBRID = "Hybrid/Other"

ARCHETYPES = (CYCLE, BAIT, BEATDOWN, CONTROL, SIEGE, BRIDGE_SPAM, HYBRID)

# --- Archetype signature cards ---
SIEGE_UNITS = frozenset({"X-Bow", "Mortar"})
BEATDOWN_WINCONS = frozenset({"Golem", "Giant", "Lava Hound", "Elixir Golem", "Electro Giant"})
BAIT_CORE = frozenset({"Goblin Barrel", "Princess", "Goblin Gang", "Rascals"})
CYCLE_WINCONS = frozenset({"Hog Rider", "Ram Rider", "Royal Hogs", "Wall Breakers"})
BRIDGE_SPAM_CORE = frozenset({"Bandit", "Battle Ram", "Royal Ghost", "Dark Prince", "P.E.K.K.A"})
CONTROL_WINCONS = frozenset({"Miner", "Goblin Drill", "Graveyard"})

BEATDOWN_MIN_ELIXIR = 4.1
CYCLE_MAX_ELIXIR = 3.2
HIGH_ELIXIR = 4.5
CHEAP_CARD_COST = 2


def validate_archetype(archetype: Optional[str]) -> str:
    """Return the canonical archetype tag, raising ValueError for unknown tags."""
    if archetype is None:
        raise ValueError("Archetype is required.")
    normalized = str(archetype).strip().lower()
    for tag in ARCHETYPES:
        if tag.lower() == normalized:
            return tag
    raise ValueError(f"Unknown archetype '{archetype}'. Expected one of {list(ARCHETYPES)}.")


def round_half_up(value: float, places: int) -> float:
    """Decimal rounding with halves away from zero (3.25 -> 3.3)."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


class DeckRoles(BaseModel):
    model_config = ConfigDict(frozen=True)

    hasBigSpell: bool
    hasSmallSpell: bool
    hasBuilding: bool
    hasAirTargeting: bool
    hasSplash: bool
    hasReset: bool
    hasChampion: bool
    cheapCycleCount: int
    winCons: List[str]


class DeckAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    avgElixir: float
    roles: DeckRoles
    archetype: str
    notes: List[str]


# ===========================================
# Classification rules
# ===========================================

class DeckView(NamedTuple):
    names: List[str]
    avg_elixir: float


class ArchetypeRule(NamedTuple):
    archetype: str
    matches: Callable[[DeckView], bool]


def _count_in(names: Sequence[str], cards: frozenset) -> int:
    return sum(1 for n in names if n in cards)


ARCHETYPE_RULES: List[ArchetypeRule] = [
    ArchetypeRule(SIEGE, lambda d: _count_in(d.names, SIEGE_UNITS) > 0),
    ArchetypeRule(BEATDOWN, lambda d: _count_in(d.names, BEATDOWN_WINCONS) > 0 and d.avg_elixir >= BEATDOWN_MIN_ELIXIR),
    ArchetypeRule(BAIT, lambda d: _count_in(d.names, BAIT_CORE) >= 2),
    ArchetypeRule(CYCLE, lambda d: _count_in(d.names, CYCLE_WINCONS) > 0 and d.avg_elixir <= CYCLE_MAX_ELIXIR),
    ArchetypeRule(BRIDGE_SPAM, lambda d: _count_in(d.names, BRIDGE_SPAM_CORE) >= 2),
    ArchetypeRule(CONTROL, lambda d: _count_in(d.names, CONTROL_WINCONS) > 0),
]


def classify_archetype(names: Sequence[str], avg_elixir: float) -> str:
    """First matching rule wins; Hybrid/Other when nothing matches."""
    view = DeckView(list(names), avg_elixir)
    for rule in ARCHETYPE_RULES:
        if rule.matches(view):
            return rule.archetype
    return HYBRID


# ===========================================
# Deck analysis
# ===========================================

def average_elixir(deck: Sequence[str], registry: RoleRegistry) -> float:
    """Mean card cost (unknown cards cost the registry default); 0.0 for an empty deck."""
    costs = [registry.cost(c) for c in deck]
    return sum(costs) / max(1, len(costs))


def deck_notes(roles: DeckRoles, avg_elixir: float, archetype: str) -> List[str]:
    notes: List[str] = []
    if not roles.hasAirTargeting: notes.append("No reliable anti-air.")
    if not roles.hasSmallSpell: notes.append("No small spell (Log/Zap/etc.).")
    if not roles.hasBigSpell: notes.append("No big spell (Fireball/Poison/etc.).")
    if roles.cheapCycleCount < 2: notes.append("Consider 1-2 cheap cycle cards.")
    if not roles.hasSplash: notes.append("Little splash vs swarms.")
    if avg_elixir >= HIGH_ELIXIR and archetype != BEATDOWN: notes.append("High elixir for non-beatdown.")
    return notes


def analyze_deck(cards: Sequence[str], registry: RoleRegistry) -> DeckAnalysis:
    """Classify a deck and report its composition.

    Card names may carry variant suffixes ('Knight (Evolved)'); they are
    stripped before any lookup. Unknown cards cost 4 and have no roles.
    """
    names = normalize_deck(cards)
    avg = round_half_up(average_elixir(names, registry), 1)

    cheap = 0
    for n in names:
        cost = registry.known_cost(n)
        if cost is not None and cost <= CHEAP_CARD_COST:
            cheap += 1

    roles = DeckRoles(
        hasBigSpell=registry.has_role("bigSpell", names),
        hasSmallSpell=registry.has_role("smallSpell", names),
        hasBuilding=registry.has_role("building", names),
        hasAirTargeting=registry.has_role("airTarget", names),
        hasSplash=registry.has_role("splash", names),
        hasReset=registry.has_role("reset", names),
        hasChampion=registry.has_role("champion", names),
        cheapCycleCount=cheap,
        winCons=[n for n in names if registry.is_role("winCon", n)],
    )
    archetype = classify_archetype(names, avg)
    return DeckAnalysis(avgElixir=avg, roles=roles, archetype=archetype, notes=deck_notes(roles, avg, archetype))
