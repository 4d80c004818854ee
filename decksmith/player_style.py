"""Play-style profile derived from a player's recent battle log."""

import logging
from collections import Counter
from typing import Dict, Sequence

from pydantic import BaseModel

from decksmith.archetypes import HYBRID, analyze_deck, round_half_up
from decksmith.battles import Battle, side_cards, side_crowns
from decksmith.roles import RoleRegistry

logger = logging.getLogger(__name__)


class PlayerStyleProfile(BaseModel):
    sample: int
    avgElixir: float
    favoredArchetype: str
    archetypeHistogram: Dict[str, int]
    avgCrownsForMe: float


def analyze_player_style(battles: Sequence[Battle], registry: RoleRegistry) -> PlayerStyleProfile:
    """Summarize the decks a player has been using.

    Battles without a card list for the player are ignored for the deck
    statistics; crowns are averaged over every battle (missing counts as 0).
    """
    analyses = []
    for battle in battles:
        cards = side_cards(battle, "team")
        if cards is not None:
            analyses.append(analyze_deck(cards, registry))

    avg_elixir = round_half_up(sum(a.avgElixir for a in analyses) / max(1, len(analyses)), 1)

    histogram: Counter = Counter(a.archetype for a in analyses)
    most_common = histogram.most_common(1)
    favored = most_common[0][0] if most_common else HYBRID

    crowns = [side_crowns(b, "team") or 0 for b in battles]
    avg_crowns = round_half_up(sum(crowns) / max(1, len(crowns)), 2)

    logger.debug(f"Style over {len(analyses)} decks: favored={favored}, avg_elixir={avg_elixir}")
    return PlayerStyleProfile(
        sample=len(analyses),
        avgElixir=avg_elixir,
        favoredArchetype=favored,
        archetypeHistogram=dict(histogram),
        avgCrownsForMe=avg_crowns,
    )
