"""Helpers for reading battle-log records returned by the card-data API.

A record looks like:
    {"team": [{"cards": [{"name": ...}, ...], "crowns": 1}],
     "opponent": [{"cards": [...], "crowns": 0}], ...}
Any of these fields may be missing; helpers return None instead of raising.
"""

from typing import Any, Dict, List, NamedTuple, Optional

Battle = Dict[str, Any]


class Matchup(NamedTuple):
    my_deck: List[str]
    opp_deck: List[str]
    my_crowns: Optional[int]
    opp_crowns: Optional[int]


def _first_side(battle: Battle, key: str) -> Optional[Dict[str, Any]]:
    side = battle.get(key) if isinstance(battle, dict) else None
    if not isinstance(side, list) or not side or not isinstance(side[0], dict):
        return None
    return side[0]


def side_cards(battle: Battle, key: str) -> Optional[List[str]]:
    """Card names of the first participant on `key` ('team' or 'opponent')."""
    side = _first_side(battle, key)
    if side is None:
        return None
    cards = side.get("cards")
    if not isinstance(cards, list):
        return None
    names = [c["name"] for c in cards if isinstance(c, dict) and isinstance(c.get("name"), str)]
    return names or None


def side_crowns(battle: Battle, key: str) -> Optional[int]:
    side = _first_side(battle, key)
    if side is None:
        return None
    crowns = side.get("crowns")
    if isinstance(crowns, bool) or not isinstance(crowns, (int, float)):
        return None
    return int(crowns)


def is_one_vs_one(battle: Battle) -> bool:
    team, opponent = battle.get("team"), battle.get("opponent")
    return isinstance(team, list) and isinstance(opponent, list) and len(team) == 1 and len(opponent) == 1


def extract_matchup(battle: Battle) -> Optional[Matchup]:
    """Both decks of a 1v1 battle, or None if either card list is unusable."""
    if not isinstance(battle, dict) or not is_one_vs_one(battle):
        return None
    my_deck = side_cards(battle, "team")
    opp_deck = side_cards(battle, "opponent")
    if my_deck is None or opp_deck is None:
        return None
    return Matchup(my_deck, opp_deck, side_crowns(battle, "team"), side_crowns(battle, "opponent"))
