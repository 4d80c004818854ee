"""
Builds data/roles.map.json (elixir costs + role sets) from two sources:

1. Official card-data API (/cards) for canonical card names. Needs CR_TOKEN.
2. RoyaleAPI's static cards.json for elixir, type and rarity.

Role tags are heuristic: fixed hint lists for win conditions, spells, air and
splash; buildings come from the card type and champions from the rarity. Any
spell that is neither big nor small by hint still counts as a small spell.
The output file can be edited by hand afterwards.

Usage:
    python scripts/build_roles_map.py [--out data/roles.map.json]
"""

import sys
import json
import logging
import argparse
from pathlib import Path
from typing import Dict, Iterable, List

import pandas as pd
import requests

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from decksmith.config import DEFAULT_ROLES_FILE, get_settings  # noqa: E402
from decksmith.roles import DEFAULT_COST, ROLE_NAMES  # noqa: E402

# ----------------------------
# Configuration
# ----------------------------
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

RA_CARDS_URL = "https://royaleapi.github.io/cr-api-data/json/cards.json"

EVOLUTION_SUFFIXES = ("(Evolved)", "(Evolution)", "(Evo)")

# Role flags forced on for a card (and its evolved forms).
EVOLUTION_OVERRIDES: Dict[str, Dict[str, bool]] = {
    "Ice Spirit": {"reset": True},
}

WINCON_HINTS = {
    "Hog Rider", "X-Bow", "Mortar", "Royal Giant", "Lava Hound", "Balloon",
    "Giant", "Golem", "Miner", "Goblin Drill", "Graveyard", "Ram Rider",
    "Royal Hogs", "Wall Breakers", "Battle Ram", "Goblin Barrel",
}
BIG_SPELLS = {"Fireball", "Poison", "Rocket", "Lightning"}
SMALL_SPELLS = {"The Log", "Zap", "Barbarian Barrel", "Arrows", "Tornado", "Earthquake"}
AIR_HINTS = {
    "Musketeer", "Archers", "Mega Minion", "Baby Dragon", "Electro Wizard", "Inferno Dragon",
    "Tesla", "Minions", "Bats", "Phoenix", "Archer Queen", "Magic Archer", "Hunter", "Princess", "Dart Goblin",
}
SPLASH_HINTS = {"Baby Dragon", "Valkyrie", "Wizard", "Executioner", "Bowler", "Bomb Tower", "Princess", "Magic Archer"}
RESET_HINTS = {"Zap", "Electro Wizard", "Electro Spirit", "Zappies", "Lightning", "Snowball"}


def strip_evolution_suffix(name: str) -> str:
    out = name.strip()
    for suffix in EVOLUTION_SUFFIXES:
        if out.endswith(suffix):
            return out[:-len(suffix)].strip()
    return out


def build_roles_payload(official_names: Iterable[str], ra_cards: pd.DataFrame) -> Dict[str, Dict]:
    """Derive the {COST, ROLE} document from card names and a RoyaleAPI card table.

    `ra_cards` needs a 'name' column; 'elixir', 'type' and 'rarity' are used when present.
    """
    ra = ra_cards.copy()
    for col in ("elixir", "type", "rarity"):
        if col not in ra.columns:
            ra[col] = None
    ra["base_name"] = ra["name"].astype(str).map(strip_evolution_suffix)
    ra = ra.drop_duplicates(subset="base_name", keep="last").set_index("base_name")

    cost: Dict[str, float] = {}
    roles: Dict[str, set] = {role: set() for role in ROLE_NAMES}

    for raw_name in official_names:
        name = raw_name.strip()
        base = strip_evolution_suffix(name)
        row = ra.loc[base] if base in ra.index else None

        elixir = row["elixir"] if row is not None else None
        cost[name] = float(elixir) if elixir is not None and pd.notna(elixir) else DEFAULT_COST

        card_type = str(row["type"]).lower() if row is not None and pd.notna(row["type"]) else ""
        rarity = str(row["rarity"]).lower() if row is not None and pd.notna(row["rarity"]) else ""
        is_spell = card_type == "spell"
        is_building = card_type == "building"

        tags = {
            "winCon": base in WINCON_HINTS,
            "bigSpell": is_spell and base in BIG_SPELLS,
            "smallSpell": is_spell and base in SMALL_SPELLS,
            "building": is_building,
            "airTarget": base in AIR_HINTS,
            "splash": base in SPLASH_HINTS,
            "reset": base in RESET_HINTS,
            "champion": rarity == "champion",
        }
        for role, forced in EVOLUTION_OVERRIDES.get(base, {}).items():
            if forced:
                tags[role] = True

        for role, flagged in tags.items():
            if flagged:
                roles[role].add(name)
        if is_spell and not tags["bigSpell"] and not tags["smallSpell"]:
            roles["smallSpell"].add(name)

    return {"COST": cost, "ROLE": {role: sorted(roles[role]) for role in ROLE_NAMES}}


def fetch_official_names(token: str, base_url: str, timeout: float) -> List[str]:
    resp = requests.get(f"{base_url.rstrip('/')}/cards", headers={"Authorization": f"Bearer {token}"}, timeout=timeout)
    resp.raise_for_status()
    data = resp.json()
    items = data.get("items", []) if isinstance(data, dict) else data
    return [c["name"] for c in items if isinstance(c, dict) and c.get("name")]


def fetch_ra_cards(timeout: float) -> pd.DataFrame:
    resp = requests.get(RA_CARDS_URL, timeout=timeout)
    resp.raise_for_status()
    return pd.DataFrame(resp.json())


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Build the card role / elixir map.")
    parser.add_argument("--out", type=Path, default=DEFAULT_ROLES_FILE, help="Output JSON path.")
    args = parser.parse_args(argv)

    settings = get_settings()
    if not settings.api_token:
        logger.error("Missing CR_TOKEN in environment for the official API.")
        return 1

    try:
        logger.info("Fetching canonical card names...")
        names = fetch_official_names(settings.api_token, settings.api_base_url, settings.api_timeout)
        logger.info(f"Fetching static card data from {RA_CARDS_URL}...")
        ra_cards = fetch_ra_cards(settings.api_timeout)
    except requests.RequestException as e:
        logger.error(f"Failed to download card data: {e}")
        return 1

    payload = build_roles_payload(names, ra_cards)
    args.out.parent.mkdir(parents=True, exist_ok=True)
    args.out.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info(f"Wrote {args.out} with {len(payload['COST'])} cards.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
