"""Configuration for the deck classification / suggestion core.

Paths and API settings come from the environment (a local `.env` file is
loaded with python-dotenv). Defaults point at the `data/` directory next to
the package.
"""

import os
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

logger = logging.getLogger(__name__)

# --- Project Root Setup ---
PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(PROJECT_ROOT / ".env")

# --- Constants ---
DECK_SIZE = 8
DEFAULT_API_BASE_URL = "https://api.clashroyale.com/v1"
DEFAULT_DATA_DIR = PROJECT_ROOT / "data"
DEFAULT_ROLES_FILE = DEFAULT_DATA_DIR / "roles.map.json"
DEFAULT_MODEL_DIR = DEFAULT_DATA_DIR / "models"
DEFAULT_API_TIMEOUT = 10.0
STYLE_BATTLE_LIMIT = 25


class Settings(BaseModel):
    """Runtime settings resolved from environment variables."""
    api_token: Optional[str] = None
    api_base_url: str = DEFAULT_API_BASE_URL
    api_timeout: float = DEFAULT_API_TIMEOUT
    data_dir: Path = DEFAULT_DATA_DIR
    roles_file: Path = DEFAULT_ROLES_FILE
    model_dir: Path = DEFAULT_MODEL_DIR


def get_settings() -> Settings:
    """Build a Settings object from the current environment."""
    data_dir = Path(os.getenv("DECKSMITH_DATA_DIR", str(DEFAULT_DATA_DIR)))
    roles_file = Path(os.getenv("DECKSMITH_ROLES_FILE", str(data_dir / "roles.map.json")))
    model_dir = Path(os.getenv("DECKSMITH_MODEL_DIR", str(data_dir / "models")))

    timeout_raw = os.getenv("DECKSMITH_API_TIMEOUT")
    try:
        api_timeout = float(timeout_raw) if timeout_raw else DEFAULT_API_TIMEOUT
    except ValueError:
        logger.warning(f"Invalid DECKSMITH_API_TIMEOUT '{timeout_raw}'. Using {DEFAULT_API_TIMEOUT}s.")
        api_timeout = DEFAULT_API_TIMEOUT

    return Settings(
        api_token=os.getenv("CR_TOKEN") or None,
        api_base_url=os.getenv("CR_API_BASE_URL", DEFAULT_API_BASE_URL),
        api_timeout=api_timeout,
        data_dir=data_dir,
        roles_file=roles_file,
        model_dir=model_dir,
    )
