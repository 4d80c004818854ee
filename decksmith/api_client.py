"""Thin client for the official card-data API (player profiles and battle logs)."""

import logging
from typing import Any, Dict, List, Optional, Set
from urllib.parse import quote, unquote

import requests

from decksmith.config import DEFAULT_API_BASE_URL, DEFAULT_API_TIMEOUT, Settings

logger = logging.getLogger(__name__)


class CardDataError(RuntimeError):
    """Raised when the card-data API cannot be reached or returns an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def encode_player_tag(tag: str) -> str:
    """Accept 'P2QRY8', '#P2QRY8' or '%23P2QRY8' and return '%23P2QRY8'."""
    decoded = unquote(str(tag))
    with_hash = decoded if decoded.startswith("#") else f"#{decoded}"
    return quote(with_hash, safe="")


class CardDataClient:
    def __init__(self, token: Optional[str], base_url: str = DEFAULT_API_BASE_URL,
                 timeout: float = DEFAULT_API_TIMEOUT, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})
        else:
            logger.warning("No API token configured. Requests to the card-data API will likely be rejected.")

    @classmethod
    def from_settings(cls, settings: Settings) -> "CardDataClient":
        return cls(settings.api_token, settings.api_base_url, settings.api_timeout)

    def _get(self, path: str) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Request to {url} failed: {e}")
            raise CardDataError(f"Request to card-data API failed: {e}") from e
        if resp.status_code != 200:
            logger.warning(f"Card-data API returned {resp.status_code} for {url}")
            raise CardDataError(f"Card-data API returned {resp.status_code}", status_code=resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise CardDataError(f"Card-data API returned invalid JSON: {e}", status_code=resp.status_code) from e

    def get_player(self, tag: str) -> Dict[str, Any]:
        """Fetch player profile data."""
        data = self._get(f"/players/{encode_player_tag(tag)}")
        if not isinstance(data, dict):
            raise CardDataError("Unexpected player payload.")
        return data

    def get_battlelog(self, tag: str, limit: int = 25) -> List[Dict[str, Any]]:
        """Fetch the `limit` most recent battles for a player."""
        data = self._get(f"/players/{encode_player_tag(tag)}/battlelog")
        if not isinstance(data, list):
            raise CardDataError("Unexpected battlelog payload.")
        return data[:limit]

    def get_owned_cards(self, tag: str) -> Set[str]:
        player = self.get_player(tag)
        cards = player.get("cards") or []
        return {c["name"] for c in cards if isinstance(c, dict) and isinstance(c.get("name"), str)}
