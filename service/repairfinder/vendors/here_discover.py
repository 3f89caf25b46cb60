"""Client utilities for the HERE Discover places-search API."""

import logging
from typing import Any, Dict, Optional

import requests

from repairfinder.core.config import get_settings

logger = logging.getLogger(__name__)
_SESSION = requests.Session()


class HereDiscoverError(RuntimeError):
    """Raised when the Discover API answers without a usable items list."""


def build_params(
    lat: float,
    lng: float,
    api_key: str,
    category: Optional[str] = None,
    limit: int = 20,
) -> Dict[str, Any]:
    params: Dict[str, Any] = {"at": f"{lat},{lng}", "limit": limit}
    if category:
        params["q"] = category
    params["apiKey"] = api_key
    return params


def discover(
    lat: float,
    lng: float,
    *,
    api_key: str,
    category: Optional[str] = None,
    limit: int = 20,
) -> Dict[str, Any]:
    """Run one Discover query and return the raw JSON payload."""
    settings = get_settings()
    params = build_params(lat, lng, api_key, category=category, limit=limit)
    logger.info("Calling HERE Discover at=%s q=%s limit=%s", params["at"], category, limit)

    response = _SESSION.get(settings.here_discover_url, params=params, timeout=settings.request_timeout)
    response.raise_for_status()
    payload = response.json()
    if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
        preview = list(payload.keys())[:10] if isinstance(payload, dict) else type(payload).__name__
        logger.error("discover returned no items list: %s", preview)
        raise HereDiscoverError("HERE Discover response is missing the items list")
    return payload
