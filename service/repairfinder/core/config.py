"""Application configuration helpers.

Credentials come from the environment only: `HERE_API_KEY` is a billable key
and must never be hardcoded.
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_HERE_DISCOVER_URL = "https://discover.search.hereapi.com/v1/discover"
DEFAULT_BACKEND_API_URL = "http://localhost:3001"


class ConfigError(RuntimeError):
    """Raised when configuration values are present but unusable."""


@dataclass(frozen=True)
class Settings:
    here_api_key: str
    here_discover_url: str = DEFAULT_HERE_DISCOVER_URL
    result_limit: int = 20
    fallback_count: int = 5
    default_latitude: float = 40.7128
    default_longitude: float = -74.0060
    mask_discovery_errors: bool = True
    backend_api_url: str = DEFAULT_BACKEND_API_URL
    request_timeout: float = 10.0
    worker_port: int = 9000


def _parse_number(name: str, default: str, cast):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be numeric, got {raw!r}") from exc


def _parse_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    here_api_key = os.getenv("HERE_API_KEY", "")
    here_discover_url = os.getenv("HERE_DISCOVER_URL") or DEFAULT_HERE_DISCOVER_URL
    backend_api_url = (os.getenv("BACKEND_API_URL") or DEFAULT_BACKEND_API_URL).rstrip("/")

    result_limit = _parse_number("DISCOVER_RESULT_LIMIT", "20", int)
    fallback_count = _parse_number("FALLBACK_COUNT", "5", int)
    if result_limit <= 0 or fallback_count <= 0:
        raise ConfigError("DISCOVER_RESULT_LIMIT and FALLBACK_COUNT must be positive")

    default_latitude = _parse_number("DEFAULT_LATITUDE", "40.7128", float)
    default_longitude = _parse_number("DEFAULT_LONGITUDE", "-74.0060", float)
    if not (-90 <= default_latitude <= 90 and -180 <= default_longitude <= 180):
        raise ConfigError("DEFAULT_LATITUDE/DEFAULT_LONGITUDE are out of range")

    if not here_api_key:
        logger.warning("HERE_API_KEY is not configured; discovery will serve fallback listings.")

    return Settings(
        here_api_key=here_api_key,
        here_discover_url=here_discover_url,
        result_limit=result_limit,
        fallback_count=fallback_count,
        default_latitude=default_latitude,
        default_longitude=default_longitude,
        mask_discovery_errors=_parse_bool("MASK_DISCOVERY_ERRORS", "true"),
        backend_api_url=backend_api_url,
        request_timeout=_parse_number("REQUEST_TIMEOUT_SECONDS", "10", float),
        worker_port=_parse_number("WORKER_PORT", "9000", int),
    )
