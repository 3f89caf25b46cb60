"""Discovery pipeline: places search, normalization and mock fallback."""

from __future__ import annotations

import itertools
import logging
import random
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import requests

from repairfinder.core.config import Settings, get_settings
from repairfinder.core.location import LocationFix, LocationProvider, acquire_location
from repairfinder.etl.mock_services import generate_mock_services
from repairfinder.etl.transform import to_service_listings
from repairfinder.models import Coordinates, ServiceListing, SessionContext
from repairfinder.vendors import here_discover

logger = logging.getLogger(__name__)


class DiscoveryError(RuntimeError):
    """Raised instead of falling back when error masking is disabled."""


@dataclass(slots=True)
class DiscoveryResult:
    listings: List[ServiceListing] = field(default_factory=list)
    fallback: bool = False
    reason: Optional[str] = None


def _fallback(
    lat: float,
    lng: float,
    category: Optional[str],
    settings: Settings,
    rng: random.Random,
    reason: str,
) -> DiscoveryResult:
    listings = generate_mock_services(lat, lng, category, settings.fallback_count, rng=rng)
    return DiscoveryResult(listings=listings, fallback=True, reason=reason)


def discover_services(
    lat: float,
    lng: float,
    category: Optional[str],
    *,
    session: SessionContext,
    settings: Optional[Settings] = None,
    rng: Optional[random.Random] = None,
    mask_errors: Optional[bool] = None,
) -> DiscoveryResult:
    """Query the places API around (lat, lng) and normalize the results.

    With masking on (the default) every failure degrades to synthetic
    listings and this never raises; with masking off the failure is raised
    as DiscoveryError.
    """
    settings = settings or get_settings()
    rng = rng or random.Random()
    mask = settings.mask_discovery_errors if mask_errors is None else mask_errors
    user = session.user_label or "anonymous"

    logger.info("Discovery for user=%s at=%s,%s category=%s", user, lat, lng, category)

    try:
        if not settings.here_api_key:
            raise DiscoveryError("HERE_API_KEY is not configured")
        payload = here_discover.discover(
            lat,
            lng,
            api_key=settings.here_api_key,
            category=category,
            limit=settings.result_limit,
        )
        listings = to_service_listings(payload["items"], Coordinates(lat, lng), rng)
        if not listings:
            raise DiscoveryError("HERE Discover returned no results")
    except (requests.RequestException, ValueError, RuntimeError) as exc:
        if not mask:
            logger.error("Discovery failed for category=%s: %s", category, exc)
            if isinstance(exc, DiscoveryError):
                raise
            raise DiscoveryError(str(exc)) from exc
        logger.warning("Discovery failed for category=%s, serving fallback listings: %s", category, exc)
        return _fallback(lat, lng, category, settings, rng, reason=str(exc))

    logger.info("Normalized %s listings for category=%s", len(listings), category)
    return DiscoveryResult(listings=listings)


@dataclass(frozen=True, slots=True)
class GenerationToken:
    key: str
    generation: int


@dataclass(slots=True)
class Selection:
    token: GenerationToken
    category: Optional[str]
    location: LocationFix
    result: DiscoveryResult


class DiscoveryTracker:
    """Issue one discovery per category selection and drop superseded ones.

    Each session token maps to its latest generation only while a request
    for it is in flight; a response is only handed back if no newer
    selection started for the same token in the meantime. Generation numbers
    come from one counter and are never reused, so dropping an entry cannot
    make an old response look current again.
    """

    def __init__(self, discover: Optional[Callable[..., DiscoveryResult]] = None) -> None:
        self._lock = threading.Lock()
        self._counter = itertools.count(1)
        self._generations: Dict[str, int] = {}
        self._discover = discover

    def begin(self, key: str) -> GenerationToken:
        with self._lock:
            generation = next(self._counter)
            self._generations[key] = generation
        return GenerationToken(key, generation)

    def is_current(self, token: GenerationToken) -> bool:
        with self._lock:
            return self._generations.get(token.key) == token.generation

    def release(self, token: GenerationToken) -> None:
        """Forget the key unless a newer selection has taken it over."""
        with self._lock:
            if self._generations.get(token.key) == token.generation:
                del self._generations[token.key]

    def pending(self) -> int:
        with self._lock:
            return len(self._generations)

    def select(
        self,
        session: SessionContext,
        category: Optional[str],
        provider: Optional[LocationProvider] = None,
        *,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
    ) -> Optional[Selection]:
        token = self.begin(session.token)
        try:
            location = acquire_location(provider)
            discover = self._discover or discover_services
            result = discover(
                location.coordinates.latitude,
                location.coordinates.longitude,
                category,
                session=session,
                settings=settings,
                rng=rng,
            )
            if not self.is_current(token):
                logger.info("Discarding superseded discovery generation=%s category=%s", token.generation, category)
                return None
            return Selection(token=token, category=category, location=location, result=result)
        finally:
            self.release(token)
