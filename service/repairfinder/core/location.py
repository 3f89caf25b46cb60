"""Resolve the caller's coordinates, falling back to the configured default."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Union

from repairfinder.core.config import get_settings
from repairfinder.models import Coordinates

logger = logging.getLogger(__name__)

LocationProvider = Callable[[], Union[Coordinates, Tuple[Any, Any], None]]


@dataclass(frozen=True, slots=True)
class LocationFix:
    coordinates: Coordinates
    is_default: bool = False


def default_coordinates() -> Coordinates:
    settings = get_settings()
    return Coordinates(settings.default_latitude, settings.default_longitude)


def _validate(value: Any) -> Optional[Coordinates]:
    if isinstance(value, Coordinates):
        lat, lng = value.latitude, value.longitude
    elif isinstance(value, (tuple, list)) and len(value) == 2:
        lat, lng = value
    else:
        return None

    try:
        lat = float(lat)
        lng = float(lng)
    except (TypeError, ValueError):
        return None

    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return None
    return Coordinates(lat, lng)


def acquire_location(
    provider: Optional[LocationProvider] = None,
    *,
    default: Optional[Coordinates] = None,
) -> LocationFix:
    """Ask the geolocation provider for coordinates.

    A missing provider, a provider that raises, and a provider returning
    nothing usable all resolve to the default coordinates.
    """
    if provider is None:
        logger.info("No geolocation provider available; using default coordinates")
        return LocationFix(default or default_coordinates(), is_default=True)

    try:
        raw = provider()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Geolocation provider failed: %s; using default coordinates", exc)
        return LocationFix(default or default_coordinates(), is_default=True)

    coordinates = _validate(raw)
    if coordinates is None:
        logger.warning("Geolocation provider returned unusable value %r; using default coordinates", raw)
        return LocationFix(default or default_coordinates(), is_default=True)
    return LocationFix(coordinates)


def coordinates_from_params(lat: Any, lng: Any) -> Optional[LocationProvider]:
    """Build a provider from client-reported values, or None when not reported."""
    if lat in (None, "") or lng in (None, ""):
        return None
    return lambda: (lat, lng)
