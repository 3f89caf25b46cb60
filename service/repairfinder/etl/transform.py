"""Utilities for transforming HERE Discover items into ServiceListings."""

import logging
import math
import random
import string
from typing import Any, Dict, Iterable, List, Optional

from repairfinder.models import Coordinates, ServiceListing

logger = logging.getLogger(__name__)

UNNAMED_PLACE = "Unnamed Place"
UNKNOWN_LOCATION = "Unknown Location"
UNKNOWN_DISTANCE = "Unknown"
NO_CONTACT = "No contact"
SYNTHETIC_ID_PREFIX = "mock-"

_ID_ALPHABET = string.digits + string.ascii_lowercase
_POSITION_JITTER = 0.01


def synthetic_id(rng: random.Random) -> str:
    return SYNTHETIC_ID_PREFIX + "".join(rng.choice(_ID_ALPHABET) for _ in range(9))


def synthesize_rating(rng: random.Random) -> str:
    return f"{rng.random() * 1.5 + 3.5:.1f}"


def synthesize_review_count(rng: random.Random) -> int:
    return int(rng.random() * 200 + 50)


def format_km(kilometres: float) -> str:
    return f"{kilometres:.1f} km"


def format_distance(metres: Any) -> str:
    """Render a distance in metres as kilometres; zero is a real distance."""
    if metres is None or isinstance(metres, bool):
        return UNKNOWN_DISTANCE
    try:
        kilometres = float(metres) / 1000
    except (TypeError, ValueError, OverflowError):
        return UNKNOWN_DISTANCE
    if not math.isfinite(kilometres):
        return UNKNOWN_DISTANCE
    return format_km(kilometres)


def join_mobile_contacts(contacts: Any) -> str:
    if not isinstance(contacts, list) or not contacts or not isinstance(contacts[0], dict):
        return NO_CONTACT
    mobiles = contacts[0].get("mobile")
    if not isinstance(mobiles, list):
        return NO_CONTACT
    values = [str(entry.get("value")).strip() for entry in mobiles if isinstance(entry, dict) and entry.get("value")]
    return ", ".join(values) or NO_CONTACT


def parse_position(raw: Any) -> Optional[Coordinates]:
    if not isinstance(raw, dict):
        return None
    try:
        lat, lng = float(raw["lat"]), float(raw["lng"])
    except (KeyError, TypeError, ValueError, OverflowError):
        return None
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return None
    return Coordinates(lat, lng)


def _strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None


def to_service_listing(item: Dict[str, Any], origin: Coordinates, rng: random.Random) -> ServiceListing:
    address = item.get("address") if isinstance(item.get("address"), dict) else {}
    position = parse_position(item.get("position"))
    if position is None:
        # keep unplaced results near the caller so the map still shows them
        position = Coordinates(
            origin.latitude + (rng.random() - 0.5) * _POSITION_JITTER,
            origin.longitude + (rng.random() - 0.5) * _POSITION_JITTER,
        )

    return ServiceListing(
        identifier=_strip_or_none(item.get("id")) or synthetic_id(rng),
        name=_strip_or_none(item.get("title")) or UNNAMED_PLACE,
        location_label=_strip_or_none(address.get("label")) or UNKNOWN_LOCATION,
        rating=synthesize_rating(rng),
        review_count=synthesize_review_count(rng),
        distance_label=format_distance(item.get("distance")),
        contact_label=join_mobile_contacts(item.get("contacts")),
        position=position,
    )


def to_service_listings(items: Iterable[Any], origin: Coordinates, rng: random.Random) -> List[ServiceListing]:
    listings: List[ServiceListing] = []
    for item in items or []:
        if not isinstance(item, dict):
            logger.debug("Skipping non-object Discover item: %r", item)
            continue
        try:
            listings.append(to_service_listing(item, origin, rng))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Skipping malformed Discover item id=%r: %s", item.get("id"), exc)
            continue
    return listings


def to_feature_collection(listings: Iterable[ServiceListing], user_location: Coordinates) -> Dict[str, Any]:
    """GeoJSON for the map view: the caller's marker plus one marker per placed listing."""
    features: List[Dict[str, Any]] = [
        {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [user_location.longitude, user_location.latitude]},
            "properties": {"kind": "user", "name": "Your location"},
        }
    ]
    for listing in listings:
        if listing.position is None:
            continue
        features.append(
            {
                "type": "Feature",
                "geometry": {
                    "type": "Point",
                    "coordinates": [listing.position.longitude, listing.position.latitude],
                },
                "properties": {
                    "kind": "service",
                    "id": listing.identifier,
                    "name": listing.name,
                    "rating": listing.rating,
                    "reviews": listing.review_count,
                    "distance": listing.distance_label,
                    "contacts": listing.contact_label,
                    "synthetic": listing.synthetic,
                },
            }
        )
    return {"type": "FeatureCollection", "features": features}
