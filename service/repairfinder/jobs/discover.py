"""CLI job to run one discovery request and print the listings as JSON."""

import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from repairfinder.core.config import ConfigError, get_settings
from repairfinder.core.location import acquire_location, coordinates_from_params
from repairfinder.discovery import DiscoveryError, discover_services
from repairfinder.models import CATEGORY_TERMS, SessionContext

logger = logging.getLogger(__name__)


def run_discover_job(
    *,
    category: Optional[str],
    lat: Optional[float],
    lng: Optional[float],
    surface_errors: bool = False,
) -> dict:
    if category is not None and category not in CATEGORY_TERMS:
        raise ValueError(f"Unknown category {category!r}; choose one of {sorted(CATEGORY_TERMS)}")

    location = acquire_location(coordinates_from_params(lat, lng))
    coordinates = location.coordinates
    result = discover_services(
        coordinates.latitude,
        coordinates.longitude,
        category,
        session=SessionContext(token="cli", user_label="cli"),
        mask_errors=False if surface_errors else None,
    )
    logger.info("Completed discovery: listings=%d fallback=%s", len(result.listings), result.fallback)
    return {
        "category": category,
        "location": {**coordinates.as_dict(), "is_default": location.is_default},
        "fallback": result.fallback,
        "items": [listing.to_dict() for listing in result.listings],
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find repair services near a location")
    parser.add_argument("--category", dest="category", help="Category search term, e.g. 'AC repair'")
    parser.add_argument("--lat", dest="lat", type=float, help="Latitude (defaults to DEFAULT_LATITUDE)")
    parser.add_argument("--lng", dest="lng", type=float, help="Longitude (defaults to DEFAULT_LONGITUDE)")
    parser.add_argument(
        "--surface-errors",
        dest="surface_errors",
        action="store_true",
        default=not get_settings().mask_discovery_errors,
        help="Fail instead of printing fallback listings when the places API is unavailable",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    try:
        args = build_parser().parse_args(argv)
        output = run_discover_job(
            category=args.category,
            lat=args.lat,
            lng=args.lng,
            surface_errors=args.surface_errors,
        )
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc
    except (ValueError, DiscoveryError) as exc:
        logger.error("Discovery failed: %s", exc)
        raise SystemExit(1) from exc

    json.dump(output, sys.stdout, indent=2)
    sys.stdout.write("\n")


if __name__ == "__main__":
    main()
