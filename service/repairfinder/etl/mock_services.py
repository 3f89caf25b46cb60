"""Synthetic listings served when the places API cannot supply real data."""

import random
from typing import Dict, List, Optional, Tuple

from repairfinder.etl.transform import format_km, synthesize_rating, synthesize_review_count, synthetic_id
from repairfinder.models import Coordinates, ServiceListing

MOCK_NAMES: Dict[str, Tuple[str, ...]] = {
    "washing machine repair": ("Quick Wash Repairs", "SpinMaster Fixes", "CleanCycle Services"),
    "AC repair": ("CoolAir Technicians", "Freeze Fix Pro", "Climate Control Experts"),
    "refrigerator repair": ("FridgeFix Pro", "CoolKeeper Services", "Fresh Solutions"),
    "TV repair": ("ScreenFix Masters", "PixelPerfect Repairs", "ViewTech Services"),
    "microwave repair": ("MicroWizards", "QuickHeat Repairs", "WaveMaster Services"),
    "water purifier repair": ("PureFlow Technicians", "AquaFix Pro", "ClearWater Services"),
}
UNKNOWN_CATEGORY_NAMES = ("Local Repair Service",)
GENERIC_NAMES = ("Home Appliance Repair",)

# degrees of jitter per synthesized kilometre
_JITTER_PER_KM = 0.005


def name_pool(category: Optional[str]) -> Tuple[str, ...]:
    if not category:
        return GENERIC_NAMES
    return MOCK_NAMES.get(category, UNKNOWN_CATEGORY_NAMES)


def mock_name(pool: Tuple[str, ...], index: int) -> str:
    name = pool[index % len(pool)]
    if index >= len(pool):
        name = f"{name} {index // len(pool) + 1}"
    return name


def mock_phone(rng: random.Random) -> str:
    return f"+1 {rng.randint(100, 999)}-{rng.randint(100, 999)}-{rng.randint(1000, 9999)}"


def generate_mock_services(
    lat: float,
    lng: float,
    category: Optional[str],
    count: int,
    rng: Optional[random.Random] = None,
) -> List[ServiceListing]:
    """Produce `count` plausible listings scattered around (lat, lng).

    Markers further away get proportionally more positional jitter so the
    map matches the distance labels.
    """
    rng = rng or random.Random()
    pool = name_pool(category)

    listings: List[ServiceListing] = []
    for index in range(count):
        distance_km = rng.random() * 5 + 0.5
        spread = distance_km * _JITTER_PER_KM
        listings.append(
            ServiceListing(
                identifier=synthetic_id(rng),
                name=mock_name(pool, index),
                location_label=f"{format_km(distance_km)} from your location",
                rating=synthesize_rating(rng),
                review_count=synthesize_review_count(rng),
                distance_label=format_km(distance_km),
                contact_label=mock_phone(rng),
                position=Coordinates(
                    lat + (rng.random() - 0.5) * spread,
                    lng + (rng.random() - 0.5) * spread,
                ),
                synthetic=True,
            )
        )
    return listings
