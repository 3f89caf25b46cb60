"""Core data models shared by the discovery pipeline and the HTTP layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True, slots=True)
class Coordinates:
    latitude: float
    longitude: float

    def as_dict(self) -> Dict[str, float]:
        return {"lat": self.latitude, "lng": self.longitude}


@dataclass(frozen=True, slots=True)
class SessionContext:
    """Authenticated caller, passed explicitly to every call that needs it."""

    token: str
    user_label: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Category:
    search_term: str
    display_name: str


# Fixed set offered by the booking UI; search_term doubles as the HERE `q` value.
CATEGORIES: Tuple[Category, ...] = (
    Category("washing machine repair", "Washing Machine"),
    Category("AC repair", "Air Conditioning"),
    Category("refrigerator repair", "Refrigerator"),
    Category("TV repair", "TV"),
    Category("microwave repair", "Microwave"),
    Category("water purifier repair", "RO"),
)

CATEGORY_TERMS = frozenset(category.search_term for category in CATEGORIES)


@dataclass(slots=True)
class ServiceListing:
    """Normalized, display-ready snapshot of a repair provider candidate."""

    identifier: str
    name: str
    location_label: str
    rating: str
    review_count: int
    distance_label: str
    contact_label: str
    price_indicator: str = "Varies"
    position: Optional[Coordinates] = None
    synthetic: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.identifier,
            "name": self.name,
            "location": self.location_label,
            "rating": self.rating,
            "reviews": self.review_count,
            "price": self.price_indicator,
            "distance": self.distance_label,
            "contacts": self.contact_label,
            "position": self.position.as_dict() if self.position else None,
            "synthetic": self.synthetic,
        }
