import pytest

from repairfinder.core import location
from repairfinder.core.config import Settings
from repairfinder.models import Coordinates

DEFAULT = Coordinates(40.7128, -74.006)


@pytest.fixture(autouse=True)
def patch_settings(monkeypatch):
    monkeypatch.setattr(location, "get_settings", lambda: Settings(here_api_key="key"))


def test_provider_coordinates_are_used():
    fix = location.acquire_location(lambda: (12.97, 77.59))
    assert fix.coordinates == Coordinates(12.97, 77.59)
    assert fix.is_default is False


def test_provider_may_return_coordinates_object():
    fix = location.acquire_location(lambda: Coordinates(1.5, 2.5))
    assert fix.coordinates == Coordinates(1.5, 2.5)


def test_missing_provider_uses_default():
    fix = location.acquire_location(None)
    assert fix.coordinates == DEFAULT
    assert fix.is_default is True


def test_failing_provider_uses_default(caplog):
    def denied():
        raise PermissionError("User denied Geolocation")

    with caplog.at_level("WARNING"):
        fix = location.acquire_location(denied)

    assert fix.is_default is True
    assert fix.coordinates == DEFAULT
    assert "User denied Geolocation" in " ".join(caplog.messages)


@pytest.mark.parametrize("value", [None, ("north", "west"), (91, 0), (0, -181), (1, 2, 3), "40,-74"])
def test_unusable_values_use_default(value):
    fix = location.acquire_location(lambda: value)
    assert fix.is_default is True


def test_explicit_default_overrides_settings():
    fix = location.acquire_location(None, default=Coordinates(0.0, 0.0))
    assert fix.coordinates == Coordinates(0.0, 0.0)


def test_coordinates_from_params():
    assert location.coordinates_from_params(None, "1") is None
    assert location.coordinates_from_params("", "") is None

    fix = location.acquire_location(location.coordinates_from_params("48.85", "2.35"))
    assert fix.coordinates == Coordinates(48.85, 2.35)
