import pytest
import requests

from repairfinder import discovery
from repairfinder.core.config import Settings
from repairfinder.core.location import LocationFix
from repairfinder.jobs import server
from repairfinder.models import Coordinates, ServiceListing

AUTH = {"Authorization": "Bearer token-123"}

LISTING = ServiceListing(
    identifier="here:1",
    name="CoolAir Midtown",
    location_label="350 5th Ave",
    rating="4.4",
    review_count=120,
    distance_label="1.2 km",
    contact_label="+1 212-555-0101",
    position=Coordinates(40.7484, -73.9857),
)


class FakeTracker:
    def __init__(self, outcome=None, error=None):
        self.calls = []
        self.outcome = outcome
        self.error = error

    def select(self, session, category, provider=None):
        coordinates = provider() if provider else None
        self.calls.append((session, category, coordinates))
        if self.error:
            raise self.error
        if self.outcome == "superseded":
            return None
        location = LocationFix(Coordinates(40.7128, -74.006), is_default=coordinates is None)
        return discovery.Selection(
            token=discovery.GenerationToken(session.token, 3),
            category=category,
            location=location,
            result=discovery.DiscoveryResult(listings=[LISTING], fallback=False),
        )


@pytest.fixture
def tracker(monkeypatch):
    fake = FakeTracker()
    monkeypatch.setattr(server, "_tracker", fake)
    monkeypatch.setattr(server, "get_settings", lambda: Settings(here_api_key="key"))
    return fake


@pytest.fixture
def client():
    return server.app.test_client()


def test_health_endpoint(tracker, client):
    response = client.get("/healthz")
    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "ok"
    assert body["here_configured"] is True


def test_categories_endpoint(client):
    items = client.get("/categories").get_json()["data"]["items"]
    assert {"id": "AC repair", "name": "Air Conditioning"} in items
    assert len(items) == 6


def test_services_requires_token(tracker, client):
    assert client.get("/services").status_code == 401
    assert client.get("/services", headers={"Authorization": "Basic abc"}).status_code == 401
    assert tracker.calls == []


def test_services_rejects_unknown_category(tracker, client):
    response = client.get("/services?category=piano", headers=AUTH)
    assert response.status_code == 400
    assert tracker.calls == []


def test_services_returns_listings(tracker, client):
    response = client.get("/services?category=AC%20repair&lat=40.75&lng=-73.98", headers=AUTH)

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["fallback"] is False
    assert data["generation"] == 3
    assert data["items"][0]["name"] == "CoolAir Midtown"
    assert data["items"][0]["position"] == {"lat": 40.7484, "lng": -73.9857}
    session, category, coordinates = tracker.calls[0]
    assert session.token == "token-123"
    assert category == "AC repair"
    assert coordinates == ("40.75", "-73.98")


def test_services_without_category_or_coordinates(tracker, client):
    response = client.get("/services", headers=AUTH)

    data = response.get_json()["data"]
    assert data["category"] is None
    assert data["location"]["is_default"] is True
    assert tracker.calls[0][1:] == (None, None)


def test_services_geojson(tracker, client):
    response = client.get("/services?format=geojson", headers=AUTH)

    body = response.get_json()
    assert body["type"] == "FeatureCollection"
    assert [feature["properties"]["kind"] for feature in body["features"]] == ["user", "service"]


def test_services_superseded(tracker, client):
    tracker.outcome = "superseded"
    response = client.get("/services?category=TV%20repair", headers=AUTH)
    assert response.status_code == 409


def test_services_surfaced_failure(tracker, client):
    tracker.error = discovery.DiscoveryError("HERE Discover returned no results")
    response = client.get("/services", headers=AUTH)
    assert response.status_code == 502
    assert "no results" in response.get_json()["error"]


def test_provider_profile_proxies_backend(monkeypatch, client):
    seen = {}

    def fake_get_provider(token, provider_id):
        seen.update(token=token, provider_id=provider_id)
        return {"_id": provider_id, "name": "John Smith"}

    monkeypatch.setattr(server.backend_api, "get_provider", fake_get_provider)

    response = client.get("/providers/abc", headers=AUTH)

    assert response.status_code == 200
    assert response.get_json()["data"]["name"] == "John Smith"
    assert seen == {"token": "token-123", "provider_id": "abc"}


def test_provider_profile_maps_backend_errors(monkeypatch, client):
    def not_found(token, provider_id):
        raise server.backend_api.BackendAPIError("Provider not found", status_code=404)

    monkeypatch.setattr(server.backend_api, "get_provider", not_found)
    assert client.get("/providers/missing", headers=AUTH).status_code == 404


def test_profile_backend_unreachable(monkeypatch, client):
    def down(token):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(server.backend_api, "get_profile", down)
    assert client.get("/profile", headers=AUTH).status_code == 502
    assert client.get("/profile").status_code == 401
