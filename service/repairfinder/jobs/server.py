"""HTTP entrypoint serving nearby repair listings to the booking web app."""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Optional

import requests
from flask import Flask, jsonify, request

from repairfinder.core.config import get_settings
from repairfinder.core.location import coordinates_from_params
from repairfinder.discovery import DiscoveryError, DiscoveryTracker
from repairfinder.etl.transform import to_feature_collection
from repairfinder.models import CATEGORIES, CATEGORY_TERMS, SessionContext
from repairfinder.vendors import backend_api

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App & tracker ----------
app = Flask(__name__)
_tracker = DiscoveryTracker()

# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    """Simple root to avoid 404 on GET /"""
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; reads settings only, no outbound calls."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "worker_port_config": settings.worker_port,
                "here_configured": bool(settings.here_api_key),
                "mask_discovery_errors": settings.mask_discovery_errors,
            }
        ),
        200,
    )


@app.get("/categories")
def list_categories() -> Any:
    items = [{"id": c.search_term, "name": c.display_name} for c in CATEGORIES]
    return jsonify({"data": {"items": items}}), 200


@app.get("/services")
def list_services() -> Any:
    """
    Discover repair providers near the caller.
    Query params: category (optional, one of /categories), lat + lng
    (optional, device coordinates), format=geojson (optional).
    """
    session = _session_from_request()
    if session is None:
        return jsonify({"error": "login required"}), 401

    category = (request.args.get("category") or "").strip() or None
    if category is not None and category not in CATEGORY_TERMS:
        return jsonify({"error": f"unknown category: {category}"}), 400

    provider = coordinates_from_params(request.args.get("lat"), request.args.get("lng"))

    try:
        selection = _tracker.select(session, category, provider)
    except DiscoveryError as exc:
        return jsonify({"error": f"discovery failed: {exc}"}), 502

    if selection is None:
        return jsonify({"data": {"status": "superseded"}}), 409

    location = selection.location.coordinates
    if request.args.get("format") == "geojson":
        return jsonify(to_feature_collection(selection.result.listings, location)), 200

    return (
        jsonify(
            {
                "data": {
                    "items": [listing.to_dict() for listing in selection.result.listings],
                    "fallback": selection.result.fallback,
                    "category": category,
                    "location": {**location.as_dict(), "is_default": selection.location.is_default},
                    "generation": selection.token.generation,
                }
            }
        ),
        200,
    )


@app.get("/providers/<provider_id>")
def provider_profile(provider_id: str) -> Any:
    session = _session_from_request()
    if session is None:
        return jsonify({"error": "login required"}), 401
    return _proxy(lambda: backend_api.get_provider(session.token, provider_id))


@app.get("/profile")
def user_profile() -> Any:
    session = _session_from_request()
    if session is None:
        return jsonify({"error": "login required"}), 401
    return _proxy(lambda: backend_api.get_profile(session.token))


# ---------- Internals ----------


def _session_from_request() -> Optional[SessionContext]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return SessionContext(token=token.strip(), user_label=request.headers.get("X-User-Label"))


def _proxy(call: Callable[[], Any]) -> Any:
    try:
        data = call()
    except backend_api.BackendAPIError as exc:
        return jsonify({"error": str(exc)}), exc.status_code or 502
    except requests.RequestException as exc:
        logger.error("Backend API unreachable: %s", exc)
        return jsonify({"error": "backend unavailable"}), 502
    return jsonify({"data": data}), 200


def main() -> None:
    """Bind on 0.0.0.0 using PORT (Cloud Run style) or WORKER_PORT."""
    env_port = os.getenv("PORT")
    port = int(env_port or get_settings().worker_port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port, threaded=True)


if __name__ == "__main__":
    main()
