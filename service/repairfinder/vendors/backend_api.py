"""Client for the booking backend REST API (auth, profile, admin CRUD).

Every authenticated call takes the caller's token explicitly; nothing here
reads a token from shared state.
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from repairfinder.core.config import get_settings

logger = logging.getLogger(__name__)


def _build_session() -> requests.Session:
    session = requests.Session()
    # only idempotent reads are retried; writes surface the first failure
    retries = Retry(
        total=3,
        backoff_factor=1,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=("GET",),
    )
    session.mount("http://", HTTPAdapter(max_retries=retries))
    session.mount("https://", HTTPAdapter(max_retries=retries))
    return session


_SESSION = _build_session()


class BackendAPIError(RuntimeError):
    """Raised when the backend answers with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _request(
    method: str,
    path: str,
    *,
    token: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> Any:
    settings = get_settings()
    url = f"{settings.backend_api_url}{path}"
    headers = {"Authorization": f"Bearer {token}"} if token else {}

    response = _SESSION.request(method, url, json=payload, headers=headers, timeout=settings.request_timeout)
    if not (200 <= response.status_code < 300):
        message = _error_message(response)
        logger.error("%s %s failed: status=%s message=%s", method, path, response.status_code, message)
        raise BackendAPIError(message, status_code=response.status_code)

    if response.status_code == 204 or not response.content:
        return None
    return response.json()


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)


# ---------- Auth ----------


def login(email: str, password: str) -> Dict[str, Any]:
    return _request("POST", "/api/auth/login", payload={"email": email, "password": password})


def register(name: str, email: str, password: str, phone: str) -> Dict[str, Any]:
    payload = {"name": name, "email": email, "password": password, "phone": phone}
    return _request("POST", "/api/auth/register", payload=payload)


# ---------- Users ----------


def get_profile(token: str) -> Dict[str, Any]:
    return _request("GET", "/api/users/profile", token=token)


def list_users(token: str) -> List[Dict[str, Any]]:
    return _request("GET", "/api/users", token=token) or []


# ---------- Categories ----------


def list_categories() -> List[Dict[str, Any]]:
    return _request("GET", "/api/categories") or []


def list_all_categories(token: str) -> List[Dict[str, Any]]:
    """Admin view, including inactive categories."""
    return _request("GET", "/api/categories/admin/all", token=token) or []


def create_category(token: str, data: Dict[str, Any]) -> Dict[str, Any]:
    return _request("POST", "/api/categories", token=token, payload=data)


def update_category(token: str, category_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    return _request("PUT", f"/api/categories/{category_id}", token=token, payload=data)


def delete_category(token: str, category_id: str) -> None:
    _request("DELETE", f"/api/categories/{category_id}", token=token)


# ---------- Providers ----------


def list_providers(token: str) -> List[Dict[str, Any]]:
    return _request("GET", "/api/providers", token=token) or []


def get_provider(token: str, provider_id: str) -> Dict[str, Any]:
    return _request("GET", f"/api/providers/{provider_id}", token=token)


def create_provider(token: str, data: Dict[str, Any]) -> Dict[str, Any]:
    return _request("POST", "/api/providers", token=token, payload=data)


def update_provider(token: str, provider_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    return _request("PUT", f"/api/providers/{provider_id}", token=token, payload=data)


def delete_provider(token: str, provider_id: str) -> None:
    _request("DELETE", f"/api/providers/{provider_id}", token=token)
