"""
API client for the Legacy Ops backend.
Makes HTTP calls to the dashboard routes at /api/dashboard.
"""

from typing import Any
import requests
import logging
from config.settings import API_BASE_URL, API_TIMEOUT

logger = logging.getLogger(__name__)

BACKEND_DOWN = "Cannot connect to backend API. Is it running?"


def _extract_error_detail(e: requests.HTTPError) -> str:
    """Pull a human-readable detail string from an HTTPError response."""
    try:
        return e.response.json().get("detail", str(e))
    except ValueError:
        return str(e)


def _api_get(endpoint: str) -> dict[str, Any]:
    """GET a backend endpoint; failures come back as {"success": False, "message": ...}."""
    try:
        resp = requests.get(f"{API_BASE_URL}{endpoint}", timeout=API_TIMEOUT)
        resp.raise_for_status()
        return {"success": True, "data": resp.json()}
    except requests.ConnectionError:
        return {"success": False, "message": BACKEND_DOWN}
    except requests.HTTPError as e:
        return {"success": False, "message": _extract_error_detail(e)}
    except requests.RequestException as e:
        logger.error(f"Request to {endpoint} failed: {e}")
        return {"success": False, "message": f"Unexpected error: {e}"}


def _api_post(endpoint: str, json: dict | None = None) -> dict[str, Any]:
    """POST to a backend endpoint; same result shape as _api_get."""
    try:
        resp = requests.post(f"{API_BASE_URL}{endpoint}", json=json, timeout=API_TIMEOUT)
        resp.raise_for_status()
        return {"success": True, "data": resp.json()}
    except requests.ConnectionError:
        return {"success": False, "message": BACKEND_DOWN}
    except requests.HTTPError as e:
        return {"success": False, "message": _extract_error_detail(e)}
    except requests.RequestException as e:
        logger.error(f"Request to {endpoint} failed: {e}")
        return {"success": False, "message": f"Unexpected error: {e}"}


def get_status() -> dict[str, Any]:
    """Calls: GET /api/dashboard/status"""
    return _api_get("/api/dashboard/status")


def test_connections() -> dict[str, Any]:
    """Calls: POST /api/dashboard/test"""
    return _api_post("/api/dashboard/test")


def sync_systems() -> dict[str, Any]:
    """Calls: POST /api/dashboard/sync"""
    return _api_post("/api/dashboard/sync")


def generate_report() -> dict[str, Any]:
    """Calls: POST /api/dashboard/report"""
    return _api_post("/api/dashboard/report")
