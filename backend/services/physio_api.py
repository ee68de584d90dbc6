# backend/services/physio_api.py
"""
HTTP client for the Physiotattva scheduling API.

Each call returns the decoded JSON body, or raises UpstreamError
(bad status / bad body) or TransportError (network / timeout).
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from services.config import load_settings
from services.errors import TransportError, UpstreamError

logger = logging.getLogger(__name__)

HEADERS = {"Content-Type": "application/json"}


class PhysioApiClient:
    def __init__(self, base_url: str, user_id: str = "1", timeout: float = 8.0, http=None):
        self.base_url = base_url.rstrip("/")
        self.user_id = str(user_id)
        self.timeout = timeout
        self.http = http or requests

    def _request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None,
                 body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        logger.info("Calling scheduling API: %s %s params=%s", method, url, params)
        try:
            if method == "GET":
                resp = self.http.get(url, headers=HEADERS, params=params, timeout=self.timeout)
            else:
                resp = self.http.post(url, headers=HEADERS, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Request to {path} failed: {e}") from e

        logger.info("Scheduling API response status: %s", resp.status_code)
        if resp.status_code < 200 or resp.status_code >= 300:
            raise UpstreamError(f"API error: {resp.status_code} {getattr(resp, 'reason', '') or ''}".strip(),
                                status_code=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError(f"Invalid JSON from {path}: {e}", status_code=resp.status_code) from e
        if not isinstance(data, dict):
            raise UpstreamError(f"Unexpected response shape from {path}", status_code=resp.status_code)
        return data

    def get_follow_up_appointment(self, phone_number: str) -> Dict[str, Any]:
        path = f"/follow-up-appointments/{quote(phone_number, safe='')}"
        return self._request("GET", path, params={"user_id": self.user_id})

    def fetch_slots(self, week_selection: str, selected_day: str, consultation_type: str,
                    campus_id: str) -> Dict[str, Any]:
        params = {
            "week_selection": week_selection,
            "selected_day": selected_day,
            "consultation_type": consultation_type,
            "campus_id": campus_id,
            "user_id": self.user_id,
        }
        return self._request("GET", "/fetch-slots", params=params)

    def book_appointment(self, body: Dict[str, Any]) -> Dict[str, Any]:
        payload = dict(body)
        payload.setdefault("user_id", self.user_id)
        return self._request("POST", "/book-appointment", body=payload)


def get_client() -> PhysioApiClient:
    s = load_settings()
    return PhysioApiClient(base_url=s["base_url"], user_id=s["user_id"], timeout=s["timeout"])
