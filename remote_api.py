"""
Client for the optional remote EcoNova REST service.
Every transport or HTTP failure is raised as ExternalServiceError so callers can degrade.
"""

import logging
from typing import Any, Dict, Optional

import requests

from exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

# Record-store collection -> REST resource
ENDPOINTS = {
    'users': '/users',
    'assignments': '/tasks',
    'submissions': '/submissions',
    'achievements': '/achievements',
    'validation': '/validation',
    'analytics': '/analytics',
}


class RemoteApiClient:
    def __init__(self, base_url: str, auth_token: Optional[str] = None, timeout: float = 10,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'Content-Type': 'application/json'})
        if auth_token:
            self.session.headers['Authorization'] = f"Bearer {auth_token}"

    def request(self, method: str, endpoint: str, data: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.request(
                method, url, json=data if method != 'GET' else None, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Remote API request failed: {method} {url}: {e}")
            raise ExternalServiceError(f"Remote API unreachable: {e}") from e

        if not response.ok:
            logger.error(f"Remote API error: {method} {url} -> {response.status_code} {response.reason}")
            raise ExternalServiceError(
                f"Remote API error: {response.status_code} {response.reason}",
                {"status_code": response.status_code})

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError(f"Remote API returned invalid JSON: {e}") from e

    def mirrors(self, collection: str) -> bool:
        return collection in ENDPOINTS

    def _resource(self, collection: str) -> str:
        endpoint = ENDPOINTS.get(collection)
        if endpoint is None:
            raise ExternalServiceError(f"No remote resource for collection '{collection}'")
        return endpoint

    def upsert(self, collection: str, record: Dict[str, Any]) -> Any:
        return self.request('PUT', f"{self._resource(collection)}/{record['id']}", record)

    def delete(self, collection: str, record_id: str) -> Any:
        return self.request('DELETE', f"{self._resource(collection)}/{record_id}")

    def health_check(self) -> dict:
        try:
            self.request('GET', '/health')
            return {"status": "OK", "details": f"Remote API at {self.base_url} is reachable."}
        except ExternalServiceError as e:
            return {"status": "ERROR", "details": str(e)}
