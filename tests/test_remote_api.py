"""Tests for the remote EcoNova REST client."""

from unittest.mock import MagicMock

import pytest
import requests

from exceptions import ExternalServiceError
from remote_api import RemoteApiClient


def make_response(status=200, payload=None, content=b"{}"):
    response = MagicMock()
    response.ok = 200 <= status < 300
    response.status_code = status
    response.reason = "OK" if response.ok else "Server Error"
    response.content = content
    response.json.return_value = payload if payload is not None else {}
    return response


@pytest.fixture()
def session():
    session = MagicMock()
    session.headers = {}
    return session


def test_auth_header_and_upsert_route(session):
    session.request.return_value = make_response(payload={"id": "a1"})
    client = RemoteApiClient("https://api.example.org/v1/", auth_token="tok", session=session)

    assert client.upsert("assignments", {"id": "a1"}) == {"id": "a1"}
    session.request.assert_called_once_with(
        "PUT", "https://api.example.org/v1/tasks/a1", json={"id": "a1"}, timeout=10)
    assert session.headers["Authorization"] == "Bearer tok"


def test_http_error_becomes_external_service_error(session):
    session.request.return_value = make_response(status=503)
    client = RemoteApiClient("https://api.example.org", session=session)

    with pytest.raises(ExternalServiceError) as excinfo:
        client.upsert("users", {"id": "u1"})
    assert excinfo.value.details == {"status_code": 503}


def test_transport_error_becomes_external_service_error(session):
    session.request.side_effect = requests.ConnectionError("refused")
    client = RemoteApiClient("https://api.example.org", session=session)

    with pytest.raises(ExternalServiceError):
        client.delete("submissions", "s1")


def test_empty_body_returns_none(session):
    session.request.return_value = make_response(status=204, content=b"")
    client = RemoteApiClient("https://api.example.org", session=session)

    assert client.delete("users", "u1") is None


def test_unknown_collection_is_rejected(session):
    client = RemoteApiClient("https://api.example.org", session=session)

    with pytest.raises(ExternalServiceError):
        client.upsert("notifications", {"id": "n1"})
    session.request.assert_not_called()


def test_health_check_reports_error(session):
    session.request.side_effect = requests.Timeout("slow")
    client = RemoteApiClient("https://api.example.org", session=session)

    assert client.health_check()["status"] == "ERROR"
