"""
@file: tests/api/test_logiless_routes.py
@description: Тесты для /logiless/login и /logiless/callback (app/api/v1/logiless.py)
@dependencies: pytest, fastapi, httpx
"""

from datetime import timedelta
from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from app.api.dependencies import get_auth_service
from app.exceptions import AuthorizationCodeExchangeError
from app.main import app
from app.services.kv_store import SQLKeyValueStore
from app.services.logiless_auth_service import build_auth_service
from app.services.token_store import TokenStore


@pytest.fixture
def mock_auth_service():
    service = MagicMock()
    app.dependency_overrides[get_auth_service] = lambda: service
    yield service
    app.dependency_overrides.pop(get_auth_service, None)


# --- GET /logiless/login ---
def test_login_redirects_to_authorization_page(client):
    response = client.get("/logiless/login", follow_redirects=False)

    assert response.status_code == 302
    location = urlparse(response.headers["location"])
    query = parse_qs(location.query)
    assert location.path == "/oauth/v2/auth"
    assert query["client_id"] == ["test_client_id"]
    assert query["response_type"] == ["code"]
    assert query["redirect_uri"] == ["https://sync.example.com/logiless/callback"]


def test_login_does_not_touch_stored_credential(client, db_session, now):
    store = TokenStore(SQLKeyValueStore(db_session), key="LOGILESS_TOKEN")
    store.put("access", "refresh", now + timedelta(hours=1))

    client.get("/logiless/login", follow_redirects=False)

    assert store.get().access_token == "access"


# --- GET /logiless/callback ---
def test_callback_without_code(client, mock_auth_service):
    response = client.get("/logiless/callback")

    assert response.status_code == 400
    assert response.text == "Missing code"
    mock_auth_service.exchange_authorization_code.assert_not_called()


def test_callback_with_empty_code(client, mock_auth_service):
    response = client.get("/logiless/callback", params={"code": ""})

    assert response.status_code == 400
    mock_auth_service.exchange_authorization_code.assert_not_called()


def test_callback_success(client, mock_auth_service):
    response = client.get("/logiless/callback", params={"code": "auth-code"})

    assert response.status_code == 200
    assert response.text == "Logged in"
    mock_auth_service.exchange_authorization_code.assert_called_once_with("auth-code")


def test_callback_passes_through_upstream_failure(client, mock_auth_service):
    mock_auth_service.exchange_authorization_code.side_effect = AuthorizationCodeExchangeError(
        "Failed to get token", status_code=401, body='{"error": "invalid_grant"}'
    )

    response = client.get("/logiless/callback", params={"code": "stale-code"})

    assert response.status_code == 401
    assert response.text == '{"error": "invalid_grant"}'


def test_callback_failure_without_upstream_status(client, mock_auth_service):
    mock_auth_service.exchange_authorization_code.side_effect = AuthorizationCodeExchangeError("Failed to get token")

    response = client.get("/logiless/callback", params={"code": "auth-code"})

    assert response.status_code == 502


def test_callback_with_malformed_token_response(client, db_session, logiless_http):
    transport = logiless_http(httpx.Response(200, json={"error": "invalid_request"}))
    service = build_auth_service(db_session, http_client=transport.client())
    app.dependency_overrides[get_auth_service] = lambda: service

    response = client.get("/logiless/callback", params={"code": "auth-code"})

    assert response.status_code == 502
    assert "invalid_request" in response.text
    assert service.get_credential_status()["logged_in"] is False


def test_callback_never_passes_through_success_status(client, mock_auth_service):
    mock_auth_service.exchange_authorization_code.side_effect = AuthorizationCodeExchangeError(
        "Failed to get token", status_code=200, body="ok?"
    )

    response = client.get("/logiless/callback", params={"code": "auth-code"})

    assert response.status_code == 502
