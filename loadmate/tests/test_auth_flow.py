"""
Integration tests for the authentication flow.

Register -> Login -> Profile -> Logout, plus Google sign-in with the Google
round trip patched out.
"""

import json
from datetime import timedelta
from urllib.parse import urlparse, parse_qs

import pytest
from sqlalchemy import select

from loadmate.app.core.config import settings
from loadmate.app.core.jwt import create_signed_token, OAUTH_STATE_TOKEN_TYPE, decode_access_token
from loadmate.app.models.audit_log import AuditLog
from loadmate.app.services import google_oauth
from loadmate.app.services.google_oauth import GoogleProfile
from loadmate.tests.helpers import auth


async def test_health_reports_redis(client, mock_redis, mocker):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["redis"] == "ok"

    mocker.patch.object(mock_redis, "ping", side_effect=ConnectionError("down"))
    degraded = await client.get("/health")
    assert degraded.status_code == 200
    assert degraded.json()["redis"] == "unavailable"


async def test_register_returns_customer_with_token(client):
    response = await client.post("/api/v1/auth/register", json={
        "name": "Asha",
        "email": "Asha@LoadMate.in",
        "password": "password123",
        "phone": "+91-9000000001"
    })
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "asha@loadmate.in"
    assert data["role"] == "customer"
    assert data["auth_provider"] == "local"
    assert data["token_type"] == "bearer"
    assert decode_access_token(data["access_token"])["user_id"] == data["id"]
    assert "hashed_password" not in data


async def test_duplicate_email_rejected(client, customer_token):
    response = await client.post("/api/v1/auth/register", json={
        "name": "Again",
        "email": "customer@test.com",
        "password": "password123"
    })
    assert response.status_code == 400
    assert response.json()["message"] == "User already exists"


async def test_register_validation_error_shape(client):
    response = await client.post("/api/v1/auth/register", json={
        "name": "Short",
        "email": "short@test.com",
        "password": "123"
    })
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION"


async def test_login_and_profile(client, customer_token):
    response = await client.post("/api/v1/auth/login", json={
        "email": "customer@test.com",
        "password": "password123"
    })
    assert response.status_code == 200
    token = response.json()["access_token"]

    profile = await client.get("/api/v1/auth/profile", headers=auth(token))
    assert profile.status_code == 200
    assert profile.json()["email"] == "customer@test.com"


async def test_wrong_password_is_audited(client, customer_token, db_session):
    response = await client.post("/api/v1/auth/login", json={
        "email": "customer@test.com",
        "password": "wrong-password"
    })
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"

    result = await db_session.execute(select(AuditLog).where(AuditLog.action == "LOGIN_FAILED"))
    assert result.scalar_one().actor_email == "customer@test.com"


async def test_profile_requires_token(client):
    response = await client.get("/api/v1/auth/profile")
    assert response.status_code in (401, 403)


async def test_invalid_token_rejected(client):
    response = await client.get("/api/v1/auth/profile", headers=auth("not-a-token"))
    assert response.status_code == 401


async def test_logout_revokes_token(client, customer_token):
    token, _ = customer_token

    response = await client.post("/api/v1/auth/logout", headers=auth(token))
    assert response.status_code == 200
    assert response.json()["message"] == "Logged out successfully"

    profile = await client.get("/api/v1/auth/profile", headers=auth(token))
    assert profile.status_code == 401
    assert profile.json()["message"] == "Token has been revoked"


async def test_role_change_applies_to_existing_token(client, customer_token):
    token, _ = customer_token
    response = await client.post(
        "/api/v1/owner/register",
        json={"business_name": "Asha Movers", "license_number": "LIC-9"},
        headers=auth(token)
    )
    assert response.status_code == 200
    assert response.json()["role"] == "owner"

    stats = await client.get("/api/v1/owner/stats", headers=auth(token))
    assert stats.status_code == 200


# Google sign-in

def valid_state() -> str:
    return create_signed_token({"nonce": "n"}, OAUTH_STATE_TOKEN_TYPE, timedelta(minutes=5))


def redirected_user(response) -> dict:
    query = parse_qs(urlparse(response.headers["location"]).query)
    return json.loads(query["user"][0])


async def test_google_login_unconfigured_returns_503(client, monkeypatch):
    monkeypatch.setattr(settings, "google_client_id", None)
    response = await client.get("/api/v1/auth/google")
    assert response.status_code == 503


async def test_google_login_redirects_to_consent_screen(client, monkeypatch):
    monkeypatch.setattr(settings, "google_client_id", "client-id")
    monkeypatch.setattr(settings, "google_client_secret", "secret")
    monkeypatch.setattr(settings, "google_callback_url", "http://test/api/v1/auth/google/callback")

    response = await client.get("/api/v1/auth/google")

    assert response.status_code == 307
    location = response.headers["location"]
    assert location.startswith(google_oauth.GOOGLE_AUTH_URL)
    assert "state=" in location


async def test_google_callback_creates_customer(client, mocker):
    mocker.patch.object(
        google_oauth, "fetch_google_profile",
        return_value=GoogleProfile(google_id="g-123", email="new@gmail.com", name="New User", picture="http://pic")
    )

    response = await client.get(
        "/api/v1/auth/google/callback", params={"code": "abc", "state": valid_state()}
    )

    assert response.status_code == 302
    assert response.headers["location"].startswith(f"{settings.frontend_url}/auth-success")
    user = redirected_user(response)
    assert user["email"] == "new@gmail.com"
    assert user["role"] == "customer"

    profile = await client.get("/api/v1/auth/profile", headers=auth(user["token"]))
    assert profile.json()["auth_provider"] == "google"


async def test_google_callback_links_existing_account(client, customer_token, mocker):
    _, user_id = customer_token
    mocker.patch.object(
        google_oauth, "fetch_google_profile",
        return_value=GoogleProfile(google_id="g-456", email="customer@test.com", name="Customer")
    )

    response = await client.get(
        "/api/v1/auth/google/callback", params={"code": "abc", "state": valid_state()}
    )

    assert response.status_code == 302
    assert redirected_user(response)["id"] == user_id

    # Password login still works after linking
    login = await client.post("/api/v1/auth/login", json={
        "email": "customer@test.com",
        "password": "password123"
    })
    assert login.status_code == 200


@pytest.mark.parametrize("params", [
    {"code": "abc", "state": "forged"},
    {"state": "missing-code"},
    {"error": "access_denied"},
])
async def test_google_callback_failures_redirect_to_login(client, mocker, params):
    fetch = mocker.patch.object(google_oauth, "fetch_google_profile")

    response = await client.get("/api/v1/auth/google/callback", params=params)

    assert response.status_code == 302
    assert response.headers["location"] == f"{settings.frontend_url}/login?error=auth_failed"
    fetch.assert_not_called()


async def test_google_exchange_failure_redirects_to_login(client, mocker):
    from loadmate.app.core.exceptions import AuthenticationError
    mocker.patch.object(
        google_oauth, "fetch_google_profile",
        side_effect=AuthenticationError("Google rejected the authorization code")
    )

    response = await client.get(
        "/api/v1/auth/google/callback", params={"code": "bad", "state": valid_state()}
    )

    assert response.status_code == 302
    assert response.headers["location"].endswith("/login?error=auth_failed")

