"""
Tests for authentication endpoints.

Tests:
- Registration and its validation
- Login with good and bad credentials
- Token refresh
- Current user lookup
- Health, readiness and version probes
"""

from datetime import timedelta

import pytest

from core.config import settings
from core.security import create_access_token, create_refresh_token, verify_jwt_token
from tests.support import auth_headers, register


@pytest.fixture
def test_user_data():
    return {
        "email": "Jane@Example.com",
        "password": "SecurePass123",
        "name": "  Jane Doe  ",
    }


class TestRegister:

    def test_register_success(self, client, test_user_data):
        response = client.post("/auth/register", json=test_user_data)

        assert response.status_code == 201
        data = response.json()
        assert data["tokenType"] == "Bearer"
        assert data["expiresIn"] == settings.access_token_expire_minutes * 60
        assert verify_jwt_token(data["accessToken"], expected_type="access")
        assert verify_jwt_token(data["refreshToken"], expected_type="refresh")

        user = data["user"]
        assert user["email"] == "jane@example.com"
        assert user["name"] == "Jane Doe"
        assert user["skills"] == []
        assert user["portfolio"] == []
        assert user["strengthScore"] == 0
        assert "passwordHash" not in user

    def test_register_duplicate_email(self, client, test_user_data):
        assert client.post("/auth/register", json=test_user_data).status_code == 201

        test_user_data["email"] = "jane@example.com"
        response = client.post("/auth/register", json=test_user_data)

        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

    @pytest.mark.parametrize("password", [
        "Short1",           # too short
        "nouppercase123",
        "NOLOWERCASE123",
        "NoDigitsHere",
        "A1" + "a" * 80,    # over bcrypt's 72-byte limit
    ])
    def test_register_weak_password(self, client, test_user_data, password):
        test_user_data["password"] = password

        response = client.post("/auth/register", json=test_user_data)

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_register_invalid_email(self, client, test_user_data):
        test_user_data["email"] = "not-an-email"

        assert client.post("/auth/register", json=test_user_data).status_code == 422

    def test_register_blank_name(self, client, test_user_data):
        test_user_data["name"] = "   "

        assert client.post("/auth/register", json=test_user_data).status_code == 422


class TestLogin:

    def test_login_success(self, client):
        register(client, "jane@example.com", "Jane")

        response = client.post(
            "/auth/login",
            json={"email": "JANE@example.com", "password": "SecurePass123"},
        )

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "jane@example.com"

    def test_login_wrong_password(self, client):
        register(client, "jane@example.com", "Jane")

        response = client.post(
            "/auth/login",
            json={"email": "jane@example.com", "password": "WrongPass123"},
        )

        assert response.status_code == 401
        body = response.json()
        assert body["code"] == "INVALID_CREDENTIALS"
        assert body["message"] == "Invalid email or password"

    def test_login_unknown_email_same_message(self, client):
        response = client.post(
            "/auth/login",
            json={"email": "nobody@example.com", "password": "SecurePass123"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"


class TestRefresh:

    def test_refresh_success(self, client):
        auth = register(client, "jane@example.com", "Jane")

        response = client.post("/auth/refresh", json={"refreshToken": auth["refreshToken"]})

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["id"] == auth["user"]["id"]
        assert data["refreshToken"] != auth["refreshToken"]

    def test_refresh_rejects_access_token(self, client):
        auth = register(client, "jane@example.com", "Jane")

        response = client.post("/auth/refresh", json={"refreshToken": auth["accessToken"]})

        assert response.status_code == 401
        assert response.json()["code"] == "TOKEN_INVALID"

    def test_refresh_expired(self, client):
        auth = register(client, "jane@example.com", "Jane")
        token = create_refresh_token(auth["user"]["id"], expires_delta=timedelta(seconds=-1))

        response = client.post("/auth/refresh", json={"refreshToken": token})

        assert response.status_code == 401
        assert response.json()["code"] == "TOKEN_EXPIRED"

    def test_refresh_unknown_user(self, client):
        token = create_refresh_token(999_999)

        assert client.post("/auth/refresh", json={"refreshToken": token}).status_code == 401


class TestMe:

    def test_me(self, client):
        auth = register(client, "jane@example.com", "Jane")

        response = client.get("/auth/me", headers=auth_headers(auth))

        assert response.status_code == 200
        assert response.json()["email"] == "jane@example.com"

    def test_me_requires_auth(self, client):
        response = client.get("/auth/me")

        assert response.status_code == 401
        assert response.json()["code"] == "AUTHENTICATION_REQUIRED"

    def test_me_for_missing_user(self, client):
        token = create_access_token(999_999)

        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401


class TestProbes:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": settings.app_version}

    def test_ready(self, client):
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["database"] == "ok"

    def test_version(self, client):
        assert client.get("/version.json").json() == {"version": settings.app_version}
