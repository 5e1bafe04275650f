"""
Tests for employee_api/api/v1/auth.py and the bearer-token dependency.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def auth_service(client):
    from employee_api.api.deps import get_auth_service
    from employee_api.main import app

    service = MagicMock()
    service.register = AsyncMock()
    service.login = AsyncMock()
    service.get_profile = AsyncMock()
    app.dependency_overrides[get_auth_service] = lambda: service
    return service


class TestRegisterEndpoint:

    def test_register_created(self, client, auth_service, mock_user):
        auth_service.register.return_value = mock_user

        response = client.post(
            "/api/v1/auth/register",
            json={"username": "testuser", "email": "test@example.com", "password": "secret123"},
        )

        assert response.status_code == 201
        assert response.json() == {
            "success": True,
            "message": "User registered successfully",
            "data": {"id": 1, "username": "testuser", "email": "test@example.com"},
        }
        auth_service.register.assert_awaited_once_with("testuser", "test@example.com", "secret123")

    def test_register_invalid_email(self, client, auth_service):
        response = client.post(
            "/api/v1/auth/register",
            json={"username": "testuser", "email": "not-an-email", "password": "secret123"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Invalid request data"
        assert "email" in body["error"]
        auth_service.register.assert_not_awaited()

    def test_register_short_username(self, client, auth_service):
        response = client.post(
            "/api/v1/auth/register",
            json={"username": "ab", "email": "ab@example.com", "password": "secret123"},
        )

        assert response.status_code == 400

    def test_register_conflict(self, client, auth_service):
        from employee_api.core.exceptions import ConflictError

        auth_service.register.side_effect = ConflictError(
            "Username already exists", "Please choose a different username"
        )

        response = client.post(
            "/api/v1/auth/register",
            json={"username": "admin", "email": "x@example.com", "password": "secret123"},
        )

        assert response.status_code == 409
        assert response.json() == {
            "success": False,
            "message": "Username already exists",
            "error": "Please choose a different username",
        }

    def test_register_weak_password(self, client, auth_service):
        from employee_api.core.exceptions import ValidationError

        auth_service.register.side_effect = ValidationError(
            "Invalid password", "Password must be at least 6 characters long"
        )

        response = client.post(
            "/api/v1/auth/register",
            json={"username": "newuser", "email": "x@example.com", "password": "123"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid password"


class TestLoginEndpoint:

    def test_login_success(self, client, auth_service, mock_user):
        from employee_api.services.auth_service import LoginResult

        expires_at = datetime(2024, 1, 16, 9, 30, tzinfo=timezone.utc)
        auth_service.login.return_value = LoginResult(token="abc.def.ghi", user=mock_user, expires_at=expires_at)

        response = client.post("/api/v1/auth/login", json={"username": "testuser", "password": "secret123"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Login successful"
        assert body["data"]["token"] == "abc.def.ghi"
        assert body["data"]["user"] == {"id": 1, "username": "testuser", "email": "test@example.com"}
        assert datetime.fromisoformat(body["data"]["expires_at"]) == expires_at

    def test_login_failure(self, client, auth_service):
        from employee_api.core.exceptions import AuthError

        auth_service.login.side_effect = AuthError("Authentication failed", "Invalid username or password")

        response = client.post("/api/v1/auth/login", json={"username": "ghost", "password": "nope"})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json() == {
            "success": False,
            "message": "Authentication failed",
            "error": "Invalid username or password",
        }

    def test_login_missing_password(self, client, auth_service):
        response = client.post("/api/v1/auth/login", json={"username": "testuser"})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request data"

    def test_login_malformed_json(self, client, auth_service):
        response = client.post(
            "/api/v1/auth/login",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400


class TestProfileEndpoint:

    def test_profile(self, client, auth_service, auth_headers, mock_user):
        auth_service.get_profile.return_value = mock_user

        response = client.get("/api/v1/auth/profile", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Profile retrieved successfully"
        assert response.json()["data"]["username"] == "testuser"
        claims = auth_service.get_profile.await_args.args[0]
        assert claims.user_id == 1

    def test_profile_user_deleted(self, client, auth_service, auth_headers):
        from employee_api.core.exceptions import NotFoundError

        auth_service.get_profile.side_effect = NotFoundError("User not found")

        response = client.get("/api/v1/auth/profile", headers=auth_headers)

        assert response.status_code == 404


class TestBearerAuthentication:
    """Missing header, wrong scheme and empty token are reported differently."""

    @pytest.mark.parametrize(
        "headers, message, error",
        [
            ({}, "Authorization required", "Missing Authorization header"),
            ({"Authorization": "Basic dXNlcjpwYXNz"}, "Invalid authorization format",
             "Authorization header must start with 'Bearer '"),
            ({"Authorization": "Bearer"}, "Token required", "Empty token provided"),
            ({"Authorization": "Bearer    "}, "Token required", "Empty token provided"),
        ],
    )
    def test_header_problems(self, client, auth_service, headers, message, error):
        response = client.get("/api/v1/auth/profile", headers=headers)

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": message, "error": error}
        auth_service.get_profile.assert_not_awaited()

    def test_invalid_token(self, client, auth_service):
        response = client.get("/api/v1/auth/profile", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"

    def test_expired_token(self, client, auth_service, token_service, mock_user):
        issued = token_service.issue(mock_user, datetime.now(timezone.utc) - timedelta(days=2))

        response = client.get("/api/v1/auth/profile", headers={"Authorization": f"Bearer {issued.token}"})

        assert response.status_code == 401
        assert response.json()["error"] == "token has expired"

    def test_scheme_is_case_insensitive(self, client, auth_service, token_service, mock_user):
        auth_service.get_profile.return_value = mock_user
        token = token_service.issue(mock_user).token

        response = client.get("/api/v1/auth/profile", headers={"Authorization": f"bearer {token}"})

        assert response.status_code == 200


class TestExtractBearerToken:

    def test_returns_token(self):
        from employee_api.api.deps import extract_bearer_token

        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_missing(self):
        from employee_api.api.deps import extract_bearer_token
        from employee_api.core.exceptions import AuthError

        with pytest.raises(AuthError) as exc_info:
            extract_bearer_token(None)

        assert exc_info.value.message == "Authorization required"
