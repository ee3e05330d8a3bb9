"""Tests for session tokens and the /auth endpoints."""

import pytest
from unittest.mock import AsyncMock, patch

from fastapi import HTTPException

from web_api.auth import actor_from_payload, create_jwt, verify_jwt


class TestJwt:
    def test_round_trip_carries_role(self):
        token = create_jwt(42, "Ada", is_admin=True)

        payload = verify_jwt(token)

        assert payload["sub"] == "42"
        assert payload["role"] == "admin"
        assert actor_from_payload(payload) == {"user_id": 42, "is_admin": True}

    def test_member_is_not_admin(self):
        payload = verify_jwt(create_jwt(7, "Bo"))
        assert actor_from_payload(payload)["is_admin"] is False

    def test_tampered_token_is_invalid(self):
        assert verify_jwt(create_jwt(7, "Bo") + "x") is None

    def test_non_numeric_subject_rejected(self):
        with pytest.raises(HTTPException) as exc_info:
            actor_from_payload({"sub": "google-oauth2|123"})
        assert exc_info.value.status_code == 401


class TestAuthMe:
    """GET /auth/me"""

    def test_no_session_cookie_returns_401(self, anonymous_client):
        response = anonymous_client.get("/auth/me")
        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated"

    def test_invalid_jwt_returns_401(self, anonymous_client):
        anonymous_client.cookies.set("session", "invalid.jwt.token")
        with patch("main.touch_last_seen", new_callable=AsyncMock):
            response = anonymous_client.get("/auth/me")
        assert response.status_code == 401

    def test_returns_profile_without_refresh_token(self, anonymous_client):
        anonymous_client.cookies.set("session", create_jwt(42, "Ada"))
        with (
            patch("main.touch_last_seen", new_callable=AsyncMock) as mock_touch,
            patch("main.is_configured", return_value=True),
            patch("web_api.routes.auth.get_user", new_callable=AsyncMock) as mock_user,
        ):
            mock_user.return_value = {
                "user_id": 42,
                "email": "ada@example.com",
                "name": "Ada",
                "refresh_token": "secret-refresh-token",
                "is_admin": False,
            }

            response = anonymous_client.get("/auth/me")

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "ada@example.com"
        assert data["calendar_connected"] is True
        assert "refresh_token" not in data
        mock_touch.assert_called_once_with(42)


class TestLogout:
    def test_clears_cookie(self, anonymous_client):
        response = anonymous_client.post("/auth/logout")
        assert response.status_code == 200
        assert response.json() == {"ok": True}


class TestGoogleStart:
    def test_requests_offline_calendar_access(self, anonymous_client):
        with patch("web_api.routes.auth.GOOGLE_CLIENT_ID", "client-id"):
            response = anonymous_client.get("/auth/google", follow_redirects=False)

        assert response.status_code == 307
        location = response.headers["location"]
        assert "access_type=offline" in location
        assert "prompt=consent" in location
        assert "calendar.events" in location
