"""Integration tests for registration, login and the error envelope."""

import pytest


@pytest.mark.integration
class TestAuthApi:
    """Integration tests for /api/auth."""

    def test_register_then_me(self, client) -> None:
        """Test that a registered account can use its token right away."""
        response = client.post(
            "/api/auth/register",
            json={"name": "Ada", "email": "Ada@Example.com", "password": "password123"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Registration successful"
        assert body["user"]["email"] == "ada@example.com"
        assert len(body["user"]["default_reminders"]) == 6
        assert "password_hash" not in body["user"]

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200
        assert me.json()["name"] == "Ada"

    def test_duplicate_email_is_conflict(self, client, user) -> None:
        """Test that an email can only be registered once."""
        response = client.post(
            "/api/auth/register",
            json={"name": "Again", "email": "test@example.com", "password": "password123"},
        )

        assert response.status_code == 409
        assert response.json()["error"] == "User already exists with this email"

    def test_login(self, client, user) -> None:
        """Test login with the right and the wrong password."""
        ok = client.post("/api/auth/login", json={"email": "test@example.com", "password": "password123"})
        bad = client.post("/api/auth/login", json={"email": "test@example.com", "password": "nope"})

        assert ok.status_code == 200
        assert ok.json()["user"]["id"] == user.id
        assert "X-RateLimit-Limit" in ok.headers
        assert bad.status_code == 401
        assert bad.json()["error"] == "Invalid email or password"

    def test_me_requires_token(self, client) -> None:
        """Test that protected routes reject anonymous calls."""
        missing = client.get("/api/auth/me")
        garbage = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})

        assert missing.status_code == 401
        assert missing.json()["error"] == "Authentication required"
        assert garbage.status_code == 401

    def test_invalid_body_uses_error_envelope(self, client) -> None:
        """Test that schema violations come back as a 400 with the standard body."""
        response = client.post(
            "/api/auth/register",
            json={"name": "Ada", "email": "not-an-email", "password": "password123"},
        )

        assert response.status_code == 400
        body = response.json()
        assert set(body) == {"error", "status_code", "timestamp"}
        assert body["status_code"] == 400
        assert body["error"].startswith("Invalid request: email")

    def test_auth_rate_limit(self, client, user) -> None:
        """Test that the sixth auth attempt in the window is rejected."""
        for _ in range(5):
            response = client.post("/api/auth/login", json={"email": "test@example.com", "password": "wrong"})
            assert response.status_code == 401

        blocked = client.post("/api/auth/login", json={"email": "test@example.com", "password": "password123"})

        assert blocked.status_code == 429
        assert int(blocked.headers["Retry-After"]) > 0
        assert blocked.headers["X-RateLimit-Remaining"] == "0"

    def test_other_routes_are_not_auth_limited(self, client, auth_headers) -> None:
        """Test that the stricter auth budget only applies to auth routes."""
        for _ in range(8):
            assert client.get("/api/tasks", headers=auth_headers).status_code == 200
