"""
OpsLedger Backend — Auth API Tests
====================================

What:  End-to-end tests for /api/auth through the ASGI app.
How:   Each test starts from an empty database (see conftest.db_tables).
"""

import uuid

from app.config import settings
from app.services.email_service import email_service
from conftest import PASSWORD, bearer, register


class TestRegister:

    async def test_first_account_is_admin(self, test_client):
        response = await register(test_client, "first@example.com")
        assert response.status_code == 201
        body = response.json()
        assert body["user"]["role"] == "Admin"
        assert body["user"]["email"] == "first@example.com"
        assert "password" not in body["user"]
        assert body["access_token"]
        assert settings.refresh_cookie_name in response.cookies

    async def test_later_accounts_are_guests(self, test_client, admin_headers):
        response = await register(test_client, "second@example.com")
        assert response.status_code == 201
        assert response.json()["user"]["role"] == "Guest"

    async def test_duplicate_email_conflicts(self, test_client, admin_headers):
        response = await register(test_client, "ADMIN@example.com")
        assert response.status_code == 409
        assert response.json()["error"] == "User already exists."

    async def test_weak_password_rejected(self, test_client):
        response = await test_client.post(
            "/api/auth/register",
            data={"email": "a@example.com", "first_name": "Alice", "last_name": "Smith", "password": "secret"},
        )
        assert response.status_code == 400
        assert "uppercase" in response.json()["error"]

    async def test_short_name_rejected(self, test_client):
        response = await register(test_client, "a@example.com", first_name="Al")
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "first_name"

    async def test_register_with_image(self, test_client, sample_png_bytes):
        response = await test_client.post(
            "/api/auth/register",
            data={"email": "pic@example.com", "first_name": "Alice", "last_name": "Smith", "password": PASSWORD},
            files={"image": ("me.png", sample_png_bytes, "image/png")},
        )
        assert response.status_code == 201
        image = response.json()["user"]["image"]
        assert image.startswith("/api/files/images/")

        served = await test_client.get(image)
        assert served.status_code == 200
        assert served.content == sample_png_bytes

    async def test_register_rejects_non_image(self, test_client):
        response = await test_client.post(
            "/api/auth/register",
            data={"email": "pic@example.com", "first_name": "Alice", "last_name": "Smith", "password": PASSWORD},
            files={"image": ("notes.txt", b"hello", "text/plain")},
        )
        assert response.status_code == 400


class TestLogin:

    async def test_login_success(self, test_client, admin_headers):
        response = await test_client.post(
            "/api/auth/login", json={"email": "admin@example.com", "password": PASSWORD}
        )
        assert response.status_code == 200
        assert response.json()["user"]["role"] == "Admin"
        assert settings.refresh_cookie_name in response.cookies

    async def test_login_wrong_password(self, test_client, admin_headers):
        response = await test_client.post(
            "/api/auth/login", json={"email": "admin@example.com", "password": "Wrong#123"}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid email or password."

    async def test_login_unknown_email(self, test_client, db_tables):
        response = await test_client.post(
            "/api/auth/login", json={"email": "nobody@example.com", "password": PASSWORD}
        )
        assert response.status_code == 401


class TestSession:

    async def test_refresh_issues_new_access_token(self, test_client, admin_headers):
        login = await test_client.post(
            "/api/auth/login", json={"email": "admin@example.com", "password": PASSWORD}
        )
        assert login.status_code == 200

        response = await test_client.get("/api/auth/refresh")
        assert response.status_code == 200
        users = await test_client.get("/api/users", headers=bearer(response))
        assert users.status_code == 200

    async def test_refresh_without_cookie_is_forbidden(self, test_client, db_tables):
        response = await test_client.get("/api/auth/refresh")
        assert response.status_code == 403
        assert response.json()["error"] == "Failed to refresh token."

    async def test_logout_without_cookie(self, test_client, db_tables):
        response = await test_client.post("/api/auth/logout")
        assert response.status_code == 204

    async def test_logout_clears_cookie(self, test_client, admin_headers):
        await test_client.post(
            "/api/auth/login", json={"email": "admin@example.com", "password": PASSWORD}
        )
        response = await test_client.post("/api/auth/logout")
        assert response.status_code == 200
        assert response.json()["message"] == "Cookie cleared."
        assert settings.refresh_cookie_name not in test_client.cookies

    async def test_protected_route_requires_token(self, test_client, db_tables):
        response = await test_client.get("/api/users")
        assert response.status_code == 401

    async def test_garbage_token_rejected(self, test_client, db_tables):
        response = await test_client.get("/api/users", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401


class TestPasswordReset:

    async def test_unknown_email_is_not_found(self, test_client, db_tables):
        response = await test_client.post("/api/auth/reset-password", json={"email": "x@example.com"})
        assert response.status_code == 404

    async def test_reset_flow(self, test_client, admin_headers, monkeypatch):
        sent = []

        async def capture(recipient, user_id, token):
            sent.append((recipient, user_id, token))

        monkeypatch.setattr(email_service, "send_password_reset", capture)

        response = await test_client.post(
            "/api/auth/reset-password", json={"email": "admin@example.com"}
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Password reset link sent to your email account."
        assert len(sent) == 1
        recipient, user_id, token = sent[0]
        assert recipient == "admin@example.com"

        new_password = "Changed#2"
        response = await test_client.post(
            f"/api/auth/{user_id}/reset-password/{token}", json={"password": new_password}
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Password reset successfully."

        old = await test_client.post(
            "/api/auth/login", json={"email": "admin@example.com", "password": PASSWORD}
        )
        assert old.status_code == 401
        new = await test_client.post(
            "/api/auth/login", json={"email": "admin@example.com", "password": new_password}
        )
        assert new.status_code == 200

        reused = await test_client.post(
            f"/api/auth/{user_id}/reset-password/{token}", json={"password": "Again#333"}
        )
        assert reused.status_code == 400

    async def test_invalid_link(self, test_client, admin_headers):
        response = await test_client.post(
            f"/api/auth/{uuid.uuid4()}/reset-password/not-a-token", json={"password": "Changed#2"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Link is invalid or has expired."
