"""
OpsLedger Backend — User API Tests
====================================

What:  Listing accounts and the self/admin/guest rules on update and delete.
"""

import uuid

from conftest import PASSWORD, register


async def user_id(client, headers, email):
    response = await client.get("/api/users", headers=headers)
    return next(u["id"] for u in response.json()["users"] if u["email"] == email)


class TestUserAccess:

    async def test_list_and_get(self, test_client, admin_headers, guest_headers):
        response = await test_client.get("/api/users", headers=guest_headers)
        assert response.status_code == 200
        emails = [u["email"] for u in response.json()["users"]]
        assert emails == ["admin@example.com", "guest@example.com"]

        guest_id = await user_id(test_client, admin_headers, "guest@example.com")
        response = await test_client.get(f"/api/users/{guest_id}", headers=admin_headers)
        assert response.json()["role"] == "Guest"

    async def test_unknown_user(self, test_client, admin_headers):
        response = await test_client.get(f"/api/users/{uuid.uuid4()}", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["error"] == "User not found."

    async def test_user_updates_own_profile(self, test_client, guest_headers):
        guest_id = await user_id(test_client, guest_headers, "guest@example.com")
        response = await test_client.patch(
            f"/api/users/{guest_id}", data={"first_name": "Greta"}, headers=guest_headers
        )
        assert response.status_code == 200
        assert response.json()["first_name"] == "Greta"

    async def test_guest_cannot_change_own_role(self, test_client, guest_headers):
        guest_id = await user_id(test_client, guest_headers, "guest@example.com")
        response = await test_client.patch(
            f"/api/users/{guest_id}", data={"role": "Admin"}, headers=guest_headers
        )
        assert response.status_code == 403

    async def test_guest_cannot_touch_others(self, test_client, admin_headers, guest_headers):
        admin_id = await user_id(test_client, guest_headers, "admin@example.com")
        response = await test_client.patch(
            f"/api/users/{admin_id}", data={"first_name": "Mallory"}, headers=guest_headers
        )
        assert response.status_code == 403
        response = await test_client.delete(f"/api/users/{admin_id}", headers=guest_headers)
        assert response.status_code == 403

    async def test_admin_promotes_guest(self, test_client, admin_headers, guest_headers):
        guest_id = await user_id(test_client, admin_headers, "guest@example.com")
        response = await test_client.patch(
            f"/api/users/{guest_id}", data={"role": "Admin"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["role"] == "Admin"

    async def test_last_admin_keeps_the_role(self, test_client, admin_headers, guest_headers):
        admin_id = await user_id(test_client, admin_headers, "admin@example.com")
        url = f"/api/users/{admin_id}"

        response = await test_client.patch(url, data={"role": "Guest"}, headers=admin_headers)
        assert response.status_code == 403
        assert response.json()["error"] == "Cannot demote the last admin user."
        response = await test_client.delete(url, headers=admin_headers)
        assert response.status_code == 403
        assert response.json()["error"] == "Cannot delete the last admin user."

        # With a second admin in place the first one may step down.
        guest_id = await user_id(test_client, admin_headers, "guest@example.com")
        await test_client.patch(f"/api/users/{guest_id}", data={"role": "Admin"}, headers=admin_headers)
        response = await test_client.patch(url, data={"role": "Guest"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["role"] == "Guest"

    async def test_admin_cannot_modify_other_admin(self, test_client, admin_headers):
        await register(test_client, "other@example.com")
        other_id = await user_id(test_client, admin_headers, "other@example.com")
        await test_client.patch(f"/api/users/{other_id}", data={"role": "Admin"}, headers=admin_headers)

        response = await test_client.delete(f"/api/users/{other_id}", headers=admin_headers)
        assert response.status_code == 403
        assert response.json()["error"] == "Cannot delete an admin user."

    async def test_email_taken(self, test_client, admin_headers, guest_headers):
        guest_id = await user_id(test_client, guest_headers, "guest@example.com")
        response = await test_client.patch(
            f"/api/users/{guest_id}", data={"email": "admin@example.com"}, headers=guest_headers
        )
        assert response.status_code == 409

    async def test_password_change(self, test_client, guest_headers):
        guest_id = await user_id(test_client, guest_headers, "guest@example.com")
        response = await test_client.patch(
            f"/api/users/{guest_id}", data={"password": "Newpass#9"}, headers=guest_headers
        )
        assert response.status_code == 200

        old = await test_client.post(
            "/api/auth/login", json={"email": "guest@example.com", "password": PASSWORD}
        )
        assert old.status_code == 401

    async def test_admin_deletes_guest(self, test_client, admin_headers, guest_headers):
        guest_id = await user_id(test_client, admin_headers, "guest@example.com")
        response = await test_client.delete(f"/api/users/{guest_id}", headers=admin_headers)
        assert response.status_code == 204

        # The deleted account's token no longer resolves to a user.
        response = await test_client.get("/api/users", headers=guest_headers)
        assert response.status_code == 401
