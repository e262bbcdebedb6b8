from __future__ import annotations

import pytest

from tests.conftest import DEFAULT_PASSWORD, auth_headers

PREFIX = "/api/v1/auth"


async def _register(client, email="new@example.com", password="long-password"):
	return await client.post(
		f"{PREFIX}/register",
		json={"name": "New Student", "email": email, "password": password, "password_confirmation": password},
	)


class TestRegistration:
	async def test_register_assigns_student_role(self, client):
		res = await _register(client)

		assert res.status_code == 201
		body = res.json()
		assert body["token_type"] == "bearer"
		assert body["access_token"] and body["refresh_token"]
		assert body["user"]["email"] == "new@example.com"
		assert body["user"]["roles"] == ["student"]

	async def test_duplicate_email(self, client):
		await _register(client, email="dup@example.com")

		res = await _register(client, email="DUP@example.com")

		assert res.status_code == 400

	async def test_password_confirmation_must_match(self, client):
		res = await client.post(
			f"{PREFIX}/register",
			json={"name": "X", "email": "x@example.com", "password": "long-password", "password_confirmation": "other-one"},
		)

		assert res.status_code == 422


class TestLoginAndTokens:
	async def test_login(self, client, factory):
		user = await factory.user(email="login@example.com")

		res = await client.post(f"{PREFIX}/login", json={"email": "login@example.com", "password": DEFAULT_PASSWORD})

		assert res.status_code == 200
		assert res.json()["user"]["id"] == user.id

	async def test_bad_password(self, client, factory):
		await factory.user(email="login@example.com")

		res = await client.post(f"{PREFIX}/login", json={"email": "login@example.com", "password": "wrong-password"})

		assert res.status_code == 401

	async def test_refresh_rotates(self, client):
		tokens = (await _register(client)).json()

		res = await client.post(f"{PREFIX}/refresh", json={"refresh_token": tokens["refresh_token"]})
		assert res.status_code == 200
		assert res.json()["refresh_token"] != tokens["refresh_token"]

		reused = await client.post(f"{PREFIX}/refresh", json={"refresh_token": tokens["refresh_token"]})
		assert reused.status_code == 401
		assert reused.json()["detail"] == "Refresh token already used"

	async def test_logout_revokes_refresh_tokens(self, client):
		tokens = (await _register(client)).json()
		headers = {"Authorization": f"Bearer {tokens['access_token']}"}

		assert (await client.post(f"{PREFIX}/logout", headers=headers)).status_code == 200

		res = await client.post(f"{PREFIX}/refresh", json={"refresh_token": tokens["refresh_token"]})
		assert res.status_code == 401

	async def test_garbage_refresh_token(self, client):
		res = await client.post(f"{PREFIX}/refresh", json={"refresh_token": "not-a-jwt"})

		assert res.status_code == 401


class TestCurrentUser:
	async def test_requires_token(self, client):
		res = await client.get(f"{PREFIX}/user")

		assert res.status_code in (401, 403)

	async def test_me_includes_permissions(self, client, factory):
		instructor = await factory.user("instructor")

		res = await client.get(f"{PREFIX}/user", headers=auth_headers(instructor))

		assert res.status_code == 200
		body = res.json()
		assert body["roles"] == ["instructor"]
		assert "create courses" in body["permissions"]

	@pytest.mark.parametrize("field, value", [("bio", "Hello there"), ("headline", "Educator"), ("expertise", ["python"])])
	async def test_profile_update(self, client, factory, field, value):
		user = await factory.user()
		headers = auth_headers(user)

		res = await client.put(f"{PREFIX}/profile", json={field: value}, headers=headers)
		assert res.status_code == 200
		assert res.json()["profile"][field] == value

		profile = await client.get(f"{PREFIX}/profile", headers=headers)
		assert profile.json()[field] == value
