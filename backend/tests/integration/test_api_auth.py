"""Integration tests for auth API endpoints."""

from config import settings
from models import User


class TestAuthFlow:
    def test_register_login_me_logout(self, anon_client):
        response = anon_client.post(
            "/api/auth/register", json={"username": "dave", "password": "longenough"}
        )
        assert response.status_code == 201
        assert response.json()["username"] == "dave"

        response = anon_client.post(
            "/api/auth/login", json={"username": "dave", "password": "longenough"}
        )
        assert response.status_code == 200
        token = response.json()["token"]
        assert response.cookies.get(settings.SESSION_COOKIE_NAME) == token

        headers = {"Authorization": f"Bearer {token}"}
        me = anon_client.get("/api/auth/me", headers=headers)
        assert me.status_code == 200
        assert me.json()["username"] == "dave"

        assert anon_client.post("/api/auth/logout", headers=headers).status_code == 204
        anon_client.cookies.clear()
        assert anon_client.get("/api/auth/me", headers=headers).status_code == 401

    def test_cookie_authenticates(self, anon_client):
        anon_client.post("/api/auth/register", json={"username": "erin", "password": "longenough"})
        anon_client.post("/api/auth/login", json={"username": "erin", "password": "longenough"})

        assert anon_client.get("/api/portfolio").status_code == 200

    def test_wrong_password_is_401(self, anon_client, user):
        response = anon_client.post(
            "/api/auth/login", json={"username": "alice", "password": "wrong-password"}
        )
        assert response.status_code == 401

    def test_duplicate_username_is_400(self, anon_client, user):
        response = anon_client.post(
            "/api/auth/register", json={"username": "alice", "password": "longenough"}
        )
        assert response.status_code == 400
        assert response.json()["detail"]["field"] == "username"

    def test_short_password_is_422(self, anon_client):
        response = anon_client.post(
            "/api/auth/register", json={"username": "frank", "password": "short"}
        )
        assert response.status_code == 422

    def test_no_token_is_401(self, anon_client):
        assert anon_client.get("/api/auth/me").status_code == 401


class TestDeleteAccount:
    def test_delete_me(self, client, db, holding):
        assert client.delete("/api/auth/me").status_code == 204
        assert db.query(User).count() == 0
