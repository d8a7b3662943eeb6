"""
Test health, banner and debug routes
"""

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from config import get_settings
from database.mongodb import get_database
from server import app


class _PingDatabase:
    def __init__(self, error=None):
        self.error = error

    async def command(self, name):
        if self.error:
            raise self.error
        return {"ok": 1.0}


@pytest.fixture
def ping_client():
    def _client(database):
        app.dependency_overrides[get_database] = lambda: database
        return TestClient(app)
    yield _client
    app.dependency_overrides.clear()


class TestSystemHealth:

    def test_anonymous(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "healthy"
        assert data["version"] == get_settings().app_version
        assert data["uptime"] >= 0
        assert data["request"]["isAuthenticated"] is False
        assert data["request"]["user"] is None

    def test_authenticated_request_is_annotated(self, client, make_token):
        token = make_token(sub="u9", username="erin")
        response = client.get("/api/health", headers={"Authorization": f"Bearer {token}"})
        request_info = response.json()["data"]["request"]
        assert request_info["isAuthenticated"] is True
        assert request_info["tokenSource"] == "header"
        assert request_info["user"] == {"username": "erin", "id": "u9"}

    def test_simple(self, client):
        response = client.get("/api/health/simple")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestDatabaseHealth:

    def test_healthy(self, ping_client):
        response = ping_client(_PingDatabase()).get("/api/health/database")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_unreachable(self, ping_client):
        response = ping_client(_PingDatabase(ServerSelectionTimeoutError("timeout"))).get("/api/health/database")
        assert response.status_code == 500
        assert response.json()["error"] == "DATABASE_CONNECTION_ERROR"


class TestBanners:

    def test_root(self, client):
        assert client.get("/").json()["status"] == "running"

    def test_api_index(self, client):
        endpoints = client.get("/api").json()["endpoints"]
        assert endpoints["oilConsumptions"] == "/api/oil-consumptions"

    def test_unknown_route(self, client):
        response = client.get("/api/nowhere")
        assert response.status_code == 404
        assert response.json()["message"] == "Route not found"


class TestDebugCookies:

    def test_lists_cookie_names(self, client, make_token):
        client.cookies.set("auth_token", make_token())
        response = client.get("/api/debug/cookies")
        assert response.status_code == 200
        body = response.json()
        assert body["cookies"] == ["auth_token"]
        assert body["hasAuthCookies"] is True

    def test_hidden_in_production(self, client, monkeypatch):
        monkeypatch.setattr(get_settings(), "environment", "production")
        response = client.get("/api/debug/cookies")
        assert response.status_code == 404


class TestSetCookies:

    def test_sets_http_only_cookies(self, client, make_token):
        response = client.post(
            "/api/auth/cookies",
            json={"accessToken": make_token(), "refreshToken": make_token()},
        )
        assert response.status_code == 200
        assert response.json()["cookiesSet"] == {"accessToken": True, "refreshToken": True}

        set_cookie = response.headers.get_list("set-cookie")
        access = next(c for c in set_cookie if c.startswith("access_token="))
        assert "HttpOnly" in access
        assert "Max-Age=86400" in access
        assert "SameSite=lax" in access
        refresh = next(c for c in set_cookie if c.startswith("refresh_token="))
        assert "Max-Age=604800" in refresh

    def test_cookie_then_verify(self, client, make_token):
        client.post("/api/auth/cookies", json={"accessToken": make_token(username="frank")})
        response = client.get("/api/auth/verify")
        assert response.status_code == 200
        body = response.json()
        assert body["tokenSource"] == "cookie"
        assert body["user"]["username"] == "frank"

    def test_verify_rejects_header_session(self, client, auth_headers):
        response = client.get("/api/auth/status", headers=auth_headers)
        assert response.status_code == 401
        assert response.json()["error"] == "NO_AUTH_COOKIES"

    def test_rejects_non_jwt(self, client):
        response = client.post("/api/auth/cookies", json={"accessToken": "plain-string"})
        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"
