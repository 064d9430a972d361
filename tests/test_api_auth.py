"""HTTP tests for /health and the /api/v1/auth endpoints."""

import unittest
from datetime import timedelta

from fastapi.testclient import TestClient

from app.core.security import TokenKind, TokenService
from support import (
    DEFAULT_PASSWORD,
    TEST_SECRET,
    login,
    make_app,
    seed_app_user,
    set_cookie_headers,
)

ACCESS_COOKIE = "app_token"
REFRESH_COOKIE = "app_refresh"


class AuthApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.app = make_app()
        self.client = TestClient(self.app)
        self.alice = seed_app_user(self.app, "alice")


class TestHealth(AuthApiTestCase):
    def test_health_is_public(self) -> None:
        resp = self.client.get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok"})


class TestLoginEndpoint(AuthApiTestCase):
    def test_login_returns_envelope_and_sets_cookies(self) -> None:
        resp = self.client.post(
            "/api/v1/auth/login", json={"username": "alice", "password": DEFAULT_PASSWORD}
        )
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["is_success"])
        self.assertEqual(body["message"], "Logged in successfully")
        self.assertNotIn("error", body)
        self.assertEqual(body["data"]["user"]["username"], "alice")
        self.assertNotIn("password_hash", body["data"]["user"])
        self.assertTrue(body["data"]["access_token"])
        self.assertTrue(body["data"]["refresh_token"])

        access_cookie = set_cookie_headers(resp, ACCESS_COOKIE)
        self.assertEqual(len(access_cookie), 1)
        self.assertIn("httponly", access_cookie[0].lower())
        self.assertIn(body["data"]["access_token"], access_cookie[0])
        self.assertEqual(len(set_cookie_headers(resp, REFRESH_COOKIE)), 1)

    def test_wrong_password_and_unknown_user_same_response(self) -> None:
        wrong = self.client.post("/api/v1/auth/login", json={"username": "alice", "password": "nope-nope"})
        unknown = self.client.post("/api/v1/auth/login", json={"username": "zed", "password": "nope-nope"})
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(wrong.json(), unknown.json())
        self.assertEqual(wrong.json()["error"]["code"], "INVALID_CREDENTIALS")
        self.assertFalse(wrong.json()["is_success"])

    def test_missing_fields_is_validation_error(self) -> None:
        resp = self.client.post("/api/v1/auth/login", json={"username": "alice"})
        self.assertEqual(resp.status_code, 400)
        error = resp.json()["error"]
        self.assertEqual(error["code"], "VALIDATION_ERROR")
        self.assertIn("password", [f["field"] for f in error["fields"]])

    def test_logout_clears_cookies(self) -> None:
        login(self.client, "alice")
        resp = self.client.post("/api/v1/auth/logout")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["is_success"])
        for name in (ACCESS_COOKIE, REFRESH_COOKIE):
            cleared = set_cookie_headers(resp, name)
            self.assertEqual(len(cleared), 1)
            self.assertIn("max-age=0", cleared[0].lower())


class TestCurrentUser(AuthApiTestCase):
    def test_me_with_bearer_token(self) -> None:
        token = login(self.client, "alice")
        fresh = TestClient(self.app)
        resp = fresh.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["id"], self.alice.id)

    def test_me_with_cookie_only(self) -> None:
        login(self.client, "alice")
        resp = self.client.get("/api/v1/auth/me")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["username"], "alice")

    def test_no_credentials_is_unauthorized_and_clears_cookies(self) -> None:
        resp = self.client.get("/api/v1/auth/me")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["error"]["code"], "UNAUTHORIZED")
        self.assertIn("max-age=0", set_cookie_headers(resp, ACCESS_COOKIE)[0].lower())
        self.assertIn("max-age=0", set_cookie_headers(resp, REFRESH_COOKIE)[0].lower())

    def test_invalid_token_without_refresh_is_unauthorized(self) -> None:
        resp = self.client.get("/api/v1/auth/me", headers={"Authorization": "Bearer garbage"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["error"]["code"], "UNAUTHORIZED")

    def test_expired_access_token_refreshed_from_header(self) -> None:
        expired = TokenService(TEST_SECRET, access_ttl=timedelta(seconds=-30)).issue(
            TokenKind.ACCESS, self.alice.id, "alice", "USER"
        )
        refresh = self.app.state.token_service.issue(TokenKind.REFRESH, self.alice.id, "alice", "USER")

        resp = self.client.get(
            "/api/v1/auth/me",
            headers={"Authorization": f"Bearer {expired}", "X-Refresh-Token": refresh},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["data"]["username"], "alice")
        new_access = set_cookie_headers(resp, ACCESS_COOKIE)
        self.assertEqual(len(new_access), 1)
        self.assertNotIn(expired, new_access[0])
        self.assertEqual(len(set_cookie_headers(resp, REFRESH_COOKIE)), 1)

    def test_missing_access_token_refreshed_from_cookie(self) -> None:
        refresh = self.app.state.token_service.issue(TokenKind.REFRESH, self.alice.id, "alice", "USER")
        resp = self.client.get("/api/v1/auth/me", headers={"Cookie": f"{REFRESH_COOKIE}={refresh}"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(set_cookie_headers(resp, ACCESS_COOKIE)), 1)

    def test_refreshed_cookies_kept_when_request_then_fails(self) -> None:
        expired = TokenService(TEST_SECRET, access_ttl=timedelta(seconds=-30)).issue(
            TokenKind.ACCESS, self.alice.id, "alice", "USER"
        )
        refresh = self.app.state.token_service.issue(TokenKind.REFRESH, self.alice.id, "alice", "USER")

        # alice is not an admin, so the admin gate refuses after the refresh
        resp = self.client.get(
            "/api/v1/users",
            headers={"Authorization": f"Bearer {expired}", "X-Refresh-Token": refresh},
        )
        self.assertEqual(resp.status_code, 403)
        for name in (ACCESS_COOKIE, REFRESH_COOKIE):
            cookie = set_cookie_headers(resp, name)
            self.assertEqual(len(cookie), 1)
            self.assertNotIn("max-age=0", cookie[0].lower())
        self.assertNotIn(expired, set_cookie_headers(resp, ACCESS_COOKIE)[0])

    def test_expired_refresh_token_is_unauthorized(self) -> None:
        stale = TokenService(TEST_SECRET, refresh_ttl=timedelta(seconds=-30)).issue(
            TokenKind.REFRESH, self.alice.id, "alice", "USER"
        )
        resp = self.client.get("/api/v1/auth/me", headers={"X-Refresh-Token": stale})
        self.assertEqual(resp.status_code, 401)


class TestCrossOrigin(unittest.TestCase):
    ORIGIN = "http://ui.example"

    def setUp(self) -> None:
        self.client = TestClient(make_app(CORS_ALLOWED_ORIGINS=self.ORIGIN))

    def test_preflight_allows_refresh_header(self) -> None:
        resp = self.client.options(
            "/api/v1/auth/me",
            headers={
                "Origin": self.ORIGIN,
                "Access-Control-Request-Method": "GET",
                "Access-Control-Request-Headers": "authorization, x-refresh-token",
            },
        )
        self.assertEqual(resp.status_code, 200)
        self.assertIn("x-refresh-token", resp.headers["access-control-allow-headers"].lower())
        self.assertEqual(resp.headers["access-control-allow-origin"], self.ORIGIN)


if __name__ == "__main__":
    unittest.main()
