import unittest
from datetime import timedelta

from starlette.requests import Request

from better_movies.auth import create_access_token, resolve_session, verify_csrf


def _request(headers: dict | None = None, cookies: dict | None = None) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    if cookies:
        raw.append((b"cookie", "; ".join(f"{k}={v}" for k, v in cookies.items()).encode()))
    return Request({"type": "http", "method": "POST", "path": "/", "headers": raw})


class TestSessionResolution(unittest.TestCase):
    def test_bearer_token(self) -> None:
        session = resolve_session(_request({"Authorization": f"Bearer {create_access_token('u-42')}"}))
        self.assertIsNotNone(session)
        self.assertEqual(session.user_id, "u-42")

    def test_cookie_token(self) -> None:
        session = resolve_session(_request(cookies={"access_token": create_access_token("u-7")}))
        self.assertEqual(session.user_id, "u-7")

    def test_absent_or_invalid_token(self) -> None:
        self.assertIsNone(resolve_session(_request()))
        self.assertIsNone(resolve_session(_request({"Authorization": "Bearer garbage"})))
        expired = create_access_token("u-1", ttl=timedelta(seconds=-5))
        self.assertIsNone(resolve_session(_request({"Authorization": f"Bearer {expired}"})))


class TestCsrf(unittest.TestCase):
    def test_bearer_and_anonymous_requests_skip_check(self) -> None:
        self.assertTrue(verify_csrf(_request({"Authorization": "Bearer abc"})))
        self.assertTrue(verify_csrf(_request()))

    def test_cookie_session_needs_matching_header(self) -> None:
        cookies = {"access_token": "t", "csrf_token": "secret"}
        self.assertFalse(verify_csrf(_request(cookies=cookies)))
        self.assertFalse(verify_csrf(_request({"X-CSRF-Token": "other"}, cookies=cookies)))
        self.assertTrue(verify_csrf(_request({"X-CSRF-Token": "secret"}, cookies=cookies)))


if __name__ == "__main__":
    unittest.main()
