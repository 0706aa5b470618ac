import unittest

from middleware.rate_limit import limiter
from tests._support import ApiTestCase


class RateLimitTests(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        limiter.reset()
        limiter.enabled = True

    def tearDown(self) -> None:
        limiter.enabled = False
        limiter.reset()
        super().tearDown()

    def test_login_is_throttled(self) -> None:
        self.logout_header()
        statuses = [
            self.client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong-pass"}).status_code
            for _ in range(11)
        ]
        self.assertEqual(statuses[:10], [401] * 10)
        self.assertEqual(statuses[10], 429)

    def test_default_limit_applies_to_undecorated_routes(self) -> None:
        statuses = [self.client.get("/api/auth/me").status_code for _ in range(121)]
        self.assertEqual(statuses[:120], [200] * 120)
        self.assertEqual(statuses[120], 429)

    def test_limits_are_per_user(self) -> None:
        for _ in range(120):
            self.client.get("/api/auth/me")
        self.assertEqual(self.client.get("/api/auth/me").status_code, 429)

        self.login_as(self.make_user("bob@example.com"))
        self.assertEqual(self.client.get("/api/auth/me").status_code, 200)


if __name__ == "__main__":
    unittest.main()
