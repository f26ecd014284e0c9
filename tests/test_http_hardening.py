from unittest.mock import patch

from natours.core.config import settings
from tests.base import ApiTestCase


class HttpHardeningTests(ApiTestCase):
    def test_health_has_security_headers_and_request_id(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)

        self.assertEqual(response.headers.get("x-content-type-options"), "nosniff")
        self.assertEqual(response.headers.get("x-frame-options"), "DENY")
        self.assertEqual(response.headers.get("referrer-policy"), "no-referrer")
        self.assertEqual(response.headers.get("cross-origin-opener-policy"), "same-origin")
        self.assertEqual(response.headers.get("cache-control"), "no-store")

        request_id = response.headers.get("x-request-id")
        self.assertIsNotNone(request_id)
        self.assertRegex(str(request_id), r"^[A-Za-z0-9._-]{1,128}$")

    def test_valid_request_id_is_preserved(self):
        external_request_id = "release-check-2026_10_19"
        response = self.client.get("/health", headers={"X-Request-ID": external_request_id})
        self.assertEqual(response.headers.get("x-request-id"), external_request_id)

    def test_invalid_request_id_is_replaced(self):
        bad_request_id = "bad id with spaces"
        response = self.client.get("/health", headers={"X-Request-ID": bad_request_id})
        response_request_id = response.headers.get("x-request-id")
        self.assertNotEqual(response_request_id, bad_request_id)
        self.assertRegex(str(response_request_id), r"^[A-Za-z0-9._-]{1,128}$")

    def test_error_response_keeps_security_headers_and_request_id(self):
        response = self.client.get("/api/v1/users/me")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["status"], "fail")
        self.assertEqual(response.headers.get("x-content-type-options"), "nosniff")
        self.assertTrue(bool(response.headers.get("x-request-id")))

    def test_api_requests_are_rate_limited_per_client(self):
        with patch.object(settings, "RATE_LIMIT_MAX", 2), patch.object(settings, "TRUST_PROXY_HEADERS", True):
            first = self.client.get("/api/v1/tours")
            second = self.client.get("/api/v1/tours")
            third = self.client.get("/api/v1/tours")
            other_client = self.client.get("/api/v1/tours", headers={"X-Forwarded-For": "203.0.113.7"})

        self.assertEqual(first.headers.get("x-ratelimit-limit"), "2")
        self.assertEqual(first.headers.get("x-ratelimit-remaining"), "1")
        self.assertEqual(second.status_code, 200)
        self.assertEqual(third.status_code, 429)
        self.assertEqual(
            third.json(),
            {"status": "fail", "message": "Too many requests from this IP, please try again in an hour!"},
        )
        self.assertTrue(third.headers.get("retry-after"))
        self.assertEqual(other_client.status_code, 200)

    def test_forwarded_for_is_ignored_without_trusted_proxy(self):
        with patch.object(settings, "RATE_LIMIT_MAX", 2):
            responses = [
                self.client.get("/api/v1/tours", headers={"X-Forwarded-For": f"198.51.100.{n}"}) for n in range(4)
            ]
        self.assertEqual([r.status_code for r in responses], [200, 200, 429, 429])

    def test_non_api_paths_are_not_rate_limited(self):
        with patch.object(settings, "RATE_LIMIT_MAX", 1):
            responses = [self.client.get("/health") for _ in range(3)]
        self.assertEqual([r.status_code for r in responses], [200, 200, 200])
        self.assertIsNone(responses[0].headers.get("x-ratelimit-limit"))

    def test_oversized_body_is_rejected(self):
        with patch.object(settings, "MAX_BODY_BYTES", 64):
            response = self.client.post("/api/v1/users/login", json={"email": "x" * 200, "password": "y"})
        self.assertEqual(response.status_code, 413)
        self.assertEqual(response.json()["status"], "fail")
