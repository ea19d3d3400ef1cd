from __future__ import annotations

import unittest

from authenticity.services.errors import (
    ContentBlockedError,
    InputValidationError,
    RateLimitedError,
    UpstreamServiceError,
)
from authenticity.services.retry import RetryingFetchClient, is_rate_limited


class _FlakyEndpoint:
    def __init__(self, failures: list[Exception], result="ok") -> None:
        self.failures = list(failures)
        self.result = result
        self.payloads = []

    def __call__(self, payload):
        self.payloads.append(payload)
        if self.failures:
            raise self.failures.pop(0)
        return self.result


class TestIsRateLimited(unittest.TestCase):
    def test_structured_status_codes(self) -> None:
        self.assertTrue(is_rate_limited(RateLimitedError()))
        self.assertFalse(is_rate_limited(UpstreamServiceError("boom", upstream_status=500)))
        self.assertFalse(is_rate_limited(ContentBlockedError("blocked", "SAFETY")))

    def test_status_code_attribute_wins_over_message(self) -> None:
        exc = UpstreamServiceError("quota 429 mentioned", upstream_status=503)
        self.assertFalse(is_rate_limited(exc))

    def test_message_sniffing_fallback(self) -> None:
        self.assertTrue(is_rate_limited(RuntimeError("API Error: 429")))
        self.assertFalse(is_rate_limited(RuntimeError("API Error: 500")))


class TestRetryingFetchClient(unittest.TestCase):
    def setUp(self) -> None:
        self.sleeps = []
        self.client = RetryingFetchClient(max_retries=3, initial_delay=1.0, sleep=self.sleeps.append)

    def test_two_rate_limits_then_success(self) -> None:
        endpoint = _FlakyEndpoint([RateLimitedError(), RateLimitedError()], result={"ok": True})
        out = self.client.call(endpoint, {"text": "hi"})

        self.assertEqual(out, {"ok": True})
        self.assertEqual(len(endpoint.payloads), 3)
        self.assertEqual(self.sleeps, [1.0, 2.0])

    def test_gives_up_after_budget(self) -> None:
        endpoint = _FlakyEndpoint([RateLimitedError()] * 5)
        with self.assertRaises(RateLimitedError):
            self.client.call(endpoint, {}, max_retries=2, initial_delay=0.5)

        self.assertEqual(len(endpoint.payloads), 3)
        self.assertEqual(self.sleeps, [0.5, 1.0])

    def test_other_errors_are_not_retried(self) -> None:
        for exc in (UpstreamServiceError("down", 500), ContentBlockedError("no", "SAFETY"), InputValidationError("x")):
            endpoint = _FlakyEndpoint([exc])
            with self.assertRaises(type(exc)):
                self.client.call(endpoint, {})
            self.assertEqual(len(endpoint.payloads), 1)
        self.assertEqual(self.sleeps, [])

    def test_zero_retries_fails_on_first_rate_limit(self) -> None:
        endpoint = _FlakyEndpoint([RateLimitedError()])
        with self.assertRaises(RateLimitedError):
            self.client.call(endpoint, {}, max_retries=0)
        self.assertEqual(self.sleeps, [])

    def test_retry_log_names_the_client(self) -> None:
        endpoint = _FlakyEndpoint([RateLimitedError()])
        endpoint.name = "groq"
        with self.assertLogs("authenticity.services.retry", level="WARNING") as logs:
            self.client.call(endpoint, {})
        self.assertEqual(len(logs.output), 1)
        self.assertIn("Rate limited by groq; retry 1/3", logs.output[0])


if __name__ == "__main__":
    unittest.main()
