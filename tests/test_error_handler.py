"""Tests for the error handler module."""

import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from aiohttp import ClientConnectionError
from aiohttp.client_exceptions import ClientResponseError

from wall_spider.collector.error_handler import ConsecutiveErrorTracker, with_exponential_backoff
from wall_spider.exceptions import MalformedResponseError


class MockRequestInfo:
    def __init__(self, url="https://graph.facebook.com"):
        self.real_url = url


def response_error(status, headers=None):
    return ClientResponseError(
        request_info=MockRequestInfo(),
        history=(),
        status=status,
        message="error",
        headers=headers,
    )


class TestConsecutiveErrorTracker(unittest.TestCase):
    """Test cases for the ConsecutiveErrorTracker class."""

    def setUp(self):
        """Set up test environment."""
        self.threshold = 5
        self.tracker = ConsecutiveErrorTracker(self.threshold)

    def test_record_error(self):
        self.tracker.record_error()
        self.assertEqual(self.tracker.consecutive_errors, 1)

        self.tracker.record_error()
        self.assertEqual(self.tracker.consecutive_errors, 2)

    def test_record_success(self):
        """Test recording a success resets the error counter."""
        self.tracker.record_error()
        self.tracker.record_error()

        self.tracker.record_success()
        self.assertEqual(self.tracker.consecutive_errors, 0)

    def test_should_abort(self):
        """Test should_abort returns True when threshold is reached."""
        for _ in range(self.threshold):
            self.tracker.record_error()
        self.assertTrue(self.tracker.should_abort())

        self.tracker.record_success()
        for _ in range(self.threshold - 1):
            self.tracker.record_error()
        self.assertFalse(self.tracker.should_abort())

    def test_prometheus_integration(self):
        """Test integration with Prometheus metrics."""
        mock_exporter = MagicMock()
        tracker = ConsecutiveErrorTracker(self.threshold, prometheus_exporter=mock_exporter)

        tracker.record_error()
        mock_exporter.set_consecutive_5xx_errors.assert_called_once_with(1)

        tracker.record_success()
        mock_exporter.set_consecutive_5xx_errors.assert_called_with(0)


class TestWithExponentialBackoff(unittest.TestCase):
    """Test cases for the with_exponential_backoff decorator."""

    def test_successful_call(self):
        mock_func = AsyncMock(return_value="success")
        decorated_func = with_exponential_backoff()(mock_func)

        result = asyncio.run(decorated_func("arg1", kwarg="kwarg"))

        mock_func.assert_called_once_with("arg1", kwarg="kwarg")
        self.assertEqual(result, "success")

    def test_retry_on_5xx_error(self):
        """Test decorator retries on 5xx errors."""
        mock_func = AsyncMock(side_effect=[response_error(500), "success"])
        mock_error_tracker = MagicMock()
        mock_error_tracker.should_abort.return_value = False

        decorated_func = with_exponential_backoff(
            max_retries=3,
            initial_backoff=0.1,
            error_tracker=mock_error_tracker,
        )(mock_func)

        with patch("asyncio.sleep", AsyncMock()) as mock_sleep:
            result = asyncio.run(decorated_func())

        mock_sleep.assert_called_once_with(0.1)
        mock_error_tracker.record_error.assert_called_once()
        mock_error_tracker.record_success.assert_called_once()
        self.assertEqual(result, "success")

    def test_max_retries_exceeded(self):
        """Test decorator raises exception when max retries exceeded."""
        mock_func = AsyncMock(side_effect=response_error(503))

        decorated_func = with_exponential_backoff(
            max_retries=2,
            initial_backoff=0.1,
            backoff_factor=2.0,
        )(mock_func)

        with patch("asyncio.sleep", AsyncMock()) as mock_sleep:
            with self.assertRaises(ClientResponseError):
                asyncio.run(decorated_func())

        calls = [call[0][0] for call in mock_sleep.call_args_list]
        self.assertEqual(calls, [0.1, 0.2])
        self.assertEqual(mock_func.call_count, 3)

    def test_backoff_capped(self):
        mock_func = AsyncMock(side_effect=[response_error(500)] * 3 + ["ok"])

        decorated_func = with_exponential_backoff(
            max_retries=3,
            initial_backoff=4.0,
            max_backoff=5.0,
            backoff_factor=2.0,
        )(mock_func)

        with patch("asyncio.sleep", AsyncMock()) as mock_sleep:
            asyncio.run(decorated_func())

        calls = [call[0][0] for call in mock_sleep.call_args_list]
        self.assertEqual(calls, [4.0, 5.0, 5.0])

    def test_abort_on_consecutive_5xx(self):
        tracker = ConsecutiveErrorTracker(threshold=1)
        mock_func = AsyncMock(side_effect=[response_error(500), "success"])

        decorated_func = with_exponential_backoff(max_retries=5, error_tracker=tracker)(mock_func)

        with patch("asyncio.sleep", AsyncMock()) as mock_sleep:
            with self.assertRaises(ClientResponseError):
                asyncio.run(decorated_func())

        mock_sleep.assert_not_called()
        self.assertEqual(mock_func.call_count, 1)

    def test_client_error_not_retried(self):
        mock_func = AsyncMock(side_effect=response_error(400))
        decorated_func = with_exponential_backoff(max_retries=3)(mock_func)

        with self.assertRaises(ClientResponseError):
            asyncio.run(decorated_func())

        self.assertEqual(mock_func.call_count, 1)

    def test_connection_error_retried(self):
        mock_func = AsyncMock(side_effect=[ClientConnectionError("reset"), asyncio.TimeoutError(), "ok"])
        decorated_func = with_exponential_backoff(max_retries=3, initial_backoff=0.1)(mock_func)

        with patch("asyncio.sleep", AsyncMock()) as mock_sleep:
            result = asyncio.run(decorated_func())

        self.assertEqual(result, "ok")
        self.assertEqual(mock_sleep.call_count, 2)

    def test_other_errors_not_retried(self):
        mock_func = AsyncMock(side_effect=MalformedResponseError("not json"))
        decorated_func = with_exponential_backoff(max_retries=3)(mock_func)

        with self.assertRaises(MalformedResponseError):
            asyncio.run(decorated_func())

        self.assertEqual(mock_func.call_count, 1)

    def test_handle_429_with_rate_limiter(self):
        """Test decorator handles 429 errors with rate limiter."""
        error = response_error(429, headers={"Retry-After": "1"})
        mock_func = AsyncMock(side_effect=[error, "success"])

        mock_rate_limiter = MagicMock()
        mock_rate_limiter.handle_429 = AsyncMock()

        decorated_func = with_exponential_backoff(rate_limiter=mock_rate_limiter)(mock_func)

        result = asyncio.run(decorated_func())

        mock_rate_limiter.handle_429.assert_called_once_with("1")
        self.assertEqual(result, "success")


if __name__ == "__main__":
    unittest.main()
