"""Error handling and retry logic for Graph API requests."""

import asyncio
import logging
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar, cast

from aiohttp import ClientConnectionError
from aiohttp.client_exceptions import ClientResponseError

from wall_spider.collector.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

T = TypeVar("T")
AsyncFunc = Callable[..., Awaitable[T]]


class ConsecutiveErrorTracker:
    """Tracker for consecutive errors with threshold checking."""

    def __init__(self, threshold: int, prometheus_exporter=None):
        """
        Initialize the error tracker.

        Args:
            threshold: Maximum number of consecutive errors allowed
            prometheus_exporter: Optional Prometheus exporter for metrics
        """
        self.threshold = threshold
        self.consecutive_errors = 0
        self.prometheus_exporter = prometheus_exporter

    def record_error(self) -> None:
        """Record an error occurrence and increment the counter."""
        self.consecutive_errors += 1
        logger.warning(f"Consecutive errors: {self.consecutive_errors}/{self.threshold}")

        if self.prometheus_exporter:
            self.prometheus_exporter.set_consecutive_5xx_errors(self.consecutive_errors)

    def record_success(self) -> None:
        """Record a successful request, resetting the consecutive error count."""
        if self.consecutive_errors > 0:
            logger.info(f"Resetting consecutive 5xx counter (was {self.consecutive_errors})")
            self.consecutive_errors = 0

            if self.prometheus_exporter:
                self.prometheus_exporter.set_consecutive_5xx_errors(0)

    def should_abort(self) -> bool:
        """
        Check if we should abort due to too many consecutive errors.

        Returns:
            True if the failure threshold has been reached
        """
        return self.consecutive_errors >= self.threshold


def with_exponential_backoff(
    max_retries: int = 3,
    initial_backoff: float = 1.0,
    max_backoff: float = 32.0,
    backoff_factor: float = 2.0,
    error_tracker: Optional[ConsecutiveErrorTracker] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> Callable[[AsyncFunc[T]], AsyncFunc[T]]:
    """
    Decorator for retrying async functions with exponential backoff.

    Server errors, connection errors and timeouts are retried. A 429 waits for
    the rate limiter without using up an attempt. Other client errors and
    anything else propagate immediately.

    Args:
        max_retries: Maximum number of retry attempts
        initial_backoff: Initial backoff time in seconds
        max_backoff: Maximum backoff time in seconds
        backoff_factor: Multiplier for backoff time between retries
        error_tracker: Optional tracker for consecutive 5xx errors
        rate_limiter: Optional rate limiter for handling 429 responses

    Returns:
        Decorator function
    """
    def decorator(func: AsyncFunc[T]) -> AsyncFunc[T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            retries = 0
            backoff = initial_backoff

            while True:
                try:
                    result = await func(*args, **kwargs)

                    if error_tracker:
                        error_tracker.record_success()

                    return result

                except ClientResponseError as e:
                    if e.status == 429 and rate_limiter:
                        logger.warning(f"Rate limited (429): {e.message}")
                        retry_after = e.headers.get("Retry-After") if e.headers else None
                        await rate_limiter.handle_429(retry_after)
                        continue

                    elif 500 <= e.status < 600:
                        if error_tracker:
                            error_tracker.record_error()
                            if error_tracker.should_abort():
                                logger.critical(
                                    f"Aborting after {error_tracker.consecutive_errors} "
                                    f"consecutive 5xx errors"
                                )
                                raise

                        if retries >= max_retries:
                            logger.error(f"Max retries ({max_retries}) exceeded: {e.status} {e.message}")
                            raise

                        logger.warning(
                            f"Server error {e.status}: {e.message}. "
                            f"Retrying in {backoff:.2f}s ({retries+1}/{max_retries})"
                        )
                        await asyncio.sleep(backoff)
                        retries += 1
                        backoff = min(backoff * backoff_factor, max_backoff)
                        continue

                    else:
                        logger.warning(f"Client error {e.status}: {e.message}")
                        raise

                except (ClientConnectionError, asyncio.TimeoutError) as e:
                    if retries >= max_retries:
                        logger.error(f"Max retries ({max_retries}) exceeded: {e!r}")
                        raise

                    logger.warning(
                        f"Connection error: {e!r}. "
                        f"Retrying in {backoff:.2f}s ({retries+1}/{max_retries})"
                    )
                    await asyncio.sleep(backoff)
                    retries += 1
                    backoff = min(backoff * backoff_factor, max_backoff)
                    continue

        return cast(AsyncFunc[T], wrapper)
    return decorator
