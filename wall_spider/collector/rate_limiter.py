"""Rate limiting functionality for Graph API requests."""

import asyncio
import json
import logging
import time
from typing import Any, Mapping, Optional

from wall_spider.config import RateLimitConfig

logger = logging.getLogger(__name__)

APP_USAGE_HEADER = "x-app-usage"
DEFAULT_RETRY_AFTER_SEC = 60.0


class RateLimiter:
    """
    Rate limiter for Graph API requests.

    Spaces requests evenly and backs off when the ``X-App-Usage`` header
    reports that the application is close to its quota.
    """

    def __init__(self, config: RateLimitConfig):
        """
        Initialize the rate limiter with configuration.

        Args:
            config: Rate limiting configuration
        """
        self.config = config
        self.last_request_time = 0.0
        self.usage_percent: Optional[int] = None

        # Absolute rate limit calculation; 0 disables spacing
        if self.config.max_requests_per_minute > 0:
            self.min_interval = 60.0 / self.config.max_requests_per_minute
        else:
            self.min_interval = 0.0

    async def pre_request(self) -> None:
        """
        Check rate limits before making a request and sleep if necessary.

        This should be called before each Graph API request.
        """
        now = time.time()
        elapsed = now - self.last_request_time
        if elapsed < self.min_interval:
            await asyncio.sleep(self.min_interval - elapsed)

        if self.usage_percent is not None and self.usage_percent >= self.config.max_usage_percent:
            wait_time = self.config.usage_cooldown_sec + self.config.sleep_buffer_sec
            logger.info(f"App usage at {self.usage_percent}%. Sleeping for {wait_time:.2f}s.")
            await asyncio.sleep(wait_time)
            self.usage_percent = None

    def update_from_headers(self, headers: Mapping[str, Any]) -> None:
        """
        Update rate limit tracking from Graph API response headers.

        Args:
            headers: Response headers from a Graph API request
        """
        self.last_request_time = time.time()

        raw_usage = None
        for key, value in headers.items():
            if key.lower() == APP_USAGE_HEADER:
                raw_usage = value
                break
        if raw_usage is None:
            return

        try:
            usage = json.loads(raw_usage)
            self.usage_percent = max(
                int(usage.get("call_count", 0)),
                int(usage.get("total_time", 0)),
                int(usage.get("total_cputime", 0)),
            )
        except (ValueError, TypeError, AttributeError):
            logger.warning("Failed to parse x-app-usage header")
            return

        logger.debug(f"App usage: {self.usage_percent}%")

    async def handle_429(self, retry_after: Optional[str] = None) -> None:
        """
        Handle a 429 Too Many Requests response.

        Args:
            retry_after: Value of the Retry-After header, if available
        """
        wait_seconds = DEFAULT_RETRY_AFTER_SEC
        if retry_after:
            try:
                wait_seconds = float(retry_after)
            except (ValueError, TypeError):
                pass

        wait_seconds += self.config.sleep_buffer_sec

        logger.warning(f"Rate limited (429). Waiting for {wait_seconds:.2f}s before retrying.")
        await asyncio.sleep(wait_seconds)

        self.usage_percent = None
