"""Graph API client wrapper for authenticated JSON requests."""

import asyncio
import json
import logging
from contextlib import nullcontext
from typing import Any, Dict, Optional

import aiohttp
from aiohttp.client_exceptions import ClientResponseError

from wall_spider.collector.error_handler import ConsecutiveErrorTracker, with_exponential_backoff
from wall_spider.collector.rate_limiter import RateLimiter
from wall_spider.config import Config
from wall_spider.exceptions import ConfigurationError, MalformedResponseError, TransportError
from wall_spider.path_builder import cursor_to_path, redact_token

logger = logging.getLogger(__name__)


def _error_message(body: bytes, default: Optional[str]) -> str:
    """Pull ``error.message`` out of a Graph API error body if there is one."""
    try:
        payload = json.loads(body)
        return str(payload["error"]["message"])
    except (ValueError, KeyError, TypeError):
        return default or "HTTP error"


class GraphClient:
    """Wrapper around an aiohttp session for Graph API GET requests."""

    def __init__(
        self,
        config: Config,
        rate_limiter: Optional[RateLimiter] = None,
        error_tracker: Optional[ConsecutiveErrorTracker] = None,
        prometheus_exporter=None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the client with configuration.

        Args:
            config: Crawler configuration with the API token and host
            rate_limiter: Optional rate limiter (built from config if omitted)
            error_tracker: Optional consecutive 5xx tracker (built from config if omitted)
            prometheus_exporter: Optional Prometheus exporter for metrics
            session: Optional externally owned aiohttp session

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        errors = config.validate()
        if errors:
            raise ConfigurationError(errors)

        self.config = config
        self.prometheus_exporter = prometheus_exporter
        self.rate_limiter = rate_limiter or RateLimiter(config.rate_limit)
        self.error_tracker = error_tracker or ConsecutiveErrorTracker(
            config.failure_threshold, prometheus_exporter
        )
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout_sec)

        retry = config.retry
        self._get_with_retry = with_exponential_backoff(
            max_retries=retry.max_retries,
            initial_backoff=retry.initial_backoff_sec,
            max_backoff=retry.max_backoff_sec,
            backoff_factor=retry.backoff_factor,
            error_tracker=self.error_tracker,
            rate_limiter=self.rate_limiter,
        )(self._get_once)

    @property
    def base_url(self) -> str:
        url = f"https://{self.config.host}"
        if self.config.api_version:
            url += "/" + self.config.api_version.strip("/")
        return url

    async def initialize(self) -> aiohttp.ClientSession:
        """Return the HTTP session, creating it on first use."""
        if self._session is None or self._session.closed:
            logger.info(f"Opening HTTP session for {self.config.host}")
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            logger.info("Closing HTTP session")
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "GraphClient":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def cursor_to_path(self, next_url: str) -> str:
        """Turn a ``paging.next`` URL into a path for this client's host."""
        return cursor_to_path(next_url, self.config.host)

    async def get_json(self, path: str) -> Dict[str, Any]:
        """
        GET a path and return the decoded JSON object.

        Args:
            path: Path and query string, starting with ``/``

        Returns:
            Decoded response body

        Raises:
            TransportError: If the request fails after retries
            MalformedResponseError: If the body is not a JSON object
        """
        try:
            return await self._get_with_retry(path)
        except ClientResponseError as e:
            raise TransportError(
                f"GET {redact_token(path)} failed with status {e.status}: {e.message}",
                status=e.status,
            ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"GET {redact_token(path)} failed: {e!r}") from e

    async def _get_once(self, path: str) -> Dict[str, Any]:
        session = await self.initialize()
        await self.rate_limiter.pre_request()
        logger.debug(f"GET {redact_token(path)}")

        timer = self.prometheus_exporter.time_request() if self.prometheus_exporter else None
        try:
            with timer if timer else nullcontext():
                async with session.get(self.base_url + path, timeout=self._timeout) as response:
                    self.rate_limiter.update_from_headers(response.headers)
                    body = await response.read()
                    if response.status >= 400:
                        raise ClientResponseError(
                            response.request_info,
                            response.history,
                            status=response.status,
                            message=_error_message(body, response.reason),
                            headers=response.headers,
                        )
        except ClientResponseError as e:
            if self.prometheus_exporter:
                error_type = "5xx" if 500 <= e.status < 600 else str(e.status)
                self.prometheus_exporter.record_api_error(error_type)
            raise
        except (aiohttp.ClientConnectionError, asyncio.TimeoutError):
            if self.prometheus_exporter:
                self.prometheus_exporter.record_api_error("connection")
            raise

        try:
            payload = json.loads(body)
        except ValueError as e:
            if self.prometheus_exporter:
                self.prometheus_exporter.record_api_error("malformed")
            raise MalformedResponseError(f"Response for {redact_token(path)} is not JSON") from e

        if not isinstance(payload, dict):
            raise MalformedResponseError(
                f"Response for {redact_token(path)} is {type(payload).__name__}, not an object"
            )
        return payload
