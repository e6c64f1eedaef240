"""Prometheus metrics for monitoring the Graph API crawler."""

import logging
import time
from typing import Optional

from prometheus_client import Counter, Gauge, Histogram, start_http_server

logger = logging.getLogger(__name__)

PAGES_FETCHED = Counter(
    "wall_spider_pages_fetched_total",
    "Total number of response pages fetched",
    ["node_type"],
)

RECORDS_NORMALIZED = Counter(
    "wall_spider_records_normalized_total",
    "Total number of records produced by crawls",
    ["node_type"],
)

CRAWLS = Counter(
    "wall_spider_crawls_total",
    "Number of crawls by outcome",
    ["node_type", "outcome"],
)

API_ERRORS = Counter(
    "wall_spider_api_errors_total",
    "Number of API errors encountered",
    ["error_type"],
)

CONSECUTIVE_5XX_ERRORS = Gauge(
    "wall_spider_consecutive_5xx_errors",
    "Number of consecutive 5XX errors encountered",
)

REQUEST_DURATION = Histogram(
    "wall_spider_request_duration_seconds",
    "Duration of API requests in seconds",
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
)


class PrometheusExporter:
    """Prometheus metrics exporter for the crawler."""

    def __init__(self, port: int = 8000):
        """
        Initialize the Prometheus exporter.

        Args:
            port: Port to expose metrics on
        """
        self.port = port
        self.server_started = False

    def start_server(self) -> None:
        """Start the Prometheus metrics server."""
        if not self.server_started:
            try:
                start_http_server(self.port)
                self.server_started = True
                logger.info(f"Started Prometheus metrics server on port {self.port}")
            except OSError as e:
                logger.error(f"Failed to start Prometheus metrics server: {str(e)}")

    def record_page_fetched(self, node_type: str) -> None:
        PAGES_FETCHED.labels(node_type=node_type).inc()

    def record_records_normalized(self, node_type: str, count: int) -> None:
        RECORDS_NORMALIZED.labels(node_type=node_type).inc(count)

    def record_crawl(self, node_type: str, outcome: str) -> None:
        """
        Record a finished crawl.

        Args:
            node_type: Type of the crawled node
            outcome: ``success`` or the name of the error that ended the crawl
        """
        CRAWLS.labels(node_type=node_type, outcome=outcome).inc()

    def record_api_error(self, error_type: str) -> None:
        """
        Record an API error.

        Args:
            error_type: Type of API error (e.g., '5xx', '429', 'connection')
        """
        API_ERRORS.labels(error_type=error_type).inc()

    def set_consecutive_5xx_errors(self, count: int) -> None:
        CONSECUTIVE_5XX_ERRORS.set(count)

    def time_request(self) -> "RequestTimer":
        """
        Create a context manager for timing API requests.

        Returns:
            RequestTimer context manager
        """
        return RequestTimer()


class RequestTimer:
    """Context manager for timing API requests."""

    def __init__(self):
        self.start_time: Optional[float] = None

    def __enter__(self) -> "RequestTimer":
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time is not None:
            duration = time.time() - self.start_time
            REQUEST_DURATION.observe(duration)
