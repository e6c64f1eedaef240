"""Crawl orchestration: validate, resolve the time window, paginate, normalize."""

import asyncio
import dataclasses
import logging
import time
from typing import List, Optional, Union

from wall_spider.collector.paginator import Paginator
from wall_spider.config import Config
from wall_spider.exceptions import CrawlError, CrawlValidationError
from wall_spider.graph_client import GraphClient
from wall_spider.models.mapping import pages_to_records
from wall_spider.models.node import CrawlOptions, NodeType, TimeWindow
from wall_spider.models.record import Record
from wall_spider.monitoring.metrics import PrometheusExporter
from wall_spider.path_builder import build_path, redact_token

logger = logging.getLogger(__name__)


def validate_node_type(node_type: Union[NodeType, str, None]) -> NodeType:
    """
    Parse a node type tag.

    Raises:
        CrawlValidationError: If the tag is not one of page, post or comment
    """
    try:
        return NodeType(node_type)
    except ValueError:
        valid = ", ".join(t.value for t in NodeType)
        raise CrawlValidationError(
            f"Invalid node type {node_type!r}, expected one of: {valid}"
        ) from None


def validate_options(options: Optional[CrawlOptions]) -> None:
    """
    Check the time bounds of crawl options.

    Raises:
        CrawlValidationError: If a bound is not an integer or ``since_days_ago`` is negative
    """
    if options is None:
        return
    for name in ("since", "until", "since_days_ago"):
        value = getattr(options, name)
        if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
            raise CrawlValidationError(f"{name} must be an integer, got {value!r}")
    if options.since_days_ago is not None and options.since_days_ago < 0:
        raise CrawlValidationError(f"since_days_ago must not be negative, got {options.since_days_ago}")


def resolve_window(
    node_type: NodeType,
    options: Optional[CrawlOptions],
    default_since_days: int,
    now: Optional[float] = None,
) -> TimeWindow:
    """
    Apply the default window for pages and collapse options into bounds.

    A page crawl with no bounds at all looks back ``default_since_days`` days.
    """
    if options is None:
        options = CrawlOptions()
    if node_type is NodeType.PAGE and options.is_empty():
        options = dataclasses.replace(options, since_days_ago=default_since_days)
    return TimeWindow.resolve(options, now=now)


class Crawler:
    """Public entry point for crawling the children of a Graph API node."""

    def __init__(
        self,
        config: Config,
        client: Optional[GraphClient] = None,
        prometheus_exporter=None,
    ):
        """
        Initialize the crawler.

        Args:
            config: Crawler configuration
            client: Optional pre-built client; the crawler will not close it
            prometheus_exporter: Optional Prometheus exporter for metrics; one is
                started from ``config.monitoring`` when omitted and enabled

        Raises:
            ConfigurationError: If no client is given and the configuration is invalid
        """
        self.config = config
        if prometheus_exporter is None and config.monitoring.enable_prometheus:
            prometheus_exporter = PrometheusExporter(config.monitoring.prometheus_port)
            prometheus_exporter.start_server()
        self.prometheus_exporter = prometheus_exporter
        self._owns_client = client is None
        self.client = client or GraphClient(config, prometheus_exporter=prometheus_exporter)

    async def __aenter__(self) -> "Crawler":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self.client.close()

    async def crawl(
        self,
        node_id: str,
        node_type: Union[NodeType, str],
        options: Optional[CrawlOptions] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[Record]:
        """
        Crawl the children of a node across every page.

        Args:
            node_id: Identifier of the page, post or comment
            node_type: ``page``, ``post`` or ``comment``
            options: Optional time window; pages default to the last 7 days
            cancel_event: Optional event that aborts the crawl when set

        Returns:
            Records for every child, in page order then item order

        Raises:
            CrawlValidationError: If the arguments are invalid (no request is made)
            CrawlError: If any page fails; no partial result is returned
        """
        parsed_type = validate_node_type(node_type)
        if not isinstance(node_id, str) or not node_id:
            raise CrawlValidationError("node_id must be a non-empty string")
        validate_options(options)

        window = resolve_window(parsed_type, options, self.config.default_since_days, now=time.time())
        path = build_path(
            node_id,
            parsed_type,
            window,
            self.config.api_token,
            fields=self.config.feed_fields,
        )
        logger.info(f"Crawling {parsed_type.value} {node_id} via {redact_token(path)}")

        paginator = Paginator(
            self.client,
            max_pages=self.config.max_pages,
            max_elapsed_sec=self.config.max_elapsed_sec,
            prometheus_exporter=self.prometheus_exporter,
        )

        try:
            pages = await paginator.paginate(path, cancel_event=cancel_event, node_type=parsed_type.value)
            records = pages_to_records(pages)
        except CrawlError as e:
            logger.error(f"Crawl of {parsed_type.value} {node_id} failed: {e}")
            if self.prometheus_exporter:
                self.prometheus_exporter.record_crawl(parsed_type.value, type(e).__name__)
            raise

        if self.prometheus_exporter:
            self.prometheus_exporter.record_crawl(parsed_type.value, "success")
            self.prometheus_exporter.record_records_normalized(parsed_type.value, len(records))
        logger.info(f"Crawled {len(records)} records from {len(pages)} pages of {parsed_type.value} {node_id}")
        return records


async def crawl_node(
    node_id: str,
    node_type: Union[NodeType, str],
    options: Optional[CrawlOptions] = None,
    *,
    config: Config,
    cancel_event: Optional[asyncio.Event] = None,
) -> List[Record]:
    """
    Crawl a node with a short-lived crawler.

    Convenience wrapper that opens a Crawler, runs one crawl and closes the
    HTTP session again.
    """
    async with Crawler(config) as crawler:
        return await crawler.crawl(node_id, node_type, options, cancel_event=cancel_event)
