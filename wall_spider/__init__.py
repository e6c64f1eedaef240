"""Cursor-following crawler for Facebook Graph API pages, posts and comments.

Crawling a node returns its children as flat records:
    page    -> posts
    post    -> comments
    comment -> replies

Typical use::

    config = Config.from_files("config.yaml")
    async with Crawler(config) as crawler:
        records = await crawler.crawl("somepage", "page", CrawlOptions(since_days_ago=3))
"""

from wall_spider.config import Config
from wall_spider.crawler import Crawler, crawl_node
from wall_spider.exceptions import (
    ConfigurationError,
    CrawlCancelledError,
    CrawlError,
    CrawlTimeoutError,
    CrawlValidationError,
    CursorLoopError,
    MalformedResponseError,
    PageLimitExceededError,
    TransportError,
)
from wall_spider.logging_config import setup_logging
from wall_spider.models import CrawlOptions, NodeType, Record, TimeWindow

__all__ = [
    "Config",
    "ConfigurationError",
    "CrawlCancelledError",
    "CrawlError",
    "CrawlOptions",
    "CrawlTimeoutError",
    "CrawlValidationError",
    "Crawler",
    "CursorLoopError",
    "MalformedResponseError",
    "NodeType",
    "PageLimitExceededError",
    "Record",
    "TimeWindow",
    "TransportError",
    "crawl_node",
    "setup_logging",
]
