"""Request pacing, retries and pagination."""

from wall_spider.collector.error_handler import ConsecutiveErrorTracker, with_exponential_backoff
from wall_spider.collector.paginator import Paginator
from wall_spider.collector.rate_limiter import RateLimiter

__all__ = ["ConsecutiveErrorTracker", "Paginator", "RateLimiter", "with_exponential_backoff"]
