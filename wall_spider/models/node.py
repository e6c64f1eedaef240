"""Node types and time window models for crawl requests."""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

EPOCH_DAY = 86400


class NodeType(str, Enum):
    """
    Kind of node being crawled.

    Crawling a node returns its children: a page yields posts, a post yields
    comments and a comment yields replies. Replies are comments on a comment,
    so there is no separate reply type.
    """

    PAGE = "page"
    POST = "post"
    COMMENT = "comment"


@dataclass(frozen=True)
class CrawlOptions:
    """Time filter options for a single crawl call."""

    since: Optional[int] = None
    until: Optional[int] = None
    since_days_ago: Optional[int] = None

    def is_empty(self) -> bool:
        """Return True when no bound of any kind was supplied."""
        return self.since is None and self.until is None and self.since_days_ago is None


@dataclass(frozen=True)
class TimeWindow:
    """Resolved lower and upper bounds, in epoch seconds."""

    since: Optional[int] = None
    until: Optional[int] = None

    @property
    def is_unbounded(self) -> bool:
        return self.since is None and self.until is None

    @classmethod
    def resolve(cls, options: CrawlOptions, now: Optional[float] = None) -> "TimeWindow":
        """
        Collapse crawl options into explicit bounds.

        A relative ``since_days_ago`` becomes a lower bound counted back from
        ``now`` and always discards any explicit ``until``.

        Args:
            options: Options supplied for the crawl
            now: Current epoch time in seconds (defaults to ``time.time()``)

        Returns:
            TimeWindow with explicit bounds only
        """
        if options.since_days_ago is not None:
            if now is None:
                now = time.time()
            since = round(now) - EPOCH_DAY * options.since_days_ago
            return cls(since=since, until=None)
        return cls(since=options.since, until=options.until)
