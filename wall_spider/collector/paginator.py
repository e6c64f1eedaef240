"""Cursor-following pagination over a node's child collection."""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

from wall_spider.exceptions import (
    CrawlCancelledError,
    CrawlTimeoutError,
    CursorLoopError,
    PageLimitExceededError,
)
from wall_spider.models.page import RawPage
from wall_spider.path_builder import redact_token

logger = logging.getLogger(__name__)


class Paginator:
    """
    Fetches every page of a collection by following ``paging.next`` cursors.

    Pages are fetched one at a time because each request depends on the
    previous response. The crawl either returns every page or raises; a
    partial list is never returned.
    """

    def __init__(
        self,
        client,
        max_pages: int,
        max_elapsed_sec: Optional[float] = None,
        prometheus_exporter=None,
    ):
        """
        Initialize the paginator.

        Args:
            client: Object with ``get_json(path)`` and ``cursor_to_path(url)``
                (normally a GraphClient)
            max_pages: Maximum number of pages a single crawl may fetch
            max_elapsed_sec: Optional wall-clock budget for a single crawl
            prometheus_exporter: Optional Prometheus exporter for metrics
        """
        self.client = client
        self.max_pages = max_pages
        self.max_elapsed_sec = max_elapsed_sec
        self.prometheus_exporter = prometheus_exporter

    async def paginate(
        self,
        initial_path: str,
        cancel_event: Optional[asyncio.Event] = None,
        node_type: str = "unknown",
    ) -> List[RawPage]:
        """
        Fetch the first page and every page its cursors lead to.

        Args:
            initial_path: Path of the first page
            cancel_event: Optional event that aborts the crawl when set
            node_type: Label used for metrics

        Returns:
            Pages in request order

        Raises:
            CrawlCancelledError: If ``cancel_event`` is set before or during a fetch
            CrawlTimeoutError: If the crawl exceeds ``max_elapsed_sec``
            PageLimitExceededError: If more than ``max_pages`` pages are needed
            CursorLoopError: If a cursor leads back to a page already fetched
        """
        loop = asyncio.get_running_loop()
        deadline = None
        if self.max_elapsed_sec is not None:
            deadline = loop.time() + self.max_elapsed_sec

        pages: List[RawPage] = []
        seen_paths: Set[str] = set()
        path: Optional[str] = initial_path

        while path is not None:
            if cancel_event is not None and cancel_event.is_set():
                raise CrawlCancelledError(f"Crawl cancelled after {len(pages)} pages")
            if len(pages) >= self.max_pages:
                raise PageLimitExceededError(
                    f"Crawl needs more than {self.max_pages} pages, aborting"
                )
            if path in seen_paths:
                raise CursorLoopError(f"Cursor loop detected at {redact_token(path)}")
            seen_paths.add(path)

            payload = await self._fetch(path, cancel_event, deadline)
            page = RawPage.from_json(payload)
            pages.append(page)

            if self.prometheus_exporter:
                self.prometheus_exporter.record_page_fetched(node_type)
            logger.debug(f"Fetched page {len(pages)} with {len(page.items)} items")

            path = self.client.cursor_to_path(page.next_cursor) if page.next_cursor else None

        logger.info(f"Pagination finished after {len(pages)} pages")
        return pages

    async def _fetch(
        self,
        path: str,
        cancel_event: Optional[asyncio.Event],
        deadline: Optional[float],
    ) -> Dict[str, Any]:
        """Run one request, racing it against cancellation and the deadline."""
        timeout = None
        if deadline is not None:
            timeout = deadline - asyncio.get_running_loop().time()
            if timeout <= 0:
                raise CrawlTimeoutError(f"Crawl exceeded {self.max_elapsed_sec}s")

        if cancel_event is None and timeout is None:
            return await self.client.get_json(path)

        fetch = asyncio.ensure_future(self.client.get_json(path))
        waiters = {fetch}
        cancel_waiter = None
        if cancel_event is not None:
            cancel_waiter = asyncio.ensure_future(cancel_event.wait())
            waiters.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in waiters:
                if not task.done():
                    task.cancel()

        if cancel_waiter is not None and cancel_waiter in done:
            if fetch.done() and not fetch.cancelled():
                # consume the result so a failed request is not reported as unretrieved
                fetch.exception()
            raise CrawlCancelledError("Crawl cancelled while a request was in flight")
        if fetch in done:
            return fetch.result()
        raise CrawlTimeoutError(f"Crawl exceeded {self.max_elapsed_sec}s")
