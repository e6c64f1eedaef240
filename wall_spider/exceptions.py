"""Exception hierarchy for the Graph API crawler."""

from typing import Optional


class CrawlError(Exception):
    """Base class for every error raised by a crawl."""


class CrawlValidationError(CrawlError, ValueError):
    """Raised when crawl arguments are rejected before any request is made."""


class ConfigurationError(CrawlError, ValueError):
    """Raised when the configuration fails validation."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("Invalid configuration: " + "; ".join(self.errors))


class TransportError(CrawlError):
    """Raised when a request fails at the network or HTTP level."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class MalformedResponseError(CrawlError):
    """Raised when a response body cannot be interpreted."""


class CursorLoopError(CrawlError):
    """Raised when the server hands back a cursor that was already followed."""


class PageLimitExceededError(CrawlError):
    """Raised when a crawl needs more pages than the configured maximum."""


class CrawlTimeoutError(CrawlError):
    """Raised when a crawl runs longer than the configured time budget."""


class CrawlCancelledError(CrawlError):
    """Raised when a crawl is aborted through its cancellation event."""
