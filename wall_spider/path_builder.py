"""Query path construction for Graph API node requests."""

import re
from typing import Sequence, Union
from urllib.parse import urlsplit

from wall_spider.config import DEFAULT_FEED_FIELDS
from wall_spider.exceptions import MalformedResponseError
from wall_spider.models.node import NodeType, TimeWindow

FEED_PATH = "/feed?fields="
COMMENT_PATH = "/comments?"
SINCE_QUERY = "&since="
UNTIL_QUERY = "&until="
ACCESS_TOKEN_QUERY = "&access_token="

_VERSION_PREFIX = re.compile(r"^/v\d+\.\d+(?=/|$)")
_TOKEN_VALUE = re.compile(r"(access_token=)[^&]*")


def endpoint_suffix(node_type: Union[NodeType, str], fields: Sequence[str] = DEFAULT_FEED_FIELDS) -> str:
    """
    Return the child-collection suffix for a node type.

    Posts and comments share the comments edge; replies are comments on a
    comment. Unrecognised types get an empty suffix, so callers must validate
    the type first.
    """
    if node_type == NodeType.PAGE:
        return FEED_PATH + ",".join(fields)
    if node_type in (NodeType.POST, NodeType.COMMENT):
        return COMMENT_PATH
    return ""


def build_path(
    node_id: str,
    node_type: Union[NodeType, str],
    window: TimeWindow,
    auth_token: str,
    *,
    fields: Sequence[str] = DEFAULT_FEED_FIELDS,
) -> str:
    """
    Build the request path for the first page of a node's children.

    Query parameters are always appended in the order since, until,
    access_token.

    Args:
        node_id: Identifier of the node to crawl
        node_type: Type of the node
        window: Resolved time window
        auth_token: API access token
        fields: Fields to request for page feeds

    Returns:
        Path and query string, e.g. ``/123/comments?&since=1577836800&access_token=abc``
    """
    path = "/" + node_id + endpoint_suffix(node_type, fields)
    if window.since is not None:
        path += SINCE_QUERY + str(window.since)
    if window.until is not None:
        path += UNTIL_QUERY + str(window.until)
    return path + ACCESS_TOKEN_QUERY + auth_token


def cursor_to_path(next_url: str, host: str) -> str:
    """
    Strip the scheme, host and API version from a ``paging.next`` URL.

    Args:
        next_url: Absolute URL supplied by the server
        host: Host the crawl is talking to

    Returns:
        The path-and-query tail to request next

    Raises:
        MalformedResponseError: If the cursor points at a different host
    """
    parts = urlsplit(next_url)
    if parts.netloc and parts.netloc.lower() != host.lower():
        raise MalformedResponseError(
            f"Cursor points at unexpected host {parts.netloc!r} (expected {host!r})"
        )

    path = _VERSION_PREFIX.sub("", parts.path, count=1) or "/"
    if parts.query:
        path += "?" + parts.query
    return path


def redact_token(path: str) -> str:
    """Hide the access token in a path before it is logged."""
    return _TOKEN_VALUE.sub(r"\1***", path)
