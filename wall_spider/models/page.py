"""Typed views over raw Graph API response payloads."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from wall_spider.exceptions import MalformedResponseError


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


@dataclass
class Author:
    """The ``from`` reference attached to every item."""

    name: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "Author":
        return cls(name=_optional_str(payload.get("name")), id=_optional_str(payload.get("id")))


@dataclass
class RawItem:
    """A single post, comment or reply as returned by the API."""

    id: str
    created_time: Optional[str] = None
    author: Optional[Author] = None
    message: Optional[str] = None
    story: Optional[str] = None

    @classmethod
    def from_json(cls, payload: Any) -> "RawItem":
        """
        Build an item from its JSON object.

        Raises:
            MalformedResponseError: If the item is not an object or has no id
        """
        if not isinstance(payload, dict):
            raise MalformedResponseError(f"Expected item object, got {type(payload).__name__}")

        item_id = payload.get("id")
        if item_id is None or item_id == "":
            raise MalformedResponseError("Item is missing its id")

        author_payload = payload.get("from")
        author = Author.from_json(author_payload) if isinstance(author_payload, dict) else None

        return cls(
            id=str(item_id),
            created_time=_optional_str(payload.get("created_time")),
            author=author,
            message=_optional_str(payload.get("message")),
            story=_optional_str(payload.get("story")),
        )


@dataclass
class RawPage:
    """One response page: its items in arrival order plus the next-page cursor."""

    items: List[RawItem] = field(default_factory=list)
    next_cursor: Optional[str] = None

    @classmethod
    def from_json(cls, payload: Any) -> "RawPage":
        """
        Build a page from a decoded response body.

        Args:
            payload: Decoded JSON body of one response

        Returns:
            RawPage with typed items and the ``paging.next`` URL if present

        Raises:
            MalformedResponseError: If the body does not have the expected shape
        """
        if not isinstance(payload, dict):
            raise MalformedResponseError(f"Expected JSON object, got {type(payload).__name__}")

        data = payload.get("data")
        if not isinstance(data, list):
            raise MalformedResponseError("Response has no 'data' list")

        paging = payload.get("paging")
        next_cursor = None
        if isinstance(paging, dict):
            next_cursor = _optional_str(paging.get("next")) or None

        return cls(items=[RawItem.from_json(item) for item in data], next_cursor=next_cursor)
