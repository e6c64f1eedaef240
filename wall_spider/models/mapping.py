"""Mapping functions to convert raw API pages to normalized records."""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from dateutil.parser import isoparse

from wall_spider.exceptions import MalformedResponseError
from wall_spider.models.page import RawItem, RawPage
from wall_spider.models.record import Record

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
READABLE_TIME_FORMAT = "%a %b %d %Y %H:%M:%S GMT%z"


def parse_created_time(value: Optional[str]) -> datetime:
    """
    Parse an API timestamp such as ``2020-01-01T00:00:00+0000``.

    Timestamps without an offset are taken as UTC. Missing or unparseable
    values fall back to the Unix epoch instead of failing the record.

    Args:
        value: Raw ``created_time`` string

    Returns:
        Timezone-aware datetime in UTC
    """
    if not value:
        return EPOCH

    try:
        parsed = isoparse(value)
    except (ValueError, OverflowError):
        logger.debug(f"Unparseable created_time {value!r}, using epoch")
        return EPOCH

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_readable_time(moment: datetime) -> str:
    """Render an aware datetime as e.g. ``Wed Jan 01 2020 00:00:00 GMT+0000``."""
    return moment.strftime(READABLE_TIME_FORMAT)


def item_to_record(item: RawItem) -> Record:
    """
    Convert a raw item to a Record.

    Args:
        item: Item parsed from a response page

    Returns:
        Normalized record

    Raises:
        MalformedResponseError: If the item has no author name
    """
    if item.author is None or item.author.name is None:
        raise MalformedResponseError(f"Item {item.id} has no author")

    created = parse_created_time(item.created_time)

    return Record(
        id=item.id,
        message=item.message or item.story or "",
        by=item.author.name,
        created_time=round(created.timestamp()),
        readable_time=format_readable_time(created),
    )


def pages_to_records(pages: Iterable[RawPage]) -> List[Record]:
    """
    Flatten pages into records, keeping page order and item order.

    Args:
        pages: Pages in the order they were fetched

    Returns:
        List of records
    """
    records = []
    for page in pages:
        for item in page.items:
            records.append(item_to_record(item))
    return records
