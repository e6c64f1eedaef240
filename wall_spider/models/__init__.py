"""Data models for crawl requests, raw responses and normalized records."""

from wall_spider.models.mapping import item_to_record, pages_to_records, parse_created_time
from wall_spider.models.node import CrawlOptions, NodeType, TimeWindow
from wall_spider.models.page import Author, RawItem, RawPage
from wall_spider.models.record import Record

__all__ = [
    "Author",
    "CrawlOptions",
    "NodeType",
    "RawItem",
    "RawPage",
    "Record",
    "TimeWindow",
    "item_to_record",
    "pages_to_records",
    "parse_created_time",
]
