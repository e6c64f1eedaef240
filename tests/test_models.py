"""Tests for the node, window and raw page models."""

import unittest

from wall_spider.exceptions import MalformedResponseError
from wall_spider.models.node import EPOCH_DAY, CrawlOptions, NodeType, TimeWindow
from wall_spider.models.page import RawPage

NOW = 1_600_000_000


class TestTimeWindow(unittest.TestCase):
    """Test cases for TimeWindow.resolve."""

    def test_unbounded(self):
        window = TimeWindow.resolve(CrawlOptions(), now=NOW)
        self.assertTrue(window.is_unbounded)

    def test_explicit_bounds_pass_through(self):
        window = TimeWindow.resolve(CrawlOptions(since=10, until=20), now=NOW)
        self.assertEqual(window, TimeWindow(since=10, until=20))

    def test_relative_becomes_since(self):
        window = TimeWindow.resolve(CrawlOptions(since_days_ago=3), now=NOW)
        self.assertEqual(window.since, NOW - 3 * EPOCH_DAY)
        self.assertIsNone(window.until)

    def test_relative_clears_until_and_since(self):
        options = CrawlOptions(since=10, until=20, since_days_ago=1)
        window = TimeWindow.resolve(options, now=NOW)
        self.assertEqual(window, TimeWindow(since=NOW - EPOCH_DAY, until=None))

    def test_options_is_empty(self):
        self.assertTrue(CrawlOptions().is_empty())
        self.assertFalse(CrawlOptions(until=5).is_empty())


class TestNodeType(unittest.TestCase):

    def test_values(self):
        self.assertEqual([t.value for t in NodeType], ["page", "post", "comment"])

    def test_reply_is_not_a_type(self):
        with self.assertRaises(ValueError):
            NodeType("reply")


class TestRawPage(unittest.TestCase):
    """Test cases for RawPage.from_json."""

    def test_items_and_cursor(self):
        page = RawPage.from_json({
            "data": [
                {"id": "1", "message": "hi", "from": {"name": "A", "id": "9"}, "created_time": "2020-01-01T00:00:00+0000"},
                {"id": "2", "story": "B updated", "from": {"name": "B"}},
            ],
            "paging": {"next": "https://graph.facebook.com/v2.8/1/feed?after=x"},
        })

        self.assertEqual([item.id for item in page.items], ["1", "2"])
        self.assertEqual(page.items[0].author.name, "A")
        self.assertEqual(page.items[0].author.id, "9")
        self.assertIsNone(page.items[0].story)
        self.assertIsNone(page.items[1].message)
        self.assertEqual(page.items[1].story, "B updated")
        self.assertEqual(page.next_cursor, "https://graph.facebook.com/v2.8/1/feed?after=x")

    def test_no_paging(self):
        page = RawPage.from_json({"data": []})
        self.assertEqual(page.items, [])
        self.assertIsNone(page.next_cursor)

    def test_paging_without_next(self):
        page = RawPage.from_json({"data": [], "paging": {"previous": "https://graph.facebook.com/x"}})
        self.assertIsNone(page.next_cursor)

    def test_missing_author_is_tolerated_here(self):
        page = RawPage.from_json({"data": [{"id": "1"}]})
        self.assertIsNone(page.items[0].author)

    def test_numeric_id_becomes_string(self):
        page = RawPage.from_json({"data": [{"id": 12345}]})
        self.assertEqual(page.items[0].id, "12345")

    def test_not_an_object(self):
        with self.assertRaises(MalformedResponseError):
            RawPage.from_json(["data"])

    def test_missing_data(self):
        with self.assertRaises(MalformedResponseError):
            RawPage.from_json({"error": {"message": "bad"}})

    def test_item_without_id(self):
        with self.assertRaises(MalformedResponseError):
            RawPage.from_json({"data": [{"message": "hi"}]})


if __name__ == "__main__":
    unittest.main()
