import unittest
from unittest.mock import MagicMock
import os
import sys
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from event_search.services.result_cache import ResultCache, make_cache_key


class FakeClock:

    def __init__(self):
        self.now = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now


class TestResultCache(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.cache = ResultCache(ttl_seconds=300, clock=self.clock)

    def test_get_returns_fresh_value(self):
        self.cache.set("k", {"total": 3})
        self.clock.now += timedelta(seconds=299)
        self.assertEqual(self.cache.get("k"), {"total": 3})

    def test_expired_entry_is_evicted(self):
        self.cache.set("k", {"total": 3})
        self.clock.now += timedelta(seconds=300)
        self.assertIsNone(self.cache.get("k"))
        self.assertEqual(len(self.cache), 0)

    def test_missing_key(self):
        self.assertIsNone(self.cache.get("missing"))

    def test_clear(self):
        self.cache.set("a", 1)
        self.cache.set("b", 2)
        self.assertEqual(self.cache.clear(), 2)
        self.assertIsNone(self.cache.get("a"))

    def test_len_takes_the_lock(self):
        self.cache.set("a", 1)
        lock = MagicMock()
        self.cache._lock = lock

        self.assertEqual(len(self.cache), 1)
        lock.__enter__.assert_called_once()
        lock.__exit__.assert_called_once()

    def test_cache_key_ignores_param_order_and_none(self):
        self.assertEqual(
            make_cache_key({"search": "jazz", "offset": 0, "lat": None}),
            make_cache_key({"offset": 0, "search": "jazz"}),
        )
        self.assertNotEqual(
            make_cache_key({"search": "jazz", "offset": 0}),
            make_cache_key({"search": "jazz", "offset": 50}),
        )


if __name__ == '__main__':
    unittest.main()
