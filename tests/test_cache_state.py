import unittest
from unittest.mock import MagicMock
import os
import sys
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from event_search.models.execution import ExecutionRecord, ExecutionStatus, ScrapeQuery
from event_search.services.cache_state import CacheStateStore, CacheStoreError


def make_doc(status="pending", last_executed_at=None, **extra):
    doc = {
        "_id": "652f0c1e9b1e8a0012345678",
        "query_hash": "abc123",
        "status": status,
        "last_executed_at": last_executed_at or datetime(2026, 10, 17, 8, 0, tzinfo=timezone.utc),
        "cities": ["Milano"],
        "event_count": 0,
        "error_message": None,
    }
    doc.update(extra)
    return doc


class TestCacheStateStore(unittest.TestCase):

    def setUp(self):
        self.collection = MagicMock()
        self.store = CacheStateStore(collection=self.collection)
        self.query = ScrapeQuery(cities=["Milano", "Como"], date_from="2026-10-17", date_to="2026-12-31")

    def test_lookup_missing_returns_none(self):
        self.collection.find_one.return_value = None
        self.assertIsNone(self.store.lookup("abc123"))
        self.collection.find_one.assert_called_once_with({"query_hash": "abc123"})

    def test_lookup_builds_record(self):
        self.collection.find_one.return_value = make_doc(status="completed", event_count=12)
        record = self.store.lookup("abc123")
        self.assertEqual(record.status, ExecutionStatus.COMPLETED)
        self.assertEqual(record.event_count, 12)
        self.assertEqual(record.id, "652f0c1e9b1e8a0012345678")

    def test_lookup_wraps_driver_errors(self):
        self.collection.find_one.side_effect = ServerSelectionTimeoutError("no servers")
        with self.assertRaises(CacheStoreError):
            self.store.lookup("abc123")

    def test_lookup_unknown_status_is_store_error(self):
        self.collection.find_one.return_value = make_doc(status="success")
        with self.assertRaises(CacheStoreError):
            self.store.lookup("abc123")

    def test_lookup_missing_timestamp_is_store_error(self):
        doc = make_doc(status="completed")
        del doc["last_executed_at"]
        self.collection.find_one.return_value = doc
        with self.assertRaises(CacheStoreError):
            self.store.lookup("abc123")

    def test_claim_malformed_result_is_store_error(self):
        self.collection.find_one_and_update.return_value = make_doc(status=None)
        with self.assertRaises(CacheStoreError):
            self.store.claim("abc123", self.query)

    def test_upsert_is_single_atomic_operation(self):
        self.collection.find_one_and_update.return_value = make_doc()
        record = self.store.upsert("abc123", self.query)

        self.assertEqual(record.status, ExecutionStatus.PENDING)
        self.collection.create_index.assert_called_once_with(
            "query_hash", unique=True, name="query_hash_unique"
        )
        self.collection.find_one_and_update.assert_called_once()
        selector, update = self.collection.find_one_and_update.call_args.args
        kwargs = self.collection.find_one_and_update.call_args.kwargs
        self.assertEqual(selector, {"query_hash": "abc123"})
        self.assertTrue(kwargs["upsert"])
        self.assertEqual(update["$set"]["status"], "pending")
        self.assertIsNone(update["$set"]["error_message"])
        self.assertIn("last_executed_at", update["$set"])
        self.assertEqual(update["$setOnInsert"]["location"], "Milano, Como")
        self.assertEqual(update["$setOnInsert"]["cities"], ["Milano", "Como"])

    def test_upsert_retries_after_losing_insert_race(self):
        self.collection.find_one_and_update.side_effect = [
            DuplicateKeyError("E11000 duplicate key"),
            make_doc(),
        ]
        record = self.store.upsert("abc123", self.query)
        self.assertEqual(record.query_hash, "abc123")
        self.assertEqual(self.collection.find_one_and_update.call_count, 2)

    def test_upsert_wraps_driver_errors(self):
        self.collection.create_index.side_effect = ServerSelectionTimeoutError("no servers")
        with self.assertRaises(CacheStoreError):
            self.store.upsert("abc123", self.query)

    def test_claim_skips_in_flight_records(self):
        self.collection.find_one_and_update.return_value = make_doc()
        self.store.claim("abc123", self.query)
        selector = self.collection.find_one_and_update.call_args.args[0]
        self.assertEqual(selector, {"query_hash": "abc123", "status": {"$nin": ["pending", "running"]}})

    def test_claim_returns_none_when_already_claimed(self):
        self.collection.find_one_and_update.side_effect = DuplicateKeyError("E11000 duplicate key")
        self.assertIsNone(self.store.claim("abc123", self.query))

    def test_indexes_are_provisioned_once(self):
        self.collection.find_one_and_update.return_value = make_doc()
        self.store.upsert("abc123", self.query)
        self.store.upsert("abc123", self.query)
        self.collection.create_index.assert_called_once()


class TestFreshness(unittest.TestCase):

    def setUp(self):
        self.store = CacheStateStore(collection=MagicMock())
        self.completed_at = datetime(2026, 10, 17, 8, 0, tzinfo=timezone.utc)

    def _record(self, status):
        return ExecutionRecord(
            query_hash="abc123", status=status, last_executed_at=self.completed_at
        )

    def test_completed_is_fresh_just_under_ttl(self):
        now = self.completed_at + timedelta(hours=3, minutes=59)
        self.assertTrue(self.store.is_fresh(self._record(ExecutionStatus.COMPLETED), now))

    def test_completed_is_stale_just_over_ttl(self):
        now = self.completed_at + timedelta(hours=4, minutes=1)
        self.assertFalse(self.store.is_fresh(self._record(ExecutionStatus.COMPLETED), now))

    def test_failed_is_never_fresh(self):
        now = self.completed_at + timedelta(minutes=1)
        self.assertFalse(self.store.is_fresh(self._record(ExecutionStatus.FAILED), now))

    def test_naive_timestamps_are_treated_as_utc(self):
        record = ExecutionRecord.from_document(
            make_doc(status="completed", last_executed_at=datetime(2026, 10, 17, 8, 0))
        )
        now = self.completed_at + timedelta(hours=1)
        self.assertTrue(self.store.is_fresh(record, now))


if __name__ == '__main__':
    unittest.main()
