"""Persistence of workflow execution records, one per query signature.

All MongoDB failures are re-raised as :class:`CacheStoreError` so callers
can degrade to an uncached query instead of failing the request.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..clients.mongodb_client import get_database
from ..config import CACHE_TTL_HOURS, EXECUTIONS_COLLECTION
from ..models.execution import (
    IN_FLIGHT_STATUSES,
    ExecutionRecord,
    ExecutionStatus,
    ScrapeQuery,
)
from ..utils.datetime_utils import get_current_timestamp, is_within_ttl

logger = logging.getLogger(__name__)

CACHE_TTL: timedelta = timedelta(hours=CACHE_TTL_HOURS)


class CacheStoreError(RuntimeError):
    """The execution store is unreachable or not provisioned."""


class CacheStateStore:
    """Lookup and atomic upsert of execution records keyed by ``query_hash``."""

    def __init__(self, collection: Collection | None = None, ttl: timedelta = CACHE_TTL) -> None:
        self._collection = collection
        self._indexes_ready = False
        self.ttl = ttl

    @property
    def collection(self) -> Collection:
        if self._collection is None:
            try:
                self._collection = get_database()[EXECUTIONS_COLLECTION]
            except EnvironmentError as exc:
                raise CacheStoreError(str(exc)) from exc
        return self._collection

    def ensure_indexes(self) -> None:
        """Provision the unique index the upsert relies on."""
        try:
            self.collection.create_index("query_hash", unique=True, name="query_hash_unique")
        except PyMongoError as exc:
            raise CacheStoreError(f"Could not provision {EXECUTIONS_COLLECTION}: {exc}") from exc
        self._indexes_ready = True

    def lookup(self, query_hash: str) -> Optional[ExecutionRecord]:
        """Return the execution record for *query_hash*, if any."""
        try:
            doc = self.collection.find_one({"query_hash": query_hash})
        except PyMongoError as exc:
            raise CacheStoreError(f"Execution lookup failed: {exc}") from exc
        return _decode(doc) if doc else None

    def upsert(self, query_hash: str, query: ScrapeQuery) -> ExecutionRecord:
        """Create the record as pending, or re-arm an existing one to pending."""
        try:
            return self._arm({"query_hash": query_hash}, query)
        except DuplicateKeyError:
            # Lost an insert race on the unique key; the retry is an update.
            logger.debug("Concurrent insert for %s, retrying as update", query_hash)
            try:
                return self._arm({"query_hash": query_hash}, query)
            except PyMongoError as exc:
                raise CacheStoreError(f"Execution upsert failed: {exc}") from exc
        except PyMongoError as exc:
            raise CacheStoreError(f"Execution upsert failed: {exc}") from exc

    def claim(self, query_hash: str, query: ScrapeQuery) -> Optional[ExecutionRecord]:
        """Arm the record only if no execution is already in flight.

        Returns ``None`` when another caller holds the signature: the filter
        skips pending/running records, so the upsert attempts an insert and
        the unique index rejects it.
        """
        in_flight = [status.value for status in IN_FLIGHT_STATUSES]
        try:
            return self._arm({"query_hash": query_hash, "status": {"$nin": in_flight}}, query)
        except DuplicateKeyError:
            logger.info("Execution %s already claimed by another request", query_hash[:12])
            return None
        except PyMongoError as exc:
            raise CacheStoreError(f"Execution claim failed: {exc}") from exc

    def is_fresh(self, record: ExecutionRecord, now: datetime | None = None) -> bool:
        return record.status == ExecutionStatus.COMPLETED and is_within_ttl(
            record.last_executed_at, self.ttl, now
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _arm(self, selector: Dict[str, Any], query: ScrapeQuery) -> ExecutionRecord:
        if not self._indexes_ready:
            self.ensure_indexes()
        now = get_current_timestamp()
        doc = self.collection.find_one_and_update(
            selector,
            {
                "$set": {
                    "status": ExecutionStatus.PENDING.value,
                    "last_executed_at": now,
                    "error_message": None,
                },
                "$setOnInsert": {
                    "location": ", ".join(query.cities) if query.cities else None,
                    "cities": list(query.cities or []),
                    "radius_km": query.radius_km,
                    "center_lat": query.center_lat,
                    "center_lng": query.center_lng,
                    "date_from": query.date_from,
                    "date_to": query.date_to,
                    "event_count": 0,
                    "created_at": now,
                },
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return _decode(doc)


def _decode(doc: Dict[str, Any]) -> ExecutionRecord:
    # Records are written by the external workflow and may not match the model.
    try:
        return ExecutionRecord.from_document(doc)
    except (KeyError, ValueError, TypeError) as exc:
        raise CacheStoreError(f"Malformed execution record {doc.get('query_hash')!r}: {exc!r}") from exc


__all__ = ["CacheStateStore", "CacheStoreError", "CACHE_TTL"]
