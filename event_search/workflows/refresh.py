"""Cache-check and refresh orchestration around the ingestion workflow.

Decides per query signature whether ingested data can be served as is,
whether an execution is already in flight, or whether the workflow must be
triggered, either synchronously (the caller waits for completion) or in the
background while stale results are served.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Tuple, TypeVar

from ..config import (
    POLL_INTERVAL_SECONDS,
    READ_PATH_MAX_WAIT_SECONDS,
    SYNC_REFRESH_MAX_WAIT_SECONDS,
)
from ..models.execution import ExecutionRecord, ExecutionStatus, ScrapeQuery
from ..services.cache_state import CacheStateStore, CacheStoreError
from ..services.signature import generate_query_hash
from ..services.trigger import WorkflowTriggerClient
from ..utils.datetime_utils import get_current_timestamp, hours_since

logger = logging.getLogger(__name__)

T = TypeVar("T")

_background: ThreadPoolExecutor | None = None
_background_lock = threading.Lock()


def get_background_executor() -> ThreadPoolExecutor:
    """Shared pool running detached workflow triggers."""
    global _background
    with _background_lock:
        if _background is None:
            _background = ThreadPoolExecutor(max_workers=4, thread_name_prefix="workflow-trigger")
    return _background


class RefreshOutcome(str, Enum):
    """How a synchronous refresh ended."""

    COMPLETED = "completed"
    NOT_COMPLETED = "not_completed"
    CLAIMED_ELSEWHERE = "claimed_elsewhere"


@dataclass(slots=True)
class CacheDecision:
    """Outcome of classifying a signature's execution record."""

    query_hash: str
    is_cached: bool
    is_running: bool
    should_trigger: bool
    record: Optional[ExecutionRecord] = None

    def age_hours(self, now: datetime | None = None) -> Optional[float]:
        if self.record is None:
            return None
        return hours_since(self.record.last_executed_at, now)


@dataclass(slots=True)
class ManualRefreshResult:
    triggered: bool
    completed: bool = False
    execution_id: Optional[str] = None


class ExecutionWatcher:
    """Polls an execution record until it settles, a deadline passes or it is cancelled.

    :meth:`wait` returns ``True`` only when the record reaches ``completed``.
    """

    def __init__(
        self,
        store: CacheStateStore,
        query_hash: str,
        max_wait: float,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.query_hash = query_hash
        self.max_wait = max_wait
        self.poll_interval = poll_interval
        self._monotonic = monotonic
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    def wait(self) -> bool:
        deadline = self._monotonic() + self.max_wait
        short_hash = self.query_hash[:12]

        while self._monotonic() < deadline:
            try:
                record = self.store.lookup(self.query_hash)
            except CacheStoreError as exc:
                logger.error("Lost execution store while waiting for %s: %s", short_hash, exc)
                return False

            if record is None:
                logger.warning("Execution %s not found while waiting", short_hash)
                return False
            if record.status == ExecutionStatus.COMPLETED:
                logger.info("Execution %s completed (%d events)", short_hash, record.event_count)
                return True
            if record.status == ExecutionStatus.FAILED:
                logger.error("Execution %s failed: %s", short_hash, record.error_message)
                return False

            remaining = max(deadline - self._monotonic(), 0.0)
            if self._cancelled.wait(min(self.poll_interval, remaining)):
                logger.info("Stopped waiting for execution %s", short_hash)
                return False

        logger.warning("Execution %s still running after %.0fs", short_hash, self.max_wait)
        return False


class RefreshOrchestrator:
    """Freshness policy plus synchronous and background refresh modes."""

    def __init__(
        self,
        store: CacheStateStore | None = None,
        trigger_client: WorkflowTriggerClient | None = None,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self.store = store or CacheStateStore()
        self.trigger_client = trigger_client or WorkflowTriggerClient()
        self.poll_interval = poll_interval
        self._executor = executor

    @property
    def executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = get_background_executor()
        return self._executor

    # ------------------------------------------------------------------
    # Cache state
    # ------------------------------------------------------------------

    def classify(
        self, query_hash: str, record: Optional[ExecutionRecord], now: datetime | None = None
    ) -> CacheDecision:
        """Map an execution record onto exactly one cache decision."""
        if record is None:
            return CacheDecision(query_hash, is_cached=False, is_running=False, should_trigger=True)
        if record.is_in_flight:
            return CacheDecision(query_hash, False, True, False, record)
        if self.store.is_fresh(record, now or get_current_timestamp()):
            return CacheDecision(query_hash, True, False, False, record)
        # stale or failed
        return CacheDecision(query_hash, False, False, True, record)

    def check_cache(self, query: ScrapeQuery) -> CacheDecision:
        """Look up *query*'s signature and classify it.

        Raises
        ------
        CacheStoreError
            If the execution store cannot be reached.
        """
        query_hash = generate_query_hash(query)
        decision = self.classify(query_hash, self.store.lookup(query_hash))

        if decision.is_cached:
            logger.info(
                "[Cache] Hit! Age: %.1fh, Events: %d",
                decision.age_hours(),
                decision.record.event_count,
            )
        elif decision.is_running:
            logger.info("[Cache] Workflow already %s for %s", decision.record.status.value, query_hash[:12])
        else:
            logger.info("[Cache] Miss for %s", query_hash[:12])
        return decision

    def wait_for_execution(self, query_hash: str, max_wait: float = READ_PATH_MAX_WAIT_SECONDS) -> bool:
        return ExecutionWatcher(self.store, query_hash, max_wait, self.poll_interval).wait()

    # ------------------------------------------------------------------
    # Refresh modes
    # ------------------------------------------------------------------

    def refresh_sync(
        self,
        query: ScrapeQuery,
        query_hash: str,
        original: T,
        rerun: Callable[[], T],
        max_wait: float = SYNC_REFRESH_MAX_WAIT_SECONDS,
    ) -> Tuple[T, RefreshOutcome]:
        """Trigger, wait for completion and re-run the query once.

        Returns ``(result, outcome)``. Unless the outcome is
        ``COMPLETED`` the *original* result is returned. ``CLAIMED_ELSEWHERE``
        means another request already armed the signature and no trigger
        was sent.
        """
        try:
            record = self.store.claim(query_hash, query)
        except CacheStoreError as exc:
            logger.warning("[Cache] Could not arm execution, serving current data: %s", exc)
            return original, RefreshOutcome.NOT_COMPLETED

        if record is None:
            logger.info("[Cache] Another request is refreshing %s", query_hash[:12])
            return original, RefreshOutcome.CLAIMED_ELSEWHERE

        logger.info("[Cache] Empty result - triggering workflow and waiting up to %.0fs", max_wait)
        if not self.trigger_client.trigger(query, record.id):
            logger.error("[Workflow] Failed to trigger - returning existing data")
            return original, RefreshOutcome.NOT_COMPLETED

        if not self.wait_for_execution(query_hash, max_wait):
            logger.warning("[Workflow] Not completed in time - returning existing data")
            return original, RefreshOutcome.NOT_COMPLETED

        return rerun(), RefreshOutcome.COMPLETED

    def refresh_async(self, query: ScrapeQuery, query_hash: str) -> Future:
        """Trigger the workflow in the background; the caller never waits on it."""
        logger.info("[Cache] Stale results served - refreshing %s in background", query_hash[:12])
        future = self.executor.submit(self._trigger_detached, query, query_hash)
        future.add_done_callback(_log_background_failure)
        return future

    def trigger_manual_refresh(
        self, query: ScrapeQuery, wait: bool = False, max_wait: float = SYNC_REFRESH_MAX_WAIT_SECONDS
    ) -> ManualRefreshResult:
        """Force a refresh regardless of freshness.

        Raises
        ------
        CacheStoreError
            If the execution record cannot be written.
        """
        query_hash = generate_query_hash(query)
        record = self.store.upsert(query_hash, query)

        if not self.trigger_client.trigger(query, record.id):
            return ManualRefreshResult(triggered=False, execution_id=record.id)
        if not wait:
            return ManualRefreshResult(triggered=True, execution_id=record.id)

        logger.info("[Refresh] Waiting for workflow completion...")
        completed = self.wait_for_execution(query_hash, max_wait)
        return ManualRefreshResult(triggered=True, completed=completed, execution_id=record.id)

    def _trigger_detached(self, query: ScrapeQuery, query_hash: str) -> bool:
        try:
            record = self.store.claim(query_hash, query)
        except CacheStoreError as exc:
            logger.warning("[Cache] Background refresh skipped: %s", exc)
            return False
        if record is None:
            return False

        triggered = self.trigger_client.trigger(query, record.id)
        if not triggered:
            logger.error("[Workflow] Background trigger failed for %s", query_hash[:12])
        return triggered


def _log_background_failure(future: Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error("[Workflow] Background refresh crashed: %s", exc, exc_info=exc)

__all__ = [
    "CacheDecision",
    "ExecutionWatcher",
    "ManualRefreshResult",
    "RefreshOrchestrator",
    "RefreshOutcome",
    "get_background_executor",
]
