"""Events search: cache coordination wired around the catalog query."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from pymongo.collection import Collection

from ..config import RUNNING_GRACE_SECONDS
from ..models.execution import ScrapeQuery
from ..models.search import EventFilters, EventsPage
from ..services.cache_state import CacheStoreError
from ..services.query_executor import execute_query, parse_cities_from_location
from ..utils.datetime_utils import end_of_year_iso, today_iso
from .refresh import CacheDecision, RefreshOrchestrator, RefreshOutcome

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CacheMeta:
    hit: bool = False
    age_hours: Optional[float] = None
    refreshed: bool = False


@dataclass(slots=True)
class SearchResult:
    page: EventsPage
    cache: CacheMeta = field(default_factory=CacheMeta)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "events": [event.to_dict() for event in self.page.events],
            "total": self.page.total,
            "limit": self.page.limit,
            "offset": self.page.offset,
            "cache": {
                "hit": self.cache.hit,
                "age_hours": self.cache.age_hours,
                "refreshed": self.cache.refreshed,
            },
        }


def build_scrape_query(filters: EventFilters, now: datetime | None = None) -> ScrapeQuery:
    """Derive the workflow scrape query (and thus the cache signature) from a search."""
    cities = parse_cities_from_location(filters.location)
    return ScrapeQuery(
        cities=cities or None,
        radius_km=filters.radius,
        center_lat=filters.lat,
        center_lng=filters.lng,
        date_from=filters.date_from or today_iso(now),
        date_to=filters.date_to or end_of_year_iso(now),
    )


class EventSearchPipeline:
    """Runs one events search request end to end.

    Refresh is only considered for the first page so that scrolling through
    later pages never re-triggers the workflow. Nothing raised by the cache
    layer fails the request.
    """

    def __init__(
        self,
        orchestrator: RefreshOrchestrator | None = None,
        collection: Collection | None = None,
        running_grace_seconds: float = RUNNING_GRACE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.orchestrator = orchestrator or RefreshOrchestrator()
        self.collection = collection
        self.running_grace_seconds = running_grace_seconds
        self._sleep = sleep

    def run_query(self, filters: EventFilters) -> EventsPage:
        return execute_query(filters, self.collection)

    def search(self, filters: EventFilters) -> SearchResult:
        scrape_query = build_scrape_query(filters)

        decision: Optional[CacheDecision] = None
        try:
            decision = self.orchestrator.check_cache(scrape_query)
        except CacheStoreError as exc:
            logger.warning("[Cache] Execution store unavailable - running without cache: %s", exc)

        page = self.run_query(filters)
        if decision is None:
            return SearchResult(page)

        meta = CacheMeta(hit=decision.is_cached, age_hours=decision.age_hours())
        if filters.offset != 0:
            return SearchResult(page, meta)

        if decision.should_trigger:
            if not page.events:
                page, outcome = self.orchestrator.refresh_sync(
                    scrape_query, decision.query_hash, page, lambda: self.run_query(filters)
                )
                if outcome is RefreshOutcome.COMPLETED:
                    meta.refreshed = True
                    meta.age_hours = 0.0
                elif outcome is RefreshOutcome.CLAIMED_ELSEWHERE:
                    page = self._wait_for_running(filters, page)
            else:
                self.orchestrator.refresh_async(scrape_query, decision.query_hash)
        elif decision.is_running and not page.events:
            page = self._wait_for_running(filters, page)

        return SearchResult(page, meta)

    def _wait_for_running(self, filters: EventFilters, page: EventsPage) -> EventsPage:
        """Give an in-flight execution a short head start, then re-run once."""
        if self.running_grace_seconds <= 0:
            return page
        logger.info(
            "[Cache] Workflow already running - waiting %.0f seconds...",
            self.running_grace_seconds,
        )
        self._sleep(self.running_grace_seconds)
        return self.run_query(filters)

__all__ = ["EventSearchPipeline", "SearchResult", "CacheMeta", "build_scrape_query"]
