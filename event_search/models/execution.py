"""Workflow execution records and the scrape query they are keyed by."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ..utils.datetime_utils import as_utc


class ExecutionStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


IN_FLIGHT_STATUSES = (ExecutionStatus.PENDING, ExecutionStatus.RUNNING)


@dataclass(slots=True)
class ScrapeQuery:
    """Search parameters the ingestion workflow scrapes for.

    Missing values are ``None``; normalisation happens in
    :mod:`event_search.services.signature`.
    """

    cities: Optional[List[str]] = None
    radius_km: Optional[float] = None
    center_lat: Optional[float] = None
    center_lng: Optional[float] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None


@dataclass(slots=True)
class ExecutionRecord:
    """One persisted execution per distinct query signature."""

    query_hash: str
    status: ExecutionStatus
    last_executed_at: datetime
    id: str = ""
    cities: List[str] = field(default_factory=list)
    location: Optional[str] = None
    radius_km: Optional[float] = None
    center_lat: Optional[float] = None
    center_lng: Optional[float] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    event_count: int = 0
    error_message: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "ExecutionRecord":
        return cls(
            id=str(doc.get("_id", "")),
            query_hash=doc["query_hash"],
            status=ExecutionStatus(doc["status"]),
            last_executed_at=as_utc(doc["last_executed_at"]),
            cities=list(doc.get("cities") or []),
            location=doc.get("location"),
            radius_km=doc.get("radius_km"),
            center_lat=doc.get("center_lat"),
            center_lng=doc.get("center_lng"),
            date_from=doc.get("date_from"),
            date_to=doc.get("date_to"),
            event_count=doc.get("event_count") or 0,
            error_message=doc.get("error_message"),
        )

    @property
    def is_in_flight(self) -> bool:
        return self.status in IN_FLIGHT_STATUSES

__all__ = ["ExecutionStatus", "ExecutionRecord", "ScrapeQuery", "IN_FLIGHT_STATUSES"]
