"""Domain models used across the project."""

from .event import Event  # noqa: F401
from .execution import ExecutionRecord, ExecutionStatus, ScrapeQuery  # noqa: F401
from .search import EventFilters, EventsPage  # noqa: F401

__all__ = [
    "Event",
    "ExecutionRecord",
    "ExecutionStatus",
    "ScrapeQuery",
    "EventFilters",
    "EventsPage",
]
