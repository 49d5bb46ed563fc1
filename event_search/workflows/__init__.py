"""Request-level workflows composing the services."""

from .refresh import RefreshOrchestrator, CacheDecision, ExecutionWatcher  # noqa: F401
from .search_pipeline import EventSearchPipeline, SearchResult  # noqa: F401

__all__ = [
    "RefreshOrchestrator",
    "CacheDecision",
    "ExecutionWatcher",
    "EventSearchPipeline",
    "SearchResult",
]
