"""Service layer modules grouping business logic by concern.

This module provides convenience re-exports so that callers can simply do for
example `from event_search.services import execute_query` without having to
know which underlying module provides the symbol.
"""

from .signature import generate_query_hash, normalize_query  # noqa: F401
from .cache_state import CacheStateStore, CacheStoreError  # noqa: F401
from .trigger import WorkflowTriggerClient  # noqa: F401
from .query_executor import build_filter, execute_query, parse_cities_from_location  # noqa: F401
from .categories import list_categories  # noqa: F401
from .result_cache import ResultCache, make_cache_key  # noqa: F401

__all__ = [
    "generate_query_hash",
    "normalize_query",
    "CacheStateStore",
    "CacheStoreError",
    "WorkflowTriggerClient",
    "build_filter",
    "execute_query",
    "parse_cities_from_location",
    "list_categories",
    "ResultCache",
    "make_cache_key",
]
