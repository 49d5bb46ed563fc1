"""In-process TTL cache for search result pages.

Entries are keyed by the serialised request parameters and expire through
the same freshness predicate the execution store uses.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Mapping, Optional

from ..config import RESULT_CACHE_TTL_SECONDS
from ..utils.datetime_utils import get_current_timestamp, is_within_ttl

logger = logging.getLogger(__name__)


def make_cache_key(params: Mapping[str, Any]) -> str:
    """Deterministic key for a set of request parameters; ``None`` values are dropped."""
    cleaned = {name: value for name, value in params.items() if value is not None}
    return json.dumps(cleaned, sort_keys=True, separators=(",", ":"), default=str)


@dataclass(slots=True)
class CacheEntry:
    value: Any
    stored_at: datetime


class ResultCache:
    """Thread-safe ``get``/``set``/``clear`` cache with a fixed TTL."""

    def __init__(
        self,
        ttl_seconds: float = RESULT_CACHE_TTL_SECONDS,
        clock: Callable[[], datetime] = get_current_timestamp,
    ) -> None:
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or ``None`` if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not is_within_ttl(entry.stored_at, self.ttl, self._clock()):
                del self._entries[key]
                logger.debug("Result cache entry expired: %s", key)
                return None
            return entry.value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    def clear(self) -> int:
        """Purge all entries and return how many were removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("Result cache purged (%d entries removed)", count)
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

__all__ = ["ResultCache", "make_cache_key"]
