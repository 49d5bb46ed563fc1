"""HTTP consumer of the events search API with a local page cache."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from ..services.result_cache import ResultCache, make_cache_key

logger = logging.getLogger(__name__)


class EventsApiClient:
    """Fetch search pages from ``GET /api/events``.

    Pages are kept in a :class:`ResultCache` so repeated navigation over the
    same query does not hit the server until the entry goes stale.
    """

    def __init__(
        self,
        base_url: str,
        cache: ResultCache | None = None,
        session: requests.Session | None = None,
        timeout: float = 150.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.cache = cache or ResultCache()
        self.session = session or requests.Session()
        self.timeout = timeout

    def search(self, use_cache: bool = True, **params: Any) -> Dict[str, Any]:
        """Return the JSON page for *params* (``search``, ``dateFrom``, ``offset``...).

        Raises
        ------
        requests.HTTPError
            If the API answers with an error status.
        """
        key = make_cache_key(params)
        if use_cache:
            cached: Optional[Dict[str, Any]] = self.cache.get(key)
            if cached is not None:
                logger.debug("Serving cached page for %s", key)
                return cached

        query = {name: value for name, value in params.items() if value is not None}
        response = self.session.get(f"{self.base_url}/api/events", params=query, timeout=self.timeout)
        response.raise_for_status()
        page = response.json()

        self.cache.set(key, page)
        logger.info("Fetched %d of %d events", len(page.get("events", [])), page.get("total", 0))
        return page

    def clear_cache(self) -> int:
        return self.cache.clear()

__all__ = ["EventsApiClient"]
