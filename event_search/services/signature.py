"""Query signatures: canonical form + SHA-256 hash used as the cache key."""

from __future__ import annotations

import hashlib
import json
from typing import Any, Dict, Optional

from ..config import COORDINATE_PRECISION
from ..models.execution import ScrapeQuery

__all__ = ["normalize_query", "generate_query_hash", "query_payload"]


def _as_float(value: Optional[float]) -> Optional[float]:
    return None if value is None else float(value)


def _round_coordinate(value: Optional[float]) -> Optional[float]:
    # ~100 m precision keeps GPS noise from fragmenting the cache
    return None if value is None else round(float(value), COORDINATE_PRECISION)


def normalize_query(query: ScrapeQuery) -> Dict[str, Any]:
    """Return the canonical form of *query*.

    City order is irrelevant, so cities are sorted. Missing numeric fields
    become ``None`` and missing dates become ``""``.
    """
    return {
        "cities": sorted(query.cities or []),
        "radiusKm": _as_float(query.radius_km),
        "centerLat": _round_coordinate(query.center_lat),
        "centerLng": _round_coordinate(query.center_lng),
        "dateFrom": query.date_from or "",
        "dateTo": query.date_to or "",
    }


def generate_query_hash(query: ScrapeQuery) -> str:
    """Deterministic hex digest identifying the semantic content of *query*."""
    canonical = json.dumps(normalize_query(query), separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def query_payload(query: ScrapeQuery) -> Dict[str, Any]:
    """Query body sent to the ingestion workflow, signature included."""
    payload = normalize_query(query)
    payload["query_hash"] = generate_query_hash(query)
    return payload
