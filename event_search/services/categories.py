"""Distinct event categories with their event counts."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from pymongo.collection import Collection

from .query_executor import get_events_collection

logger = logging.getLogger(__name__)


def list_categories(collection: Collection | None = None) -> List[Dict[str, Any]]:
    """Return ``[{"name": ..., "count": ...}]`` sorted by category name."""
    collection = collection if collection is not None else get_events_collection()
    pipeline = [
        {"$match": {"category": {"$ne": None}}},
        {"$group": {"_id": "$category", "count": {"$sum": 1}}},
        {"$sort": {"_id": 1}},
    ]
    categories = [{"name": row["_id"], "count": row["count"]} for row in collection.aggregate(pipeline)]
    logger.info("Found %d categories", len(categories))
    return categories

__all__ = ["list_categories"]
