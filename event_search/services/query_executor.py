"""Catalog queries: filter construction, radius post-filter and pagination."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Dict, List

from pymongo import ASCENDING
from pymongo.collection import Collection

from ..clients.mongodb_client import get_database
from ..config import EVENTS_COLLECTION, RECOGNIZED_CITIES
from ..models.event import Event
from ..models.search import EventFilters, EventsPage
from ..utils.datetime_utils import parse_date, start_of_today
from ..utils.geo import haversine_km

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("title", "description", "location_name")


def get_events_collection() -> Collection:
    return get_database()[EVENTS_COLLECTION]


def _contains(value: str) -> Dict[str, Any]:
    """Case-insensitive substring match."""
    return {"$regex": re.escape(value), "$options": "i"}


def parse_cities_from_location(location: str) -> List[str]:
    """Return the recognised cities named anywhere in *location*."""
    if not location:
        return []
    lowered = location.lower()
    return [city for city in RECOGNIZED_CITIES if city.lower() in lowered]


def build_filter(filters: EventFilters, now: datetime | None = None) -> Dict[str, Any]:
    """Translate request filters into a MongoDB query document.

    Raises
    ------
    ValueError
        If a date bound is not a valid ISO date.
    """
    date_range: Dict[str, Any] = {
        "$gte": parse_date(filters.date_from) if filters.date_from else start_of_today(now)
    }
    if filters.date_to:
        date_range["$lte"] = parse_date(filters.date_to)

    clauses: List[Dict[str, Any]] = [{"date_start": date_range}]

    if filters.search:
        clauses.append({"$or": [{name: _contains(filters.search)} for name in SEARCH_FIELDS]})

    if filters.category and filters.category.lower() != "all":
        clauses.append(
            {"category": {"$regex": f"^{re.escape(filters.category)}$", "$options": "i"}}
        )

    cities = parse_cities_from_location(filters.location)
    if cities:
        clauses.append({"$or": [{"location_name": _contains(city)} for city in cities]})
    elif filters.location:
        clauses.append({"location_name": _contains(filters.location)})

    return {"$and": clauses}


def within_radius(event: Event, lat: float, lng: float, radius_km: float) -> bool:
    """Inclusive radius test; events without coordinates never match."""
    if not event.has_coordinates():
        return False
    return haversine_km(lat, lng, event.latitude, event.longitude) <= radius_km


def execute_query(filters: EventFilters, collection: Collection | None = None) -> EventsPage:
    """Run the catalog query described by *filters* and return one page.

    Without a radius the store paginates and counts. With a radius every
    matching row is fetched, filtered by haversine distance and paginated in
    memory, because the distance test cannot be pushed down.
    """
    collection = collection if collection is not None else get_events_collection()
    query = build_filter(filters)
    cursor = collection.find(query).sort([("date_start", ASCENDING), ("_id", ASCENDING)])

    if not filters.has_radius:
        docs = cursor.skip(filters.offset).limit(filters.limit)
        events = [Event.from_document(doc) for doc in docs]
        total = collection.count_documents(query)
        return EventsPage(events=events, total=total, limit=filters.limit, offset=filters.offset)

    candidates = [Event.from_document(doc) for doc in cursor]
    matching = [
        event
        for event in candidates
        if within_radius(event, filters.lat, filters.lng, filters.radius)
    ]
    logger.debug(
        "Radius filter kept %d of %d events within %.1f km",
        len(matching),
        len(candidates),
        filters.radius,
    )
    page = matching[filters.offset : filters.offset + filters.limit]
    return EventsPage(events=page, total=len(matching), limit=filters.limit, offset=filters.offset)

__all__ = [
    "build_filter",
    "execute_query",
    "parse_cities_from_location",
    "within_radius",
    "get_events_collection",
]
