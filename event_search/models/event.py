"""Definition of the read-only `Event` record served by the search API."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from ..utils.datetime_utils import as_utc
from ..utils.geo import resolve_event_coordinates, to_coordinate


@dataclass(slots=True)
class Event:
    """A catalog event as ingested by the external workflow."""

    id: str
    title: str = ""
    description: Optional[str] = None
    category: Optional[str] = None
    date_start: Optional[datetime] = None
    date_end: Optional[datetime] = None
    location_name: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    image_url: Optional[str] = None
    source_url: Optional[str] = None
    source_name: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Event":
        """Build an :class:`Event` from a MongoDB document.

        Coordinates are converted to floats here; anything unparseable
        becomes ``None``.
        """
        date_start = doc.get("date_start")
        date_end = doc.get("date_end")
        return cls(
            id=str(doc.get("_id", "")),
            title=doc.get("title") or "",
            description=doc.get("description"),
            category=doc.get("category"),
            date_start=as_utc(date_start) if isinstance(date_start, datetime) else None,
            date_end=as_utc(date_end) if isinstance(date_end, datetime) else None,
            location_name=doc.get("location_name"),
            address=doc.get("address"),
            latitude=to_coordinate(doc.get("latitude")),
            longitude=to_coordinate(doc.get("longitude")),
            image_url=doc.get("image_url"),
            source_url=doc.get("source_url"),
            source_name=doc.get("source_name"),
        )

    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def map_position(self) -> Optional[Dict[str, float]]:
        """Marker position: own coordinates, else the centre of the named city."""
        coords = resolve_event_coordinates(self.latitude, self.longitude, self.location_name)
        return {"lat": coords[0], "lng": coords[1]} if coords else None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation used in API responses."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "dateStart": self.date_start.isoformat() if self.date_start else None,
            "dateEnd": self.date_end.isoformat() if self.date_end else None,
            "locationName": self.location_name,
            "address": self.address,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "imageUrl": self.image_url,
            "sourceUrl": self.source_url,
            "sourceName": self.source_name,
            "mapPosition": self.map_position(),
        }

__all__ = ["Event"]
