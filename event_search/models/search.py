"""Search request filters and paginated results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .event import Event


@dataclass(slots=True)
class EventFilters:
    """Parsed query parameters of an events search."""

    search: str = ""
    category: str = ""
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    radius: Optional[float] = None
    location: str = ""
    limit: int = 50
    offset: int = 0

    @property
    def has_radius(self) -> bool:
        return self.lat is not None and self.lng is not None and self.radius is not None


@dataclass(slots=True)
class EventsPage:
    events: List[Event] = field(default_factory=list)
    total: int = 0
    limit: int = 50
    offset: int = 0

__all__ = ["EventFilters", "EventsPage"]
