"""Utility functions for the event search project.

Re-exports the datetime and geo helpers so that imports like
`from ..utils import haversine_km` work as expected.
"""

from .datetime_utils import get_current_timestamp, is_within_ttl  # noqa: F401
from .geo import haversine_km, to_coordinate, resolve_event_coordinates  # noqa: F401

__all__ = [
    "get_current_timestamp",
    "is_within_ttl",
    "haversine_km",
    "to_coordinate",
    "resolve_event_coordinates",
]
