"""Geographic helpers: coordinate conversion and haversine distance."""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Tuple

from bson.decimal128 import Decimal128

from ..config import EARTH_RADIUS_KM, RECOGNIZED_CITIES

__all__ = ["to_coordinate", "haversine_km", "resolve_event_coordinates"]


def to_coordinate(value: Any) -> Optional[float]:
    """Convert a stored coordinate into a finite float.

    Coordinates are kept at rest as ``Decimal128`` (or occasionally as
    strings / numbers). ``None``, parse failures and non-finite values all
    mean "no coordinate" and return ``None``, never ``0.0``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal128):
        value = value.to_decimal()
    try:
        if isinstance(value, str):
            value = Decimal(value.strip())
        result = float(value)
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres between two points."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def resolve_event_coordinates(
    latitude: Optional[float],
    longitude: Optional[float],
    location_name: Optional[str],
) -> Optional[Tuple[float, float]]:
    """Return the event's own coordinates, else the centre of a city it names.

    Meant for map display only; the radius filter never uses the fallback.
    """
    if latitude is not None and longitude is not None:
        return latitude, longitude
    if location_name:
        location = location_name.lower()
        for city, coords in RECOGNIZED_CITIES.items():
            if city.lower() in location:
                return coords
    return None
