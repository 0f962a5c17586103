# catalog_dedupe/matching/geo.py
from __future__ import annotations

import math
from dataclasses import dataclass

from catalog_dedupe.models import Coordinates

EARTH_RADIUS_METERS = 6_371_000.0


@dataclass(frozen=True)
class BoundingBox:
    north: float
    south: float
    east: float
    west: float


def haversine_distance_m(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance in meters."""
    d_lat = math.radians(b.lat - a.lat)
    d_lon = math.radians(b.lon - a.lon)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lon / 2) ** 2
    )
    # clamp: float noise can push h a hair outside [0, 1]
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def geo_proximity_score(a: Coordinates, b: Coordinates, max_distance_m: float) -> float:
    """
    Linear decay: 1.0 at distance 0, 0.0 at or beyond max_distance_m.

    Coordinates are not range-checked here; garbage in gives a meaningless
    score, never an exception.
    """
    if max_distance_m <= 0:
        return 0.0
    distance = haversine_distance_m(a, b)
    if math.isnan(distance):
        return 0.0
    return max(0.0, 1.0 - distance / max_distance_m)


def is_valid_coordinates(c: Coordinates) -> bool:
    return (
        not math.isnan(c.lat)
        and not math.isnan(c.lon)
        and -90.0 <= c.lat <= 90.0
        and -180.0 <= c.lon <= 180.0
    )


def degree_window(center: Coordinates, radius_degrees: float) -> BoundingBox:
    """Square window of +/- radius_degrees, as used by the candidate retrievers."""
    return BoundingBox(
        north=center.lat + radius_degrees,
        south=center.lat - radius_degrees,
        east=center.lon + radius_degrees,
        west=center.lon - radius_degrees,
    )


def within_bounds(c: Coordinates, box: BoundingBox) -> bool:
    return box.south <= c.lat <= box.north and box.west <= c.lon <= box.east
