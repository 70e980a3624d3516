from __future__ import annotations

import math
from typing import Iterable, List

from .models import Coordinate

EARTH_RADIUS_KM = 6371.0


def is_valid_coordinate(lat, lng) -> bool:
    if lat is None or lng is None:
        return False
    try:
        lat = float(lat)
        lng = float(lng)
    except (TypeError, ValueError):
        return False
    if math.isnan(lat) or math.isnan(lng):
        return False
    return -90 <= lat <= 90 and -180 <= lng <= 180


def distance_km(a: Coordinate, b: Coordinate) -> float:
    if a == b:
        return 0.0
    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    dphi = math.radians(b.lat - a.lat)
    dlambda = math.radians(b.lng - a.lng)
    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # clamp: rounding can push h a hair above 1 for antipodal points
    h = min(1.0, h)
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def bounding_box(points: Iterable[Coordinate]) -> List[List[float]]:
    points = list(points)
    if not points:
        raise ValueError("bounding_box needs at least one point")
    lats = [p.lat for p in points]
    lngs = [p.lng for p in points]
    return [[min(lats), min(lngs)], [max(lats), max(lngs)]]
