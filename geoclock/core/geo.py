"""
Great-circle distance and geofence matching.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from math import atan2, cos, radians, sin, sqrt

from geoclock.models.location import Location

EARTH_RADIUS_M = 6_371_000


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Distance in metres between two lat/lng points."""
    phi1, phi2 = radians(lat1), radians(lat2)
    d_phi = radians(lat2 - lat1)
    d_lambda = radians(lng2 - lng1)

    a = sin(d_phi / 2) ** 2 + cos(phi1) * cos(phi2) * sin(d_lambda / 2) ** 2
    # Rounding can push a just past 1 for near-antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * atan2(sqrt(a), sqrt(1 - a))
    return EARTH_RADIUS_M * c


def is_within_radius(
    lat: float,
    lng: float,
    center_lat: float,
    center_lng: float,
    radius_m: float,
    tolerance_m: float = 0.0,
) -> bool:
    if radius_m <= 0:
        return True
    return haversine_distance(lat, lng, center_lat, center_lng) <= radius_m + tolerance_m


@dataclass(frozen=True)
class LocationMatch:
    location: Location | None = None
    distance_m: float | None = None
    adhoc: bool = False
    nearest: Location | None = None
    nearest_distance_m: float | None = None

    @property
    def matched(self) -> bool:
        return self.location is not None


def match_location(
    lat: float,
    lng: float,
    locations: Iterable[Location],
    tolerance_m: float = 0.0,
) -> LocationMatch:
    """Pick the nearest geofenced location containing (lat, lng).

    Falls back to the first zero-radius location when no geofence contains
    the position. ``nearest`` is reported regardless of radius.
    """
    best: Location | None = None
    best_dist: float | None = None
    nearest: Location | None = None
    nearest_dist: float | None = None
    adhoc: Location | None = None

    for loc in locations:
        if (loc.radius_meters or 0) <= 0:
            if adhoc is None:
                adhoc = loc
            continue

        dist = haversine_distance(lat, lng, loc.lat, loc.lng)
        if nearest_dist is None or dist < nearest_dist:
            nearest, nearest_dist = loc, dist
        if dist <= loc.radius_meters + tolerance_m and (best_dist is None or dist < best_dist):
            best, best_dist = loc, dist

    if best is not None:
        return LocationMatch(best, best_dist, False, nearest, nearest_dist)
    if adhoc is not None:
        return LocationMatch(adhoc, None, True, nearest, nearest_dist)
    return LocationMatch(None, None, False, nearest, nearest_dist)
