"""Maidenhead grid helpers: locator to lat/lon, distance, bearing and map paths.

Locators resolve to the centre of their 2x1 degree square. Six character
locators are accepted but the subsquare does not refine the position, so all
distances and bearings are computed between square centres.
"""

from __future__ import annotations

import math
import re
from typing import List, Tuple

EARTH_RADIUS_KM = 6371.0

_GRID_RE = re.compile(r"[A-R]{2}[0-9]{2}([A-X]{2})?", re.IGNORECASE)

LatLon = Tuple[float, float]


class InvalidLocator(ValueError):
    """Raised when a Maidenhead locator is malformed."""

    def __init__(self, locator: object):
        super().__init__(f"Invalid grid locator: {locator!r}")
        self.locator = locator


def is_valid_grid(locator: object) -> bool:
    """Return True for a 4 or 6 character locator such as FN20 or JO62qm."""
    return isinstance(locator, str) and _GRID_RE.fullmatch(locator) is not None


def grid_to_latlon(locator: str) -> LatLon:
    """Convert a locator to the (lat, lon) of its square centre.

    Raises InvalidLocator for anything that is not a 4 or 6 character locator.
    """
    if not is_valid_grid(locator):
        raise InvalidLocator(locator)
    g = locator.upper()
    lon = (ord(g[0]) - ord("A")) * 20 + int(g[2]) * 2 - 180 + 1
    lat = (ord(g[1]) - ord("A")) * 10 + int(g[3]) - 90 + 0.5
    return float(lat), float(lon)


def _haversine_km(a: LatLon, b: LatLon) -> float:
    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def _initial_bearing(a: LatLon, b: LatLon) -> float:
    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    dlon = lon2 - lon1
    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    return (math.degrees(math.atan2(y, x)) + 360) % 360


def distance_km(loc_a: str, loc_b: str) -> int:
    """Great-circle distance between two locators, rounded to whole km."""
    return round(_haversine_km(grid_to_latlon(loc_a), grid_to_latlon(loc_b)))


def bearing_degrees(loc_a: str, loc_b: str) -> int:
    """Initial bearing from loc_a to loc_b in whole degrees, 0 <= b < 360."""
    return round(_initial_bearing(grid_to_latlon(loc_a), grid_to_latlon(loc_b))) % 360


def latlon_path(start: LatLon, end: LatLon, steps: int = 50) -> List[LatLon]:
    """Interpolate steps + 1 points between two (lat, lon) pairs.

    Interpolation is linear in lat/lon, not along the sphere; map overlays
    drawn from earlier paths rely on that.
    """
    if steps < 1:
        raise ValueError("steps must be at least 1")
    points: List[LatLon] = []
    for i in range(steps + 1):
        f = i / steps
        points.append(
            (start[0] + (end[0] - start[0]) * f, start[1] + (end[1] - start[1]) * f)
        )
    return points


def great_circle_path(loc_a: str, loc_b: str, steps: int = 50) -> List[LatLon]:
    """Path between two locators for map drawing; see latlon_path."""
    return latlon_path(grid_to_latlon(loc_a), grid_to_latlon(loc_b), steps)
