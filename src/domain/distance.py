"""
Great-circle distance and compass heading helpers.

Assumption
----------
We use great-circle (Haversine) distance instead of a real routing engine
for the offline route provider and for fare quotes when no route comes
back.  Heading is computed on raw degree deltas, not on the sphere: at
city scale the difference is invisible and it keeps the vehicle icon
pointing where the waypoint list goes.

Complexity: O(1) per call.
"""

import math

from .entities import Location

EARTH_RADIUS_KM = 6_371.0


def haversine_km(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Return the great-circle distance in **km** between two points."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def location_distance_km(a: Location, b: Location) -> float:
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def bearing_deg(
    start: Location,
    end: Location,
    previous: float = 0.0,
    epsilon: float = 1e-6,
) -> float:
    """
    Compass bearing from *start* to *end* in ``[0, 360)``, 0 = north.

    ``angle = atan2(dlat, dlng)`` is measured counter-clockwise from east,
    so the compass value is ``90 - angle``.  When both deltas are below
    *epsilon* the points coincide and *previous* is returned unchanged.
    """
    dlat = end.latitude - start.latitude
    dlng = end.longitude - start.longitude
    if abs(dlat) <= epsilon and abs(dlng) <= epsilon:
        return previous

    angle = math.degrees(math.atan2(dlat, dlng))
    return (90.0 - angle) % 360.0


def interpolate(start: Location, end: Location, fraction: float) -> Location:
    """Linear interpolation between two points (no address)."""
    return Location(
        start.latitude + (end.latitude - start.latitude) * fraction,
        start.longitude + (end.longitude - start.longitude) * fraction,
    )
