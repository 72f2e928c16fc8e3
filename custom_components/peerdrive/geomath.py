"""
Geometric primitives on latitude/longitude pairs.

Pure functions, no state. Angles are degrees, distances metres.
"""
from __future__ import annotations

import math

EARTH_RADIUS_M = 6_371_000.0
METERS_PER_DEGREE_LAT = 111_111.0


def distance_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle (haversine) distance between two points."""
    if lat1 == lat2 and lng1 == lng2:
        return 0.0
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    # Rounding can push a a hair outside [0, 1] near antipodes
    a = min(1.0, max(0.0, a))
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def bearing_degrees(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Initial bearing from point 1 to point 2 in [0, 360).

    Identical points have no direction; guarding that case is up to the caller.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lambda = math.radians(lng2 - lng1)

    y = math.sin(d_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lambda)
    return normalize_degrees(math.degrees(math.atan2(y, x)))


def normalize_degrees(angle: float) -> float:
    """Wrap an angle into [0, 360)."""
    wrapped = angle % 360.0
    # -1e-15 % 360 gives 360.0
    return 0.0 if wrapped >= 360.0 else wrapped


def angle_delta(from_deg: float, to_deg: float) -> float:
    """Shortest signed rotation from from_deg to to_deg, in (-180, 180]."""
    delta = (to_deg - from_deg) % 360.0
    if delta > 180.0:
        delta -= 360.0
    return delta


def angle_between(a_deg: float, b_deg: float) -> float:
    """Unsigned shortest angle between two headings, in [0, 180]."""
    return abs(angle_delta(a_deg, b_deg))


def blend_degrees(from_deg: float, to_deg: float, weight: float) -> float:
    """Move from_deg toward to_deg by weight along the shortest arc."""
    return normalize_degrees(from_deg + angle_delta(from_deg, to_deg) * weight)


def offset_position(lat: float, lng: float, heading_deg: float, distance_m: float) -> tuple[float, float]:
    """
    Displace a point by distance_m along heading_deg.

    Flat-earth approximation, good for the few metres a vehicle covers per tick.
    """
    if distance_m == 0:
        return lat, lng
    heading = math.radians(heading_deg)
    d_north = distance_m * math.cos(heading)
    d_east = distance_m * math.sin(heading)

    meters_per_lng = METERS_PER_DEGREE_LAT * math.cos(math.radians(lat))
    new_lat = lat + d_north / METERS_PER_DEGREE_LAT
    new_lng = lng + (d_east / meters_per_lng if abs(meters_per_lng) > 1e-9 else 0.0)
    return new_lat, new_lng


def smoothstep(t: float) -> float:
    """Hermite easing on [0, 1]."""
    t = min(1.0, max(0.0, t))
    return t * t * (3 - 2 * t)
