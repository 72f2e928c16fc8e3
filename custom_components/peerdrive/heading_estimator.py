"""Heading estimation from movement, falling back to the device compass when slow."""
from __future__ import annotations

from .const import MIN_HEADING_DISPLACEMENT_M, STATIONARY_SPEED_KMH
from .geomath import bearing_degrees, blend_degrees, distance_meters, normalize_degrees
from .models import PositionFix, SelfState


class HeadingEstimator:
    """Stateless: everything it needs is the previous SelfState."""

    def __init__(
        self,
        stationary_speed_kmh: float = STATIONARY_SPEED_KMH,
        min_displacement_m: float = MIN_HEADING_DISPLACEMENT_M,
    ) -> None:
        self.stationary_speed_kmh = stationary_speed_kmh
        self.min_displacement_m = min_displacement_m

    def estimate(self, previous: SelfState | None, fix: PositionFix, speed_kmh: float) -> float | None:
        """Return the heading for fix, or None when it cannot be known yet."""
        compass = fix.reported_heading_deg
        if compass is not None:
            compass = normalize_degrees(compass)

        if previous is None:
            return compass

        if speed_kmh < self.stationary_speed_kmh:
            # Movement bearing is noise at walking pace
            if compass is not None:
                return compass
            return previous.heading_deg

        displacement = distance_meters(previous.latitude, previous.longitude, fix.latitude, fix.longitude)
        if displacement < self.min_displacement_m:
            return previous.heading_deg

        bearing = bearing_degrees(previous.latitude, previous.longitude, fix.latitude, fix.longitude)
        if previous.heading_deg is None:
            return bearing

        # Faster means the bearing is more trustworthy
        weight = min(0.8, max(0.2, speed_kmh / 20))
        return blend_degrees(previous.heading_deg, bearing, weight)
