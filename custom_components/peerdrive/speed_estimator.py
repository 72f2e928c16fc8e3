"""
Speed estimation from raw position fixes.

Turns irregular, noisy GPS samples into a smoothed scalar speed:
    raw delta speed → GPS-jump guard → acceleration clamp → adaptive EMA → trimmed mean
"""
from __future__ import annotations

import logging
from collections import deque

from .const import (
    GPS_JUMP_DISTANCE_M,
    GPS_JUMP_WINDOW_S,
    MAX_SAMPLE_INTERVAL_S,
    MAX_SPEED_CHANGE_KMH_PER_S,
    MIN_SAMPLE_INTERVAL_S,
    REFERENCE_ACCURACY_M,
    SPEED_HISTORY_SIZE,
)
from .errors import UnreliableSpeedSample
from .geomath import distance_meters
from .models import PositionFix

_LOGGER = logging.getLogger(__name__)


class SpeedEstimator:
    """
    Smoothed speed (km/h) from consecutive fixes.

    Holds only what the next estimate needs: the previous fix and a short
    history of smoothed values.
    """

    def __init__(self, history_size: int = SPEED_HISTORY_SIZE) -> None:
        self._previous: PositionFix | None = None
        self._history: deque[float] = deque(maxlen=history_size)

    @property
    def last_smoothed(self) -> float:
        """Latest smoothed speed, 0 before any movement was measured."""
        return self._history[-1] if self._history else 0.0

    @property
    def history(self) -> list[float]:
        return list(self._history)

    def reset(self) -> None:
        self._previous = None
        self._history.clear()

    def estimate(self, fix: PositionFix) -> float:
        """Return the speed estimate for fix and advance the filter state."""
        if fix.reported_speed_kmh is not None:
            # Trust the device, but keep the filter warm for fixes without speed
            speed = max(0.0, float(fix.reported_speed_kmh))
            self._previous = fix
            self._history.append(speed)
            return speed

        previous = self._previous
        self._previous = fix
        if previous is None:
            return 0.0

        try:
            interval_s = self._interval_s(previous, fix)
        except UnreliableSpeedSample as exc:
            _LOGGER.debug("Keeping last speed %.1f km/h: %s", self.last_smoothed, exc)
            return self.last_smoothed

        distance = distance_meters(previous.latitude, previous.longitude, fix.latitude, fix.longitude)
        raw_speed = distance / interval_s * 3.6

        if distance > GPS_JUMP_DISTANCE_M and interval_s < GPS_JUMP_WINDOW_S and self._history:
            _LOGGER.debug(
                "GPS jump of %.1f m in %.2f s ignored (raw %.1f km/h)", distance, interval_s, raw_speed
            )
            raw_speed = self.last_smoothed

        prev_speed = self.last_smoothed
        max_change = MAX_SPEED_CHANGE_KMH_PER_S * interval_s
        constrained = max(0.0, min(prev_speed + max_change, max(prev_speed - max_change, raw_speed)))

        accuracy_factor = self._accuracy_factor(fix.accuracy_m)
        alpha = min(0.8, 0.3 * accuracy_factor + constrained / 100)
        smoothed = prev_speed * (1 - alpha) + constrained * alpha

        self._history.append(smoothed)
        return self._trimmed_mean(smoothed)

    @staticmethod
    def _interval_s(previous: PositionFix, fix: PositionFix) -> float:
        interval_s = (fix.timestamp_ms - previous.timestamp_ms) / 1000.0
        if interval_s < MIN_SAMPLE_INTERVAL_S or interval_s > MAX_SAMPLE_INTERVAL_S:
            raise UnreliableSpeedSample(interval_s)
        return interval_s

    @staticmethod
    def _accuracy_factor(accuracy_m: float) -> float:
        """1.0 for accuracy at or better than the reference, shrinking as accuracy degrades."""
        if accuracy_m <= 0:
            return 1.0
        return min(1.0, REFERENCE_ACCURACY_M / accuracy_m)

    def _trimmed_mean(self, smoothed: float) -> float:
        if len(self._history) < 3:
            return smoothed
        trimmed = sorted(self._history)[1:-1]
        return sum(trimmed) / len(trimmed)
