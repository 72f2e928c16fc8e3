"""
SelfStateTracker — owns our own vehicle's smoothed state and its bounded history.
"""
from __future__ import annotations

import logging
import math
from collections import deque

from .const import SELF_HISTORY_SIZE
from .errors import InvalidFix, StaleFix
from .heading_estimator import HeadingEstimator
from .models import PositionFix, SelfState
from .speed_estimator import SpeedEstimator

_LOGGER = logging.getLogger(__name__)


def validate_fix(fix: PositionFix) -> None:
    """Raise InvalidFix when the fix cannot describe a real position."""
    for name in ("latitude", "longitude", "timestamp_ms", "accuracy_m"):
        value = getattr(fix, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise InvalidFix(f"{name} is not a finite number: {value!r}")
    if not -90.0 <= fix.latitude <= 90.0:
        raise InvalidFix(f"latitude out of range: {fix.latitude}")
    if not -180.0 <= fix.longitude <= 180.0:
        raise InvalidFix(f"longitude out of range: {fix.longitude}")
    if fix.accuracy_m < 0:
        raise InvalidFix(f"negative accuracy: {fix.accuracy_m}")
    for name in ("reported_speed_kmh", "reported_heading_deg"):
        value = getattr(fix, name)
        if value is not None and (
            isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value)
        ):
            raise InvalidFix(f"{name} is not a finite number: {value!r}")


class SelfStateTracker:
    """
    Composes SpeedEstimator and HeadingEstimator into one SelfState per fix.

    History is append-only and bounded; the oldest states fall off first.
    """

    def __init__(
        self,
        history_size: int = SELF_HISTORY_SIZE,
        speed_estimator: SpeedEstimator | None = None,
        heading_estimator: HeadingEstimator | None = None,
    ) -> None:
        self._speed_estimator = speed_estimator or SpeedEstimator()
        self._heading_estimator = heading_estimator or HeadingEstimator()
        self._history: deque[SelfState] = deque(maxlen=history_size)
        self._last_fix_ms: float | None = None

    @property
    def state(self) -> SelfState | None:
        """Current authoritative self-state."""
        return self._history[-1] if self._history else None

    @property
    def previous_state(self) -> SelfState | None:
        return self._history[-2] if len(self._history) > 1 else None

    @property
    def history(self) -> list[SelfState]:
        return list(self._history)

    def path(self) -> list[tuple[float, float]]:
        """Positions of the retained history, oldest first."""
        return [(s.latitude, s.longitude) for s in self._history]

    def ingest(self, fix: PositionFix) -> SelfState:
        """
        Process one fix and return the new self-state.

        Raises InvalidFix or StaleFix; on either, nothing is changed.
        """
        validate_fix(fix)
        if self._last_fix_ms is not None and fix.timestamp_ms < self._last_fix_ms:
            raise StaleFix(fix.timestamp_ms, self._last_fix_ms)
        self._last_fix_ms = fix.timestamp_ms

        speed = self._speed_estimator.estimate(fix)
        heading = self._heading_estimator.estimate(self.state, fix, speed)

        new_state = SelfState(
            latitude=fix.latitude,
            longitude=fix.longitude,
            speed_kmh=speed,
            heading_deg=heading,
            timestamp_ms=fix.timestamp_ms,
        )
        self._history.append(new_state)
        return new_state

    def reset(self) -> None:
        """Forget all history, e.g. when tracking restarts after a pause."""
        self._history.clear()
        self._last_fix_ms = None
        self._speed_estimator.reset()
