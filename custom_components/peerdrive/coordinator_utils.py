"""
Low-level helpers for the PeerDrive coordinator.

Responsibilities:
- Turn the state of a location entity into a PositionFix.
- Build the event payload fired for each alert.
- Apply a tick result to a CoordinatorData snapshot.

No network access. The state object is duck-typed so tests can pass mocks.
"""
from __future__ import annotations

import dataclasses
import logging
import time
from typing import Any

from .const import RECENT_ALERTS_SIZE
from .coordinator_data import CoordinatorData
from .models import Alert, PositionFix, SelfState, TickResult

_LOGGER = logging.getLogger(__name__)

# Accuracy assumed when the source entity does not report one
DEFAULT_ACCURACY_M = 10.0


def now_ms() -> float:
    """Wall-clock time in milliseconds."""
    return time.time() * 1000.0


def _optional_float(attributes: dict, *keys: str) -> float | None:
    for key in keys:
        value = attributes.get(key)
        if value is None:
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            _LOGGER.debug("Ignoring non-numeric %s attribute: %s", key, value)
    return None


def fix_from_state(state: Any) -> PositionFix | None:
    """
    Build a PositionFix from a Home Assistant state (e.g. a mobile-app tracker).

    Returns None when the state carries no usable coordinates. Speed is read in
    m/s and converted to km/h; negative speed or course values mean "unknown".
    Range checks are left to the tracker, which rejects bad fixes itself.
    """
    if state is None:
        return None
    attributes = dict(state.attributes or {})
    latitude = _optional_float(attributes, "latitude")
    longitude = _optional_float(attributes, "longitude")
    if latitude is None or longitude is None:
        return None

    accuracy = _optional_float(attributes, "gps_accuracy")
    speed_ms = _optional_float(attributes, "speed")
    heading = _optional_float(attributes, "course", "heading")

    return PositionFix(
        latitude=latitude,
        longitude=longitude,
        accuracy_m=accuracy if accuracy is not None else DEFAULT_ACCURACY_M,
        timestamp_ms=state.last_updated.timestamp() * 1000.0,
        reported_speed_kmh=speed_ms * 3.6 if speed_ms is not None and speed_ms >= 0 else None,
        reported_heading_deg=heading if heading is not None and heading >= 0 else None,
    )


def alert_event_data(alert: Alert) -> dict[str, Any]:
    """Payload of the bus event fired for one alert."""
    return {
        "hazard_class": alert.hazard_class.value,
        "subject_vehicle_id": alert.subject_vehicle_id,
        "message": alert.message,
        "timestamp_ms": alert.timestamp_ms,
        "distance_m": round(alert.distance_m, 1) if alert.distance_m is not None else None,
        "seconds": alert.seconds,
    }


def apply_tick(
    data: CoordinatorData,
    result: TickResult,
    self_state: SelfState | None,
    path: list[tuple[float, float]],
    timestamp_ms: float,
) -> CoordinatorData:
    """Return a new snapshot reflecting one engine tick."""
    recent = list(data.recent_alerts)
    last_alerts = dict(data.last_alerts)
    for alert in result.alerts:
        recent.append(alert)
        last_alerts[alert.hazard_class] = alert
    return dataclasses.replace(
        data,
        self_state=self_state,
        path=path,
        peers={peer.id: peer for peer in result.active_peers},
        recent_alerts=recent[-RECENT_ALERTS_SIZE:],
        last_alerts=last_alerts,
        timestamp_ms=timestamp_ms,
    )
