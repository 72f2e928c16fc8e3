"""
CoordinatorData — immutable snapshot of everything PeerDrive entities display.

This is a pure data module with no HA or network dependencies.
"""
from __future__ import annotations

import dataclasses

from .models import Alert, HazardClass, PeerVehicle, SelfState

STATUS_OK = "ok"
STATUS_WAITING_FOR_LOCATION = "waiting_for_location"
STATUS_LOCATION_UNAVAILABLE = "location_unavailable"
STATUS_RELAY_UNREACHABLE = "relay_unreachable"
STATUS_RELAY_ERROR = "relay_error"
STATUS_PAUSED = "paused"

STATUS_OPTIONS = [
    STATUS_OK,
    STATUS_WAITING_FOR_LOCATION,
    STATUS_LOCATION_UNAVAILABLE,
    STATUS_RELAY_UNREACHABLE,
    STATUS_RELAY_ERROR,
    STATUS_PAUSED,
]


@dataclasses.dataclass(frozen=True)
class CoordinatorData:
    """
    Copy-on-write snapshot of the engine's visible state.

    Always replace via dataclasses.replace(); never mutate in place.
    """

    # Current smoothed self-state (None until the first usable fix)
    self_state: SelfState | None = None

    # Retained self positions, oldest first
    path: list[tuple[float, float]] = dataclasses.field(default_factory=list)

    # peer id → latest rendered PeerVehicle
    peers: dict[str, PeerVehicle] = dataclasses.field(default_factory=dict)

    # Most recent alerts, newest last
    recent_alerts: list[Alert] = dataclasses.field(default_factory=list)

    # HazardClass → the last alert of that class
    last_alerts: dict[HazardClass, Alert] = dataclasses.field(default_factory=dict)

    # Wall-clock time (ms) of the tick that produced this snapshot
    timestamp_ms: float = 0.0

    # Switch states
    tracking: bool = True
    sharing: bool = True

    status: str = STATUS_WAITING_FOR_LOCATION

    @property
    def last_alert(self) -> Alert | None:
        return self.recent_alerts[-1] if self.recent_alerts else None
