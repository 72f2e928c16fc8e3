"""
Domain models for the PeerDrive integration.

This module contains pure data classes for fixes, self-state, peers and alerts.
These classes have no dependencies on HTTP or Home Assistant internals.
"""
from __future__ import annotations

import dataclasses
import enum
from types import MappingProxyType
from typing import Mapping


class VehicleType(enum.IntEnum):
    """Vehicle type as carried by the relay's numeric type code."""

    CAR = 0
    BIKE = 1
    TRUCK = 2
    BUS = 3

    @classmethod
    def from_code(cls, code) -> "VehicleType":
        """Map a type code to a VehicleType, defaulting to CAR for anything unknown."""
        if isinstance(code, bool):
            return cls.CAR
        try:
            return cls(int(code))
        except (TypeError, ValueError):
            return cls.CAR


class HazardClass(enum.Enum):
    """Alert categories raised by the hazard detector."""

    FAST_BEHIND = "fast_behind"
    FAST_ONCOMING = "fast_oncoming"
    APPROACH_FAST = "approach_fast"
    HAIRPIN_BEND = "hairpin_bend"
    SHARP_BEND = "sharp_bend"
    COLLISION_RISK = "collision_risk"


# Peer alerts share a cooldown per tier, not per class
PEER_ALERT_TIERS: dict[HazardClass, int] = {
    HazardClass.FAST_BEHIND: 1,
    HazardClass.FAST_ONCOMING: 1,
    HazardClass.APPROACH_FAST: 2,
}


@dataclasses.dataclass(frozen=True)
class PositionFix:
    """One raw location sample. Speed is already in km/h when the device reports it."""

    latitude: float
    longitude: float
    accuracy_m: float
    timestamp_ms: float
    reported_speed_kmh: float | None = None
    reported_heading_deg: float | None = None


@dataclasses.dataclass(frozen=True)
class SelfState:
    """Smoothed estimate of our own vehicle. Replaced on every fix, never mutated."""

    latitude: float
    longitude: float
    speed_kmh: float
    heading_deg: float | None
    timestamp_ms: float


@dataclasses.dataclass(frozen=True)
class PeerVehicle:
    """
    Snapshot of a peer vehicle.

    Built from a validated report, then re-issued by the registry on every tick
    with the rendered (interpolated or extrapolated) position and fade weight.
    """

    id: str
    vehicle_type: VehicleType
    speed_kmh: float
    latitude: float
    longitude: float
    heading_deg: float
    last_update_ms: float = 0.0
    last_alert_ms: Mapping[HazardClass, float] = dataclasses.field(
        default_factory=lambda: MappingProxyType({})
    )
    weight: float = 1.0
    fading: bool = False


@dataclasses.dataclass(frozen=True)
class Alert:
    """One hazard warning, handed to the alert sink and then forgotten."""

    hazard_class: HazardClass
    message: str
    timestamp_ms: float
    subject_vehicle_id: str | None = None
    distance_m: float | None = None
    seconds: int | None = None


@dataclasses.dataclass(frozen=True)
class TickResult:
    """Output of one engine tick."""

    active_peers: list[PeerVehicle] = dataclasses.field(default_factory=list)
    alerts: list[Alert] = dataclasses.field(default_factory=list)
