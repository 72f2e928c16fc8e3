"""
PeerRegistry — every peer vehicle we currently know about.

Responsibilities:
- Keep at most one record per peer id.
- Glide the rendered position toward each new report (bounded acceleration,
  slewed heading, eased catch-up).
- Dead-reckon and fade peers that stopped reporting, then evict them.
- Hold per-peer alert cooldowns for the lifetime of the record.

No HA imports.
"""
from __future__ import annotations

import dataclasses
import logging
from types import MappingProxyType

from .config import ProximityConfig
from .const import (
    PEER_CATCHUP_PER_S,
    PEER_HEADING_SLEW_PER_S,
    PEER_MAX_ACCELERATION_MS2,
    PEER_SETTLE_DISTANCE_M,
)
from .geomath import (
    angle_between,
    bearing_degrees,
    blend_degrees,
    distance_meters,
    offset_position,
    smoothstep,
)
from .models import HazardClass, PeerVehicle

_LOGGER = logging.getLogger(__name__)

# Heading difference below which a slewing marker is considered aligned
_SETTLE_ANGLE_DEG = 0.5


@dataclasses.dataclass
class _PeerTrack:
    """Mutable per-peer bookkeeping. Never leaves the registry."""

    report: PeerVehicle
    last_update_ms: float
    latitude: float
    longitude: float
    heading_deg: float
    speed_kmh: float
    pending: bool = False
    last_alert_ms: dict[HazardClass, float] = dataclasses.field(default_factory=dict)


class PeerRegistry:
    """Owns the live peer set; single writer expected."""

    def __init__(self, config: ProximityConfig | None = None) -> None:
        self.config = config or ProximityConfig()
        self._tracks: dict[str, _PeerTrack] = {}

    def __len__(self) -> int:
        return len(self._tracks)

    def __contains__(self, peer_id: object) -> bool:
        return peer_id in self._tracks

    @property
    def peer_ids(self) -> list[str]:
        return list(self._tracks)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def ingest(self, vehicle: PeerVehicle, now_ms: float) -> None:
        """
        Insert or refresh the record for vehicle.id.

        Timers and fading restart; alert cooldowns survive the update.
        """
        track = self._tracks.get(vehicle.id)
        if track is None:
            self._tracks[vehicle.id] = _PeerTrack(
                report=vehicle,
                last_update_ms=now_ms,
                latitude=vehicle.latitude,
                longitude=vehicle.longitude,
                heading_deg=vehicle.heading_deg,
                speed_kmh=vehicle.speed_kmh,
            )
            _LOGGER.debug("New peer %s (%s)", vehicle.id, vehicle.vehicle_type.name)
            return

        track.report = vehicle
        track.last_update_ms = now_ms
        track.pending = True

    def clear(self) -> None:
        """Forget every peer, cooldowns included."""
        if self._tracks:
            _LOGGER.debug("Clearing %s peers", len(self._tracks))
        self._tracks.clear()

    def record_alert(self, peer_id: str, hazard_class: HazardClass, now_ms: float) -> None:
        track = self._tracks.get(peer_id)
        if track is not None:
            track.last_alert_ms[hazard_class] = now_ms

    def get(self, peer_id: str) -> PeerVehicle | None:
        """Current snapshot of one peer (not advanced in time)."""
        track = self._tracks.get(peer_id)
        if track is None:
            return None
        return self._snapshot(track, weight=1.0, fading=False)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self, now_ms: float, tick_interval_ms: float) -> list[PeerVehicle]:
        """Advance every peer by one tick and return the ones still alive."""
        dt = tick_interval_ms / 1000.0
        fade_start = self.config.fade_start_ms
        remove_after = self.config.remove_ms
        active: list[PeerVehicle] = []

        for peer_id in list(self._tracks):
            track = self._tracks[peer_id]
            age = now_ms - track.last_update_ms

            if age > remove_after:
                del self._tracks[peer_id]
                _LOGGER.debug("Peer %s removed after %.1f s without reports", peer_id, age / 1000)
                continue

            if age > fade_start:
                progress = (age - fade_start) / (remove_after - fade_start)
                weight = max(0.0, 1.0 - progress)
                self._extrapolate(track, dt, progress)
                active.append(self._snapshot(track, weight=weight, fading=True))
                continue

            if track.pending:
                self._glide(track, dt)
            active.append(self._snapshot(track, weight=1.0, fading=False))

        return active

    @staticmethod
    def _extrapolate(track: _PeerTrack, dt: float, progress: float) -> None:
        """Keep a silent peer moving along its last heading while it slows to a stop."""
        track.pending = False
        track.speed_kmh = track.report.speed_kmh * max(0.0, 1.0 - progress)
        track.latitude, track.longitude = offset_position(
            track.latitude, track.longitude, track.heading_deg, track.speed_kmh / 3.6 * dt
        )

    @staticmethod
    def _glide(track: _PeerTrack, dt: float) -> None:
        """Move the rendered position one tick toward the latest report."""
        target = track.report

        current_ms = track.speed_kmh / 3.6
        max_change = PEER_MAX_ACCELERATION_MS2 * dt
        current_ms += max(-max_change, min(max_change, target.speed_kmh / 3.6 - current_ms))
        track.speed_kmh = current_ms * 3.6

        track.heading_deg = blend_degrees(
            track.heading_deg, target.heading_deg, min(1.0, dt * PEER_HEADING_SLEW_PER_S)
        )
        aligned = angle_between(track.heading_deg, target.heading_deg) < _SETTLE_ANGLE_DEG

        gap = distance_meters(track.latitude, track.longitude, target.latitude, target.longitude)
        step = max(current_ms * dt, gap * smoothstep(min(1.0, dt * PEER_CATCHUP_PER_S)))
        if gap <= PEER_SETTLE_DISTANCE_M or step >= gap:
            track.latitude, track.longitude = target.latitude, target.longitude
            if aligned:
                track.heading_deg = target.heading_deg
                track.pending = False
            return

        direction = bearing_degrees(track.latitude, track.longitude, target.latitude, target.longitude)
        track.latitude, track.longitude = offset_position(track.latitude, track.longitude, direction, step)

    @staticmethod
    def _snapshot(track: _PeerTrack, weight: float, fading: bool) -> PeerVehicle:
        return dataclasses.replace(
            track.report,
            latitude=track.latitude,
            longitude=track.longitude,
            heading_deg=track.heading_deg,
            speed_kmh=track.speed_kmh if fading else track.report.speed_kmh,
            last_update_ms=track.last_update_ms,
            last_alert_ms=MappingProxyType(dict(track.last_alert_ms)),
            weight=weight,
            fading=fading,
        )
