"""
HazardDetector — decides which alerts a tick produces.

Pure decision logic: alerts are returned, never delivered. Per-peer cooldowns
live on the PeerVehicle snapshots (the registry stores them); the global
bend/collision cooldown is owned here.
"""
from __future__ import annotations

import logging

from .config import ProximityConfig
from .geomath import angle_between, distance_meters, normalize_degrees
from .models import PEER_ALERT_TIERS, Alert, HazardClass, PeerVehicle, SelfState

_LOGGER = logging.getLogger(__name__)


def _is_heading_opposed(relative_heading: float) -> bool:
    return 135.0 < relative_heading < 225.0


def _is_heading_aligned(relative_heading: float) -> bool:
    return relative_heading < 45.0 or relative_heading > 315.0


class HazardDetector:
    """Evaluates self-state against peers once per tick."""

    def __init__(self, config: ProximityConfig | None = None) -> None:
        self.config = config or ProximityConfig()
        self._last_hazard_alert_ms: float | None = None
        self._last_bend_pair: tuple[float, float] | None = None

    @property
    def last_hazard_alert_ms(self) -> float | None:
        return self._last_hazard_alert_ms

    def reset(self) -> None:
        self._last_hazard_alert_ms = None
        self._last_bend_pair = None

    def evaluate(
        self,
        self_state: SelfState | None,
        previous_state: SelfState | None,
        peers: list[PeerVehicle],
        now_ms: float,
    ) -> list[Alert]:
        """Return the alerts this tick should raise, in priority order."""
        if self_state is None:
            return []

        alerts = []
        for peer in peers:
            alert = self._check_peer(self_state, peer, now_ms)
            if alert is not None:
                alerts.append(alert)

        alerts.extend(self._check_hazards(self_state, previous_state, peers, now_ms))
        return alerts

    # ------------------------------------------------------------------
    # Proximity / overtaking
    # ------------------------------------------------------------------

    def _cooling_down(self, peer: PeerVehicle, tier: int, now_ms: float) -> bool:
        for hazard_class, stamp in peer.last_alert_ms.items():
            if PEER_ALERT_TIERS.get(hazard_class) == tier and now_ms - stamp < self.config.peer_alert_cooldown_ms:
                return True
        return False

    def _check_peer(self, self_state: SelfState, peer: PeerVehicle, now_ms: float) -> Alert | None:
        # An unknown heading counts as north
        heading = self_state.heading_deg if self_state.heading_deg is not None else 0.0
        distance = distance_meters(self_state.latitude, self_state.longitude, peer.latitude, peer.longitude)
        if distance >= self.config.warn_distance_m:
            return None

        relative_heading = normalize_degrees(peer.heading_deg - heading)
        if _is_heading_opposed(relative_heading):
            same_direction = False
        elif _is_heading_aligned(relative_heading):
            same_direction = True
        else:
            return None

        rounded = round(distance)
        if distance < self.config.close_distance_m and peer.speed_kmh > self.config.speed_threshold_kmh:
            if self._cooling_down(peer, 1, now_ms):
                return None
            if same_direction:
                hazard_class = HazardClass.FAST_BEHIND
                message = f"Warning! Fast vehicle {rounded} meters behind you"
            else:
                hazard_class = HazardClass.FAST_ONCOMING
                message = f"Warning! Oncoming vehicle {rounded} meters ahead"
        elif peer.speed_kmh - self_state.speed_kmh < self.config.approach_relative_speed_kmh:
            if self._cooling_down(peer, 2, now_ms):
                return None
            hazard_class = HazardClass.APPROACH_FAST
            if same_direction:
                message = f"Fast approaching vehicle from behind, {rounded} meters"
            else:
                message = f"Fast oncoming vehicle, {rounded} meters ahead"
        else:
            return None

        return Alert(
            hazard_class=hazard_class,
            message=message,
            timestamp_ms=now_ms,
            subject_vehicle_id=peer.id,
            distance_m=distance,
        )

    # ------------------------------------------------------------------
    # Bends and collision risk (shared global cooldown)
    # ------------------------------------------------------------------

    def _check_hazards(
        self,
        self_state: SelfState,
        previous_state: SelfState | None,
        peers: list[PeerVehicle],
        now_ms: float,
    ) -> list[Alert]:
        if (
            self._last_hazard_alert_ms is not None
            and now_ms - self._last_hazard_alert_ms < self.config.hazard_alert_cooldown_ms
        ):
            return []

        alerts = []
        bend = self._check_bend(self_state, previous_state, peers, now_ms)
        if bend is not None:
            alerts.append(bend)
        alerts.extend(self._check_collisions(self_state, peers, now_ms))

        if alerts:
            self._last_hazard_alert_ms = now_ms
        return alerts

    def _check_bend(
        self,
        self_state: SelfState,
        previous_state: SelfState | None,
        peers: list[PeerVehicle],
        now_ms: float,
    ) -> Alert | None:
        if previous_state is None or self_state.heading_deg is None or previous_state.heading_deg is None:
            return None

        pair = (previous_state.timestamp_ms, self_state.timestamp_ms)
        if pair == self._last_bend_pair:
            return None
        self._last_bend_pair = pair

        # Plain difference of the two compass readings; a turn through north
        # (e.g. 350 to 20) reads as 330 and is not a bend
        change = abs(normalize_degrees(self_state.heading_deg) - normalize_degrees(previous_state.heading_deg))
        if 135.0 < change < 225.0:
            hazard_class = HazardClass.HAIRPIN_BEND
            message = "Hairpin bend ahead"
        elif 45.0 < change < 135.0:
            hazard_class = HazardClass.SHARP_BEND
            message = "Sharp bend ahead"
        else:
            return None

        if self._has_opposing_traffic(self_state, peers):
            message += " with opposing traffic"
        return Alert(hazard_class=hazard_class, message=message, timestamp_ms=now_ms)

    def _has_opposing_traffic(self, self_state: SelfState, peers: list[PeerVehicle]) -> bool:
        for peer in peers:
            distance = distance_meters(self_state.latitude, self_state.longitude, peer.latitude, peer.longitude)
            if distance < self.config.opposing_traffic_distance_m and angle_between(
                self_state.heading_deg, peer.heading_deg
            ) > 150.0:
                return True
        return False

    def _check_collisions(self, self_state: SelfState, peers: list[PeerVehicle], now_ms: float) -> list[Alert]:
        alerts = []
        for peer in peers:
            closing_ms = abs(peer.speed_kmh - self_state.speed_kmh) / 3.6
            if closing_ms == 0:
                continue
            distance = distance_meters(self_state.latitude, self_state.longitude, peer.latitude, peer.longitude)
            time_to_cross = distance / closing_ms
            if 0 < time_to_cross < self.config.collision_horizon_s:
                seconds = round(time_to_cross)
                alerts.append(
                    Alert(
                        hazard_class=HazardClass.COLLISION_RISK,
                        message=f"Warning! High collision risk {seconds} seconds ahead",
                        timestamp_ms=now_ms,
                        subject_vehicle_id=peer.id,
                        distance_m=distance,
                        seconds=seconds,
                    )
                )
        return alerts
