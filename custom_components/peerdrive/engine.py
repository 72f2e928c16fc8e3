"""
ProximityEngine — the single entry point into the proximity core.

Owns one SelfStateTracker, one PeerRegistry and one HazardDetector. The
coordinator feeds it fixes and relay payloads and calls tick() on a fixed
interval; nothing in here touches the network or Home Assistant.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping

from .config import ProximityConfig
from .const import EMPTY_PAYLOAD_CLEAR
from .errors import InvalidFix, MalformedPeerReport, StaleFix
from .hazard_detector import HazardDetector
from .models import PEER_ALERT_TIERS, PeerVehicle, PositionFix, SelfState, TickResult, VehicleType
from .peer_registry import PeerRegistry
from .reports import build_telemetry, from_wire, parse_peer_report
from .self_tracker import SelfStateTracker

_LOGGER = logging.getLogger(__name__)


class ProximityEngine:
    """Core boundary: fixes and peer reports in, self-state and alerts out."""

    def __init__(
        self,
        config: ProximityConfig | None = None,
        vehicle_id: str = "",
        vehicle_type: VehicleType = VehicleType.CAR,
    ) -> None:
        self.config = config or ProximityConfig()
        self.vehicle_id = vehicle_id
        self.vehicle_type = vehicle_type
        self.tracker = SelfStateTracker()
        self.registry = PeerRegistry(self.config)
        self.detector = HazardDetector(self.config)

    @property
    def state(self) -> SelfState | None:
        return self.tracker.state

    def path(self) -> list[tuple[float, float]]:
        return self.tracker.path()

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def ingest_self_fix(self, fix: PositionFix) -> SelfState | None:
        """Process our own location sample. Bad samples keep the prior state."""
        try:
            return self.tracker.ingest(fix)
        except (InvalidFix, StaleFix) as exc:
            _LOGGER.debug("Dropping location fix: %s", exc)
            return self.tracker.state

    def ingest_peer_report(self, raw: Any, now_ms: float) -> bool:
        """Validate one peer report and hand it to the registry."""
        vehicle = self._parse_report(raw)
        if vehicle is None:
            return False
        return self._register(vehicle, now_ms)

    def _parse_report(self, raw: Any) -> PeerVehicle | None:
        try:
            return parse_peer_report(from_wire(raw))
        except MalformedPeerReport as exc:
            _LOGGER.debug("Dropping peer report: %s", exc)
            return None

    def _register(self, vehicle: PeerVehicle, now_ms: float) -> bool:
        if vehicle.id == self.vehicle_id:
            # The relay echoes our own telemetry back
            return False
        self.registry.ingest(vehicle, now_ms)
        return True

    def ingest_peer_payload(self, payload: Any, now_ms: float) -> int:
        """
        Ingest one relay response: a single report, a list of them, or garbage.

        Returns the number of peers registered. When no report is valid the
        empty-payload policy decides whether known peers are wiped; our own
        echoed telemetry is valid, so an echo alone keeps the registry.
        """
        if isinstance(payload, Mapping):
            reports = [payload] if payload else []
        elif isinstance(payload, (list, tuple)):
            reports = list(payload)
        else:
            _LOGGER.debug("Unexpected relay payload type: %s", type(payload).__name__)
            reports = []

        vehicles = [vehicle for vehicle in map(self._parse_report, reports) if vehicle is not None]
        if not vehicles:
            self.apply_empty_payload_policy()
            return 0
        return sum(1 for vehicle in vehicles if self._register(vehicle, now_ms))

    def apply_empty_payload_policy(self) -> None:
        if self.config.empty_payload_policy == EMPTY_PAYLOAD_CLEAR:
            self.registry.clear()

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self, now_ms: float) -> TickResult:
        """Advance peers, evaluate hazards and remember per-peer cooldowns."""
        peers = self.registry.tick(now_ms, self.config.tick_interval_ms)
        alerts = self.detector.evaluate(self.tracker.state, self.tracker.previous_state, peers, now_ms)
        for alert in alerts:
            if alert.subject_vehicle_id is not None and alert.hazard_class in PEER_ALERT_TIERS:
                self.registry.record_alert(alert.subject_vehicle_id, alert.hazard_class, now_ms)
            _LOGGER.info("Alert %s: %s", alert.hazard_class.value, alert.message)
        return TickResult(active_peers=peers, alerts=alerts)

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    def outbound_telemetry(self) -> dict[str, Any] | None:
        """Telemetry describing us, or None before the first fix."""
        state = self.tracker.state
        if state is None:
            return None
        return build_telemetry(self.vehicle_id, self.vehicle_type, state)

    def reset(self) -> None:
        """Forget self history and hazard cooldowns; peers are kept."""
        self.tracker.reset()
        self.detector.reset()
