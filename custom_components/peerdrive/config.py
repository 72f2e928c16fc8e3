"""
ProximityConfig — the tunable thresholds of the proximity core.

Defaults come from const.py; any field can be overridden from the config
entry options. No HA imports.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Any, Mapping

from .const import (
    APPROACH_RELATIVE_SPEED_KMH,
    CLOSE_DISTANCE_M,
    COLLISION_HORIZON_S,
    EMPTY_PAYLOAD_CLEAR,
    EMPTY_PAYLOAD_KEEP,
    EMPTY_PAYLOAD_POLICY,
    FADE_START_MS,
    HAZARD_ALERT_COOLDOWN_MS,
    MIN_TICK_INTERVAL_MS,
    OPPOSING_TRAFFIC_DISTANCE_M,
    PEER_ALERT_COOLDOWN_MS,
    REMOVE_MS,
    SPEED_THRESHOLD_KMH,
    TICK_INTERVAL_MS,
    WARN_DISTANCE_M,
)

_LOGGER = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class ProximityConfig:
    """Thresholds used by the registry, the detector and the engine."""

    speed_threshold_kmh: float = SPEED_THRESHOLD_KMH
    close_distance_m: float = CLOSE_DISTANCE_M
    warn_distance_m: float = WARN_DISTANCE_M
    approach_relative_speed_kmh: float = APPROACH_RELATIVE_SPEED_KMH
    opposing_traffic_distance_m: float = OPPOSING_TRAFFIC_DISTANCE_M
    collision_horizon_s: float = COLLISION_HORIZON_S
    peer_alert_cooldown_ms: float = PEER_ALERT_COOLDOWN_MS
    hazard_alert_cooldown_ms: float = HAZARD_ALERT_COOLDOWN_MS
    fade_start_ms: float = FADE_START_MS
    remove_ms: float = REMOVE_MS
    tick_interval_ms: float = TICK_INTERVAL_MS
    empty_payload_policy: str = EMPTY_PAYLOAD_POLICY

    def __post_init__(self):
        """Validate invariants at construction time."""
        if self.remove_ms <= self.fade_start_ms:
            raise ValueError(
                f"remove_ms ({self.remove_ms}) must be greater than fade_start_ms ({self.fade_start_ms})"
            )
        if self.tick_interval_ms < MIN_TICK_INTERVAL_MS:
            raise ValueError(f"tick_interval_ms must be at least {MIN_TICK_INTERVAL_MS}, got {self.tick_interval_ms}")
        if self.empty_payload_policy not in (EMPTY_PAYLOAD_CLEAR, EMPTY_PAYLOAD_KEEP):
            raise ValueError(f"Unknown empty_payload_policy: {self.empty_payload_policy}")

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None) -> "ProximityConfig":
        """
        Build a config from config-entry options.

        Unknown keys are ignored so options from other features can share the
        same mapping.
        """
        if not options:
            return cls()
        names = {f.name: f for f in dataclasses.fields(cls)}
        overrides = {}
        for key, value in options.items():
            if key not in names or value is None:
                continue
            if key == "empty_payload_policy":
                overrides[key] = str(value)
            else:
                overrides[key] = float(value)
        _LOGGER.debug("Proximity config overrides: %s", overrides)
        return cls(**overrides)
