"""
Peer report validation and the relay wire format.

Every report from the relay passes through parse_peer_report() before it can
reach the registry. The relay itself speaks a compact key set:

    {"i": id, "t": type code, "s": speed string, "la": lat, "lo": lng, "d": heading}
"""
from __future__ import annotations

import math
from typing import Any, Mapping

from .errors import MalformedPeerReport
from .geomath import normalize_degrees
from .models import PeerVehicle, SelfState, VehicleType

# semantic key → compact relay key
WIRE_KEYS: dict[str, str] = {
    "id": "i",
    "vehicleTypeCode": "t",
    "speedKmh": "s",
    "lat": "la",
    "lng": "lo",
    "headingDeg": "d",
}


def _is_real_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _require_number(raw: Mapping, field: str, low: float | None = None, high: float | None = None) -> float:
    value = raw.get(field)
    if not _is_real_number(value):
        raise MalformedPeerReport(field, raw)
    if (low is not None and value < low) or (high is not None and value > high):
        raise MalformedPeerReport(field, raw)
    return float(value)


def _parse_speed(raw: Mapping) -> float:
    value = raw.get("speedKmh")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise MalformedPeerReport("speedKmh", raw) from None
    if not _is_real_number(value) or value < 0:
        raise MalformedPeerReport("speedKmh", raw)
    return float(value)


def _parse_id(raw: Mapping) -> str:
    value = raw.get("id")
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise MalformedPeerReport("id", raw)
    peer_id = str(value).strip()
    if not peer_id:
        raise MalformedPeerReport("id", raw)
    return peer_id


def parse_peer_report(raw: Any) -> PeerVehicle:
    """
    Validate one semantic peer report and build a PeerVehicle.

    Raises MalformedPeerReport when a required field is missing or has the
    wrong kind. The vehicle type code is optional; unknown codes mean CAR.
    """
    if not isinstance(raw, Mapping):
        raise MalformedPeerReport("report", raw)

    return PeerVehicle(
        id=_parse_id(raw),
        vehicle_type=VehicleType.from_code(raw.get("vehicleTypeCode", VehicleType.CAR)),
        speed_kmh=_parse_speed(raw),
        latitude=_require_number(raw, "lat", -90.0, 90.0),
        longitude=_require_number(raw, "lng", -180.0, 180.0),
        heading_deg=normalize_degrees(_require_number(raw, "headingDeg")),
    )


def from_wire(message: Any) -> Any:
    """
    Translate a compact relay message to semantic keys.

    Messages that already use semantic keys, or are not mappings at all, are
    returned unchanged so validation can reject them later.
    """
    if not isinstance(message, Mapping) or "id" in message:
        return message
    return {key: message[short] for key, short in WIRE_KEYS.items() if short in message}


def to_wire(telemetry: Mapping[str, Any]) -> dict[str, Any]:
    """Translate semantic telemetry to the relay's compact keys."""
    return {short: telemetry[key] for key, short in WIRE_KEYS.items() if key in telemetry}


def build_telemetry(vehicle_id: str, vehicle_type: VehicleType, state: SelfState) -> dict[str, Any]:
    """Outbound report describing our own vehicle, speed formatted to one decimal."""
    return {
        "id": vehicle_id,
        "vehicleTypeCode": int(vehicle_type),
        "speedKmh": f"{state.speed_kmh:.1f}",
        "lat": state.latitude,
        "lng": state.longitude,
        "headingDeg": state.heading_deg if state.heading_deg is not None else 0,
    }
