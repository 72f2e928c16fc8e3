"""
Shared helpers and factory functions for PeerDrive tests.
Import from this module in each test file to avoid duplication.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from unittest.mock import MagicMock

from custom_components.peerdrive.coordinator import PeerDriveCoordinator
from custom_components.peerdrive.geomath import offset_position
from custom_components.peerdrive.models import PeerVehicle, PositionFix, SelfState, VehicleType


def make_fix(
    lat: float = 0.0,
    lng: float = 0.0,
    t_ms: float = 0.0,
    accuracy: float = 5.0,
    speed: float | None = None,
    heading: float | None = None,
) -> PositionFix:
    return PositionFix(
        latitude=lat,
        longitude=lng,
        accuracy_m=accuracy,
        timestamp_ms=t_ms,
        reported_speed_kmh=speed,
        reported_heading_deg=heading,
    )


def make_state(
    lat: float = 0.0,
    lng: float = 0.0,
    speed: float = 0.0,
    heading: float | None = 0.0,
    t_ms: float = 0.0,
) -> SelfState:
    return SelfState(latitude=lat, longitude=lng, speed_kmh=speed, heading_deg=heading, timestamp_ms=t_ms)


def make_peer(
    peer_id: str = "v1",
    lat: float = 0.001,
    lng: float = 0.0,
    speed: float = 50.0,
    heading: float = 180.0,
    vehicle_type: VehicleType = VehicleType.CAR,
    **kwargs,
) -> PeerVehicle:
    return PeerVehicle(
        id=peer_id,
        vehicle_type=vehicle_type,
        speed_kmh=speed,
        latitude=lat,
        longitude=lng,
        heading_deg=heading,
        **kwargs,
    )


def make_report(
    peer_id="v1",
    lat: float = 0.001,
    lng: float = 0.0,
    speed="50",
    heading: float = 180.0,
    type_code=0,
) -> dict:
    """A semantic peer report, as produced by from_wire()."""
    return {
        "id": peer_id,
        "vehicleTypeCode": type_code,
        "speedKmh": speed,
        "lat": lat,
        "lng": lng,
        "headingDeg": heading,
    }


def drive_fixes(
    start_lat: float,
    start_lng: float,
    heading: float,
    speed_kmh: float,
    count: int,
    interval_s: float = 1.0,
    start_ms: float = 0.0,
    accuracy: float = 5.0,
) -> list[PositionFix]:
    """Fixes of a vehicle driving a straight line at constant speed."""
    fixes = []
    lat, lng = start_lat, start_lng
    step_m = speed_kmh / 3.6 * interval_s
    for i in range(count):
        fixes.append(make_fix(lat, lng, start_ms + i * interval_s * 1000, accuracy=accuracy))
        lat, lng = offset_position(lat, lng, heading, step_m)
    return fixes


def make_source_state(
    lat=52.0,
    lng=13.0,
    accuracy=5,
    speed=None,
    course=None,
    when: datetime | None = None,
) -> MagicMock:
    """A stand-in for a HA State of a mobile-app device_tracker."""
    attributes = {"latitude": lat, "longitude": lng, "gps_accuracy": accuracy}
    if speed is not None:
        attributes["speed"] = speed
    if course is not None:
        attributes["course"] = course
    state = MagicMock()
    state.attributes = attributes
    state.last_updated = when or datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
    return state


def make_entry_data(**kwargs) -> dict:
    defaults = dict(
        guid="test-guid",
        entry_name="Test Car",
        vehicle_id="me",
        vehicle_type=0,
        relay_url="192.168.4.1",
        source_entity="device_tracker.phone",
    )
    defaults.update(kwargs)
    return defaults


def make_coordinator(hass=None, options: dict | None = None, **entry_kwargs) -> PeerDriveCoordinator:
    """Build a coordinator with a mocked hass whose source entity has no state."""
    if hass is None:
        hass = MagicMock()
        hass.async_create_task = lambda coro: asyncio.ensure_future(coro)
        hass.states.get = MagicMock(return_value=None)
    return PeerDriveCoordinator(hass, make_entry_data(**entry_kwargs), options)
