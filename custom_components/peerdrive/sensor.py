"""
Platform for PeerDrive sensors.
Speed, heading, active peer count, last alert message and status of our own
vehicle, all read from the coordinator snapshot.
"""
from __future__ import annotations

import logging

from homeassistant.components.sensor import SensorDeviceClass, SensorEntity, SensorStateClass
from homeassistant.const import DEGREE, UnitOfSpeed
from homeassistant.core import HomeAssistant
from homeassistant import config_entries
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .coordinator import PeerDriveCoordinator
from .coordinator_data import STATUS_OPTIONS

_LOGGER = logging.getLogger(__name__)


class PeerDriveSensor(CoordinatorEntity[PeerDriveCoordinator], SensorEntity):
    """Common base: unique id, name and device info for one vehicle sensor."""

    def __init__(self, coordinator: PeerDriveCoordinator, key: str, name: str, icon: str) -> None:
        super().__init__(coordinator)
        guid = coordinator.entry_data["guid"]
        self._attr_unique_id = f"peerdrive_{guid}_{coordinator.vehicle_id}_{key}"
        self._attr_name = f"{coordinator.entry_data.get('entry_name', 'PeerDrive')} {name}"
        self._attr_icon = icon

    @property
    def device_info(self) -> DeviceInfo | None:
        return self.coordinator.get_device_info()


class PeerDriveSpeedSensor(PeerDriveSensor):
    _attr_device_class = SensorDeviceClass.SPEED
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_native_unit_of_measurement = UnitOfSpeed.KILOMETERS_PER_HOUR

    def __init__(self, coordinator: PeerDriveCoordinator) -> None:
        super().__init__(coordinator, "speed", "Speed", "mdi:speedometer")

    @property
    def native_value(self) -> float | None:
        state = self.coordinator.data.self_state
        if state is None:
            return None
        return round(state.speed_kmh, 1)


class PeerDriveHeadingSensor(PeerDriveSensor):
    _attr_native_unit_of_measurement = DEGREE

    def __init__(self, coordinator: PeerDriveCoordinator) -> None:
        super().__init__(coordinator, "heading", "Heading", "mdi:compass")

    @property
    def native_value(self) -> float | None:
        state = self.coordinator.data.self_state
        if state is None or state.heading_deg is None:
            return None
        return round(state.heading_deg)


class PeerDrivePeerCountSensor(PeerDriveSensor):
    _attr_state_class = SensorStateClass.MEASUREMENT

    def __init__(self, coordinator: PeerDriveCoordinator) -> None:
        super().__init__(coordinator, "peer_count", "Nearby Vehicles", "mdi:car-multiple")

    @property
    def native_value(self) -> int:
        return len(self.coordinator.data.peers)


class PeerDriveLastAlertSensor(PeerDriveSensor):

    def __init__(self, coordinator: PeerDriveCoordinator) -> None:
        super().__init__(coordinator, "last_alert", "Last Alert", "mdi:alert")

    @property
    def native_value(self) -> str | None:
        alert = self.coordinator.data.last_alert
        return alert.message if alert is not None else None

    @property
    def extra_state_attributes(self) -> dict | None:
        alert = self.coordinator.data.last_alert
        if alert is None:
            return None
        return {
            "hazard_class": alert.hazard_class.value,
            "subject_vehicle_id": alert.subject_vehicle_id,
            "timestamp_ms": alert.timestamp_ms,
        }


class PeerDriveStatusSensor(PeerDriveSensor):
    _attr_device_class = SensorDeviceClass.ENUM
    _attr_options = STATUS_OPTIONS

    def __init__(self, coordinator: PeerDriveCoordinator) -> None:
        super().__init__(coordinator, "status", "Status", "mdi:information-outline")

    @property
    def native_value(self) -> str:
        return self.coordinator.data.status


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add sensors for passed config_entry in HA."""
    coordinator: PeerDriveCoordinator = config_entry.runtime_data
    _LOGGER.debug("Setting up sensors for vehicle %s", coordinator.vehicle_id)
    async_add_entities([
        PeerDriveSpeedSensor(coordinator),
        PeerDriveHeadingSensor(coordinator),
        PeerDrivePeerCountSensor(coordinator),
        PeerDriveLastAlertSensor(coordinator),
        PeerDriveStatusSensor(coordinator),
    ])
