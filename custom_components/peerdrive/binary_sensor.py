"""
Platform for PeerDrive hazard binary sensors.
One sensor per hazard class; it is on while the latest alert of that class is
still inside its cooldown window.
"""
from __future__ import annotations

import logging

from homeassistant.components.binary_sensor import BinarySensorDeviceClass, BinarySensorEntity
from homeassistant.core import HomeAssistant
from homeassistant import config_entries
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import HAZARD_NAMES
from .coordinator import PeerDriveCoordinator
from .models import PEER_ALERT_TIERS, HazardClass

_LOGGER = logging.getLogger(__name__)


class PeerDriveHazardSensor(CoordinatorEntity[PeerDriveCoordinator], BinarySensorEntity):
    """Representation of one PeerDrive hazard class."""

    _attr_device_class = BinarySensorDeviceClass.SAFETY

    def __init__(self, coordinator: PeerDriveCoordinator, hazard_class: HazardClass) -> None:
        super().__init__(coordinator)
        self._hazard_class = hazard_class
        guid = coordinator.entry_data["guid"]
        hazard_name = HAZARD_NAMES.get(hazard_class.value, hazard_class.value)
        self._attr_unique_id = f"peerdrive_{guid}_{coordinator.vehicle_id}_hazard_{hazard_class.value}"
        self._attr_name = f"{coordinator.entry_data.get('entry_name', 'PeerDrive')} {hazard_name}"

    @property
    def _cooldown_ms(self) -> float:
        if self._hazard_class in PEER_ALERT_TIERS:
            return self.coordinator.config.peer_alert_cooldown_ms
        return self.coordinator.config.hazard_alert_cooldown_ms

    @property
    def is_on(self) -> bool:
        data = self.coordinator.data
        alert = data.last_alerts.get(self._hazard_class)
        if alert is None:
            return False
        return data.timestamp_ms - alert.timestamp_ms < self._cooldown_ms

    @property
    def icon(self) -> str | None:
        if self.is_on:
            return "mdi:alert"
        return "mdi:shield-car"

    @property
    def extra_state_attributes(self) -> dict | None:
        alert = self.coordinator.data.last_alerts.get(self._hazard_class)
        if alert is None:
            return None
        return {
            "message": alert.message,
            "subject_vehicle_id": alert.subject_vehicle_id,
            "distance_m": round(alert.distance_m, 1) if alert.distance_m is not None else None,
            "seconds": alert.seconds,
        }

    @property
    def device_info(self) -> DeviceInfo | None:
        return self.coordinator.get_device_info()


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add one hazard sensor per hazard class."""
    coordinator: PeerDriveCoordinator = config_entry.runtime_data
    async_add_entities([PeerDriveHazardSensor(coordinator, hazard_class) for hazard_class in HazardClass])
