"""
Platform for PeerDrive switches.
Self-tracking (follow the location source) and peer sharing (exchange
telemetry with the relay) can each be paused from HA.
"""
from __future__ import annotations

import logging

from homeassistant.components.switch import SwitchDeviceClass, SwitchEntity
from homeassistant.core import HomeAssistant
from homeassistant import config_entries
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .coordinator import PeerDriveCoordinator

_LOGGER = logging.getLogger(__name__)


class PeerDriveTrackingSwitch(CoordinatorEntity[PeerDriveCoordinator], SwitchEntity):
    """Starts and stops self tracking."""

    _attr_device_class = SwitchDeviceClass.SWITCH

    def __init__(self, coordinator: PeerDriveCoordinator) -> None:
        super().__init__(coordinator)
        guid = coordinator.entry_data["guid"]
        self._attr_unique_id = f"peerdrive_{guid}_{coordinator.vehicle_id}_switch_tracking"
        self._attr_name = f"{coordinator.entry_data.get('entry_name', 'PeerDrive')} Tracking"
        self._attr_icon = "mdi:crosshairs-gps"

    @property
    def is_on(self) -> bool:
        return self.coordinator.data.tracking

    @property
    def device_info(self) -> DeviceInfo | None:
        return self.coordinator.get_device_info()

    async def async_turn_on(self, **kwargs) -> None:
        await self.coordinator.async_set_tracking(True)

    async def async_turn_off(self, **kwargs) -> None:
        await self.coordinator.async_set_tracking(False)


class PeerDriveSharingSwitch(CoordinatorEntity[PeerDriveCoordinator], SwitchEntity):
    """Starts and stops the relay exchange."""

    _attr_device_class = SwitchDeviceClass.SWITCH

    def __init__(self, coordinator: PeerDriveCoordinator) -> None:
        super().__init__(coordinator)
        guid = coordinator.entry_data["guid"]
        self._attr_unique_id = f"peerdrive_{guid}_{coordinator.vehicle_id}_switch_sharing"
        self._attr_name = f"{coordinator.entry_data.get('entry_name', 'PeerDrive')} Peer Sharing"
        self._attr_icon = "mdi:access-point-network"

    @property
    def is_on(self) -> bool:
        return self.coordinator.data.sharing

    @property
    def device_info(self) -> DeviceInfo | None:
        return self.coordinator.get_device_info()

    async def async_turn_on(self, **kwargs) -> None:
        await self.coordinator.async_set_sharing(True)

    async def async_turn_off(self, **kwargs) -> None:
        await self.coordinator.async_set_sharing(False)


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add the tracking and sharing switches."""
    coordinator: PeerDriveCoordinator = config_entry.runtime_data
    async_add_entities([PeerDriveTrackingSwitch(coordinator), PeerDriveSharingSwitch(coordinator)])
