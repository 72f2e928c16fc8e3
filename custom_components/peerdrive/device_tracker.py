"""
Platform for PeerDrive device trackers.
One tracker for the smoothed position of our own vehicle and one per peer
vehicle. Peer trackers are created as peers appear on the relay and turn
unavailable once the peer is evicted.
"""
from __future__ import annotations

import logging

from homeassistant.components.device_tracker.config_entry import TrackerEntity
from homeassistant.core import HomeAssistant, callback
from homeassistant import config_entries
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import VEHICLE_TYPE_NAMES
from .coordinator import PeerDriveCoordinator

_LOGGER = logging.getLogger(__name__)


class PeerDriveSelfTracker(CoordinatorEntity[PeerDriveCoordinator], TrackerEntity):
    """Our own vehicle, as smoothed by the engine."""

    def __init__(self, coordinator: PeerDriveCoordinator) -> None:
        super().__init__(coordinator)
        guid = coordinator.entry_data["guid"]
        self._attr_unique_id = f"peerdrive_{guid}_{coordinator.vehicle_id}_gps"
        self._attr_name = f"{coordinator.entry_data.get('entry_name', 'PeerDrive')} Location"
        self._attr_icon = "mdi:car"

    @property
    def device_info(self) -> DeviceInfo | None:
        return self.coordinator.get_device_info()

    @property
    def latitude(self) -> float | None:
        state = self.coordinator.data.self_state
        return state.latitude if state is not None else None

    @property
    def longitude(self) -> float | None:
        state = self.coordinator.data.self_state
        return state.longitude if state is not None else None

    @property
    def source_type(self) -> str:
        return "gps"

    @property
    def extra_state_attributes(self) -> dict | None:
        state = self.coordinator.data.self_state
        if state is None:
            return None
        return {
            "speed_kmh": round(state.speed_kmh, 1),
            "heading_deg": round(state.heading_deg) if state.heading_deg is not None else None,
            "path": [[round(lat, 6), round(lng, 6)] for lat, lng in self.coordinator.data.path],
        }


class PeerDrivePeerTracker(CoordinatorEntity[PeerDriveCoordinator], TrackerEntity):
    """A nearby vehicle reported through the relay."""

    def __init__(self, coordinator: PeerDriveCoordinator, peer_id: str) -> None:
        super().__init__(coordinator)
        self._peer_id = peer_id
        guid = coordinator.entry_data["guid"]
        self._attr_unique_id = f"peerdrive_{guid}_peer_{peer_id}_gps"
        self._attr_name = f"Peer {peer_id}"
        # Remember the last device info so the entity keeps its device after eviction
        self._device_info = coordinator.get_peer_device_info(peer_id)

    @property
    def _peer(self):
        return self.coordinator.data.peers.get(self._peer_id)

    @property
    def available(self) -> bool:
        return super().available and self._peer is not None

    @property
    def device_info(self) -> DeviceInfo | None:
        return self._device_info

    @property
    def latitude(self) -> float | None:
        peer = self._peer
        return peer.latitude if peer is not None else None

    @property
    def longitude(self) -> float | None:
        peer = self._peer
        return peer.longitude if peer is not None else None

    @property
    def source_type(self) -> str:
        return "gps"

    @property
    def icon(self) -> str | None:
        peer = self._peer
        if peer is None:
            return "mdi:car-off"
        return {1: "mdi:motorbike", 2: "mdi:truck", 3: "mdi:bus"}.get(int(peer.vehicle_type), "mdi:car")

    @property
    def extra_state_attributes(self) -> dict | None:
        peer = self._peer
        if peer is None:
            return None
        return {
            "speed_kmh": round(peer.speed_kmh, 1),
            "heading_deg": round(peer.heading_deg),
            "vehicle_type": VEHICLE_TYPE_NAMES.get(int(peer.vehicle_type), "car"),
            "weight": round(peer.weight, 2),
            "fading": peer.fading,
            "last_seen_s": round(max(0.0, self.coordinator.data.timestamp_ms - peer.last_update_ms) / 1000),
        }


async def async_setup_entry(
    hass: HomeAssistant,
    config_entry: config_entries.ConfigEntry,
    async_add_entities,
):
    """Add the self tracker now and peer trackers as peers appear."""
    coordinator: PeerDriveCoordinator = config_entry.runtime_data
    known_peers: set[str] = set()

    @callback
    def _async_add_new_peers() -> None:
        new_ids = [peer_id for peer_id in coordinator.data.peers if peer_id not in known_peers]
        if not new_ids:
            return
        _LOGGER.debug("Adding trackers for peers: %s", new_ids)
        known_peers.update(new_ids)
        async_add_entities([PeerDrivePeerTracker(coordinator, peer_id) for peer_id in new_ids])

    async_add_entities([PeerDriveSelfTracker(coordinator)])
    _async_add_new_peers()
    config_entry.async_on_unload(coordinator.async_add_listener(_async_add_new_peers))
