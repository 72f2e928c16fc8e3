"""
DataUpdateCoordinator for the PeerDrive integration.

Responsibilities:
- Own the single ProximityEngine for the lifetime of a config entry.
- Feed it location fixes from the configured source entity.
- Drive three tiers at different frequencies:
    Tick    — peers + hazards   every update_interval (tick_interval_ms)
    Receive — relay poll        every RECEIVE_INTERVAL seconds
    Send    — own telemetry     every SEND_INTERVAL seconds
- Keep at most one relay call per channel in flight via RelayChannels.
- Fire one bus event per alert and push CoordinatorData snapshots to entities.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from datetime import timedelta

import aiohttp
from homeassistant.core import Event, HomeAssistant, callback
from homeassistant.helpers.event import async_track_state_change_event
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from .config import ProximityConfig
from .const import (
    CONF_ENTRY_NAME,
    CONF_RELAY_URL,
    CONF_SOURCE_ENTITY,
    CONF_VEHICLE_ID,
    CONF_VEHICLE_TYPE,
    DEFAULT_RELAY_URL,
    DOMAIN,
    EVENT_ALERT,
    RECEIVE_INTERVAL,
    SEND_INTERVAL,
    VEHICLE_TYPE_NAMES,
    VERSION,
)
from .coordinator_data import (
    STATUS_LOCATION_UNAVAILABLE,
    STATUS_OK,
    STATUS_PAUSED,
    STATUS_RELAY_ERROR,
    STATUS_RELAY_UNREACHABLE,
    STATUS_WAITING_FOR_LOCATION,
    CoordinatorData,
)
from .coordinator_utils import alert_event_data, apply_tick, fix_from_state, now_ms
from .engine import ProximityEngine
from .models import Alert, VehicleType
from .relay import RelayResponseError, receive_reports, send_telemetry
from .relay_channels import RelayChannels

__all__ = ["CoordinatorData", "PeerDriveCoordinator", "RelayChannels"]

_LOGGER = logging.getLogger(__name__)

CHANNEL_SEND = "send"
CHANNEL_RECEIVE = "receive"


class PeerDriveCoordinator(DataUpdateCoordinator[CoordinatorData]):
    """
    Coordinator for the PeerDrive integration.

    HA calls us every tick; the relay tiers are gated internally with their
    own timestamps and run as background tasks.
    """

    def __init__(self, hass: HomeAssistant, entry_data: dict, options: dict | None = None) -> None:
        """Initialize the coordinator from config-entry data and options."""
        self.config = ProximityConfig.from_options(options)
        super().__init__(
            hass,
            _LOGGER,
            name=DOMAIN,
            update_interval=timedelta(milliseconds=self.config.tick_interval_ms),
        )

        self._entry_data = entry_data
        self.vehicle_id: str = str(entry_data[CONF_VEHICLE_ID])
        self.vehicle_type = VehicleType.from_code(entry_data.get(CONF_VEHICLE_TYPE, VehicleType.CAR))
        self.relay_url: str = entry_data.get(CONF_RELAY_URL) or DEFAULT_RELAY_URL
        self.source_entity: str = entry_data[CONF_SOURCE_ENTITY]

        self.engine = ProximityEngine(self.config, self.vehicle_id, self.vehicle_type)
        self._channels = RelayChannels()

        # Tier timestamps, 0 so both relay tiers fire on the first call
        self._last_send: float = 0.0
        self._last_receive: float = 0.0

        # Problems reported by the collaborators, folded into data.status
        self._location_status: str | None = STATUS_WAITING_FOR_LOCATION
        self._relay_status: str | None = None

        self._unsub_source = None
        self._initial_refresh_done: bool = False

        self.data = CoordinatorData()

    # ------------------------------------------------------------------
    # HA entry point
    # ------------------------------------------------------------------

    async def _async_update_data(self) -> CoordinatorData:
        """
        Called by HA on every update_interval tick.

        First call: subscribes to the source entity, polls the relay once and
        returns a populated snapshot so async_config_entry_first_refresh()
        succeeds. Later calls fire due relay tiers in the background and
        return the result of one engine tick.
        """
        if not self._initial_refresh_done:
            if self.data.tracking:
                self._async_start_tracking()
            if self.data.sharing:
                await self._run_receive_tier()
            self._initial_refresh_done = True
            return self._tick()

        if self.data.sharing:
            now = time.monotonic()
            if now - self._last_receive >= RECEIVE_INTERVAL:
                self.hass.async_create_task(self._run_receive_tier())
            if now - self._last_send >= SEND_INTERVAL:
                self.hass.async_create_task(self._run_send_tier())

        return self._tick()

    # ------------------------------------------------------------------
    # Tick tier
    # ------------------------------------------------------------------

    def _tick(self) -> CoordinatorData:
        """Advance the engine one tick and build the next snapshot."""
        timestamp = now_ms()
        result = self.engine.tick(timestamp)
        for alert in result.alerts:
            self._dispatch_alert(alert)
        data = apply_tick(self.data, result, self.engine.state, self.engine.path(), timestamp)
        return dataclasses.replace(data, status=self._compute_status(data))

    def _dispatch_alert(self, alert: Alert) -> None:
        """Forward one alert to the HA event bus."""
        self.hass.bus.async_fire(EVENT_ALERT, alert_event_data(alert))

    # ------------------------------------------------------------------
    # Location source
    # ------------------------------------------------------------------

    @callback
    def _async_start_tracking(self) -> None:
        if self._unsub_source is not None:
            return
        self._unsub_source = async_track_state_change_event(
            self.hass, [self.source_entity], self._handle_source_event
        )
        # Seed with whatever the source knows right now
        self._ingest_source_state(self.hass.states.get(self.source_entity))

    @callback
    def _async_stop_tracking(self) -> None:
        if self._unsub_source is not None:
            self._unsub_source()
            self._unsub_source = None

    @callback
    def _handle_source_event(self, event: Event) -> None:
        self._ingest_source_state(event.data.get("new_state"))

    def _ingest_source_state(self, state) -> None:
        fix = fix_from_state(state)
        if fix is None:
            if self.engine.state is None:
                self._location_status = STATUS_WAITING_FOR_LOCATION if state is None else STATUS_LOCATION_UNAVAILABLE
            else:
                self._location_status = STATUS_LOCATION_UNAVAILABLE
            _LOGGER.debug("No usable location from %s", self.source_entity)
            return
        self.engine.ingest_self_fix(fix)
        self._location_status = None if self.engine.state is not None else STATUS_WAITING_FOR_LOCATION

    # ------------------------------------------------------------------
    # Relay tiers
    # ------------------------------------------------------------------

    async def _run_receive_tier(self) -> None:
        """Poll the relay for peer reports and hand them to the engine."""
        self._last_receive = time.monotonic()
        if self._channels.is_busy(CHANNEL_RECEIVE):
            _LOGGER.debug("Previous relay poll still running, skipping")
            return

        try:
            payload = await self._channels.run(CHANNEL_RECEIVE, lambda: receive_reports(self.relay_url))
        except (asyncio.TimeoutError, aiohttp.ClientError) as exc:
            _LOGGER.warning("Relay at %s unreachable: %s", self.relay_url, exc)
            self._relay_failed(STATUS_RELAY_UNREACHABLE)
            return
        except (RelayResponseError, ValueError) as exc:
            _LOGGER.warning("Relay at %s returned an unusable response: %s", self.relay_url, exc)
            self._relay_failed(STATUS_RELAY_ERROR)
            return

        accepted = self.engine.ingest_peer_payload(payload, now_ms())
        _LOGGER.debug("Relay poll accepted %s peer reports", accepted)
        self._set_relay_status(None)

    async def _run_send_tier(self) -> None:
        """Post our own telemetry to the relay."""
        self._last_send = time.monotonic()
        telemetry = self.engine.outbound_telemetry()
        if telemetry is None:
            return

        if self._channels.is_busy(CHANNEL_SEND):
            _LOGGER.debug("Previous telemetry send still running, skipping")
            return

        try:
            await self._channels.run(CHANNEL_SEND, lambda: send_telemetry(self.relay_url, telemetry))
        except (asyncio.TimeoutError, aiohttp.ClientError) as exc:
            _LOGGER.warning("Failed to send telemetry to %s: %s", self.relay_url, exc)
            self._set_relay_status(STATUS_RELAY_UNREACHABLE)
        except (RelayResponseError, ValueError) as exc:
            _LOGGER.warning("Relay at %s rejected telemetry: %s", self.relay_url, exc)
            self._set_relay_status(STATUS_RELAY_ERROR)

    def _relay_failed(self, status: str) -> None:
        self.engine.apply_empty_payload_policy()
        self._set_relay_status(status)

    def _set_relay_status(self, status: str | None) -> None:
        if status == self._relay_status:
            return
        self._relay_status = status
        self.async_set_updated_data(dataclasses.replace(self.data, status=self._compute_status(self.data)))

    def _compute_status(self, data: CoordinatorData) -> str:
        if not data.tracking:
            return STATUS_PAUSED
        if self._location_status is not None:
            return self._location_status
        if data.sharing and self._relay_status is not None:
            return self._relay_status
        return STATUS_OK

    # ------------------------------------------------------------------
    # Write path (called from switch.py)
    # ------------------------------------------------------------------

    async def async_set_tracking(self, enabled: bool) -> None:
        """Start or stop following the source entity."""
        if enabled == self.data.tracking:
            return
        if enabled:
            # Speed and heading must not be derived across the pause
            self.engine.reset()
            self._location_status = STATUS_WAITING_FOR_LOCATION
            self._async_start_tracking()
        else:
            self._async_stop_tracking()
        data = dataclasses.replace(self.data, tracking=enabled)
        self.async_set_updated_data(dataclasses.replace(data, status=self._compute_status(data)))

    async def async_set_sharing(self, enabled: bool) -> None:
        """Start or stop exchanging telemetry with the relay."""
        if enabled == self.data.sharing:
            return
        if not enabled:
            self._relay_status = None
        else:
            self._last_send = 0.0
            self._last_receive = 0.0
        data = dataclasses.replace(self.data, sharing=enabled)
        self.async_set_updated_data(dataclasses.replace(data, status=self._compute_status(data)))

    # ------------------------------------------------------------------
    # Entity helpers: device info dicts
    # ------------------------------------------------------------------

    def get_device_info(self) -> dict:
        """Return the HA DeviceInfo dict for our own vehicle."""
        return {
            "identifiers": {(DOMAIN, f"{self._entry_data['guid']}_{self.vehicle_id}")},
            "name": self._entry_data.get(CONF_ENTRY_NAME) or f"PeerDrive {self.vehicle_id}",
            "manufacturer": "PeerDrive",
            "model": VEHICLE_TYPE_NAMES.get(int(self.vehicle_type), "car").capitalize(),
            "sw_version": VERSION,
        }

    def get_peer_device_info(self, peer_id: str) -> dict | None:
        """Return the HA DeviceInfo dict for a peer vehicle."""
        peer = self.data.peers.get(peer_id)
        if peer is None:
            return None
        return {
            "identifiers": {(DOMAIN, f"{self._entry_data['guid']}_peer_{peer_id}")},
            "name": f"Peer {peer_id}",
            "manufacturer": "PeerDrive",
            "model": VEHICLE_TYPE_NAMES.get(int(peer.vehicle_type), "car").capitalize(),
            "via_device": (DOMAIN, f"{self._entry_data['guid']}_{self.vehicle_id}"),
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def async_shutdown(self) -> None:
        """Clean up all resources owned by this coordinator."""
        self._async_stop_tracking()
        await self._channels.shutdown()

    @property
    def entry_data(self):
        return self._entry_data
