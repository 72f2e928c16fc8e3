"""
Tests for PeerDriveCoordinator lifecycle: initialisation, initial refresh,
the location source subscription, alert dispatch, the switch write paths,
device info helpers, and shutdown.
"""

from __future__ import annotations

import unittest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

from custom_components.peerdrive.const import EVENT_ALERT
from custom_components.peerdrive.coordinator_data import (
    STATUS_LOCATION_UNAVAILABLE,
    STATUS_OK,
    STATUS_PAUSED,
    STATUS_RELAY_UNREACHABLE,
    STATUS_WAITING_FOR_LOCATION,
    CoordinatorData,
)
from custom_components.peerdrive.coordinator_utils import now_ms
from custom_components.peerdrive.models import HazardClass, VehicleType

from .test_common import make_coordinator, make_fix, make_peer, make_report, make_source_state

TRACK_PATH = "custom_components.peerdrive.coordinator.async_track_state_change_event"


def _capture(coord) -> list[CoordinatorData]:
    """Replace async_set_updated_data with a recorder that also stores the snapshot."""
    received = []

    def _set(data):
        received.append(data)
        coord.data = data

    coord.async_set_updated_data = _set
    return received


class TestCoordinatorInit(unittest.TestCase):

    def test_initial_snapshot_is_empty(self):
        coord = make_coordinator()
        self.assertIsInstance(coord.data, CoordinatorData)
        self.assertEqual(coord.data.peers, {})
        self.assertEqual(coord.data.status, STATUS_WAITING_FOR_LOCATION)

    def test_tier_timestamps_start_at_zero(self):
        coord = make_coordinator()
        self.assertEqual(coord._last_send, 0.0)
        self.assertEqual(coord._last_receive, 0.0)

    def test_initial_refresh_done_is_false(self):
        self.assertFalse(make_coordinator()._initial_refresh_done)

    def test_entry_data_applied(self):
        coord = make_coordinator(vehicle_id="truck-7", vehicle_type=2, relay_url="10.0.0.5")
        self.assertEqual(coord.vehicle_id, "truck-7")
        self.assertEqual(coord.vehicle_type, VehicleType.TRUCK)
        self.assertEqual(coord.relay_url, "10.0.0.5")
        self.assertEqual(coord.engine.vehicle_id, "truck-7")

    def test_options_drive_tick_interval(self):
        coord = make_coordinator(options={"tick_interval_ms": 200, "warn_distance_m": 300})
        self.assertEqual(coord.update_interval, timedelta(milliseconds=200))
        self.assertEqual(coord.engine.config.warn_distance_m, 300.0)


class TestInitialRefresh(unittest.IsolatedAsyncioTestCase):

    async def test_subscribes_and_polls_relay(self):
        coord = make_coordinator()
        with (
            patch(TRACK_PATH, return_value=MagicMock()) as track,
            patch.object(coord, "_run_receive_tier", new_callable=AsyncMock) as receive,
        ):
            data = await coord._async_update_data()

        track.assert_called_once_with(coord.hass, ["device_tracker.phone"], coord._handle_source_event)
        receive.assert_awaited_once()
        self.assertTrue(coord._initial_refresh_done)
        self.assertIsInstance(data, CoordinatorData)
        self.assertEqual(data.status, STATUS_WAITING_FOR_LOCATION)

    async def test_seeds_from_current_source_state(self):
        coord = make_coordinator()
        coord.hass.states.get = MagicMock(return_value=make_source_state(lat=46.0, lng=7.0, speed=5, course=90))
        with (
            patch(TRACK_PATH, return_value=MagicMock()),
            patch.object(coord, "_run_receive_tier", new_callable=AsyncMock),
        ):
            data = await coord._async_update_data()

        coord.hass.states.get.assert_called_with("device_tracker.phone")
        self.assertEqual(data.self_state.latitude, 46.0)
        self.assertAlmostEqual(data.self_state.speed_kmh, 18.0)
        self.assertEqual(data.status, STATUS_OK)

    async def test_relay_not_polled_when_sharing_off(self):
        coord = make_coordinator()
        coord.data = CoordinatorData(sharing=False)
        with (
            patch(TRACK_PATH, return_value=MagicMock()),
            patch.object(coord, "_run_receive_tier", new_callable=AsyncMock) as receive,
        ):
            await coord._async_update_data()
        receive.assert_not_awaited()


class TestLocationSource(unittest.TestCase):

    def test_state_change_feeds_engine(self):
        coord = make_coordinator()
        event = MagicMock()
        event.data = {"new_state": make_source_state(lat=46.0, lng=7.0, speed=10, course=180)}

        coord._handle_source_event(event)

        self.assertEqual(coord.engine.state.heading_deg, 180.0)
        self.assertAlmostEqual(coord.engine.state.speed_kmh, 36.0)
        self.assertIsNone(coord._location_status)

    def test_state_without_coordinates(self):
        coord = make_coordinator()
        state = make_source_state()
        state.attributes = {"gps_accuracy": 5}
        coord._ingest_source_state(state)
        self.assertEqual(coord._location_status, STATUS_LOCATION_UNAVAILABLE)

    def test_missing_entity_means_waiting(self):
        coord = make_coordinator()
        coord._ingest_source_state(None)
        self.assertEqual(coord._location_status, STATUS_WAITING_FOR_LOCATION)

    def test_lost_location_after_fix(self):
        coord = make_coordinator()
        coord._ingest_source_state(make_source_state())
        coord._ingest_source_state(None)
        self.assertEqual(coord._location_status, STATUS_LOCATION_UNAVAILABLE)
        # The last known self-state is kept
        self.assertIsNotNone(coord.engine.state)


class TestAlertDispatch(unittest.TestCase):

    def test_alert_fired_on_bus_and_stored(self):
        coord = make_coordinator()
        coord._location_status = None
        coord.engine.ingest_self_fix(make_fix(0.0, 0.0, 0, speed=40, heading=0))
        coord.engine.ingest_peer_report(make_report("v1", lat=-0.0005, lng=0.0, speed="60", heading=0), now_ms())

        data = coord._tick()

        coord.hass.bus.async_fire.assert_called_once()
        event_type, payload = coord.hass.bus.async_fire.call_args.args
        self.assertEqual(event_type, EVENT_ALERT)
        self.assertEqual(payload["hazard_class"], "fast_behind")
        self.assertEqual(payload["subject_vehicle_id"], "v1")
        self.assertEqual(data.last_alerts[HazardClass.FAST_BEHIND].subject_vehicle_id, "v1")
        self.assertIn("v1", data.peers)
        self.assertEqual(data.status, STATUS_OK)

    def test_quiet_tick_fires_nothing(self):
        coord = make_coordinator()
        data = coord._tick()
        coord.hass.bus.async_fire.assert_not_called()
        self.assertEqual(data.recent_alerts, [])


class TestSwitches(unittest.IsolatedAsyncioTestCase):

    async def test_pause_tracking_unsubscribes(self):
        coord = make_coordinator()
        unsub = MagicMock()
        received = _capture(coord)
        with patch(TRACK_PATH, return_value=unsub):
            coord._async_start_tracking()
            await coord.async_set_tracking(False)

        unsub.assert_called_once()
        self.assertFalse(received[-1].tracking)
        self.assertEqual(received[-1].status, STATUS_PAUSED)

    async def test_resume_tracking_resets_engine(self):
        coord = make_coordinator()
        _capture(coord)
        coord.engine.ingest_self_fix(make_fix(46.0, 7.0, 0))
        with patch(TRACK_PATH, return_value=MagicMock()) as track:
            await coord.async_set_tracking(False)
            await coord.async_set_tracking(True)

        track.assert_called_once()
        self.assertIsNone(coord.engine.state)
        self.assertTrue(coord.data.tracking)
        self.assertEqual(coord.data.status, STATUS_WAITING_FOR_LOCATION)

    async def test_unchanged_value_is_ignored(self):
        coord = make_coordinator()
        received = _capture(coord)
        await coord.async_set_tracking(True)
        await coord.async_set_sharing(True)
        self.assertEqual(received, [])

    async def test_stop_sharing_hides_relay_problems(self):
        coord = make_coordinator()
        received = _capture(coord)
        coord._location_status = None
        coord._relay_status = STATUS_RELAY_UNREACHABLE

        await coord.async_set_sharing(False)

        self.assertIsNone(coord._relay_status)
        self.assertFalse(received[-1].sharing)
        self.assertEqual(received[-1].status, STATUS_OK)

    async def test_resume_sharing_makes_tiers_due(self):
        coord = make_coordinator()
        _capture(coord)
        coord._last_send = coord._last_receive = 1e12
        await coord.async_set_sharing(False)
        await coord.async_set_sharing(True)
        self.assertEqual((coord._last_send, coord._last_receive), (0.0, 0.0))


class TestGetDeviceInfo(unittest.TestCase):

    def test_own_vehicle(self):
        info = make_coordinator().get_device_info()
        self.assertEqual(info["identifiers"], {("peerdrive", "test-guid_me")})
        self.assertEqual(info["name"], "Test Car")
        self.assertEqual(info["model"], "Car")

    def test_unknown_peer_returns_none(self):
        self.assertIsNone(make_coordinator().get_peer_device_info("ghost"))

    def test_known_peer(self):
        coord = make_coordinator()
        coord.data = CoordinatorData(peers={"v1": make_peer("v1", vehicle_type=VehicleType.TRUCK)})
        info = coord.get_peer_device_info("v1")
        self.assertEqual(info["identifiers"], {("peerdrive", "test-guid_peer_v1")})
        self.assertEqual(info["model"], "Truck")
        self.assertEqual(info["via_device"], ("peerdrive", "test-guid_me"))


class TestShutdown(unittest.IsolatedAsyncioTestCase):

    async def test_shutdown_unsubscribes_and_cancels_relay_calls(self):
        coord = make_coordinator()
        unsub = MagicMock()
        with patch(TRACK_PATH, return_value=unsub):
            coord._async_start_tracking()
        coord._channels.shutdown = AsyncMock()

        await coord.async_shutdown()

        unsub.assert_called_once()
        coord._channels.shutdown.assert_awaited_once()
        self.assertIsNone(coord._unsub_source)
