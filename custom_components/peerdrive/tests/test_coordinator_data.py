"""
Tests for CoordinatorData snapshots and the coordinator_utils helpers
(fix_from_state, alert_event_data, apply_tick).
"""

from __future__ import annotations

import dataclasses
import unittest
from datetime import datetime, timezone

from custom_components.peerdrive.coordinator_data import STATUS_WAITING_FOR_LOCATION, CoordinatorData
from custom_components.peerdrive.coordinator_utils import (
    DEFAULT_ACCURACY_M,
    alert_event_data,
    apply_tick,
    fix_from_state,
)
from custom_components.peerdrive.models import Alert, HazardClass, TickResult

from .test_common import make_peer, make_source_state, make_state


def _alert(hazard_class=HazardClass.FAST_BEHIND, t_ms=0.0, **kwargs) -> Alert:
    return Alert(hazard_class=hazard_class, message=hazard_class.value, timestamp_ms=t_ms, **kwargs)


class TestCoordinatorData(unittest.TestCase):

    def test_default_snapshot_is_empty(self):
        data = CoordinatorData()
        self.assertIsNone(data.self_state)
        self.assertEqual(data.path, [])
        self.assertEqual(data.peers, {})
        self.assertEqual(data.recent_alerts, [])
        self.assertIsNone(data.last_alert)
        self.assertTrue(data.tracking)
        self.assertTrue(data.sharing)
        self.assertEqual(data.status, STATUS_WAITING_FOR_LOCATION)

    def test_replace_preserves_other_fields(self):
        peer = make_peer("v1")
        data = CoordinatorData(peers={"v1": peer})
        new_data = dataclasses.replace(data, sharing=False)

        self.assertEqual(new_data.peers, {"v1": peer})
        self.assertFalse(new_data.sharing)
        self.assertTrue(data.sharing)

    def test_last_alert_is_newest(self):
        first, second = _alert(t_ms=1), _alert(HazardClass.SHARP_BEND, t_ms=2)
        self.assertIs(CoordinatorData(recent_alerts=[first, second]).last_alert, second)


class TestFixFromState(unittest.TestCase):

    def test_none_state(self):
        self.assertIsNone(fix_from_state(None))

    def test_missing_coordinates(self):
        state = make_source_state()
        del state.attributes["latitude"]
        self.assertIsNone(fix_from_state(state))

    def test_speed_converted_to_kmh(self):
        when = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
        fix = fix_from_state(make_source_state(lat=46.5, lng=7.5, accuracy=8, speed=10, course=270, when=when))
        self.assertEqual((fix.latitude, fix.longitude), (46.5, 7.5))
        self.assertEqual(fix.accuracy_m, 8.0)
        self.assertAlmostEqual(fix.reported_speed_kmh, 36.0)
        self.assertEqual(fix.reported_heading_deg, 270.0)
        self.assertEqual(fix.timestamp_ms, when.timestamp() * 1000)

    def test_negative_speed_and_course_mean_unknown(self):
        fix = fix_from_state(make_source_state(speed=-1, course=-1))
        self.assertIsNone(fix.reported_speed_kmh)
        self.assertIsNone(fix.reported_heading_deg)

    def test_missing_accuracy_uses_default(self):
        state = make_source_state()
        del state.attributes["gps_accuracy"]
        self.assertEqual(fix_from_state(state).accuracy_m, DEFAULT_ACCURACY_M)

    def test_heading_attribute_fallback(self):
        state = make_source_state()
        state.attributes["heading"] = 45
        self.assertEqual(fix_from_state(state).reported_heading_deg, 45.0)

    def test_non_numeric_attribute_ignored(self):
        fix = fix_from_state(make_source_state(speed="fast"))
        self.assertIsNone(fix.reported_speed_kmh)


class TestAlertEventData(unittest.TestCase):

    def test_peer_alert(self):
        data = alert_event_data(_alert(t_ms=1234, subject_vehicle_id="v1", distance_m=55.5961))
        self.assertEqual(
            data,
            {
                "hazard_class": "fast_behind",
                "subject_vehicle_id": "v1",
                "message": "fast_behind",
                "timestamp_ms": 1234,
                "distance_m": 55.6,
                "seconds": None,
            },
        )

    def test_bend_alert_has_no_subject(self):
        data = alert_event_data(_alert(HazardClass.HAIRPIN_BEND))
        self.assertIsNone(data["subject_vehicle_id"])
        self.assertIsNone(data["distance_m"])


class TestApplyTick(unittest.TestCase):

    def test_snapshot_reflects_tick(self):
        peer = make_peer("v1")
        alert = _alert(t_ms=500)
        state = make_state(46.0, 7.0)
        data = apply_tick(CoordinatorData(), TickResult([peer], [alert]), state, [(46.0, 7.0)], 500)

        self.assertIs(data.self_state, state)
        self.assertEqual(data.path, [(46.0, 7.0)])
        self.assertEqual(data.peers, {"v1": peer})
        self.assertEqual(data.recent_alerts, [alert])
        self.assertEqual(data.last_alerts, {HazardClass.FAST_BEHIND: alert})
        self.assertEqual(data.timestamp_ms, 500)

    def test_vanished_peers_dropped(self):
        data = CoordinatorData(peers={"v1": make_peer("v1")})
        data = apply_tick(data, TickResult([make_peer("v2")], []), None, [], 100)
        self.assertEqual(list(data.peers), ["v2"])

    def test_recent_alerts_capped(self):
        data = CoordinatorData(recent_alerts=[_alert(t_ms=i) for i in range(19)])
        result = TickResult([], [_alert(t_ms=100), _alert(HazardClass.SHARP_BEND, t_ms=101)])
        data = apply_tick(data, result, None, [], 101)
        self.assertEqual(len(data.recent_alerts), 20)
        self.assertEqual(data.recent_alerts[0].timestamp_ms, 1)
        self.assertEqual(data.last_alert.hazard_class, HazardClass.SHARP_BEND)

    def test_switch_state_untouched(self):
        data = apply_tick(CoordinatorData(tracking=False, sharing=False), TickResult(), None, [], 1)
        self.assertFalse(data.tracking)
        self.assertFalse(data.sharing)
