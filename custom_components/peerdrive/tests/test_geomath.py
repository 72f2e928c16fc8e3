"""Tests for the geometric helpers in geomath.py."""

from __future__ import annotations

import unittest

from custom_components.peerdrive.geomath import (
    angle_between,
    angle_delta,
    bearing_degrees,
    blend_degrees,
    distance_meters,
    normalize_degrees,
    offset_position,
    smoothstep,
)


class TestDistance(unittest.TestCase):

    def test_identical_points_are_zero(self):
        self.assertEqual(distance_meters(46.5, 7.9, 46.5, 7.9), 0.0)

    def test_one_millidegree_latitude(self):
        self.assertAlmostEqual(distance_meters(0, 0, 0.001, 0), 111.19, delta=0.1)

    def test_symmetric(self):
        a = distance_meters(46.0, 7.0, 46.01, 7.02)
        b = distance_meters(46.01, 7.02, 46.0, 7.0)
        self.assertAlmostEqual(a, b, places=6)

    def test_antipodes_are_finite(self):
        d = distance_meters(0, 0, 0, 180)
        self.assertAlmostEqual(d, 3.14159265 * 6_371_000, delta=1.0)


class TestBearing(unittest.TestCase):

    def test_cardinal_directions(self):
        self.assertAlmostEqual(bearing_degrees(0, 0, 1, 0), 0.0, places=6)
        self.assertAlmostEqual(bearing_degrees(0, 0, 0, 1), 90.0, places=6)
        self.assertAlmostEqual(bearing_degrees(0, 0, -1, 0), 180.0, places=6)
        self.assertAlmostEqual(bearing_degrees(0, 0, 0, -1), 270.0, places=6)

    def test_range(self):
        for lat2, lng2 in [(1, 1), (-1, 1), (-1, -1), (1, -1)]:
            b = bearing_degrees(0, 0, lat2, lng2)
            self.assertGreaterEqual(b, 0.0)
            self.assertLess(b, 360.0)


class TestAngles(unittest.TestCase):

    def test_normalize(self):
        self.assertEqual(normalize_degrees(370), 10)
        self.assertEqual(normalize_degrees(-90), 270)
        self.assertEqual(normalize_degrees(360), 0)
        self.assertEqual(normalize_degrees(-1e-15), 0.0)

    def test_delta_takes_shortest_path(self):
        self.assertEqual(angle_delta(350, 10), 20)
        self.assertEqual(angle_delta(10, 350), -20)
        self.assertEqual(angle_delta(0, 180), 180)

    def test_between(self):
        self.assertEqual(angle_between(10, 170), 160)
        self.assertEqual(angle_between(350, 10), 20)

    def test_blend_wraps_through_north(self):
        self.assertAlmostEqual(blend_degrees(350, 10, 0.5), 0.0)
        self.assertAlmostEqual(blend_degrees(90, 180, 0.25), 112.5)


class TestOffsetAndEasing(unittest.TestCase):

    def test_offset_north_matches_distance(self):
        lat, lng = offset_position(0, 0, 0, 111.111)
        self.assertAlmostEqual(lat, 0.001, places=6)
        self.assertEqual(lng, 0)

    def test_offset_east(self):
        lat, lng = offset_position(0, 0, 90, 100)
        self.assertAlmostEqual(lat, 0.0, places=9)
        self.assertGreater(lng, 0)

    def test_zero_distance_is_noop(self):
        self.assertEqual(offset_position(46.1, 7.2, 123, 0), (46.1, 7.2))

    def test_smoothstep(self):
        self.assertEqual(smoothstep(0), 0)
        self.assertEqual(smoothstep(1), 1)
        self.assertEqual(smoothstep(0.5), 0.5)
        self.assertEqual(smoothstep(2), 1)
        self.assertEqual(smoothstep(-1), 0)
