"""
Tests for survey pattern generation.
"""

import math
import unittest

from mission_engine.core.geo.geodesy import GeodesicCalculator
from mission_engine.core.mission import patterns
from mission_engine.models.domain import GeoPoint
from mission_engine.utils.constants import PatternTypes, WaypointActions
from mission_engine.utils.exceptions import ComputationError, ValidationError

SQUARE = [GeoPoint(0, 0), GeoPoint(0, 0.01), GeoPoint(0.01, 0.01), GeoPoint(0.01, 0)]
FIELD = [GeoPoint(45.810, 15.970), GeoPoint(45.812, 15.985), GeoPoint(45.822, 15.981), GeoPoint(45.819, 15.968)]


def orders(waypoints):
    return [wp.order for wp in waypoints]


class TestGrid(unittest.TestCase):
    """Test grid pattern."""

    def test_grid_size_and_order(self):
        waypoints = patterns.generate_grid(SQUARE, 50, overlap=0)
        # Spacing is a tenth of the extent, so 11 rows of 11 points
        self.assertEqual(len(waypoints), 121)
        self.assertEqual(orders(waypoints), list(range(1, 122)))

    def test_grid_alternates_direction(self):
        waypoints = patterns.generate_grid(SQUARE, 50, overlap=0)
        self.assertEqual(waypoints[0].longitude, 0)
        self.assertAlmostEqual(waypoints[10].longitude, 0.01)
        self.assertAlmostEqual(waypoints[11].longitude, 0.01)
        self.assertAlmostEqual(waypoints[11].latitude, 0.001)
        self.assertAlmostEqual(waypoints[21].longitude, 0)

    def test_grid_within_bounding_box(self):
        waypoints = patterns.generate_grid(FIELD, 40, overlap=65)
        bbox = GeodesicCalculator.bounding_box(FIELD)
        for wp in waypoints:
            self.assertTrue(bbox.contains(wp.latitude, wp.longitude))

    def test_grid_tags_and_altitude(self):
        waypoints = patterns.generate_grid(SQUARE, 35, overlap=50)
        self.assertTrue(all(wp.action == WaypointActions.WAYPOINT for wp in waypoints))
        self.assertTrue(all(wp.altitude == 35 for wp in waypoints))

    def test_rotation_sweeps_columns(self):
        waypoints = patterns.generate_grid(SQUARE, 50, overlap=0, rotation=90)
        self.assertTrue(all(wp.longitude == 0 for wp in waypoints[:11]))
        self.assertAlmostEqual(waypoints[10].latitude, 0.01)

    def test_rotation_must_be_right_angle(self):
        with self.assertRaises(ValidationError):
            patterns.generate_grid(SQUARE, 50, rotation=45)

    def test_zero_width_axis_gives_single_row(self):
        line = [GeoPoint(0, 0), GeoPoint(0, 0.01), GeoPoint(0, 0.005)]
        waypoints = patterns.generate_grid(line, 50, overlap=0)
        self.assertEqual(len(waypoints), 11)
        self.assertTrue(all(wp.latitude == 0 for wp in waypoints))

    def test_crosshatch_appends_rotated_pass(self):
        waypoints = patterns.generate_crosshatch(SQUARE, 50, overlap=0)
        self.assertEqual(len(waypoints), 242)
        self.assertEqual(orders(waypoints), list(range(1, 243)))
        # Second pass starts a column sweep from the corner
        self.assertEqual((waypoints[121].latitude, waypoints[121].longitude), (0, 0))
        self.assertAlmostEqual(waypoints[122].latitude, 0.001)
        self.assertEqual(waypoints[122].longitude, 0)


class TestPerimeterAndSpiral(unittest.TestCase):
    """Test perimeter and spiral patterns."""

    def test_perimeter_follows_vertices(self):
        waypoints = patterns.generate_perimeter(FIELD, 60)
        self.assertEqual([(wp.latitude, wp.longitude) for wp in waypoints],
                         [(p.latitude, p.longitude) for p in FIELD])
        self.assertEqual(orders(waypoints), [1, 2, 3, 4])

    def test_spiral_radius_non_decreasing(self):
        waypoints = patterns.generate_spiral(FIELD, 50, overlap=40)
        center_lat, center_lon = GeodesicCalculator.bounding_box(FIELD).center()
        radii = [math.hypot(wp.latitude - center_lat, wp.longitude - center_lon) for wp in waypoints]
        self.assertGreater(len(radii), 1)
        for previous, current in zip(radii, radii[1:]):
            self.assertGreaterEqual(current, previous - 1e-12)

    def test_spiral_stays_within_max_radius(self):
        waypoints = patterns.generate_spiral(SQUARE, 50)
        max_radius = math.hypot(0.005, 0.005)
        for wp in waypoints:
            self.assertLessEqual(math.hypot(wp.latitude - 0.005, wp.longitude - 0.005), max_radius + 1e-12)

    def test_degenerate_spiral_is_center_only(self):
        point = [GeoPoint(1, 1), GeoPoint(1, 1), GeoPoint(1, 1)]
        waypoints = patterns.generate_spiral(point, 50)
        self.assertEqual(len(waypoints), 1)
        self.assertEqual((waypoints[0].latitude, waypoints[0].longitude), (1, 1))


class TestGenerate(unittest.TestCase):
    """Test pattern dispatch and input validation."""

    def test_every_pattern_non_empty_and_dense(self):
        for pattern in (PatternTypes.GRID, PatternTypes.CROSSHATCH, PatternTypes.PERIMETER, PatternTypes.SPIRAL):
            for overlap in (10, 50, 80):
                waypoints = patterns.generate(pattern.value, FIELD, 50, overlap)
                self.assertTrue(waypoints, f"{pattern} at {overlap}%")
                self.assertEqual(orders(waypoints), list(range(1, len(waypoints) + 1)))

    def test_unknown_pattern(self):
        with self.assertRaises(ValidationError):
            patterns.generate("zigzag", SQUARE, 50)
        with self.assertRaises(ValidationError):
            patterns.generate(PatternTypes.CUSTOM.value, SQUARE, 50)

    def test_boundary_needs_three_points(self):
        with self.assertRaises(ValidationError):
            patterns.generate_grid(SQUARE[:2], 50)

    def test_altitude_must_be_positive(self):
        with self.assertRaises(ValidationError):
            patterns.generate_grid(SQUARE, 0)

    def test_generators_have_no_altitude_ceiling(self):
        waypoints = patterns.generate("grid", SQUARE, 150.0, 70)
        self.assertTrue(all(wp.altitude == 150.0 for wp in waypoints))

    def test_overlap_range(self):
        with self.assertRaises(ValidationError):
            patterns.generate_grid(SQUARE, 50, overlap=100)
        with self.assertRaises(ValidationError):
            patterns.generate_grid(SQUARE, 50, overlap=-5)

    def test_latitude_out_of_range(self):
        with self.assertRaises(ValidationError):
            patterns.generate_perimeter([GeoPoint(91, 0), GeoPoint(0, 1), GeoPoint(1, 1)], 50)

    def test_nan_boundary(self):
        with self.assertRaises(ComputationError):
            patterns.generate_grid([GeoPoint(float("nan"), 0), GeoPoint(0, 1), GeoPoint(1, 1)], 50)


if __name__ == '__main__':
    unittest.main()
