"""
Tests for path optimization and flight plan generation.
"""

import unittest

from mission_engine.core.geo.geodesy import GeodesicCalculator
from mission_engine.core.mission.optimizer import PathOptimizer
from mission_engine.core.mission.planner import FlightPlanner, estimate_duration
from mission_engine.models.domain import GeoPoint, Waypoint
from mission_engine.utils.constants import WaypointActions
from mission_engine.utils.exceptions import ValidationError

SQUARE = [GeoPoint(0, 0), GeoPoint(0, 0.01), GeoPoint(0.01, 0.01), GeoPoint(0.01, 0)]


def line_of_waypoints(count):
    return [Waypoint(0, float(i), 30, i + 1) for i in range(count)]


class TestPathOptimizer(unittest.TestCase):
    """Test PathOptimizer."""

    def test_nearest_index(self):
        waypoints = line_of_waypoints(5)
        self.assertEqual(PathOptimizer.nearest_index(waypoints, GeoPoint(0.1, 2.9)), 3)

    def test_forward_window(self):
        waypoints = line_of_waypoints(5)
        path = PathOptimizer.optimize(waypoints, GeoPoint(0, 0.9), GeoPoint(0, 3.2))

        self.assertEqual(path[0].action, WaypointActions.TAKEOFF)
        self.assertEqual(path[-1].action, WaypointActions.LAND)
        self.assertEqual([wp.longitude for wp in path[1:-1]], [1.0, 2.0, 3.0])
        self.assertEqual([wp.order for wp in path], [1, 2, 3, 4, 5])

    def test_window_wraps_around(self):
        waypoints = line_of_waypoints(5)
        path = PathOptimizer.optimize(waypoints, GeoPoint(0, 3), GeoPoint(0, 1))

        self.assertEqual([wp.longitude for wp in path[1:-1]], [3.0, 4.0, 0.0, 1.0])
        self.assertEqual([wp.order for wp in path], list(range(1, 7)))

    def test_synthetic_points_use_path_altitude(self):
        path = PathOptimizer.optimize(line_of_waypoints(3), GeoPoint(5, 5), GeoPoint(6, 6))
        self.assertEqual((path[0].latitude, path[0].longitude), (5, 5))
        self.assertEqual((path[-1].latitude, path[-1].longitude), (6, 6))
        self.assertEqual(path[0].altitude, 30)

    def test_empty_path(self):
        path = PathOptimizer.optimize([], GeoPoint(1, 1), GeoPoint(2, 2))
        self.assertEqual([wp.action for wp in path], [WaypointActions.TAKEOFF, WaypointActions.LAND])


class TestFlightPlanner(unittest.TestCase):
    """Test FlightPlanner."""

    def setUp(self):
        self.planner = FlightPlanner(max_speed=20)

    def test_plan_estimates(self):
        plan = self.planner.plan("grid", SQUARE, 50, 5, overlap=0)

        self.assertEqual(len(plan.waypoints), 121)
        self.assertAlmostEqual(plan.total_distance, GeodesicCalculator.path_length(plan.waypoints))
        self.assertAlmostEqual(plan.estimated_duration, plan.total_distance / 300)
        self.assertEqual(plan.to_dict()["waypoints"][0]["action"], "waypoint")

    def test_plan_optimized_only_with_both_points(self):
        plan = self.planner.plan("perimeter", SQUARE, 50, 5, start_point=GeoPoint(0, 0))
        self.assertEqual(plan.waypoints[0].action, WaypointActions.WAYPOINT)

        plan = self.planner.plan("perimeter", SQUARE, 50, 5,
                                 start_point=GeoPoint(0, 0), end_point=GeoPoint(0.01, 0))
        self.assertEqual(plan.waypoints[0].action, WaypointActions.TAKEOFF)
        self.assertEqual(plan.waypoints[-1].action, WaypointActions.LAND)
        self.assertEqual(len(plan.waypoints), 6)

    def test_speed_validation(self):
        with self.assertRaises(ValidationError):
            self.planner.plan("grid", SQUARE, 50, 0)
        with self.assertRaises(ValidationError):
            self.planner.plan("grid", SQUARE, 50, 25)

    def test_altitude_ceiling_from_planner(self):
        with self.assertRaises(ValidationError):
            self.planner.plan("grid", SQUARE, 150, 5)

        plan = FlightPlanner(max_speed=20, max_altitude=200).plan("grid", SQUARE, 150, 5, overlap=0)
        self.assertEqual(plan.waypoints[0].altitude, 150)

    def test_estimate_duration_single_waypoint(self):
        self.assertEqual(estimate_duration([Waypoint(0, 0, 10, 1)], 5), 0.0)


if __name__ == '__main__':
    unittest.main()
