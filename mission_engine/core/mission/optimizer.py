"""
Waypoint path optimization
"""

import logging
from typing import List, Any

from mission_engine.core.geo.geodesy import GeodesicCalculator
from mission_engine.models.domain import Waypoint
from mission_engine.utils.constants import WaypointActions

logger = logging.getLogger(__name__)


class PathOptimizer:
    """Reorders a generated path to begin and end near caller-given points"""

    @staticmethod
    def nearest_index(waypoints: List[Waypoint], point: Any) -> int:
        """
        Index of the waypoint closest to a point

        Distance is planar in degree space rather than geodesic, which keeps
        plans identical to those produced by earlier releases.
        """
        best_index = 0
        best_distance = float("inf")
        for index, waypoint in enumerate(waypoints):
            distance = GeodesicCalculator.planar_distance(waypoint, point)
            if distance < best_distance:
                best_distance = distance
                best_index = index
        return best_index

    @classmethod
    def optimize(cls, waypoints: List[Waypoint], start_point: Any, end_point: Any) -> List[Waypoint]:
        """
        Wrap a path with a takeoff at start_point and a landing at end_point

        The waypoints between the ones nearest the start and end points are
        kept in their original order, wrapping past the end of the list when
        the start index comes after the end index.

        Args:
            waypoints: Generated path
            start_point: Takeoff location (latitude/longitude)
            end_point: Landing location (latitude/longitude)

        Returns:
            New path numbered densely from 1
        """
        altitude = waypoints[0].altitude if waypoints else 0.0
        path: List[Waypoint] = []

        if waypoints:
            start_index = cls.nearest_index(waypoints, start_point)
            end_index = cls.nearest_index(waypoints, end_point)

            if start_index <= end_index:
                path = waypoints[start_index:end_index + 1]
            else:
                path = waypoints[start_index:] + waypoints[:end_index + 1]

            logger.debug(f"Optimized path window {start_index}->{end_index} of {len(waypoints)} waypoints")

        takeoff = Waypoint(start_point.latitude, start_point.longitude, altitude, 1, WaypointActions.TAKEOFF)
        land = Waypoint(end_point.latitude, end_point.longitude, altitude, 1, WaypointActions.LAND)

        return [wp.renumbered(order) for order, wp in enumerate([takeoff, *path, land], start=1)]
