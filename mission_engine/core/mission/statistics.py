"""
Post-flight mission statistics
"""

import logging
from typing import Dict, Any, Optional, Sequence

from mission_engine.core.geo.geodesy import GeodesicCalculator
from mission_engine.models.domain import Mission, MissionStatistics, Waypoint
from mission_engine.utils.constants import PatternTypes, TimeConstants

logger = logging.getLogger(__name__)

# Fewest waypoints for which an area estimate is attempted
MIN_WAYPOINTS_RECTANGULAR = 4
MIN_WAYPOINTS_POLYGON = 3


class StatisticsEngine:
    """Computes distance, area and duration for a finished mission"""

    @staticmethod
    def total_distance_km(waypoints: Sequence[Waypoint]) -> float:
        """Length of the whole planned path in km"""
        return GeodesicCalculator.path_length(waypoints) / 1000

    @staticmethod
    def area_covered(pattern: PatternTypes, waypoints: Sequence[Waypoint]) -> float:
        """
        Estimate covered area in km² for a pattern

        Grid and crosshatch use the waypoints' bounding rectangle, perimeter uses
        the shoelace polygon area. Spiral and custom paths have no estimator and
        report 0, as does any degenerate path.
        """
        if pattern in (PatternTypes.GRID, PatternTypes.CROSSHATCH):
            if len(waypoints) < MIN_WAYPOINTS_RECTANGULAR:
                return 0.0
            return GeodesicCalculator.rectangular_area(GeodesicCalculator.bounding_box(waypoints))

        if pattern == PatternTypes.PERIMETER:
            if len(waypoints) < MIN_WAYPOINTS_POLYGON:
                return 0.0
            return GeodesicCalculator.shoelace_polygon_area(waypoints)

        return 0.0

    @staticmethod
    def duration_minutes(start_time: Optional[float], end_time: float) -> float:
        if start_time is None:
            return 0.0
        return max(0.0, (end_time - start_time) / TimeConstants.SECONDS_PER_MINUTE)

    @classmethod
    def compute(cls, mission: Mission, end_time: float,
                extras: Optional[Dict[str, Any]] = None) -> MissionStatistics:
        """
        Build the statistics recorded on completion

        Args:
            mission: Mission being completed (start_time set)
            end_time: Completion time in epoch seconds
            extras: Caller-supplied batteryUsed/images/videos

        Returns:
            MissionStatistics
        """
        extras = extras or {}

        statistics = MissionStatistics(
            distance=cls.total_distance_km(mission.waypoints),
            area_covered=cls.area_covered(mission.pattern, mission.waypoints),
            duration=cls.duration_minutes(mission.start_time, end_time),
            battery_used=float(extras.get("battery_used", extras.get("batteryUsed", 0)) or 0),
            images=int(extras.get("images", 0) or 0),
            videos=int(extras.get("videos", 0) or 0),
        )

        logger.debug(f"Statistics for mission {mission.id}: {statistics}")
        return statistics
