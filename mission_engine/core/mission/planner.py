"""
Flight plan generation: pattern, optional path optimization and estimates
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Any, Dict

from mission_engine.core.geo.geodesy import GeodesicCalculator
from mission_engine.core.mission import patterns
from mission_engine.core.mission.optimizer import PathOptimizer
from mission_engine.models.domain import Waypoint
from mission_engine.utils.constants import PlanningDefaults, SafetyLimits, TimeConstants
from mission_engine.utils.validators import ensure_valid, validate_altitude, validate_speed

logger = logging.getLogger(__name__)


@dataclass
class FlightPlan:
    """Generated waypoints plus distance and duration estimates"""
    waypoints: List[Waypoint]
    pattern: str
    altitude: float
    speed: float
    overlap: float
    total_distance: float      # meters
    estimated_duration: float  # minutes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "waypoints": [wp.to_dict() for wp in self.waypoints],
            "pattern": self.pattern,
            "altitude": self.altitude,
            "speed": self.speed,
            "overlap": self.overlap,
            "total_distance": self.total_distance,
            "estimated_duration": self.estimated_duration,
        }


def estimate_duration(waypoints: Sequence[Any], speed: float) -> float:
    """Minutes needed to fly the path at a constant speed in m/s"""
    return GeodesicCalculator.path_length(waypoints) / (speed * TimeConstants.SECONDS_PER_MINUTE)


class FlightPlanner:
    """Turns a boundary and flight parameters into a flight plan"""

    def __init__(self, max_speed: float = SafetyLimits.MAX_SPEED,
                 max_altitude: float = SafetyLimits.MAX_ALTITUDE):
        self.max_speed = max_speed
        self.max_altitude = max_altitude

    def plan(self, pattern: str, boundary: Sequence[Any], altitude: float, speed: float,
             overlap: float = PlanningDefaults.OVERLAP_PERCENT,
             start_point: Optional[Any] = None, end_point: Optional[Any] = None,
             rotation: float = 0) -> FlightPlan:
        """
        Generate a flight plan

        The path is only optimized when both start_point and end_point are given.

        Raises:
            ValidationError: for bad boundary, altitude, speed, overlap or pattern
        """
        ensure_valid(validate_speed(speed, self.max_speed), field="speed", value=speed)
        ensure_valid(validate_altitude(altitude, self.max_altitude), field="altitude", value=altitude)

        waypoints = patterns.generate(pattern, boundary, altitude, overlap, rotation)

        if start_point is not None and end_point is not None:
            waypoints = PathOptimizer.optimize(waypoints, start_point, end_point)

        total_distance = GeodesicCalculator.path_length(waypoints)
        plan = FlightPlan(
            waypoints=waypoints,
            pattern=pattern,
            altitude=altitude,
            speed=speed,
            overlap=overlap,
            total_distance=total_distance,
            estimated_duration=estimate_duration(waypoints, speed),
        )

        logger.info(f"Flight plan generated: {pattern}, {len(waypoints)} waypoints, "
                    f"{total_distance:.0f}m, ~{plan.estimated_duration:.1f}min")
        return plan
