"""
Internal records for missions, drones and surveys
"""

import time
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field, asdict

from mission_engine.core.mission.lifecycle import MissionStatus, DroneStatus
from mission_engine.utils.constants import PatternTypes, SurveyStatus, WaypointActions


@dataclass(frozen=True)
class GeoPoint:
    """Plain latitude/longitude pair"""
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Waypoint:
    """Single targeted position a mission visits in order"""
    latitude: float
    longitude: float
    altitude: float
    order: int
    action: WaypointActions = WaypointActions.WAYPOINT
    speed: Optional[float] = None

    def renumbered(self, order: int) -> "Waypoint":
        return Waypoint(self.latitude, self.longitude, self.altitude, order, self.action, self.speed)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["action"] = self.action.value
        return data


@dataclass
class MissionStatistics:
    """Post-flight statistics, present only on completed missions"""
    distance: float = 0.0      # km
    area_covered: float = 0.0  # km²
    duration: float = 0.0      # minutes
    battery_used: float = 0.0  # percentage
    images: int = 0
    videos: int = 0


@dataclass
class Mission:
    """Flight mission bound to a single drone"""
    id: str
    name: str
    drone_id: str
    waypoints: List[Waypoint]
    altitude: float
    speed: float
    pattern: PatternTypes = PatternTypes.GRID
    overlap: float = 70.0
    description: Optional[str] = None
    survey_id: Optional[str] = None
    status: MissionStatus = MissionStatus.PLANNED
    progress: float = 0.0
    current_waypoint_index: int = 0
    estimated_duration: Optional[float] = None        # minutes
    estimated_time_remaining: Optional[float] = None  # minutes
    start_time: Optional[float] = None
    pause_time: Optional[float] = None
    end_time: Optional[float] = None
    statistics: Optional[MissionStatistics] = None
    abort_reason: Optional[str] = None
    telemetry: Dict[str, Any] = field(default_factory=dict)
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)
    version: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        data["pattern"] = self.pattern.value
        data["waypoints"] = [wp.to_dict() for wp in self.waypoints]
        return data


@dataclass
class Drone:
    """Physical resource a mission flies with"""
    id: str
    name: str = ""
    status: DroneStatus = DroneStatus.AVAILABLE
    current_mission_id: Optional[str] = None
    battery_level: float = 100.0
    flight_hours: float = 0.0
    updated_at: float = field(default_factory=time.time)
    version: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass
class Survey:
    """Group of missions flown over one site"""
    id: str
    name: str = ""
    status: SurveyStatus = SurveyStatus.PLANNED
    mission_ids: List[str] = field(default_factory=list)
    completed_at: Optional[float] = None
    version: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data
