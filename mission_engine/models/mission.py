"""
Pydantic models for mission planning and control API endpoints
"""

from typing import Optional, Dict, Any, List
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from mission_engine.models.domain import GeoPoint, Waypoint
from mission_engine.utils.constants import PatternTypes, WaypointActions


# Request Models
class GeoPointRequest(BaseModel):
    """Latitude/longitude pair"""
    latitude: float = Field(..., description="Latitude in degrees")
    longitude: float = Field(..., description="Longitude in degrees")

    def to_point(self) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude)


class WaypointRequest(BaseModel):
    """Individual waypoint definition"""
    latitude: float = Field(..., description="Waypoint latitude")
    longitude: float = Field(..., description="Waypoint longitude")
    altitude: float = Field(..., description="Waypoint altitude in meters")
    order: int = Field(..., description="Position in the flight path, starting at 1", ge=1)
    action: WaypointActions = Field(WaypointActions.WAYPOINT, description="Action at the waypoint")
    speed: Optional[float] = Field(None, description="Speed override in m/s", gt=0)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "latitude": 45.815,
            "longitude": 15.982,
            "altitude": 50.0,
            "order": 1,
            "action": "waypoint",
            "speed": None
        }
    })

    def to_waypoint(self) -> Waypoint:
        return Waypoint(self.latitude, self.longitude, self.altitude, self.order, self.action, self.speed)


class FlightPlanRequest(BaseModel):
    """Request to generate waypoints over a boundary"""
    pattern: PatternTypes = Field(..., description="Survey pattern")
    boundary: List[GeoPointRequest] = Field(..., description="Boundary polygon vertices")
    altitude: float = Field(..., description="Flight altitude in meters")
    speed: float = Field(..., description="Flight speed in m/s")
    overlap: Optional[float] = Field(None, description="Image overlap percentage")
    rotation: float = Field(0, description="Grid rotation in degrees, multiples of 90")
    start_point: Optional[GeoPointRequest] = Field(None, description="Takeoff location")
    end_point: Optional[GeoPointRequest] = Field(None, description="Landing location")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "pattern": "grid",
            "boundary": [
                {"latitude": 45.810, "longitude": 15.970},
                {"latitude": 45.810, "longitude": 15.980},
                {"latitude": 45.820, "longitude": 15.980},
                {"latitude": 45.820, "longitude": 15.970}
            ],
            "altitude": 50.0,
            "speed": 8.0,
            "overlap": 70,
            "rotation": 0,
            "start_point": None,
            "end_point": None
        }
    })


class MissionCreateRequest(BaseModel):
    """Request to create a new mission"""
    name: str = Field(..., description="Mission name", min_length=1, max_length=100)
    description: Optional[str] = Field(None, description="Mission description", max_length=500)
    drone_id: str = Field(..., description="Drone to bind", min_length=1)
    waypoints: List[WaypointRequest] = Field(..., description="Ordered waypoints")
    altitude: float = Field(..., description="Flight altitude in meters")
    speed: float = Field(..., description="Flight speed in m/s")
    pattern: PatternTypes = Field(PatternTypes.GRID, description="Pattern the waypoints follow")
    overlap: Optional[float] = Field(None, description="Image overlap percentage")
    survey_id: Optional[str] = Field(None, description="Survey the mission belongs to")

    @field_validator('waypoints')
    @classmethod
    def validate_waypoints(cls, v):
        if len(v) == 0:
            raise ValueError('Mission must have at least one waypoint')
        return v


class MissionUpdateRequest(BaseModel):
    """Partial update of a planned mission"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    drone_id: Optional[str] = Field(None, min_length=1)
    waypoints: Optional[List[WaypointRequest]] = None
    altitude: Optional[float] = None
    speed: Optional[float] = None
    pattern: Optional[PatternTypes] = None
    overlap: Optional[float] = None

    def to_changes(self) -> Dict[str, Any]:
        """Only the fields the client sent"""
        changes = self.model_dump(exclude_unset=True, exclude={"waypoints"})
        if "waypoints" in self.model_fields_set and self.waypoints is not None:
            changes["waypoints"] = [wp.to_waypoint() for wp in self.waypoints]
        if changes.get("pattern") is not None:
            changes["pattern"] = changes["pattern"].value
        return {k: v for k, v in changes.items() if v is not None or k == "description"}


class AbortRequest(BaseModel):
    reason: Optional[str] = Field(None, description="Why the mission was aborted", max_length=500)


class CompleteRequest(BaseModel):
    """Completion metadata reported by the drone"""
    battery_used: float = Field(0, description="Battery used in percent", ge=0,
                                validation_alias=AliasChoices("battery_used", "batteryUsed"))
    images: int = Field(0, description="Images captured", ge=0)
    videos: int = Field(0, description="Videos recorded", ge=0)


class ProgressRequest(BaseModel):
    """Progress report for an in-progress mission"""
    progress: float = Field(..., description="Completion percentage 0-100")
    current_waypoint_index: Optional[int] = Field(None, description="Index of the current waypoint")
    telemetry: Optional[Dict[str, Any]] = Field(None, description="Telemetry fields to merge")


class DroneRegistrationRequest(BaseModel):
    id: str = Field(..., description="Fleet identifier", min_length=1)
    name: str = Field("", description="Display name")
    battery_level: float = Field(100.0, description="Battery level in percent", ge=0, le=100)


class SurveyRegistrationRequest(BaseModel):
    name: str = Field(..., description="Survey name", min_length=1, max_length=100)
    id: Optional[str] = Field(None, description="Identifier, generated when omitted")


# Response Models
class FlightPlanResponse(BaseModel):
    """Response for flight plan generation"""
    success: bool = Field(..., description="Whether the plan was generated")
    message: str = Field(..., description="Response message")
    pattern: str = Field(..., description="Pattern generated")
    waypoint_count: int = Field(..., description="Number of waypoints generated")
    total_distance: float = Field(..., description="Path length in meters")
    estimated_duration: float = Field(..., description="Estimated flight time in minutes")
    waypoints: List[Dict[str, Any]] = Field(..., description="Generated waypoints")


class MissionResponse(BaseModel):
    """Response for mission operations"""
    success: bool = Field(..., description="Whether the operation was successful")
    message: str = Field(..., description="Response message")
    mission: Dict[str, Any] = Field(..., description="Mission record after the operation")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "success": True,
            "message": "Mission started",
            "mission": {"id": "mission_a1B2c3D4e5F6", "status": "in-progress", "drone_id": "drone-1"}
        }
    })


class MissionListResponse(BaseModel):
    success: bool = Field(..., description="Whether the query succeeded")
    count: int = Field(..., description="Number of missions returned")
    missions: List[Dict[str, Any]] = Field(..., description="Matching missions, newest first")


class TelemetryResponse(BaseModel):
    success: bool = Field(..., description="Whether the payload was accepted")
    stored: bool = Field(..., description="False when dropped as out of order")
    mission_id: str = Field(..., description="Mission the payload belongs to")
