"""
Application constants and enumerations
"""

from enum import Enum


# Mission Constants
class PatternTypes(str, Enum):
    """Survey flight pattern types"""
    GRID = "grid"
    CROSSHATCH = "crosshatch"
    PERIMETER = "perimeter"
    SPIRAL = "spiral"
    CUSTOM = "custom"


class WaypointActions(str, Enum):
    """Action performed at a waypoint"""
    WAYPOINT = "waypoint"
    TAKEOFF = "takeoff"
    LAND = "land"
    HOVER = "hover"
    CAPTURE = "capture"


class SurveyStatus(str, Enum):
    """Survey status values"""
    PLANNED = "planned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ARCHIVED = "archived"


# Notification events
class Events:
    """Event names published on every successful transition"""
    MISSION_CREATED = "mission:created"
    MISSION_UPDATED = "mission:updated"
    MISSION_STARTED = "mission:started"
    MISSION_PAUSED = "mission:paused"
    MISSION_RESUMED = "mission:resumed"
    MISSION_ABORTED = "mission:aborted"
    MISSION_COMPLETED = "mission:completed"
    MISSION_DELETED = "mission:deleted"
    MISSION_PROGRESS_UPDATED = "mission:progress_updated"
    DRONE_STATUS_CHANGED = "drone:status_changed"
    SURVEY_COMPLETED = "survey:completed"


# Error Codes
class ErrorCodes:
    """Application error codes"""
    # Input errors (1100-1199)
    VALIDATION_FAILED = 1101
    INVALID_PARAMETER = 1103

    # Lookup errors (1200-1299)
    MISSION_NOT_FOUND = 1201
    DRONE_NOT_FOUND = 1202
    SURVEY_NOT_FOUND = 1203

    # Mission errors (1300-1399)
    RESOURCE_CONFLICT = 1301
    INVALID_STATE_TRANSITION = 1302
    STALE_RECORD = 1303
    DRONE_RELEASE_FAILED = 1304

    # Software errors (1500-1599)
    INTERNAL_ERROR = 1501
    COMPUTATION_ERROR = 1502


# Safety Constants
class SafetyLimits:
    """Safety limit constants"""
    MAX_ALTITUDE = 120  # meters (FAA limit)
    MAX_SPEED = 20      # m/s


class EarthConstants:
    """Earth-related constants"""
    RADIUS_METERS = 6371000    # Earth's radius in meters
    RADIUS_KM = 6371
    # Degrees to km conversion used by the shoelace area estimate (equatorial)
    KM_PER_DEGREE = 111


class PlanningDefaults:
    """Defaults used when generating flight plans"""
    OVERLAP_PERCENT = 70
    GRID_DIVISIONS = 10
    ABORT_REASON = "Manually aborted"


# Time Constants
class TimeConstants:
    """Time-related constants"""
    SECONDS_PER_MINUTE = 60
    MINUTES_PER_HOUR = 60
