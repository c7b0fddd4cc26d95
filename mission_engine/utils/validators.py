"""
Data validation utilities for flight planning and mission control
"""

import math
from typing import Dict, Any, List, Optional, Sequence

from mission_engine.utils.constants import PatternTypes, SafetyLimits
from mission_engine.utils.exceptions import ValidationError


class ValidationResult:
    """Validation result container"""

    def __init__(self, valid: bool, message: str = "", details: Optional[Dict[str, Any]] = None):
        self.valid = valid
        self.message = message
        self.details = details or {}

    def __bool__(self) -> bool:
        return self.valid

    def __str__(self) -> str:
        return self.message


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# Coordinate Validation
def validate_coordinates(latitude: float, longitude: float) -> ValidationResult:
    """
    Validate GPS coordinates

    Args:
        latitude: Latitude in degrees
        longitude: Longitude in degrees

    Returns:
        ValidationResult indicating if coordinates are valid
    """
    if not _is_number(latitude):
        return ValidationResult(False, "Latitude must be a number")

    if not _is_number(longitude):
        return ValidationResult(False, "Longitude must be a number")

    if math.isnan(latitude) or math.isnan(longitude):
        return ValidationResult(False, "Coordinates cannot be NaN")

    if not (-90 <= latitude <= 90):
        return ValidationResult(
            False,
            f"Latitude {latitude} out of range (-90 to 90)",
            {"latitude": latitude, "valid_range": (-90, 90)}
        )

    if not (-180 <= longitude <= 180):
        return ValidationResult(
            False,
            f"Longitude {longitude} out of range (-180 to 180)",
            {"longitude": longitude, "valid_range": (-180, 180)}
        )

    return ValidationResult(True, "Coordinates are valid")


def validate_altitude(altitude: float, max_altitude: Optional[float] = None) -> ValidationResult:
    """
    Validate flight altitude

    Args:
        altitude: Altitude in meters, must be strictly positive
        max_altitude: Ceiling in meters, unchecked when None

    Returns:
        ValidationResult indicating if altitude is valid
    """
    if not _is_number(altitude):
        return ValidationResult(False, "Altitude must be a number")

    if altitude <= 0:
        return ValidationResult(
            False,
            f"Altitude {altitude}m must be greater than zero",
            {"altitude": altitude}
        )

    if max_altitude is not None and altitude > max_altitude:
        return ValidationResult(
            False,
            f"Altitude {altitude}m exceeds maximum {max_altitude}m",
            {"altitude": altitude, "max_altitude": max_altitude}
        )

    return ValidationResult(True, "Altitude is valid")


def validate_speed(speed: float, max_speed: float = SafetyLimits.MAX_SPEED) -> ValidationResult:
    """
    Validate flight speed

    Args:
        speed: Speed in m/s, must be strictly positive
        max_speed: Maximum allowed speed

    Returns:
        ValidationResult indicating if speed is valid
    """
    if not _is_number(speed):
        return ValidationResult(False, "Speed must be a number")

    if speed <= 0:
        return ValidationResult(
            False,
            f"Speed {speed}m/s must be greater than zero",
            {"speed": speed}
        )

    if speed > max_speed:
        return ValidationResult(
            False,
            f"Speed {speed}m/s exceeds maximum {max_speed}m/s",
            {"speed": speed, "max_speed": max_speed}
        )

    return ValidationResult(True, "Speed is valid")


def validate_overlap(overlap: float) -> ValidationResult:
    """Validate image overlap percentage, 100 would give zero line spacing"""
    if not _is_number(overlap):
        return ValidationResult(False, "Overlap must be a number")

    if not (0 <= overlap < 100):
        return ValidationResult(
            False,
            f"Overlap {overlap}% out of range (0 to <100)",
            {"overlap": overlap}
        )

    return ValidationResult(True, "Overlap is valid")


def validate_progress(progress: float) -> ValidationResult:
    """Validate mission progress percentage"""
    if not _is_number(progress):
        return ValidationResult(False, "Progress must be a number")

    if not (0 <= progress <= 100):
        return ValidationResult(
            False,
            f"Invalid progress value {progress} (0 to 100)",
            {"progress": progress}
        )

    return ValidationResult(True, "Progress is valid")


def validate_pattern(pattern: str) -> ValidationResult:
    """Validate pattern type name"""
    valid = [p.value for p in PatternTypes]
    if pattern not in valid:
        return ValidationResult(
            False,
            f"Invalid pattern type {pattern!r}, must be one of: {valid}",
            {"pattern": pattern}
        )
    return ValidationResult(True, "Pattern is valid")


def validate_boundary(boundary: Sequence[Any]) -> ValidationResult:
    """
    Validate a survey boundary polygon

    Args:
        boundary: Sequence of points exposing latitude/longitude

    Returns:
        ValidationResult indicating if boundary is usable
    """
    if boundary is None or len(boundary) < 3:
        count = 0 if boundary is None else len(boundary)
        return ValidationResult(
            False,
            "Boundary must contain at least 3 points",
            {"point_count": count}
        )

    for index, point in enumerate(boundary):
        result = validate_coordinates(point.latitude, point.longitude)
        if not result:
            return ValidationResult(
                False,
                f"Boundary point {index}: {result.message}",
                {"point_index": index}
            )

    return ValidationResult(True, "Boundary is valid")


def validate_waypoints(waypoints: List[Any], max_waypoints: int) -> ValidationResult:
    """Validate a mission waypoint list"""
    if len(waypoints) > max_waypoints:
        return ValidationResult(
            False,
            f"Mission exceeds maximum waypoints ({max_waypoints})",
            {"waypoint_count": len(waypoints)}
        )

    for index, waypoint in enumerate(waypoints):
        result = validate_coordinates(waypoint.latitude, waypoint.longitude)
        if not result:
            return ValidationResult(
                False,
                f"Waypoint {index}: {result.message}",
                {"waypoint_index": index}
            )

    orders = [wp.order for wp in waypoints]
    if orders != list(range(1, len(waypoints) + 1)):
        return ValidationResult(
            False,
            "Waypoint order must be dense and start at 1",
            {"orders": orders[:20]}
        )

    return ValidationResult(True, "Waypoints are valid")


def ensure_valid(result: ValidationResult, field: Optional[str] = None, value: Any = None):
    """Raise ValidationError for a failed result"""
    if not result:
        raise ValidationError(result.message, field=field, value=value)
