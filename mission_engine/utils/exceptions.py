"""
Custom exception classes for the mission engine
"""

from typing import Optional, Dict, Any
from mission_engine.utils.constants import ErrorCodes


class MissionEngineException(Exception):
    """Base exception class for the mission engine"""

    def __init__(self, message: str, error_code: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code or ErrorCodes.INTERNAL_ERROR
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses"""
        return {
            "error": True,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
            "exception_type": self.__class__.__name__
        }


# Input Exceptions
class ValidationError(MissionEngineException):
    """Malformed input, rejected before any mutation"""

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Optional[Any] = None):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)

        super().__init__(message, ErrorCodes.VALIDATION_FAILED, details)


class NotFoundError(MissionEngineException):
    """Referenced mission/drone/survey does not resolve"""

    _codes = {
        "mission": ErrorCodes.MISSION_NOT_FOUND,
        "drone": ErrorCodes.DRONE_NOT_FOUND,
        "survey": ErrorCodes.SURVEY_NOT_FOUND,
    }

    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        message = f"{resource.capitalize()} {resource_id} not found"
        details = {"resource": resource, "resource_id": resource_id}
        super().__init__(message, self._codes.get(resource, ErrorCodes.INVALID_PARAMETER), details)


# Mission Exceptions
class MissionException(MissionEngineException):
    """Base class for mission-related exceptions"""
    pass


class ResourceConflict(MissionException):
    """Drone cannot be bound because it is not available"""

    def __init__(self, drone_id: str, drone_status: str, mission_id: Optional[str] = None):
        message = f"Drone {drone_id} is not available for mission (status: {drone_status})"
        details = {
            "drone_id": drone_id,
            "drone_status": drone_status
        }
        if mission_id:
            details["mission_id"] = mission_id

        super().__init__(message, ErrorCodes.RESOURCE_CONFLICT, details)


class InvalidStateTransition(MissionException):
    """Lifecycle transition requested from a disallowed state"""

    def __init__(self, mission_id: str, current_status: str, action: str):
        self.current_status = current_status
        self.action = action
        message = f"Cannot {action} mission {mission_id} while it is {current_status}"
        details = {
            "mission_id": mission_id,
            "current_status": current_status,
            "action": action
        }
        super().__init__(message, ErrorCodes.INVALID_STATE_TRANSITION, details)


class StaleRecordError(MissionException):
    """A record changed between read and commit"""

    def __init__(self, resource: str, resource_id: str, expected_version: int,
                 actual_version: Optional[int]):
        message = (f"{resource.capitalize()} {resource_id} was modified concurrently "
                   f"(expected version {expected_version}, found {actual_version})")
        details = {
            "resource": resource,
            "resource_id": resource_id,
            "expected_version": expected_version,
            "actual_version": actual_version
        }
        super().__init__(message, ErrorCodes.STALE_RECORD, details)


class DroneReleaseError(MissionException):
    """Deferred return-to-available could not be applied"""

    def __init__(self, drone_id: str, attempts: int, error_details: Optional[str] = None):
        message = f"Failed to release drone {drone_id} after {attempts} attempts"
        details = {"drone_id": drone_id, "attempts": attempts}
        if error_details:
            details["error_details"] = error_details

        super().__init__(message, ErrorCodes.DRONE_RELEASE_FAILED, details)


# Software Exceptions
class ComputationError(MissionEngineException):
    """Unrecoverable geometry input such as NaN coordinates"""

    def __init__(self, message: str, operation: Optional[str] = None):
        details = {}
        if operation:
            details["operation"] = operation

        super().__init__(message, ErrorCodes.COMPUTATION_ERROR, details)


# Exception Handler Utilities
def handle_exception(exception: Exception) -> Dict[str, Any]:
    """Convert any exception to a standardized dictionary format"""
    if isinstance(exception, MissionEngineException):
        return exception.to_dict()
    else:
        return {
            "error": True,
            "message": str(exception),
            "error_code": ErrorCodes.INTERNAL_ERROR,
            "details": {"original_exception": exception.__class__.__name__},
            "exception_type": "UnhandledException"
        }
