"""
Mission lifecycle rules.

Closed status enumerations for missions and drones and the single table of
allowed transitions. Every control operation is validated here before any
record is touched.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional

from mission_engine.utils.exceptions import InvalidStateTransition


class MissionStatus(str, Enum):
    """Mission status values"""
    PLANNED = "planned"
    IN_PROGRESS = "in-progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABORTED = "aborted"


class DroneStatus(str, Enum):
    """Drone status values"""
    AVAILABLE = "available"
    IDLE = "idle"
    ASSIGNED = "assigned"
    FLYING = "flying"
    HOVERING = "hovering"
    RETURNING = "returning"
    MAINTENANCE = "maintenance"
    OFFLINE = "offline"
    ERROR = "error"


class MissionAction(str, Enum):
    """Control operations on a mission"""
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    ABORT = "abort"
    COMPLETE = "complete"
    DELETE = "delete"
    UPDATE = "update"
    UPDATE_PROGRESS = "update progress of"


ACTIVE_STATUSES: FrozenSet[MissionStatus] = frozenset({
    MissionStatus.IN_PROGRESS, MissionStatus.PAUSED
})

TERMINAL_STATUSES: FrozenSet[MissionStatus] = frozenset({
    MissionStatus.COMPLETED, MissionStatus.ABORTED
})

# A drone in one of these may be bound to a new mission
FREE_DRONE_STATUSES: FrozenSet[DroneStatus] = frozenset({
    DroneStatus.AVAILABLE, DroneStatus.IDLE
})

# current_mission_id is set exactly while the drone is in one of these
BOUND_DRONE_STATUSES: FrozenSet[DroneStatus] = frozenset({
    DroneStatus.ASSIGNED, DroneStatus.FLYING, DroneStatus.HOVERING, DroneStatus.RETURNING
})


@dataclass(frozen=True)
class Transition:
    """
    One row of the lifecycle table

    Attributes:
        action: Operation requested
        allowed_from: Mission statuses the operation is legal in
        target: Mission status afterwards (None keeps the status or removes the mission)
        drone_status: Drone status afterwards (None leaves the drone untouched)
    """
    action: MissionAction
    allowed_from: FrozenSet[MissionStatus]
    target: Optional[MissionStatus] = None
    drone_status: Optional[DroneStatus] = None


TRANSITIONS: Dict[MissionAction, Transition] = {
    MissionAction.START: Transition(
        MissionAction.START,
        frozenset({MissionStatus.PLANNED}),
        MissionStatus.IN_PROGRESS,
        DroneStatus.FLYING,
    ),
    MissionAction.PAUSE: Transition(
        MissionAction.PAUSE,
        frozenset({MissionStatus.IN_PROGRESS}),
        MissionStatus.PAUSED,
        DroneStatus.HOVERING,
    ),
    MissionAction.RESUME: Transition(
        MissionAction.RESUME,
        frozenset({MissionStatus.PAUSED}),
        MissionStatus.IN_PROGRESS,
        DroneStatus.FLYING,
    ),
    MissionAction.ABORT: Transition(
        MissionAction.ABORT,
        ACTIVE_STATUSES,
        MissionStatus.ABORTED,
        DroneStatus.RETURNING,
    ),
    MissionAction.COMPLETE: Transition(
        MissionAction.COMPLETE,
        ACTIVE_STATUSES,
        MissionStatus.COMPLETED,
        DroneStatus.RETURNING,
    ),
    MissionAction.DELETE: Transition(
        MissionAction.DELETE,
        frozenset({MissionStatus.PLANNED}) | TERMINAL_STATUSES,
    ),
    MissionAction.UPDATE: Transition(
        MissionAction.UPDATE,
        frozenset({MissionStatus.PLANNED}),
    ),
    MissionAction.UPDATE_PROGRESS: Transition(
        MissionAction.UPDATE_PROGRESS,
        frozenset({MissionStatus.IN_PROGRESS}),
    ),
}


def check_transition(mission_id: str, current: MissionStatus, action: MissionAction) -> Transition:
    """
    Look up the transition for an action and verify it is legal

    Raises:
        InvalidStateTransition: if the mission's current status does not allow it
    """
    transition = TRANSITIONS[action]
    if current not in transition.allowed_from:
        raise InvalidStateTransition(mission_id, current.value, action.value)
    return transition


def is_drone_free(status: DroneStatus) -> bool:
    return status in FREE_DRONE_STATUSES
