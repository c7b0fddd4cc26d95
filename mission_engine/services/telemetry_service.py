"""
Telemetry ingestion and progress tracking for in-progress missions
"""

import logging
from typing import Dict, Any, Optional, Tuple

from mission_engine.core.locks import LockRegistry, mission_key
from mission_engine.core.mission.lifecycle import MissionAction, check_transition
from mission_engine.core.store import MissionStore
from mission_engine.models.domain import Drone, Mission
from mission_engine.services.events import EventPublisher
from mission_engine.utils.constants import Events
from mission_engine.utils.exceptions import StaleRecordError, ValidationError
from mission_engine.utils.helpers import clamp, get_current_timestamp
from mission_engine.utils.validators import ensure_valid, validate_progress

logger = logging.getLogger(__name__)

BATTERY_KEYS = ("battery_level", "batteryLevel")


def _payload_timestamp(payload: Dict[str, Any], default: float) -> float:
    timestamp = payload.get("timestamp", default)
    try:
        return float(timestamp)
    except (TypeError, ValueError):
        raise ValidationError("Telemetry timestamp must be a number", field="timestamp", value=timestamp)


def _battery_level(payload: Dict[str, Any]) -> Optional[float]:
    for key in BATTERY_KEYS:
        value = payload.get(key)
        if value is not None:
            try:
                return clamp(float(value), 0.0, 100.0)
            except (TypeError, ValueError):
                raise ValidationError("Battery level must be a number", field=key, value=value)
    return None


class TelemetryAggregator:
    """
    Keeps the latest telemetry snapshot and progress of each flying mission

    Updates for one mission are serialized by a per-mission progress lock that
    is independent from the lifecycle locks. Both paths meet at the store,
    whose version check turns a lost update into a retry.
    """

    def __init__(self, store: MissionStore, publisher: EventPublisher, commit_retries: int = 5):
        self.store = store
        self.publisher = publisher
        self.commit_retries = commit_retries
        self.locks = LockRegistry()

        self.total_payloads = 0
        self.dropped_payloads = 0

    @staticmethod
    def _merge(mission: Mission, payload: Dict[str, Any], now: float) -> bool:
        """Fold a payload into the mission snapshot, False if it is out of order"""
        timestamp = _payload_timestamp(payload, now)
        stored = mission.telemetry.get("timestamp")
        if stored is not None and timestamp < stored:
            return False

        mission.telemetry = {**mission.telemetry, **payload, "timestamp": timestamp, "received_at": now}
        return True

    @staticmethod
    def _apply_battery(drone: Drone, payload: Dict[str, Any], now: float) -> bool:
        level = _battery_level(payload)
        if level is None:
            return False
        drone.battery_level = level
        drone.updated_at = now
        return True

    async def _commit(self, mission: Mission, drone: Optional[Drone]):
        drones = [drone] if drone is not None else []
        await self.store.commit(missions=[mission], drones=drones)

    async def _with_retries(self, mission_id: str, mutate) -> Tuple[Mission, Any]:
        """Read, mutate and commit one mission, re-reading on version conflicts"""
        last_error = None
        async with self.locks.hold(mission_key(mission_id)):
            for attempt in range(self.commit_retries + 1):
                mission = await self.store.get_mission(mission_id)
                check_transition(mission.id, mission.status, MissionAction.UPDATE_PROGRESS)
                drone = await self.store.get_drone(mission.drone_id)

                result, changed_drone = mutate(mission, drone, get_current_timestamp())
                if result is False:
                    return mission, result

                try:
                    await self._commit(mission, drone if changed_drone else None)
                    return mission, result
                except StaleRecordError as e:
                    last_error = e
                    logger.warning(f"Progress update for mission {mission_id} hit a concurrent change "
                                   f"(attempt {attempt + 1}): {e.message}")
        raise last_error

    async def ingest(self, mission_id: str, payload: Dict[str, Any]) -> bool:
        """
        Store a telemetry payload for an in-progress mission

        Args:
            mission_id: Mission the payload belongs to
            payload: Free-form telemetry fields, optionally with a sender timestamp

        Returns:
            True if stored, False if dropped as out of order

        Raises:
            InvalidStateTransition: if the mission is not in progress
        """
        if not isinstance(payload, dict):
            raise ValidationError("Telemetry payload must be an object", field="telemetry")

        self.total_payloads += 1

        def mutate(mission: Mission, drone: Drone, now: float):
            if not self._merge(mission, payload, now):
                return False, False
            mission.updated_at = now
            return True, self._apply_battery(drone, payload, now)

        mission, stored = await self._with_retries(mission_id, mutate)
        if not stored:
            self.dropped_payloads += 1
            logger.debug(f"Dropped out-of-order telemetry for mission {mission_id}")
        return stored

    async def update_progress(self, mission_id: str, progress: float,
                              current_waypoint_index: Optional[int] = None,
                              telemetry: Optional[Dict[str, Any]] = None) -> Mission:
        """
        Record flight progress reported by the drone

        Progress is a percentage in [0, 100]. The remaining time estimate is
        rescaled from the mission's estimated duration.

        Raises:
            ValidationError: for an out-of-range progress value
            InvalidStateTransition: if the mission is not in progress
        """
        ensure_valid(validate_progress(progress), field="progress", value=progress)
        if current_waypoint_index is not None and current_waypoint_index < 0:
            raise ValidationError("Waypoint index cannot be negative",
                                  field="current_waypoint_index", value=current_waypoint_index)

        telemetry_dropped = False

        def mutate(mission: Mission, drone: Drone, now: float):
            nonlocal telemetry_dropped
            mission.progress = float(progress)
            if current_waypoint_index is not None:
                mission.current_waypoint_index = current_waypoint_index
            if mission.estimated_duration is not None:
                mission.estimated_time_remaining = mission.estimated_duration * (100 - progress) / 100
            mission.updated_at = now

            changed_drone = False
            telemetry_dropped = False
            if telemetry:
                if self._merge(mission, telemetry, now):
                    changed_drone = self._apply_battery(drone, telemetry, now)
                else:
                    telemetry_dropped = True
            return True, changed_drone

        mission, _ = await self._with_retries(mission_id, mutate)
        if telemetry:
            self.total_payloads += 1
            if telemetry_dropped:
                self.dropped_payloads += 1

        logger.debug(f"Mission {mission_id} progress {progress}%")
        await self.publisher.publish(Events.MISSION_PROGRESS_UPDATED, {
            "mission_id": mission.id,
            "progress": mission.progress,
            "current_waypoint_index": mission.current_waypoint_index,
            "estimated_time_remaining": mission.estimated_time_remaining,
        })
        return mission
