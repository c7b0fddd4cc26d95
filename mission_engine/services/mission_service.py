"""
Mission lifecycle management

Every control operation goes through one path: lock the mission and its drone,
validate the transition against the lifecycle table, mutate copies of both
records and commit them together. Events and deferred drone releases only
happen after the commit succeeded.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Callable, Awaitable

from config.settings import Settings, get_settings
from mission_engine.core.geo.geodesy import ensure_finite
from mission_engine.core.locks import LockRegistry, drone_key, mission_key
from mission_engine.core.mission.lifecycle import (
    DroneStatus, MissionAction, MissionStatus, Transition, check_transition, is_drone_free
)
from mission_engine.core.mission.planner import estimate_duration
from mission_engine.core.mission.statistics import StatisticsEngine
from mission_engine.core.store import MissionStore
from mission_engine.models.domain import Drone, Mission, Survey, Waypoint
from mission_engine.services.events import EventPublisher
from mission_engine.services.release_scheduler import DroneReleaseScheduler
from mission_engine.services.survey_service import SurveyCoordinator
from mission_engine.services.telemetry_service import TelemetryAggregator
from mission_engine.utils.constants import Events, PatternTypes, PlanningDefaults, TimeConstants
from mission_engine.utils.exceptions import NotFoundError, ResourceConflict, StaleRecordError, ValidationError
from mission_engine.utils.helpers import clamp, generate_id, get_current_timestamp
from mission_engine.utils.validators import (
    ensure_valid, validate_altitude, validate_overlap, validate_pattern, validate_speed, validate_waypoints
)

logger = logging.getLogger(__name__)

MISSION_EVENTS = {
    MissionAction.START: Events.MISSION_STARTED,
    MissionAction.PAUSE: Events.MISSION_PAUSED,
    MissionAction.RESUME: Events.MISSION_RESUMED,
    MissionAction.ABORT: Events.MISSION_ABORTED,
    MissionAction.COMPLETE: Events.MISSION_COMPLETED,
    MissionAction.DELETE: Events.MISSION_DELETED,
    MissionAction.UPDATE: Events.MISSION_UPDATED,
}

UPDATABLE_FIELDS = ("name", "description", "waypoints", "altitude", "speed", "pattern", "overlap", "drone_id")


@dataclass
class TransitionOutcome:
    """Records touched by one transition, committed together"""
    mission: Mission
    drones: List[Drone] = field(default_factory=list)
    surveys: List[Survey] = field(default_factory=list)
    deleted: bool = False


Mutator = Callable[[Mission, Drone, Transition, float], Awaitable[TransitionOutcome]]


class MissionLifecycleManager:
    """
    Single authority over missions and the drones bound to them

    Args:
        store: Persistence collaborator
        publisher: Event sink, a private one is created if omitted
        settings: Engine settings, defaults to the cached application settings
    """

    def __init__(self, store: MissionStore, publisher: Optional[EventPublisher] = None,
                 settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.store = store
        self.publisher = publisher or EventPublisher(self.settings.EVENT_HISTORY_SIZE)
        self.locks = LockRegistry()

        self.release_scheduler = DroneReleaseScheduler(
            store, self.publisher, self.locks,
            grace_seconds=self.settings.DRONE_RETURN_GRACE_SECONDS,
            retry_attempts=self.settings.RELEASE_RETRY_ATTEMPTS,
            retry_delay=self.settings.RELEASE_RETRY_DELAY,
        )
        self.telemetry = TelemetryAggregator(store, self.publisher, self.settings.STORE_COMMIT_RETRIES)
        self.surveys = SurveyCoordinator(store, self.publisher, self.settings.STORE_COMMIT_RETRIES)

        self.transition_counts: Dict[str, int] = {}

    async def shutdown(self):
        """Cancel pending drone releases"""
        pending = self.release_scheduler.pending_count()
        await self.release_scheduler.shutdown()
        if pending:
            logger.warning(f"Shutdown cancelled {pending} pending drone releases")

    # Input validation

    def _validate_flight(self, altitude: float, speed: float, waypoints: List[Waypoint]):
        ensure_valid(validate_altitude(altitude, self.settings.MAX_ALTITUDE), field="altitude", value=altitude)
        ensure_valid(validate_speed(speed, self.settings.MAX_SPEED), field="speed", value=speed)
        self._validate_waypoints(waypoints)

    def _validate_waypoints(self, waypoints: List[Waypoint]):
        if not waypoints:
            raise ValidationError("Mission must have at least one waypoint", field="waypoints")
        ensure_finite(waypoints)
        ensure_valid(validate_waypoints(waypoints, self.settings.MAX_WAYPOINTS), field="waypoints")

    @staticmethod
    def _validate_plan_params(pattern: str, overlap: float):
        ensure_valid(validate_pattern(pattern), field="pattern", value=pattern)
        ensure_valid(validate_overlap(overlap), field="overlap", value=overlap)

    @staticmethod
    def _bind(drone: Drone, mission_id: str, now: float):
        drone.status = DroneStatus.ASSIGNED
        drone.current_mission_id = mission_id
        drone.updated_at = now

    @staticmethod
    def _unbind(drone: Drone, now: float):
        drone.status = DroneStatus.AVAILABLE
        drone.current_mission_id = None
        drone.updated_at = now

    def _count(self, action: str):
        self.transition_counts[action] = self.transition_counts.get(action, 0) + 1

    # Event helpers

    async def _publish_drone(self, drone: Drone):
        await self.publisher.publish(Events.DRONE_STATUS_CHANGED, {
            "drone_id": drone.id,
            "status": drone.status.value,
            "mission_id": drone.current_mission_id,
        })

    async def _publish_mission(self, event: str, mission: Mission, **extra):
        payload = {"mission_id": mission.id, "status": mission.status.value, "drone_id": mission.drone_id}
        payload.update(extra)
        await self.publisher.publish(event, payload)

    async def _after_transition(self, action: MissionAction, outcome: TransitionOutcome, **extra):
        await self._publish_mission(MISSION_EVENTS[action], outcome.mission, **extra)
        for drone in outcome.drones:
            await self._publish_drone(drone)

    # Creation

    async def create(self, name: str, drone_id: str, waypoints: List[Waypoint], altitude: float, speed: float,
                     pattern: str = PatternTypes.GRID.value, overlap: Optional[float] = None,
                     description: Optional[str] = None, survey_id: Optional[str] = None) -> Mission:
        """
        Create a planned mission and bind its drone

        Args:
            name: Mission name
            drone_id: Drone to bind, must be available or idle
            waypoints: Ordered waypoints, orders dense from 1
            altitude: Flight altitude in meters
            speed: Flight speed in m/s
            pattern: Pattern the waypoints were generated with
            overlap: Image overlap percentage
            description: Free text
            survey_id: Survey the mission belongs to

        Returns:
            The committed mission

        Raises:
            ValidationError: for malformed flight parameters
            NotFoundError: if the drone or survey does not exist
            ResourceConflict: if the drone is not free
        """
        if not name or not str(name).strip():
            raise ValidationError("Mission name is required", field="name")
        overlap = self.settings.DEFAULT_OVERLAP if overlap is None else overlap
        pattern = getattr(pattern, "value", pattern)
        self._validate_flight(altitude, speed, waypoints)
        self._validate_plan_params(pattern, overlap)

        mission_id = generate_id("mission", 12)
        last_error = None

        for attempt in range(self.settings.STORE_COMMIT_RETRIES + 1):
            async with self.locks.hold(drone_key(drone_id), mission_key(mission_id)):
                drone = await self.store.get_drone(drone_id)
                if not is_drone_free(drone.status):
                    raise ResourceConflict(drone_id, drone.status.value)

                surveys = []
                if survey_id:
                    survey = await self.store.get_survey(survey_id)
                    survey.mission_ids.append(mission_id)
                    surveys.append(survey)

                now = get_current_timestamp()
                mission = Mission(
                    id=mission_id,
                    name=str(name).strip(),
                    drone_id=drone_id,
                    waypoints=list(waypoints),
                    altitude=altitude,
                    speed=speed,
                    pattern=PatternTypes(pattern),
                    overlap=overlap,
                    description=description,
                    survey_id=survey_id,
                    estimated_duration=estimate_duration(waypoints, speed),
                    created_at=now,
                    updated_at=now,
                )
                self._bind(drone, mission_id, now)

                try:
                    await self.store.commit(missions=[mission], drones=[drone], surveys=surveys)
                    break
                except StaleRecordError as e:
                    last_error = e
                    logger.warning(f"Create on drone {drone_id} hit a concurrent change "
                                   f"(attempt {attempt + 1}): {e.message}")
        else:
            raise last_error

        # A release left over from the drone's previous flight must not fire
        self.release_scheduler.cancel(drone_id)

        logger.info(f"Mission {mission.id} created on drone {drone_id} ({len(mission.waypoints)} waypoints)")
        self._count("create")
        await self._publish_mission(Events.MISSION_CREATED, mission, name=mission.name)
        await self._publish_drone(drone)
        return mission

    # Transition machinery

    async def _apply(self, mission_id: str, action: MissionAction, mutate: Mutator,
                     extra_drone_id: Optional[str] = None) -> TransitionOutcome:
        """
        Run one lifecycle transition atomically

        The mission and its drone are locked together, the transition is
        checked against the current status and every touched record is
        committed in a single store call. A version conflict with the progress
        path re-reads and retries.

        Args:
            mission_id: Mission to transition
            action: Requested operation
            mutate: Coroutine changing the copies it is given
            extra_drone_id: Another drone to lock, for drone swaps

        Raises:
            NotFoundError: if the mission does not exist
            InvalidStateTransition: if the current status disallows the action
            StaleRecordError: if the retries are exhausted
        """
        last_error = None
        for attempt in range(self.settings.STORE_COMMIT_RETRIES + 1):
            snapshot = await self.store.get_mission(mission_id)
            keys = [mission_key(mission_id), drone_key(snapshot.drone_id)]
            if extra_drone_id:
                keys.append(drone_key(extra_drone_id))

            async with self.locks.hold(*keys):
                mission = await self.store.get_mission(mission_id)
                if mission.drone_id != snapshot.drone_id:
                    # Drone swapped between the read and the lock
                    continue

                transition = check_transition(mission.id, mission.status, action)
                drone = await self.store.get_drone(mission.drone_id)
                now = get_current_timestamp()

                outcome = await mutate(mission, drone, transition, now)

                try:
                    if outcome.deleted:
                        await self.store.commit(drones=outcome.drones, surveys=outcome.surveys,
                                                deleted_missions=[mission])
                    else:
                        await self.store.commit(missions=[mission], drones=outcome.drones,
                                                surveys=outcome.surveys)
                except StaleRecordError as e:
                    last_error = e
                    logger.warning(f"{action.value} on mission {mission_id} hit a concurrent change "
                                   f"(attempt {attempt + 1}): {e.message}")
                    continue

            if outcome.deleted:
                self.locks.discard(mission_key(mission_id))
                self.telemetry.locks.discard(mission_key(mission_id))

            logger.info(f"Mission {mission_id}: {action.value} applied, status {mission.status.value}")
            self._count(action.value)
            return outcome

        raise last_error or StaleRecordError("mission", mission_id, snapshot.version, None)

    @staticmethod
    def _move_drone(transition: Transition, drone: Drone, mission: Mission, now: float) -> List[Drone]:
        """Apply the transition's drone status to the bound drone"""
        if transition.drone_status is None:
            return []
        if drone.current_mission_id != mission.id:
            raise ResourceConflict(drone.id, drone.status.value, mission.id)
        drone.status = transition.drone_status
        drone.updated_at = now
        return [drone]

    # Control operations

    async def start(self, mission_id: str) -> Mission:
        """Start a planned mission; the drone takes off"""
        async def mutate(mission: Mission, drone: Drone, transition: Transition, now: float):
            drones = self._move_drone(transition, drone, mission, now)
            mission.status = transition.target
            mission.start_time = now
            mission.progress = 0.0
            mission.current_waypoint_index = 0
            mission.estimated_duration = estimate_duration(mission.waypoints, mission.speed)
            mission.estimated_time_remaining = mission.estimated_duration
            mission.updated_at = now
            return TransitionOutcome(mission, drones)

        outcome = await self._apply(mission_id, MissionAction.START, mutate)
        await self._after_transition(MissionAction.START, outcome,
                                     estimated_duration=outcome.mission.estimated_duration)
        return outcome.mission

    async def pause(self, mission_id: str) -> Mission:
        """Pause an in-progress mission; the drone hovers"""
        async def mutate(mission: Mission, drone: Drone, transition: Transition, now: float):
            drones = self._move_drone(transition, drone, mission, now)
            mission.status = transition.target
            mission.pause_time = now
            mission.updated_at = now
            return TransitionOutcome(mission, drones)

        outcome = await self._apply(mission_id, MissionAction.PAUSE, mutate)
        await self._after_transition(MissionAction.PAUSE, outcome)
        return outcome.mission

    async def resume(self, mission_id: str) -> Mission:
        async def mutate(mission: Mission, drone: Drone, transition: Transition, now: float):
            drones = self._move_drone(transition, drone, mission, now)
            mission.status = transition.target
            mission.pause_time = None
            mission.updated_at = now
            return TransitionOutcome(mission, drones)

        outcome = await self._apply(mission_id, MissionAction.RESUME, mutate)
        await self._after_transition(MissionAction.RESUME, outcome)
        return outcome.mission

    async def abort(self, mission_id: str, reason: Optional[str] = None) -> Mission:
        """
        Abort an active mission

        The drone starts returning and is released once the grace interval
        has passed.
        """
        reason = reason or PlanningDefaults.ABORT_REASON

        async def mutate(mission: Mission, drone: Drone, transition: Transition, now: float):
            drones = self._move_drone(transition, drone, mission, now)
            mission.status = transition.target
            mission.end_time = now
            mission.pause_time = None
            mission.abort_reason = reason
            mission.updated_at = now
            return TransitionOutcome(mission, drones)

        outcome = await self._apply(mission_id, MissionAction.ABORT, mutate)
        mission = outcome.mission

        self.release_scheduler.schedule(mission.drone_id, mission.id)
        logger.warning(f"Mission {mission.id} aborted: {reason}")
        await self._after_transition(MissionAction.ABORT, outcome, reason=reason)
        return mission

    async def complete(self, mission_id: str, extras: Optional[Dict[str, Any]] = None) -> Mission:
        """
        Complete an active mission and record its statistics

        Args:
            mission_id: Mission to complete
            extras: Caller-supplied battery_used/images/videos

        Returns:
            The completed mission with statistics
        """
        async def mutate(mission: Mission, drone: Drone, transition: Transition, now: float):
            drones = self._move_drone(transition, drone, mission, now)
            statistics = StatisticsEngine.compute(mission, now, extras)

            mission.status = transition.target
            mission.progress = 100.0
            mission.end_time = now
            mission.pause_time = None
            mission.current_waypoint_index = max(len(mission.waypoints) - 1, 0)
            mission.estimated_time_remaining = 0.0
            mission.statistics = statistics
            mission.updated_at = now

            drone.flight_hours += statistics.duration / TimeConstants.MINUTES_PER_HOUR
            return TransitionOutcome(mission, drones)

        outcome = await self._apply(mission_id, MissionAction.COMPLETE, mutate)
        mission = outcome.mission

        self.release_scheduler.schedule(mission.drone_id, mission.id)
        await self._after_transition(MissionAction.COMPLETE, outcome,
                                     statistics=mission.to_dict()["statistics"])
        await self.surveys.on_mission_completed(mission)
        return mission

    async def delete(self, mission_id: str) -> Mission:
        """
        Remove a planned or finished mission

        A planned mission still holds its drone, which is freed. The mission is
        also detached from its survey.
        """
        async def mutate(mission: Mission, drone: Drone, transition: Transition, now: float):
            drones = []
            if mission.status == MissionStatus.PLANNED and drone.current_mission_id == mission.id:
                self._unbind(drone, now)
                drones.append(drone)

            surveys = []
            if mission.survey_id:
                try:
                    survey = await self.store.get_survey(mission.survey_id)
                except NotFoundError:
                    survey = None
                if survey is not None and mission.id in survey.mission_ids:
                    survey.mission_ids = [m for m in survey.mission_ids if m != mission.id]
                    surveys.append(survey)

            return TransitionOutcome(mission, drones, surveys, deleted=True)

        outcome = await self._apply(mission_id, MissionAction.DELETE, mutate)
        await self._after_transition(MissionAction.DELETE, outcome)
        return outcome.mission

    async def update(self, mission_id: str, changes: Dict[str, Any]) -> Mission:
        """
        Edit a planned mission

        Args:
            mission_id: Mission to edit
            changes: Any of name, description, waypoints, altitude, speed,
                pattern, overlap and drone_id. A new drone_id moves the
                binding to that drone, which must be free.

        Raises:
            ValidationError: for unknown fields or invalid values
            InvalidStateTransition: unless the mission is planned
            ResourceConflict: if the new drone is not free
        """
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {sorted(unknown)}", field="changes")

        current = await self.store.get_mission(mission_id)
        new_drone_id = changes.get("drone_id")
        if new_drone_id == current.drone_id:
            new_drone_id = None

        altitude = changes.get("altitude", current.altitude)
        speed = changes.get("speed", current.speed)
        waypoints = changes.get("waypoints", current.waypoints)
        pattern = changes.get("pattern", current.pattern)
        pattern = getattr(pattern, "value", pattern)
        overlap = changes.get("overlap", current.overlap)
        if "name" in changes and not str(changes["name"] or "").strip():
            raise ValidationError("Mission name is required", field="name")
        self._validate_flight(altitude, speed, waypoints)
        self._validate_plan_params(pattern, overlap)

        async def mutate(mission: Mission, drone: Drone, transition: Transition, now: float):
            drones = []
            if new_drone_id:
                target = await self.store.get_drone(new_drone_id)
                if not is_drone_free(target.status):
                    raise ResourceConflict(new_drone_id, target.status.value, mission.id)
                if drone.current_mission_id == mission.id:
                    self._unbind(drone, now)
                    drones.append(drone)
                self._bind(target, mission.id, now)
                drones.append(target)
                mission.drone_id = new_drone_id

            if "name" in changes:
                mission.name = str(changes["name"]).strip()
            if "description" in changes:
                mission.description = changes["description"]
            mission.waypoints = list(waypoints)
            mission.altitude = altitude
            mission.speed = speed
            mission.pattern = PatternTypes(pattern)
            mission.overlap = overlap
            mission.estimated_duration = estimate_duration(mission.waypoints, mission.speed)
            mission.updated_at = now
            return TransitionOutcome(mission, drones)

        outcome = await self._apply(mission_id, MissionAction.UPDATE, mutate, extra_drone_id=new_drone_id)
        if new_drone_id:
            self.release_scheduler.cancel(new_drone_id)
        await self._after_transition(MissionAction.UPDATE, outcome, fields=sorted(changes))
        return outcome.mission

    # Progress and telemetry

    async def update_progress(self, mission_id: str, progress: float,
                              current_waypoint_index: Optional[int] = None,
                              telemetry: Optional[Dict[str, Any]] = None) -> Mission:
        """Record progress of an in-progress mission, bypassing the lifecycle locks"""
        return await self.telemetry.update_progress(mission_id, progress, current_waypoint_index, telemetry)

    async def ingest_telemetry(self, mission_id: str, payload: Dict[str, Any]) -> bool:
        return await self.telemetry.ingest(mission_id, payload)

    async def get_telemetry(self, mission_id: str) -> Dict[str, Any]:
        """Latest telemetry snapshot with the mission's progress"""
        mission = await self.store.get_mission(mission_id)
        return {
            "mission_id": mission.id,
            "status": mission.status.value,
            "progress": mission.progress,
            "current_waypoint_index": mission.current_waypoint_index,
            "estimated_time_remaining": mission.estimated_time_remaining,
            "telemetry": mission.telemetry,
        }

    # Queries

    async def get_mission(self, mission_id: str) -> Mission:
        return await self.store.get_mission(mission_id)

    async def get_drone(self, drone_id: str) -> Drone:
        return await self.store.get_drone(drone_id)

    async def list_missions(self, status: Optional[str] = None, drone_id: Optional[str] = None,
                            survey_id: Optional[str] = None) -> List[Mission]:
        """
        Missions matching all given filters, newest first

        Raises:
            ValidationError: for an unknown status value
        """
        status_filter = None
        if status is not None:
            try:
                status_filter = MissionStatus(status)
            except ValueError:
                raise ValidationError(f"Invalid mission status {status!r}", field="status", value=status)
        return await self.store.list_missions(status_filter, drone_id, survey_id)

    async def survey_statistics(self, survey_id: str) -> List[Dict[str, Any]]:
        return await self.surveys.collect_statistics(survey_id)

    # Fleet and survey registration

    async def register_drone(self, drone_id: str, name: str = "", battery_level: float = 100.0) -> Drone:
        """
        Add a drone to the fleet as available

        Raises:
            ValidationError: if the id is already registered
        """
        if not drone_id or not drone_id.strip():
            raise ValidationError("Drone id is required", field="drone_id")
        try:
            await self.store.get_drone(drone_id)
        except NotFoundError:
            drone = Drone(id=drone_id, name=name or drone_id, battery_level=clamp(battery_level, 0.0, 100.0))
            await self.store.put_drone(drone)
            logger.info(f"Drone {drone_id} registered")
            return drone
        raise ValidationError(f"Drone {drone_id} already registered", field="drone_id", value=drone_id)

    async def register_survey(self, name: str, survey_id: Optional[str] = None) -> Survey:
        """
        Add a planned survey

        Raises:
            ValidationError: if the id is already registered
        """
        survey_id = survey_id or generate_id("survey", 12)
        try:
            await self.store.get_survey(survey_id)
        except NotFoundError:
            survey = Survey(id=survey_id, name=name)
            await self.store.put_survey(survey)
            logger.info(f"Survey {survey_id} registered")
            return survey
        raise ValidationError(f"Survey {survey_id} already registered", field="survey_id", value=survey_id)

    def get_stats(self) -> Dict[str, Any]:
        """Engine counters for health reporting"""
        return {
            "transitions": dict(self.transition_counts),
            "pending_releases": self.release_scheduler.pending_count(),
            "released_drones": self.release_scheduler.total_released,
            "release_failures": {d: e.to_dict() for d, e in self.release_scheduler.failures.items()},
            "events_published": self.publisher.total_published,
            "subscriber_errors": self.publisher.subscriber_errors,
            "telemetry_payloads": self.telemetry.total_payloads,
            "telemetry_dropped": self.telemetry.dropped_payloads,
            "tracked_locks": len(self.locks) + len(self.telemetry.locks),
        }
