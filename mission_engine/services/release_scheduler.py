"""
Deferred return-to-available for drones coming back from a mission
"""

import asyncio
import logging
from typing import Dict

from mission_engine.core.locks import LockRegistry, drone_key
from mission_engine.core.mission.lifecycle import DroneStatus
from mission_engine.core.store import MissionStore
from mission_engine.services.events import EventPublisher
from mission_engine.utils.constants import Events
from mission_engine.utils.exceptions import DroneReleaseError, NotFoundError
from mission_engine.utils.helpers import get_current_timestamp, retry_async

logger = logging.getLogger(__name__)


class DroneReleaseScheduler:
    """
    Owns one cancellable release task per drone

    After an abort or completion the drone is returning home. Once the grace
    interval passes the drone becomes available again, unless it has been
    bound to something else in the meantime. Scheduling a release for a drone
    cancels any release still pending for it.
    """

    def __init__(self, store: MissionStore, publisher: EventPublisher, locks: LockRegistry,
                 grace_seconds: float = 10.0, retry_attempts: int = 3, retry_delay: float = 1.0):
        self.store = store
        self.publisher = publisher
        self.locks = locks
        self.grace_seconds = grace_seconds
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay

        self._tasks: Dict[str, asyncio.Task] = {}
        self.failures: Dict[str, DroneReleaseError] = {}
        self.total_released = 0

    def schedule(self, drone_id: str, mission_id: str) -> asyncio.Task:
        """Start the grace timer for a drone, replacing any pending one"""
        self.cancel(drone_id)

        task = asyncio.create_task(self._run(drone_id, mission_id), name=f"release-{drone_id}")
        self._tasks[drone_id] = task
        task.add_done_callback(lambda t, d=drone_id: self._forget(d, t))

        logger.info(f"Drone {drone_id} release scheduled in {self.grace_seconds}s (mission {mission_id})")
        return task

    def cancel(self, drone_id: str) -> bool:
        """Cancel a pending release, returns True if one was pending"""
        task = self._tasks.pop(drone_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        logger.info(f"Pending release for drone {drone_id} cancelled")
        return True

    def pending(self, drone_id: str) -> bool:
        task = self._tasks.get(drone_id)
        return task is not None and not task.done()

    def pending_count(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    async def shutdown(self):
        """Cancel every pending release and wait for the tasks to finish"""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks.clear()

    def _forget(self, drone_id: str, task: asyncio.Task):
        if self._tasks.get(drone_id) is task:
            del self._tasks[drone_id]

    async def _run(self, drone_id: str, mission_id: str):
        await asyncio.sleep(self.grace_seconds)

        try:
            await retry_async(
                lambda: self._release(drone_id, mission_id),
                max_retries=self.retry_attempts,
                delay=self.retry_delay,
            )
        except Exception as e:
            error = DroneReleaseError(drone_id, self.retry_attempts + 1, str(e))
            self.failures[drone_id] = error
            logger.critical(f"{error.message}: {e}. Operator intervention required")

    async def _release(self, drone_id: str, mission_id: str) -> bool:
        async with self.locks.hold(drone_key(drone_id)):
            try:
                drone = await self.store.get_drone(drone_id)
            except NotFoundError:
                logger.warning(f"Drone {drone_id} vanished before release")
                return False

            if drone.status != DroneStatus.RETURNING or drone.current_mission_id != mission_id:
                logger.info(f"Drone {drone_id} no longer returning from mission {mission_id}, release skipped")
                return False

            drone.status = DroneStatus.AVAILABLE
            drone.current_mission_id = None
            drone.updated_at = get_current_timestamp()
            await self.store.commit(drones=[drone])

        self.failures.pop(drone_id, None)
        self.total_released += 1
        logger.info(f"Drone {drone_id} returned and available")
        await self.publisher.publish(Events.DRONE_STATUS_CHANGED, {
            "drone_id": drone_id,
            "status": drone.status.value,
            "mission_id": mission_id,
        })
        return True
