"""
Tests for the deferred drone release.
"""

import asyncio
import unittest

from mission_engine.core.locks import LockRegistry
from mission_engine.core.mission.lifecycle import DroneStatus
from mission_engine.core.store import InMemoryMissionStore
from mission_engine.models.domain import Drone
from mission_engine.services.events import EventPublisher
from mission_engine.services.release_scheduler import DroneReleaseScheduler

GRACE = 0.02


class FailingCommitStore(InMemoryMissionStore):
    """Store whose commits always fail"""

    async def commit(self, missions=(), drones=(), surveys=(), deleted_missions=()):
        raise ConnectionError("store unavailable")


class TestDroneReleaseScheduler(unittest.IsolatedAsyncioTestCase):
    """Test DroneReleaseScheduler."""

    async def asyncSetUp(self):
        self.store = InMemoryMissionStore()
        self.publisher = EventPublisher()
        self.scheduler = self.make_scheduler(self.store)
        await self.store.put_drone(Drone(id="d-1", status=DroneStatus.RETURNING, current_mission_id="m-1"))

    async def asyncTearDown(self):
        await self.scheduler.shutdown()

    def make_scheduler(self, store):
        return DroneReleaseScheduler(store, self.publisher, LockRegistry(),
                                     grace_seconds=GRACE, retry_attempts=2, retry_delay=0.001)

    async def test_release_after_grace(self):
        task = self.scheduler.schedule("d-1", "m-1")
        self.assertTrue(self.scheduler.pending("d-1"))
        await task

        drone = await self.store.get_drone("d-1")
        self.assertEqual(drone.status, DroneStatus.AVAILABLE)
        self.assertIsNone(drone.current_mission_id)
        self.assertEqual(self.scheduler.total_released, 1)
        self.assertFalse(self.scheduler.pending("d-1"))

    async def test_release_skipped_for_other_mission(self):
        await self.scheduler.schedule("d-1", "m-other")
        drone = await self.store.get_drone("d-1")
        self.assertEqual(drone.status, DroneStatus.RETURNING)
        self.assertEqual(self.scheduler.total_released, 0)

    async def test_reschedule_cancels_previous(self):
        first = self.scheduler.schedule("d-1", "m-1")
        second = self.scheduler.schedule("d-1", "m-1")
        await second

        self.assertTrue(first.cancelled())
        self.assertEqual(self.scheduler.total_released, 1)

    async def test_cancel(self):
        self.scheduler.schedule("d-1", "m-1")
        self.assertTrue(self.scheduler.cancel("d-1"))
        self.assertFalse(self.scheduler.cancel("d-1"))

        await asyncio.sleep(GRACE * 3)
        self.assertEqual((await self.store.get_drone("d-1")).status, DroneStatus.RETURNING)

    async def test_exhausted_retries_are_reported(self):
        store = FailingCommitStore()
        await store.put_drone(Drone(id="d-1", status=DroneStatus.RETURNING, current_mission_id="m-1"))
        scheduler = self.make_scheduler(store)

        with self.assertLogs("mission_engine.services.release_scheduler", level="CRITICAL"):
            await scheduler.schedule("d-1", "m-1")

        self.assertIn("d-1", scheduler.failures)
        self.assertEqual(scheduler.failures["d-1"].details["attempts"], 3)
        await scheduler.shutdown()

    async def test_shutdown_cancels_pending(self):
        self.scheduler.schedule("d-1", "m-1")
        await self.scheduler.shutdown()
        self.assertEqual(self.scheduler.pending_count(), 0)
        self.assertEqual((await self.store.get_drone("d-1")).status, DroneStatus.RETURNING)


if __name__ == '__main__':
    unittest.main()
