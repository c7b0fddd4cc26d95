"""
Tests for progress updates and telemetry ingestion.
"""

import asyncio
import unittest

from config.settings import TestingSettings
from mission_engine.core.locks import mission_key
from mission_engine.core.mission.lifecycle import MissionStatus
from mission_engine.core.store import InMemoryMissionStore
from mission_engine.models.domain import Waypoint
from mission_engine.services.mission_service import MissionLifecycleManager
from mission_engine.utils.constants import Events
from mission_engine.utils.exceptions import InvalidStateTransition, NotFoundError, ValidationError

WAYPOINTS = [Waypoint(0, 0, 50, 1), Waypoint(0, 0.01, 50, 2), Waypoint(0.01, 0.01, 50, 3)]


class TestTelemetryAggregator(unittest.IsolatedAsyncioTestCase):
    """Test progress and telemetry through the lifecycle manager."""

    async def asyncSetUp(self):
        self.manager = MissionLifecycleManager(InMemoryMissionStore(), settings=TestingSettings())
        await self.manager.register_drone("drone-1", battery_level=90)
        self.mission = await self.manager.create("Telemetry", "drone-1", WAYPOINTS, 50, 5)

    async def asyncTearDown(self):
        await self.manager.shutdown()

    async def test_progress_rescales_remaining_time(self):
        started = await self.manager.start(self.mission.id)

        mission = await self.manager.update_progress(self.mission.id, 25, current_waypoint_index=1)
        self.assertEqual(mission.progress, 25)
        self.assertEqual(mission.current_waypoint_index, 1)
        self.assertAlmostEqual(mission.estimated_time_remaining, started.estimated_duration * 0.75)

        event = self.manager.publisher.recent(Events.MISSION_PROGRESS_UPDATED)[-1]
        self.assertEqual(event.payload["progress"], 25)

    async def test_progress_out_of_range(self):
        await self.manager.start(self.mission.id)
        with self.assertRaises(ValidationError):
            await self.manager.update_progress(self.mission.id, 150)
        with self.assertRaises(ValidationError):
            await self.manager.update_progress(self.mission.id, -1)
        with self.assertRaises(ValidationError):
            await self.manager.update_progress(self.mission.id, 10, current_waypoint_index=-2)

    async def test_progress_requires_in_progress(self):
        with self.assertRaises(InvalidStateTransition):
            await self.manager.update_progress(self.mission.id, 10)
        with self.assertRaises(NotFoundError):
            await self.manager.update_progress("missing", 10)

    async def test_ingest_stores_snapshot(self):
        await self.manager.start(self.mission.id)

        stored = await self.manager.ingest_telemetry(self.mission.id, {"timestamp": 100, "altitude": 48.5})
        self.assertTrue(stored)
        snapshot = await self.manager.get_telemetry(self.mission.id)
        self.assertEqual(snapshot["telemetry"]["altitude"], 48.5)
        self.assertEqual(snapshot["telemetry"]["timestamp"], 100)
        self.assertIn("received_at", snapshot["telemetry"])

    async def test_out_of_order_payload_dropped(self):
        await self.manager.start(self.mission.id)
        await self.manager.ingest_telemetry(self.mission.id, {"timestamp": 100, "altitude": 48.5})

        stored = await self.manager.ingest_telemetry(self.mission.id, {"timestamp": 50, "altitude": 10})
        self.assertFalse(stored)
        snapshot = await self.manager.get_telemetry(self.mission.id)
        self.assertEqual(snapshot["telemetry"]["altitude"], 48.5)
        self.assertEqual(self.manager.telemetry.dropped_payloads, 1)

    async def test_battery_level_clamped(self):
        await self.manager.start(self.mission.id)

        await self.manager.ingest_telemetry(self.mission.id, {"batteryLevel": 130})
        self.assertEqual((await self.manager.get_drone("drone-1")).battery_level, 100)

        await self.manager.ingest_telemetry(self.mission.id, {"battery_level": -5})
        self.assertEqual((await self.manager.get_drone("drone-1")).battery_level, 0)

    async def test_ingest_rejected_when_paused(self):
        await self.manager.start(self.mission.id)
        await self.manager.pause(self.mission.id)
        with self.assertRaises(InvalidStateTransition):
            await self.manager.ingest_telemetry(self.mission.id, {"altitude": 40})

    async def test_malformed_payload(self):
        await self.manager.start(self.mission.id)
        with self.assertRaises(ValidationError):
            await self.manager.ingest_telemetry(self.mission.id, ["not", "a", "dict"])
        with self.assertRaises(ValidationError):
            await self.manager.ingest_telemetry(self.mission.id, {"timestamp": "soon"})

    async def test_progress_and_lifecycle_interleave(self):
        await self.manager.start(self.mission.id)

        await asyncio.gather(
            self.manager.update_progress(self.mission.id, 40),
            self.manager.ingest_telemetry(self.mission.id, {"altitude": 51}),
            self.manager.update_progress(self.mission.id, 60),
        )
        mission = await self.manager.complete(self.mission.id)
        self.assertEqual(mission.progress, 100)
        self.assertEqual(mission.telemetry["altitude"], 51)

    async def test_progress_lock_does_not_block_lifecycle(self):
        await self.manager.start(self.mission.id)

        async with self.manager.telemetry.locks.hold(mission_key(self.mission.id)):
            paused = await asyncio.wait_for(self.manager.pause(self.mission.id), timeout=1)
            self.assertEqual(paused.status, MissionStatus.PAUSED)
            resumed = await asyncio.wait_for(self.manager.resume(self.mission.id), timeout=1)
            self.assertEqual(resumed.status, MissionStatus.IN_PROGRESS)

    async def test_lifecycle_lock_does_not_block_progress(self):
        await self.manager.start(self.mission.id)

        async with self.manager.locks.hold(mission_key(self.mission.id)):
            mission = await asyncio.wait_for(self.manager.update_progress(self.mission.id, 30), timeout=1)
        self.assertEqual(mission.progress, 30)

    async def test_progress_telemetry_counted(self):
        await self.manager.start(self.mission.id)

        await self.manager.update_progress(self.mission.id, 10, telemetry={"timestamp": 100, "altitude": 50})
        await self.manager.update_progress(self.mission.id, 20, telemetry={"timestamp": 90, "altitude": 20})

        stats = self.manager.get_stats()
        self.assertEqual(stats["telemetry_payloads"], 2)
        self.assertEqual(stats["telemetry_dropped"], 1)
        self.assertLessEqual(stats["telemetry_dropped"], stats["telemetry_payloads"])

    async def test_deleted_mission_releases_progress_lock(self):
        await self.manager.start(self.mission.id)
        await self.manager.update_progress(self.mission.id, 50)
        self.assertEqual(len(self.manager.telemetry.locks), 1)

        await self.manager.abort(self.mission.id)
        await self.manager.delete(self.mission.id)
        self.assertEqual(len(self.manager.telemetry.locks), 0)
        self.assertEqual(self.manager.get_stats()["tracked_locks"], len(self.manager.locks))


if __name__ == '__main__':
    unittest.main()
