"""
Tests for the in-memory mission store.
"""

import unittest

from mission_engine.core.mission.lifecycle import DroneStatus, MissionStatus
from mission_engine.core.store import InMemoryMissionStore
from mission_engine.models.domain import Drone, Mission, Waypoint
from mission_engine.utils.exceptions import NotFoundError, StaleRecordError


def make_mission(mission_id="m-1", drone_id="d-1", survey_id=None):
    return Mission(id=mission_id, name=mission_id, drone_id=drone_id,
                   waypoints=[Waypoint(0, 0, 30, 1)], altitude=30, speed=5, survey_id=survey_id)


class TestInMemoryMissionStore(unittest.IsolatedAsyncioTestCase):
    """Test InMemoryMissionStore."""

    async def asyncSetUp(self):
        self.store = InMemoryMissionStore()
        await self.store.put_drone(Drone(id="d-1"))

    async def test_reads_are_copies(self):
        drone = await self.store.get_drone("d-1")
        drone.status = DroneStatus.FLYING
        self.assertEqual((await self.store.get_drone("d-1")).status, DroneStatus.AVAILABLE)

    async def test_missing_records(self):
        with self.assertRaises(NotFoundError):
            await self.store.get_mission("nope")
        with self.assertRaises(NotFoundError) as ctx:
            await self.store.get_survey("nope")
        self.assertEqual(ctx.exception.resource, "survey")

    async def test_commit_bumps_versions(self):
        mission = make_mission()
        await self.store.commit(missions=[mission])
        self.assertEqual(mission.version, 1)
        self.assertEqual((await self.store.get_mission("m-1")).version, 1)

    async def test_stale_commit_rejected(self):
        await self.store.commit(missions=[make_mission()])

        first = await self.store.get_mission("m-1")
        second = await self.store.get_mission("m-1")
        first.status = MissionStatus.IN_PROGRESS
        await self.store.commit(missions=[first])

        second.name = "renamed"
        with self.assertRaises(StaleRecordError):
            await self.store.commit(missions=[second])
        self.assertEqual((await self.store.get_mission("m-1")).status, MissionStatus.IN_PROGRESS)

    async def test_commit_is_all_or_nothing(self):
        await self.store.commit(missions=[make_mission()])
        mission = await self.store.get_mission("m-1")
        stale_drone = await self.store.get_drone("d-1")

        fresh_drone = await self.store.get_drone("d-1")
        fresh_drone.battery_level = 50
        await self.store.commit(drones=[fresh_drone])

        mission.status = MissionStatus.IN_PROGRESS
        stale_drone.status = DroneStatus.FLYING
        with self.assertRaises(StaleRecordError):
            await self.store.commit(missions=[mission], drones=[stale_drone])

        self.assertEqual((await self.store.get_mission("m-1")).status, MissionStatus.PLANNED)
        self.assertEqual((await self.store.get_drone("d-1")).status, DroneStatus.AVAILABLE)

    async def test_duplicate_new_record_rejected(self):
        await self.store.commit(missions=[make_mission()])
        with self.assertRaises(StaleRecordError):
            await self.store.commit(missions=[make_mission()])

    async def test_delete_and_queries(self):
        await self.store.commit(missions=[make_mission("m-1", survey_id="s-1"), make_mission("m-2", "d-2")])

        self.assertEqual(len(await self.store.list_missions()), 2)
        self.assertEqual([m.id for m in await self.store.list_missions(drone_id="d-2")], ["m-2"])
        self.assertEqual([m.id for m in await self.store.missions_for_survey("s-1")], ["m-1"])

        await self.store.commit(deleted_missions=[await self.store.get_mission("m-1")])
        with self.assertRaises(NotFoundError):
            await self.store.get_mission("m-1")


if __name__ == '__main__':
    unittest.main()
