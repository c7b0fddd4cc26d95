"""
Persistence collaborator for mission, drone and survey records.

The engine only needs get-by-id, a few queries and an atomic multi-record
commit guarded by per-record versions. InMemoryMissionStore is the reference
implementation used by the service and the tests.
"""

import copy
import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, TypeVar

from mission_engine.core.mission.lifecycle import MissionStatus
from mission_engine.models.domain import Drone, Mission, Survey
from mission_engine.utils.exceptions import NotFoundError, StaleRecordError

logger = logging.getLogger(__name__)

Record = TypeVar("Record", Mission, Drone, Survey)


class MissionStore(ABC):
    """Contract the lifecycle manager relies on"""

    @abstractmethod
    async def get_mission(self, mission_id: str) -> Mission:
        ...

    @abstractmethod
    async def get_drone(self, drone_id: str) -> Drone:
        ...

    @abstractmethod
    async def get_survey(self, survey_id: str) -> Survey:
        ...

    @abstractmethod
    async def list_missions(self, status: Optional[MissionStatus] = None,
                            drone_id: Optional[str] = None,
                            survey_id: Optional[str] = None) -> List[Mission]:
        ...

    @abstractmethod
    async def put_drone(self, drone: Drone) -> Drone:
        """Register or replace a drone record"""
        ...

    @abstractmethod
    async def put_survey(self, survey: Survey) -> Survey:
        ...

    async def missions_for_survey(self, survey_id: str) -> List[Mission]:
        return await self.list_missions(survey_id=survey_id)

    @abstractmethod
    async def commit(self, missions: Iterable[Mission] = (), drones: Iterable[Drone] = (),
                     surveys: Iterable[Survey] = (), deleted_missions: Iterable[Mission] = ()):
        """
        Write all records or none of them

        Each record's version must match the stored one (0 for a new record);
        on success every written record's version is incremented.

        Raises:
            StaleRecordError: if any record changed since it was read
        """
        ...


class InMemoryMissionStore(MissionStore):
    """Dictionary-backed store handing out copies of its records"""

    def __init__(self):
        self._missions: Dict[str, Mission] = {}
        self._drones: Dict[str, Drone] = {}
        self._surveys: Dict[str, Survey] = {}

    # Fleet and survey records are owned elsewhere; these seed the store
    async def put_drone(self, drone: Drone) -> Drone:
        self._drones[drone.id] = copy.deepcopy(drone)
        return drone

    async def put_survey(self, survey: Survey) -> Survey:
        self._surveys[survey.id] = copy.deepcopy(survey)
        return survey

    @staticmethod
    def _fetch(table: Dict[str, Record], kind: str, record_id: str) -> Record:
        if record_id not in table:
            raise NotFoundError(kind, record_id)
        return copy.deepcopy(table[record_id])

    async def get_mission(self, mission_id: str) -> Mission:
        return self._fetch(self._missions, "mission", mission_id)

    async def get_drone(self, drone_id: str) -> Drone:
        return self._fetch(self._drones, "drone", drone_id)

    async def get_survey(self, survey_id: str) -> Survey:
        return self._fetch(self._surveys, "survey", survey_id)

    async def list_missions(self, status: Optional[MissionStatus] = None,
                            drone_id: Optional[str] = None,
                            survey_id: Optional[str] = None) -> List[Mission]:
        missions = [
            m for m in self._missions.values()
            if (status is None or m.status == status)
            and (drone_id is None or m.drone_id == drone_id)
            and (survey_id is None or m.survey_id == survey_id)
        ]
        missions.sort(key=lambda m: m.created_at, reverse=True)
        return [copy.deepcopy(m) for m in missions]

    @staticmethod
    def _check(table: Dict[str, Record], kind: str, record: Record):
        stored = table.get(record.id)
        actual = stored.version if stored is not None else None
        expected_absent = record.version == 0 and stored is None
        if not expected_absent and actual != record.version:
            raise StaleRecordError(kind, record.id, record.version, actual)

    async def commit(self, missions: Iterable[Mission] = (), drones: Iterable[Drone] = (),
                     surveys: Iterable[Survey] = (), deleted_missions: Iterable[Mission] = ()):
        missions, drones = list(missions), list(drones)
        surveys, deleted_missions = list(surveys), list(deleted_missions)

        # Verify everything before writing anything
        for mission in missions + deleted_missions:
            self._check(self._missions, "mission", mission)
        for drone in drones:
            self._check(self._drones, "drone", drone)
        for survey in surveys:
            self._check(self._surveys, "survey", survey)

        for table, records in ((self._missions, missions), (self._drones, drones), (self._surveys, surveys)):
            for record in records:
                record.version += 1
                table[record.id] = copy.deepcopy(record)

        for mission in deleted_missions:
            self._missions.pop(mission.id, None)

        logger.debug(f"Committed {len(missions)} missions, {len(drones)} drones, "
                     f"{len(surveys)} surveys, {len(deleted_missions)} deletions")
