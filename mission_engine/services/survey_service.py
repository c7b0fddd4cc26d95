"""
Survey roll-up once its missions are finished
"""

import logging
from typing import Dict, Any, List

from mission_engine.core.mission.lifecycle import MissionStatus, TERMINAL_STATUSES
from mission_engine.core.store import MissionStore
from mission_engine.models.domain import Mission
from mission_engine.services.events import EventPublisher
from mission_engine.utils.constants import Events, SurveyStatus
from mission_engine.utils.exceptions import NotFoundError, StaleRecordError
from mission_engine.utils.helpers import get_current_timestamp

logger = logging.getLogger(__name__)


class SurveyCoordinator:
    """Marks a survey completed when every mission in it has ended"""

    def __init__(self, store: MissionStore, publisher: EventPublisher, commit_retries: int = 5):
        self.store = store
        self.publisher = publisher
        self.commit_retries = commit_retries

    async def on_mission_completed(self, mission: Mission) -> bool:
        """
        Check the mission's survey after the mission completed

        Returns:
            True if this call moved the survey to completed
        """
        if not mission.survey_id:
            return False

        for attempt in range(self.commit_retries + 1):
            try:
                survey = await self.store.get_survey(mission.survey_id)
            except NotFoundError:
                logger.warning(f"Survey {mission.survey_id} of mission {mission.id} not found")
                return False

            if survey.status == SurveyStatus.COMPLETED:
                return False

            siblings = await self.store.missions_for_survey(survey.id)
            if not siblings or any(m.status not in TERMINAL_STATUSES for m in siblings):
                return False

            survey.status = SurveyStatus.COMPLETED
            survey.completed_at = get_current_timestamp()
            try:
                await self.store.commit(surveys=[survey])
                break
            except StaleRecordError as e:
                logger.warning(f"Survey {survey.id} changed while completing (attempt {attempt + 1}): {e.message}")
        else:
            logger.error(f"Gave up completing survey {mission.survey_id} after {self.commit_retries + 1} attempts")
            return False

        logger.info(f"Survey {survey.id} completed ({len(siblings)} missions)")
        await self.publisher.publish(Events.SURVEY_COMPLETED, {
            "survey_id": survey.id,
            "mission_ids": [m.id for m in siblings],
            "completed_at": survey.completed_at,
        })
        return True

    async def collect_statistics(self, survey_id: str) -> List[Dict[str, Any]]:
        """Statistics of every completed mission in a survey"""
        await self.store.get_survey(survey_id)
        missions = await self.store.missions_for_survey(survey_id)
        return [
            {
                "mission_id": m.id,
                "name": m.name,
                "statistics": m.to_dict()["statistics"],
            }
            for m in missions
            if m.status == MissionStatus.COMPLETED and m.statistics is not None
        ]
