"""
Drone and survey API endpoints
"""

from fastapi import APIRouter, Depends, status
from typing import Dict, Any
import logging

from mission_engine.api.deps import get_mission_manager
from mission_engine.models.mission import DroneRegistrationRequest, SurveyRegistrationRequest
from mission_engine.services.mission_service import MissionLifecycleManager

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/drones", status_code=status.HTTP_201_CREATED)
async def register_drone(
    request: DroneRegistrationRequest,
    manager: MissionLifecycleManager = Depends(get_mission_manager)
) -> Dict[str, Any]:
    """Add a drone to the fleet as available"""
    drone = await manager.register_drone(request.id, request.name, request.battery_level)
    return {"success": True, "drone": drone.to_dict()}


@router.get("/drones/{drone_id}")
async def get_drone(
    drone_id: str,
    manager: MissionLifecycleManager = Depends(get_mission_manager)
) -> Dict[str, Any]:
    """Drone status, bound mission and pending release"""
    drone = await manager.get_drone(drone_id)
    return {
        "success": True,
        "drone": drone.to_dict(),
        "release_pending": manager.release_scheduler.pending(drone_id)
    }


@router.post("/surveys", status_code=status.HTTP_201_CREATED)
async def register_survey(
    request: SurveyRegistrationRequest,
    manager: MissionLifecycleManager = Depends(get_mission_manager)
) -> Dict[str, Any]:
    survey = await manager.register_survey(request.name, request.id)
    return {"success": True, "survey": survey.to_dict()}


@router.get("/surveys/{survey_id}/statistics")
async def survey_statistics(
    survey_id: str,
    manager: MissionLifecycleManager = Depends(get_mission_manager)
) -> Dict[str, Any]:
    """Raw statistics of every completed mission in a survey"""
    statistics = await manager.survey_statistics(survey_id)
    return {"success": True, "survey_id": survey_id, "count": len(statistics), "missions": statistics}
