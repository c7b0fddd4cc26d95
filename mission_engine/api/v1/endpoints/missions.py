"""
Mission planning and lifecycle API endpoints
"""

from fastapi import APIRouter, Body, Depends, Query, status
from typing import Dict, Any, Optional
import logging

from mission_engine.api.deps import get_flight_planner, get_mission_manager
from mission_engine.core.mission.planner import FlightPlanner
from mission_engine.models.mission import (
    AbortRequest, CompleteRequest, FlightPlanRequest, FlightPlanResponse, MissionCreateRequest,
    MissionListResponse, MissionResponse, MissionUpdateRequest, ProgressRequest, TelemetryResponse
)
from mission_engine.services.mission_service import MissionLifecycleManager

logger = logging.getLogger(__name__)
router = APIRouter()


def _respond(message: str, mission) -> MissionResponse:
    return MissionResponse(success=True, message=message, mission=mission.to_dict())


@router.post("/flight-plan", response_model=FlightPlanResponse)
async def generate_flight_plan(
    request: FlightPlanRequest,
    planner: FlightPlanner = Depends(get_flight_planner),
    manager: MissionLifecycleManager = Depends(get_mission_manager)
) -> FlightPlanResponse:
    """
    Generate waypoints for a survey pattern

    The path is optimized between start_point and end_point when both are given.
    Nothing is stored; the waypoints are meant to be passed to mission creation.
    """
    overlap = request.overlap if request.overlap is not None else manager.settings.DEFAULT_OVERLAP
    plan = planner.plan(
        request.pattern.value,
        [p.to_point() for p in request.boundary],
        request.altitude,
        request.speed,
        overlap,
        start_point=request.start_point.to_point() if request.start_point else None,
        end_point=request.end_point.to_point() if request.end_point else None,
        rotation=request.rotation,
    )
    data = plan.to_dict()

    return FlightPlanResponse(
        success=True,
        message=f"{request.pattern.value.capitalize()} pattern generated successfully",
        pattern=plan.pattern,
        waypoint_count=len(plan.waypoints),
        total_distance=plan.total_distance,
        estimated_duration=plan.estimated_duration,
        waypoints=data["waypoints"],
    )


@router.post("/", response_model=MissionResponse, status_code=status.HTTP_201_CREATED)
async def create_mission(
    request: MissionCreateRequest,
    manager: MissionLifecycleManager = Depends(get_mission_manager)
) -> MissionResponse:
    """Create a planned mission and bind its drone"""
    mission = await manager.create(
        name=request.name,
        drone_id=request.drone_id,
        waypoints=[wp.to_waypoint() for wp in request.waypoints],
        altitude=request.altitude,
        speed=request.speed,
        pattern=request.pattern.value,
        overlap=request.overlap,
        description=request.description,
        survey_id=request.survey_id,
    )
    return _respond(f"Mission '{mission.name}' created successfully", mission)


@router.get("/", response_model=MissionListResponse)
async def list_missions(
    status_filter: Optional[str] = Query(None, alias="status"),
    drone_id: Optional[str] = None,
    survey_id: Optional[str] = None,
    manager: MissionLifecycleManager = Depends(get_mission_manager)
) -> MissionListResponse:
    """List missions, optionally filtered by status, drone or survey"""
    missions = await manager.list_missions(status_filter, drone_id, survey_id)
    return MissionListResponse(success=True, count=len(missions), missions=[m.to_dict() for m in missions])


@router.get("/{mission_id}", response_model=MissionResponse)
async def get_mission(
    mission_id: str,
    manager: MissionLifecycleManager = Depends(get_mission_manager)
) -> MissionResponse:
    mission = await manager.get_mission(mission_id)
    return _respond("Mission found", mission)


@router.put("/{mission_id}", response_model=MissionResponse)
async def update_mission(
    mission_id: str,
    request: MissionUpdateRequest,
    manager: MissionLifecycleManager = Depends(get_mission_manager)
) -> MissionResponse:
    """Edit a mission that has not started yet"""
    mission = await manager.update(mission_id, request.to_changes())
    return _respond("Mission updated", mission)


@router.delete("/{mission_id}", response_model=MissionResponse)
async def delete_mission(
    mission_id: str,
    manager: MissionLifecycleManager = Depends(get_mission_manager)
) -> MissionResponse:
    """Delete a planned, completed or aborted mission"""
    mission = await manager.delete(mission_id)
    return _respond("Mission deleted", mission)


@router.post("/{mission_id}/start", response_model=MissionResponse)
async def start_mission(
    mission_id: str,
    manager: MissionLifecycleManager = Depends(get_mission_manager)
) -> MissionResponse:
    mission = await manager.start(mission_id)
    return _respond("Mission started", mission)


@router.post("/{mission_id}/pause", response_model=MissionResponse)
async def pause_mission(
    mission_id: str,
    manager: MissionLifecycleManager = Depends(get_mission_manager)
) -> MissionResponse:
    mission = await manager.pause(mission_id)
    return _respond("Mission paused", mission)


@router.post("/{mission_id}/resume", response_model=MissionResponse)
async def resume_mission(
    mission_id: str,
    manager: MissionLifecycleManager = Depends(get_mission_manager)
) -> MissionResponse:
    mission = await manager.resume(mission_id)
    return _respond("Mission resumed", mission)


@router.post("/{mission_id}/abort", response_model=MissionResponse)
async def abort_mission(
    mission_id: str,
    request: Optional[AbortRequest] = None,
    manager: MissionLifecycleManager = Depends(get_mission_manager)
) -> MissionResponse:
    """
    Abort an active mission

    The drone returns home and becomes available after the grace interval.
    """
    mission = await manager.abort(mission_id, request.reason if request else None)
    return _respond("Mission aborted", mission)


@router.post("/{mission_id}/complete", response_model=MissionResponse)
async def complete_mission(
    mission_id: str,
    request: Optional[CompleteRequest] = None,
    manager: MissionLifecycleManager = Depends(get_mission_manager)
) -> MissionResponse:
    """Complete an active mission and compute its statistics"""
    extras = request.model_dump() if request else None
    mission = await manager.complete(mission_id, extras)
    return _respond("Mission completed", mission)


@router.patch("/{mission_id}/progress", response_model=MissionResponse)
async def update_progress(
    mission_id: str,
    request: ProgressRequest,
    manager: MissionLifecycleManager = Depends(get_mission_manager)
) -> MissionResponse:
    mission = await manager.update_progress(
        mission_id, request.progress, request.current_waypoint_index, request.telemetry
    )
    return _respond("Progress updated", mission)


@router.post("/{mission_id}/telemetry", response_model=TelemetryResponse)
async def ingest_telemetry(
    mission_id: str,
    payload: Dict[str, Any] = Body(...),
    manager: MissionLifecycleManager = Depends(get_mission_manager)
) -> TelemetryResponse:
    """
    Push a telemetry payload

    Out-of-order payloads are accepted but not stored.
    """
    stored = await manager.ingest_telemetry(mission_id, payload)
    return TelemetryResponse(success=True, stored=stored, mission_id=mission_id)


@router.get("/{mission_id}/telemetry")
async def get_telemetry(
    mission_id: str,
    manager: MissionLifecycleManager = Depends(get_mission_manager)
) -> Dict[str, Any]:
    return await manager.get_telemetry(mission_id)
