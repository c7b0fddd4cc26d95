"""
Service instances shared by the API endpoints

main.py creates the services during application startup and registers them
here; endpoints receive them through FastAPI dependencies.
"""

from typing import Optional

from mission_engine.core.mission.planner import FlightPlanner
from mission_engine.services.mission_service import MissionLifecycleManager

mission_manager: Optional[MissionLifecycleManager] = None
flight_planner: Optional[FlightPlanner] = None


def set_services(manager: Optional[MissionLifecycleManager], planner: Optional[FlightPlanner]):
    global mission_manager, flight_planner
    mission_manager = manager
    flight_planner = planner


# Dependency to get the mission lifecycle manager
def get_mission_manager() -> MissionLifecycleManager:
    if not mission_manager:
        raise RuntimeError("Mission manager not initialized")
    return mission_manager


# Dependency to get the flight planner
def get_flight_planner() -> FlightPlanner:
    if not flight_planner:
        raise RuntimeError("Flight planner not initialized")
    return flight_planner
