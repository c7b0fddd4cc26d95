"""
API v1 router aggregation
Combines all endpoint routers into a single API router
"""

from fastapi import APIRouter

from mission_engine.api.v1.endpoints import (
    fleet,
    health,
    missions
)

# Versioned API router
api_router = APIRouter()

api_router.include_router(missions.router, prefix="/missions", tags=["Missions"])
api_router.include_router(fleet.router, tags=["Fleet & Surveys"])

# Health checks live outside the versioned prefix
health_router = APIRouter()
health_router.include_router(health.router, prefix="/health", tags=["Health Check"])
