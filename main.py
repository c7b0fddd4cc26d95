#!/usr/bin/env python3
"""
Survey Mission Engine - FastAPI Application
Main entry point for the mission planning and execution service
"""

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from config.settings import get_settings
from config.logging import setup_logging
from mission_engine.api import deps
from mission_engine.api.errors import register_exception_handlers
from mission_engine.api.v1.api import api_router, health_router
from mission_engine.core.mission.planner import FlightPlanner
from mission_engine.core.store import InMemoryMissionStore, MissionStore
from mission_engine.services.mission_service import MissionLifecycleManager

# Initialize logging
setup_logging()
logger = logging.getLogger(__name__)


def create_services(store: MissionStore = None) -> MissionLifecycleManager:
    """Build the engine and register it for the API dependencies"""
    settings = get_settings()
    manager = MissionLifecycleManager(store or InMemoryMissionStore(), settings=settings)
    deps.set_services(manager, FlightPlanner(max_speed=settings.MAX_SPEED, max_altitude=settings.MAX_ALTITUDE))
    return manager


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info("Starting Survey Mission Engine")

    manager = deps.mission_manager or create_services()

    yield

    logger.info("Shutting down Survey Mission Engine")
    try:
        await manager.shutdown()
    finally:
        deps.set_services(None, None)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    settings = get_settings()

    app = FastAPI(
        title="Survey Mission Engine API",
        description="Flight planning and mission lifecycle control for survey drones",
        version=settings.VERSION,
        docs_url="/docs",  # Swagger UI
        redoc_url="/redoc",  # ReDoc UI
        openapi_url="/openapi.json",  # OpenAPI schema
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_HOSTS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"]
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api/v1")
    app.include_router(health_router)

    # Root endpoint
    @app.get("/")
    async def root():
        """Root endpoint with application information"""
        return {
            "name": settings.APP_NAME,
            "version": settings.VERSION,
            "description": "Survey flight planning and mission lifecycle engine",
            "docs": "/docs",
            "health": "/health/"
        }

    return app


# Create the app instance
app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info" if not settings.DEBUG else "debug",
        workers=1,  # Engine state lives in process
        access_log=True
    )
