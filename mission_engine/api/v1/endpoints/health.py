"""
Health check API endpoints
"""

from fastapi import APIRouter, Depends, status
from typing import Dict, Any
import time
import psutil
import logging

from config.settings import get_settings
from mission_engine.api.deps import get_mission_manager
from mission_engine.services.mission_service import MissionLifecycleManager

logger = logging.getLogger(__name__)
router = APIRouter()

STARTED_AT = time.time()


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint

    Returns basic application health status
    """
    settings = get_settings()
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "service": settings.APP_NAME,
        "version": settings.VERSION
    }


@router.get("/detailed", status_code=status.HTTP_200_OK)
async def detailed_health_check(
    manager: MissionLifecycleManager = Depends(get_mission_manager)
) -> Dict[str, Any]:
    """
    Detailed health check with system information

    Returns comprehensive health status including:
    - Application status
    - Engine counters and pending drone releases
    - System resources
    """
    settings = get_settings()

    app_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "uptime_seconds": time.time() - STARTED_AT,
        "version": settings.VERSION
    }

    engine_status = manager.get_stats()
    engine_status["lifecycle"] = settings.lifecycle_params
    engine_status["limits"] = settings.flight_limits

    system_status = get_system_status()

    resources_ok = all([
        system_status["cpu_percent"] < 90,
        system_status["memory_percent"] < 90,
        system_status["disk_percent"] < 90
    ])
    releases_ok = not engine_status["release_failures"]

    return {
        "overall_status": "healthy" if resources_ok and releases_ok else "degraded",
        "timestamp": time.time(),
        "application": app_status,
        "engine": engine_status,
        "system": system_status,
        "checks": {
            "system_resources_ok": resources_ok,
            "drone_releases_ok": releases_ok
        }
    }


def get_system_status() -> Dict[str, Any]:
    """Get system resource usage"""
    try:
        memory = psutil.virtual_memory()
        disk = psutil.disk_usage('/')
        return {
            "cpu_percent": psutil.cpu_percent(interval=None),
            "memory_percent": memory.percent,
            "memory_available_mb": memory.available / (1024 * 1024),
            "disk_percent": disk.percent,
            "disk_free_gb": disk.free / (1024 * 1024 * 1024),
            "process_count": len(psutil.pids())
        }
    except (psutil.Error, OSError) as e:
        logger.error(f"Error getting system status: {e}")
        return {
            "cpu_percent": 0,
            "memory_percent": 0,
            "disk_percent": 0,
            "error": str(e)
        }
