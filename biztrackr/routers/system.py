"""
System health router.
"""

import time

from fastapi import APIRouter, Depends

from biztrackr import __version__
from biztrackr.config import Settings, get_settings
from biztrackr.storage import StorageBackend, StorageError, get_storage
from biztrackr.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()

# Track startup time for uptime calculation
_startup_time = time.time()

_HEALTH_PROBE_OWNER = "__health__"


@router.get("/health")
def system_health(
    storage: StorageBackend = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """
    Get system health status.
    Checks database connectivity and whether the AI connector is configured.
    """
    db_status = "healthy"
    try:
        storage.read_recent_sales(_HEALTH_PROBE_OWNER, 1)
    except StorageError as e:
        logger.warning("health_check_storage_failed", error=str(e))
        db_status = f"unhealthy: {e}"

    return {
        "success": True,
        "data": {
            "status": "healthy" if db_status == "healthy" else "degraded",
            "version": __version__,
            "uptime_seconds": round(time.time() - _startup_time, 1),
            "database": db_status,
            "ai_configured": settings.ai_configured,
        },
    }
