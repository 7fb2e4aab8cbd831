from fastapi import APIRouter, HTTPException
from typing import Dict, Any
import logging
import psutil
import time
from datetime import datetime, timezone

from serenity.core.database import get_db_manager
from serenity.core.config import settings
from serenity.conversation.session_manager import get_session_manager
from serenity.version import get_version_info

logger = logging.getLogger(__name__)

router = APIRouter()

_STARTED_AT = time.time()


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """Overall health: database, chat sessions and process memory"""
    try:
        issues = []
        overall_status = "healthy"

        db_status: Dict[str, Any] = {"status": "disabled"}
        if settings.persist_transcripts:
            db_status = get_db_manager().health_check()
            if db_status.get("status") != "healthy":
                overall_status = "unhealthy"
                issues.append("database_connection_failed")

        manager = get_session_manager()
        process = psutil.Process()

        return {
            "status": overall_status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": get_version_info(),
            "issues": issues,
            "details": {
                "database": db_status,
                "conversation": {
                    "active_sessions": manager.session_count(),
                    "pending_replies": manager.pending_count(),
                },
                "process": {
                    "memory_mb": round(process.memory_info().rss / (1024**2), 2),
                },
                "uptime": _get_uptime(),
            },
        }

    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return {
            "status": "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "error": str(e),
        }


@router.get("/health/database")
async def database_health() -> Dict[str, Any]:
    """Database-only health check"""
    try:
        return get_db_manager().health_check()
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


def _get_uptime() -> str:
    """Application uptime"""
    uptime_seconds = time.time() - _STARTED_AT

    days = int(uptime_seconds // 86400)
    hours = int((uptime_seconds % 86400) // 3600)
    minutes = int((uptime_seconds % 3600) // 60)

    return f"{days}d {hours}h {minutes}m"
