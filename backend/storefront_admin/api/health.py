"""Health check endpoints"""
import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront_admin import __version__
from storefront_admin.api.deps import get_session_store
from storefront_admin.config import settings
from storefront_admin.database import get_db
from storefront_admin.models.admin_user import AdminUser
from storefront_admin.services.session_store import SessionStore

router = APIRouter(prefix="/health", tags=["health"])

# Track startup time
STARTUP_TIME = time.time()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("")
def health_check():
    """
    Basic health check endpoint

    Returns 200 if service is running
    """
    return {
        "status": "healthy",
        "service": "storefront-admin",
        "version": __version__,
        "timestamp": _now()
    }


@router.get("/ready")
def readiness_check(db: Session = Depends(get_db)):
    """
    Readiness check - verifies the credential store is reachable

    Returns 200 if ready to serve traffic, 503 if not ready
    """
    checks: Dict[str, Any] = {
        "database": False,
        "database_latency_ms": None
    }

    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        latency_ms = (time.time() - start) * 1000
        checks["database"] = True
        checks["database_latency_ms"] = round(latency_ms, 2)
    except SQLAlchemyError as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "checks": checks,
                "message": f"Database check failed: {str(e)}"
            },
        )

    if latency_ms > 1000:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "degraded",
                "checks": checks,
                "message": "Database latency is high"
            },
        )

    return {
        "status": "ready",
        "checks": checks,
        "timestamp": _now()
    }


@router.get("/live")
def liveness_check():
    """
    Liveness check - verifies service is alive

    Used by Kubernetes liveness probe
    """
    return {
        "status": "alive",
        "uptime_seconds": round(time.time() - STARTUP_TIME, 2),
        "timestamp": _now()
    }


@router.get("/stats")
def health_stats(
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
):
    """
    Admin account and session registry counts
    """
    try:
        total_admins = db.query(AdminUser).count()
    except SQLAlchemyError as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "error", "message": str(e), "timestamp": _now()},
        )

    sessions = store.list_sessions()
    return {
        "status": "healthy",
        "admins": {
            "total": total_admins
        },
        "sessions": {
            "store": settings.SESSION_STORE,
            "tracked": len(sessions),
            "force_logout_pending": sum(1 for entry in sessions if entry.force_logout)
        },
        "system": {
            "uptime_seconds": round(time.time() - STARTUP_TIME, 2)
        },
        "timestamp": _now()
    }
