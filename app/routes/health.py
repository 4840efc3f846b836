"""
Health check endpoints.
Used for monitoring, deployment readiness checks, and basic connectivity tests.
"""

from fastapi import APIRouter, HTTPException

from app.config.firebase import get_report_store
from app.core.errors import StorageUnavailable
from app.core.settings import settings
from app.services.report_store import ReportFilter
from app.utils.timestamps import utc_now


router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if service is running.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": utc_now().isoformat()
    }


@router.get("/db")
def database_health():
    """
    Database connectivity check.
    Reads at most one report to verify the store answers.
    """
    try:
        store = get_report_store()
        store.query_reports(ReportFilter(limit=1))
    except (StorageUnavailable, RuntimeError) as e:
        raise HTTPException(
            status_code=503,
            detail=f"Database connection failed: {str(e)}"
        )

    return {
        "status": "healthy",
        "database": "memory" if settings.USE_MOCK_DB else "firestore",
        "connected": True,
        "timestamp": utc_now().isoformat()
    }
