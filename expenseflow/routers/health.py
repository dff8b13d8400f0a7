"""
Health Check Router
"""
from datetime import datetime, timezone

from fastapi import APIRouter

from expenseflow.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Liveness probe. Does not touch the store.
    """
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
