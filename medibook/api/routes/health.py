"""Health check endpoints."""

import logging

from fastapi import APIRouter, Request

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Basic health check."""
    return {
        "status": "healthy",
        "service": "medibook",
    }


@router.get("/health/ready")
async def readiness_check(request: Request) -> dict:
    """Readiness check - verifies the database answers."""
    try:
        await request.app.state.database.ping()
    except Exception as e:
        logger.warning(f"Database readiness check failed: {e}")
        return {
            "status": "not_ready",
            "errors": [f"Database check failed: {e}"],
        }

    return {"status": "ready", "database": "ok"}


@router.get("/health/live")
async def liveness_check() -> dict:
    """Liveness check - basic process health."""
    return {"status": "alive"}
