"""Service health endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter

from accounts import database

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint.

    Returns:
        Status, ISO8601 timestamp and database status
    """
    db_healthy = await database.health_check()
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "healthy" if db_healthy else "unavailable",
    }
