'''
Health checks: plain API status and API plus database connectivity.
'''
import logging
from datetime import datetime, timezone
from fastapi import APIRouter
from qc_api.db.session import ping_database
from qc_api.core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

@router.get("/health")
def health():
    """
    Simple health check for load balancers. Does not touch the database.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "message": "API is running",
        "service": settings.APP_NAME,
    }

@router.get("/health/full")
def health_full():
    """
    Verifies both API and database connectivity.
    """
    connected = ping_database()
    if connected:
        logger.info("Database health check successful")
    return {
        "status": "healthy" if connected else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "connected" if connected else "disconnected",
        "service": settings.APP_NAME,
    }
