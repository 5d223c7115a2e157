"""Health check router for service monitoring.

This module provides health check endpoints reporting service status,
database connectivity and the number of open notification channels.
"""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends

from .. import __version__
from ..config import Settings
from ..database import get_database_info, test_database_connection
from ..dependencies import get_app_settings, get_connection_manager
from ..exceptions import DependencyException
from ..services.realtime import ConnectionManager

SERVICE_NAME = "book-exchange-api"

router = APIRouter(
    prefix="/api/health",
    tags=["health"],
    responses={
        500: {"description": "Internal server error"},
        503: {"description": "Service unavailable"},
    },
)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get(
    "",
    response_model=dict[str, Any],
    summary="Basic health check",
    description="Returns basic health status of the API server",
)
async def health_check() -> dict[str, Any]:
    """Basic health check endpoint.

    Returns:
        Dict[str, Any]: Health status information

    Example:
        {
            "status": "healthy",
            "timestamp": "2024-01-01T12:00:00Z",
            "service": "book-exchange-api",
            "version": "1.0.0"
        }
    """
    return {
        "status": "healthy",
        "timestamp": _timestamp(),
        "service": SERVICE_NAME,
        "version": __version__,
    }


@router.get(
    "/detailed",
    response_model=dict[str, Any],
    summary="Detailed health check with database connectivity",
    description="Returns detailed health status including database connectivity and real-time channels",
)
async def detailed_health_check(
    settings: Settings = Depends(get_app_settings),
    connections: ConnectionManager = Depends(get_connection_manager),
) -> dict[str, Any]:
    """Detailed health check with database connectivity.

    Args:
        settings: Application settings
        connections: Registry of open notification channels

    Returns:
        Dict[str, Any]: Detailed health status information

    Raises:
        DependencyException: 503 if the database cannot be reached

    Example:
        {
            "status": "healthy",
            "timestamp": "2024-01-01T12:00:00Z",
            "service": "book-exchange-api",
            "version": "1.0.0",
            "environment": "development",
            "database": {"status": "connected", "info": {...}},
            "realtime": {"total_connections": 3, "connected_users": 2},
            "media": {"configured": false}
        }
    """
    if not test_database_connection():
        raise DependencyException(
            "Service unavailable - database connectivity issues", service="database"
        )

    stats = connections.get_connection_stats()
    return {
        "status": "healthy",
        "timestamp": _timestamp(),
        "service": SERVICE_NAME,
        "version": __version__,
        "environment": settings.environment,
        "database": {"status": "connected", "info": get_database_info()},
        "realtime": {
            "total_connections": stats["total_connections"],
            "connected_users": stats["connected_users"],
        },
        "media": {"configured": settings.media_configured},
    }
