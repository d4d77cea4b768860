"""Liveness endpoint reporting process and database status."""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request

from src.userstore.api.http.app_data import ApplicationDependencies
from src.userstore.runtime.context import get_config

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health(request: Request) -> dict[str, Any]:
    """Always 200 while the process is up.

    ``database`` reflects connectivity and ``pool`` the connection pool counters.
    """
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    db_healthy = app_deps.database_service.health_check()
    return {
        "status": "ok" if db_healthy else "degraded",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": get_config().app.name,
        "database": "connected" if db_healthy else "disconnected",
        "pool": app_deps.database_service.get_pool_status(),
    }
