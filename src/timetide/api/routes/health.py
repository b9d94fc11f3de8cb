"""Health check routes.

`/api/health` is a liveness probe: it answers OK whenever the process is
serving requests and only reports the last known database state.
`/api/health/ready` is the readiness probe and fails while the database is
not connected.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from timetide.config import Settings
from timetide.database.connection import ConnectionState, MongoConnector

router = APIRouter()


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _payload(request: Request, status_text: str) -> dict:
    settings: Settings = request.app.state.settings
    connector: MongoConnector = request.app.state.connector
    return {
        "status": status_text,
        "message": f"{settings.app_name} is running",
        "timestamp": _timestamp(),
        "database": connector.state.value,
    }


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Liveness check endpoint."""
    return _payload(request, "OK")


@router.get("/health/ready")
async def readiness_check(request: Request) -> JSONResponse:
    """Readiness check endpoint."""
    connector: MongoConnector = request.app.state.connector
    if connector.state is ConnectionState.CONNECTED:
        return JSONResponse(content=_payload(request, "OK"))
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_payload(request, "DEGRADED"),
    )
