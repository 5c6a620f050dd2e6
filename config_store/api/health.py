"""
Profile Config Store - Health API Routes

GET /health - liveness
GET /ready  - readiness: 503 until the lifespan handler has created or
              migrated the stored document

Each application owns its HealthService (``app.state.health``), so several
apps built by create_app() in one process do not share readiness.
"""

from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config_store.core.logging import SERVICE_NAME, get_logger

router = APIRouter(tags=["health"])

logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Liveness payload."""

    status: str
    version: str
    service: str


class ReadinessResponse(BaseModel):
    """Readiness payload; ``store_key`` is set once the store is up."""

    status: str
    checks: dict[str, bool]
    store_key: str | None = None


class HealthService:
    """Tracks whether the profile store finished its startup migration."""

    def __init__(self, version: str = "0.1.0") -> None:
        self._version = version
        self._store_key: str | None = None

    @property
    def store_ready(self) -> bool:
        return self._store_key is not None

    def mark_store_ready(self, key: str) -> None:
        """Called by the lifespan handler after ``ProfileStore.initialize()``."""
        self._store_key = key

    def mark_store_stopped(self) -> None:
        self._store_key = None

    def check_health(self) -> dict[str, Any]:
        return {"status": "healthy", "version": self._version, "service": SERVICE_NAME}

    def check_readiness(self) -> tuple[dict[str, Any], bool]:
        """Return the readiness payload and whether the service is ready."""
        checks = {"store_initialized": self.store_ready}
        ready = all(checks.values())
        payload = {
            "status": "ready" if ready else "not_ready",
            "checks": checks,
            "store_key": self._store_key,
        }
        return payload, ready


def get_health_service(request: Request) -> HealthService:
    """HealthService of the application serving *request*."""
    return request.app.state.health


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Liveness probe",
)
async def health_check(request: Request) -> HealthResponse:
    """Report that the process is serving requests."""
    data = get_health_service(request).check_health()
    logger.debug("health_check", status=data["status"])
    return HealthResponse(**data)


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "Store is initialized"},
        503: {"description": "Store is not initialized"},
    },
    summary="Readiness Check",
    description="Readiness probe",
)
async def readiness_check(request: Request) -> JSONResponse:
    """200 once the stored document is initialized, 503 before that."""
    data, ready = get_health_service(request).check_readiness()
    status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE
    logger.debug("readiness_check", status=data["status"], ready=ready)
    return JSONResponse(content=data, status_code=status_code)
