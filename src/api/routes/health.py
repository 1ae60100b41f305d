"""
Liveness and readiness probes.

/health answers as long as the process is up. /health/ready also looks
at the configuration and at the directory the trend history is written
to, since a refresh cannot record history without it.

Neither probe calls AWS. A dashboard that cannot reach S3 or DynamoDB
is still ready; the failure shows up in the affected panel instead.
"""

import logging
import os
from pathlib import Path
from typing import Any

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from ... import __version__
from ...config.settings import Settings
from ...infrastructure.history.store import FileHistoryStore, HistoryStore
from ..dependencies import ServicesDep, SettingsDep

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Liveness payload, including which clients are mocked."""
    status: str
    version: str
    details: dict[str, Any] = Field(default_factory=dict)


class ReadinessCheck(BaseModel):
    name: str
    status: str = Field(description='"ok" or "error"')
    error: str | None = None
    detail: str | None = Field(None, description="Note on a passing check")


class ReadinessResponse(BaseModel):
    status: str = Field(description='"ready" or "not_ready"')
    version: str
    checks: list[ReadinessCheck]


def _writable_directory(path: Path) -> bool:
    """True if path exists and is writable, or could be created."""
    while not path.exists():
        if path.parent == path:
            return False
        path = path.parent
    return path.is_dir() and os.access(path, os.W_OK)


def _configuration_check(settings: Settings) -> ReadinessCheck:
    missing_fields = settings.validate_required_fields()
    if missing_fields:
        return ReadinessCheck(
            name="configuration",
            status="error",
            error=f"Missing required fields: {', '.join(missing_fields)}",
        )
    return ReadinessCheck(name="configuration", status="ok")


def _history_check(store: HistoryStore) -> ReadinessCheck:
    # In-memory slots are always writable
    if not isinstance(store, FileHistoryStore):
        return ReadinessCheck(name="history", status="ok", detail="in-memory slot")

    directory = store.path.parent
    if not _writable_directory(directory):
        return ReadinessCheck(
            name="history",
            status="error",
            error=f"Cannot write to {directory}",
        )
    return ReadinessCheck(name="history", status="ok")


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="200 while the process is running. No dependency is contacted.",
)
async def health_check(settings: SettingsDep) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        details={
            "mock_mode": {
                "storage": settings.storage_mock_mode,
                "dynamo": settings.dynamo_mock_mode,
                "history": settings.history_mock_mode,
            }
        },
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness probe",
    description="Checks configuration and that the history slot can be written.",
)
async def readiness_check(
    settings: SettingsDep,
    services: ServicesDep,
) -> ReadinessResponse:
    checks = [
        _configuration_check(settings),
        _history_check(services.history_store),
    ]
    ready = all(check.status == "ok" for check in checks)

    if not ready:
        logger.warning(
            "Dashboard not ready",
            extra={"failed_checks": [c.name for c in checks if c.status != "ok"]}
        )

    return ReadinessResponse(
        status="ready" if ready else "not_ready",
        version=__version__,
        checks=checks,
    )
