"""Health check endpoints."""

from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel

from app import __version__
from app.api.deps import ServicesDep

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    environment: str
    data_store: str
    auth_disabled: bool
    timestamp: datetime


@router.get("/health", response_model=HealthResponse)
async def health_check(services: ServicesDep) -> HealthResponse:
    """Report version and which backends this instance is running with."""
    return HealthResponse(
        version=__version__,
        environment=services.settings.app_env,
        data_store=type(services.store).__name__,
        auth_disabled=services.settings.auth_disabled,
        timestamp=datetime.utcnow(),
    )
