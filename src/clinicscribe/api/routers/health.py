"""
Health check endpoints.
"""

from datetime import datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel

from ... import __version__
from ...core.config import get_settings
from ..deps import SessionRegistryDep
from ..schemas.common import ApiResponse
from ..utils.responses import ok

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    timestamp: datetime
    version: str
    service: str
    store: str
    active_sessions: int


@router.get("", response_model=ApiResponse[HealthResponse])
@router.get("/", response_model=ApiResponse[HealthResponse], include_in_schema=False)
async def health_check(request: Request, registry: SessionRegistryDep):
    """
    Health check endpoint.

    Returns the current status of the service.
    """
    settings = get_settings()
    return ok(request, data=HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow(),
        version=__version__,
        service=settings.app_name,
        store=settings.store,
        active_sessions=len(registry),
    ), message="OK")
