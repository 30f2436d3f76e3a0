"""
FastAPI application factory for the clinical capture service.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Dict, Type

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routers import appointments, health
from .api.schemas.appointments import SessionResponse
from .api.session_registry import SessionRegistry
from .api.utils.responses import fail
from .core.config import get_settings
from .core.exceptions import ClinicScribeException, ConfigurationError
from .core.structured_logger import configure_logging
from .domain.errors import (
    AppointmentNotFoundError,
    CaptureError,
    DomainError,
    ExtractionError,
    InvalidSessionTransitionError,
    InvalidStatusTransitionError,
    PersistenceError,
    TranscriptionError,
)

logger = logging.getLogger("clinicscribe")

DOMAIN_ERROR_STATUS: Dict[Type[DomainError], int] = {
    AppointmentNotFoundError: 404,
    InvalidSessionTransitionError: 409,
    InvalidStatusTransitionError: 409,
    CaptureError: 409,
    TranscriptionError: 502,
    ExtractionError: 502,
    PersistenceError: 502,
}


def status_for(exc: DomainError) -> int:
    for error_type, status_code in DOMAIN_ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return 400


async def init_database(settings) -> None:
    """Connect Motor and register the Beanie document models."""
    from beanie import init_beanie
    from motor.motor_asyncio import AsyncIOMotorClient

    from .adapters.db.mongo.models.appointment_m import AppointmentMongo

    if not settings.database.uri:
        raise ConfigurationError("MONGO_URI is required when STORE=mongo")
    client = AsyncIOMotorClient(settings.database.uri, serverSelectionTimeoutMS=15000)
    await init_beanie(
        database=client[settings.database.db_name],
        document_models=[AppointmentMongo],
    )
    logger.info(f"Database connection established (db={settings.database.db_name})")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    configure_logging(settings.logging)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.app_env}, store: {settings.store}")

    if settings.store == "mongo":
        try:
            await init_database(settings)
        except Exception as e:
            logger.error(f"Database connection failed: {e}", exc_info=True)
            raise

    yield

    registry: SessionRegistry = app.state.session_registry
    if len(registry):
        logger.info(f"Closing {len(registry)} live capture sessions")
    await registry.close_all()
    logger.info(f"Shutting down {settings.app_name}")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Live clinical session capture, transcription and structured extraction",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.session_registry = SessionRegistry()

    if settings.is_development:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def assign_request_id(request: Request, call_next):
        request.state.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        response = await call_next(request)
        response.headers["X-Request-ID"] = request.state.request_id
        return response

    app.include_router(health.router)
    app.include_router(appointments.router)

    # Global exception handler for domain errors
    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        details = dict(exc.details)
        session = app.state.session_registry.get(request.path_params.get("appointment_id"))
        if session is not None:
            details["session"] = SessionResponse.from_snapshot(session.snapshot()).model_dump(mode="json")
        details["retryable"] = exc.retryable
        body = fail(request, exc.error_code or "DOMAIN_ERROR", exc.message, details)
        return JSONResponse(status_code=status_for(exc), content=body.model_dump(mode="json"))

    @app.exception_handler(ClinicScribeException)
    async def service_error_handler(request: Request, exc: ClinicScribeException):
        logger.error(f"{exc.error_code}: {exc.message}")
        body = fail(request, exc.error_code or "INTERNAL_ERROR", exc.message, exc.details)
        return JSONResponse(status_code=500, content=body.model_dump(mode="json"))

    @app.exception_handler(ValueError)
    async def validation_error_handler(request: Request, exc: ValueError):
        body = fail(request, "VALIDATION_ERROR", str(exc))
        return JSONResponse(status_code=422, content=body.model_dump(mode="json"))

    return app


app = create_app()
