"""FastAPI dependency providers."""

from functools import lru_cache
from typing import Annotated, Callable

from fastapi import Depends
from starlette.requests import HTTPConnection

from ..adapters.db.memory.appointment_repository import InMemoryAppointmentRepository
from ..adapters.db.mongo.repositories.appointment_repository import (
    MongoAppointmentRepository,
)
from ..adapters.devices.push_capture_device import PushCaptureDevice
from ..adapters.external.extraction_service_openai import OpenAIExtractionService
from ..adapters.external.transcription_service_http import HttpTranscriptionService
from ..adapters.external.transcription_service_openai import OpenAITranscriptionService
from ..application.ports.repositories.appointment_repo import AppointmentRepository
from ..application.ports.services.extraction_service import ExtractionService
from ..application.ports.services.transcription_service import TranscriptionService
from ..application.use_cases.capture_session import CaptureSessionUseCase
from ..application.use_cases.extract_and_save import ExtractAndSaveUseCase
from ..core.config import get_settings
from ..domain.value_objects.appointment_id import AppointmentId
from .session_registry import SessionRegistry

CaptureSessionFactory = Callable[[], CaptureSessionUseCase]


@lru_cache()
def get_appointment_repository() -> AppointmentRepository:
    """Get appointment repository instance for the configured store."""
    if get_settings().store == "memory":
        return InMemoryAppointmentRepository()
    return MongoAppointmentRepository()


@lru_cache()
def get_transcription_service() -> TranscriptionService:
    """Get transcription service instance for the configured provider."""
    if get_settings().transcription.provider == "openai":
        return OpenAITranscriptionService()
    return HttpTranscriptionService()


@lru_cache()
def get_extraction_service() -> ExtractionService:
    """Get extraction service instance."""
    return OpenAIExtractionService()


def get_session_registry(connection: HTTPConnection) -> SessionRegistry:
    """Live sessions are owned by the application instance."""
    return connection.app.state.session_registry


def _browser_device(appointment_id: AppointmentId) -> PushCaptureDevice:
    return PushCaptureDevice(name=f"browser:{appointment_id}")


def get_capture_session_factory(
    repository: Annotated[AppointmentRepository, Depends(get_appointment_repository)],
    transcription_service: Annotated[TranscriptionService, Depends(get_transcription_service)],
    extraction_service: Annotated[ExtractionService, Depends(get_extraction_service)],
) -> CaptureSessionFactory:
    settings = get_settings()

    def factory() -> CaptureSessionUseCase:
        return CaptureSessionUseCase(
            appointment_repository=repository,
            transcription_service=transcription_service,
            extract_and_save=ExtractAndSaveUseCase(extraction_service, repository),
            device_factory=_browser_device,
            capture_settings=settings.capture,
            stream=settings.transcription.stream,
        )

    return factory


# Dependency annotations for FastAPI
AppointmentRepositoryDep = Annotated[AppointmentRepository, Depends(get_appointment_repository)]
TranscriptionServiceDep = Annotated[TranscriptionService, Depends(get_transcription_service)]
ExtractionServiceDep = Annotated[ExtractionService, Depends(get_extraction_service)]
SessionRegistryDep = Annotated[SessionRegistry, Depends(get_session_registry)]
CaptureSessionFactoryDep = Annotated[CaptureSessionFactory, Depends(get_capture_session_factory)]
