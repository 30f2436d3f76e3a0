"""Extract structured clinical fields and persist the completed appointment."""

from __future__ import annotations

import logging
from typing import Tuple, Union

from ..ports.repositories.appointment_repo import AppointmentRepository
from ..ports.services.extraction_service import ExtractionService
from ...domain.entities.appointment import Appointment, ClinicalRecord
from ...domain.errors import (
    AppointmentNotFoundError,
    DomainError,
    ExtractionError,
    PersistenceError,
)
from ...domain.value_objects.appointment_id import AppointmentId

LOGGER = logging.getLogger("clinicscribe")


class ExtractAndSaveUseCase:
    """Use case for the extraction call and the single completion write.

    The two steps are exposed separately so a failed save can be retried with
    the cached record, without calling the extraction service again.
    """

    def __init__(
        self,
        extraction_service: ExtractionService,
        appointment_repository: AppointmentRepository,
    ):
        self._extraction_service = extraction_service
        self._appointment_repository = appointment_repository

    async def extract(self, transcript: str) -> ClinicalRecord:
        if not transcript or not transcript.strip():
            raise ExtractionError("No transcript provided")

        try:
            payload = await self._extraction_service.extract(transcript)
        except DomainError:
            raise
        except Exception as e:
            raise ExtractionError(f"Data extraction failed: {e}") from e

        record = ClinicalRecord.from_extraction(payload)
        if record.is_empty():
            LOGGER.warning("Extraction returned no usable fields; saving transcript with empty record")
        return record

    async def save(
        self,
        appointment_id: Union[AppointmentId, str],
        transcript: str,
        record: ClinicalRecord,
    ) -> Appointment:
        if isinstance(appointment_id, str):
            appointment_id = AppointmentId(appointment_id)

        try:
            appointment = await self._appointment_repository.get(appointment_id)
        except DomainError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to load appointment: {e}") from e
        if appointment is None:
            raise AppointmentNotFoundError(appointment_id.value)

        # Validate the transition on a copy so a failed write leaves nothing behind
        completed = appointment.copy()
        completed.complete(transcript, record)

        try:
            updated = await self._appointment_repository.complete(
                appointment_id, completed.completion_fields()
            )
        except DomainError:
            raise
        except Exception as e:
            raise PersistenceError(
                f"Failed to save appointment data: {e}",
                {"appointment_id": appointment_id.value},
            ) from e
        if not updated:
            raise PersistenceError(
                "Failed to save appointment data: appointment was not updated "
                "(missing or already completed)",
                {"appointment_id": appointment_id.value},
            )

        LOGGER.info(
            f"Appointment {appointment_id.value} completed "
            f"(transcript_chars={len(transcript)}, empty_record={record.is_empty()})"
        )
        return completed

    async def execute(
        self, appointment_id: Union[AppointmentId, str], transcript: str
    ) -> Tuple[ClinicalRecord, Appointment]:
        record = await self.extract(transcript)
        appointment = await self.save(appointment_id, transcript, record)
        return record, appointment
