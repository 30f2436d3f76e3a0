"""
Appointment repository interface for the record store.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from clinicscribe.domain.entities.appointment import Appointment
from clinicscribe.domain.value_objects.appointment_id import AppointmentId


class AppointmentRepository:
    """Repository interface for appointments."""

    async def get(self, appointment_id: AppointmentId) -> Optional[Appointment]:
        """Find an appointment by ID."""
        raise NotImplementedError

    async def save(self, appointment: Appointment) -> Appointment:
        """Insert or replace an appointment (used by the scheduling workflow and tests)."""
        raise NotImplementedError

    async def mark_started(self, appointment_id: AppointmentId, started_at: datetime) -> bool:
        """
        Set status = in_progress and started_at.

        Returns True if the appointment was found and updated.
        """
        raise NotImplementedError

    async def complete(self, appointment_id: AppointmentId, fields: Dict[str, Any]) -> bool:
        """
        Atomically write the completion fields.

        ``fields`` holds the transcription, every clinical field, completed_at
        and status = completed. Either all of them are written or none is.

        Returns True if the appointment was found and updated. An appointment
        that is already completed is not matched, so the write happens once.
        """
        raise NotImplementedError
