"""
In-memory implementation of AppointmentRepository for development and tests.
"""

import asyncio
import copy
from datetime import datetime
from typing import Any, Dict, Optional

from clinicscribe.application.ports.repositories.appointment_repo import AppointmentRepository
from clinicscribe.domain.entities.appointment import Appointment, ClinicalRecord
from clinicscribe.domain.enums.status import AppointmentStatus
from clinicscribe.domain.value_objects.appointment_id import AppointmentId


class InMemoryAppointmentRepository(AppointmentRepository):
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._appointments: Dict[str, Appointment] = {}

    async def get(self, appointment_id: AppointmentId) -> Optional[Appointment]:
        async with self._lock:
            appointment = self._appointments.get(appointment_id.value)
            return copy.deepcopy(appointment) if appointment else None

    async def save(self, appointment: Appointment) -> Appointment:
        async with self._lock:
            self._appointments[appointment.appointment_id.value] = copy.deepcopy(appointment)
        return appointment

    async def mark_started(self, appointment_id: AppointmentId, started_at: datetime) -> bool:
        async with self._lock:
            appointment = self._appointments.get(appointment_id.value)
            if appointment is None:
                return False
            appointment.status = AppointmentStatus.IN_PROGRESS
            appointment.started_at = started_at
            appointment.updated_at = datetime.utcnow()
            return True

    async def complete(self, appointment_id: AppointmentId, fields: Dict[str, Any]) -> bool:
        async with self._lock:
            current = self._appointments.get(appointment_id.value)
            if current is None or current.status == AppointmentStatus.COMPLETED:
                return False

            # Build the new version aside, then swap it in as one step
            updated = copy.deepcopy(current)
            record_fields = {
                name: fields.get(name) for name in ClinicalRecord.field_names()
            }
            updated.record = ClinicalRecord(**record_fields)
            updated.transcription = fields.get("transcription")
            updated.completed_at = fields.get("completed_at")
            updated.status = AppointmentStatus(fields.get("status", AppointmentStatus.COMPLETED.value))
            updated.updated_at = datetime.utcnow()
            self._appointments[appointment_id.value] = updated
            return True
