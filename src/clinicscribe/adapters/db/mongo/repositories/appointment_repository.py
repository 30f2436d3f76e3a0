"""
MongoDB implementation of AppointmentRepository.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from pymongo.errors import PyMongoError

from clinicscribe.application.ports.repositories.appointment_repo import AppointmentRepository
from clinicscribe.domain.entities.appointment import Appointment, ClinicalRecord
from clinicscribe.domain.enums.status import AppointmentStatus
from clinicscribe.domain.errors import PersistenceError
from clinicscribe.domain.value_objects.appointment_id import AppointmentId

from ..models.appointment_m import AppointmentMongo

logger = logging.getLogger("clinicscribe")


class MongoAppointmentRepository(AppointmentRepository):
    """MongoDB implementation of AppointmentRepository.

    Every mutation is a single-document ``$set``, which MongoDB applies
    atomically.
    """

    async def get(self, appointment_id: AppointmentId) -> Optional[Appointment]:
        try:
            doc = await AppointmentMongo.find_one(
                AppointmentMongo.appointment_id == appointment_id.value
            )
        except PyMongoError as e:
            raise PersistenceError(f"Failed to load appointment: {e}") from e

        if not doc:
            return None
        return self._mongo_to_domain(doc)

    async def save(self, appointment: Appointment) -> Appointment:
        try:
            existing = await AppointmentMongo.find_one(
                AppointmentMongo.appointment_id == appointment.appointment_id.value
            )
            doc = self._domain_to_mongo(appointment)
            if existing:
                doc.id = existing.id
            await doc.save()
        except PyMongoError as e:
            raise PersistenceError(f"Failed to save appointment: {e}") from e

        logger.info(f"Appointment {appointment.appointment_id.value} saved with status {appointment.status.value}")
        return self._mongo_to_domain(doc)

    async def mark_started(self, appointment_id: AppointmentId, started_at: datetime) -> bool:
        return await self._set_fields(
            {"appointment_id": appointment_id.value},
            {
                "status": AppointmentStatus.IN_PROGRESS.value,
                "started_at": started_at,
                "updated_at": datetime.utcnow(),
            },
            appointment_id,
        )

    async def complete(self, appointment_id: AppointmentId, fields: Dict[str, Any]) -> bool:
        update = dict(fields)
        update["updated_at"] = datetime.utcnow()
        updated = await self._set_fields(self.completion_filter(appointment_id), update, appointment_id)
        if updated:
            logger.info(f"Appointment {appointment_id.value} completed ({len(fields)} fields written)")
        else:
            logger.warning(f"Appointment {appointment_id.value} not completed: missing or already completed")
        return updated

    @staticmethod
    def completion_filter(appointment_id: AppointmentId) -> Dict[str, Any]:
        """Match the appointment only while it has not been completed."""
        return {
            "appointment_id": appointment_id.value,
            "status": {"$ne": AppointmentStatus.COMPLETED.value},
        }

    async def _set_fields(
        self, filters: Dict[str, Any], fields: Dict[str, Any], appointment_id: AppointmentId
    ) -> bool:
        try:
            result = await AppointmentMongo.find_one(filters).update({"$set": fields})
        except PyMongoError as e:
            raise PersistenceError(
                f"Failed to update appointment: {e}",
                {"appointment_id": appointment_id.value},
            ) from e
        return bool(result is not None and result.matched_count == 1)

    @staticmethod
    def _domain_to_mongo(appointment: Appointment) -> AppointmentMongo:
        return AppointmentMongo(
            appointment_id=appointment.appointment_id.value,
            status=appointment.status.value,
            patient_name=appointment.patient_name,
            patient_email=appointment.patient_email,
            appointment_date=appointment.appointment_date,
            appointment_time=appointment.appointment_time,
            reason=appointment.reason,
            notes=appointment.notes,
            started_at=appointment.started_at,
            completed_at=appointment.completed_at,
            transcription=appointment.transcription,
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
            **appointment.record.to_dict(),
        )

    @staticmethod
    def _mongo_to_domain(doc: AppointmentMongo) -> Appointment:
        record = ClinicalRecord(**{name: getattr(doc, name) for name in ClinicalRecord.field_names()})
        return Appointment(
            appointment_id=AppointmentId(doc.appointment_id),
            status=AppointmentStatus(doc.status),
            patient_name=doc.patient_name,
            patient_email=doc.patient_email,
            appointment_date=doc.appointment_date,
            appointment_time=doc.appointment_time,
            reason=doc.reason,
            notes=doc.notes,
            started_at=doc.started_at,
            completed_at=doc.completed_at,
            transcription=doc.transcription,
            record=record,
            created_at=doc.created_at,
            updated_at=doc.updated_at,
        )
