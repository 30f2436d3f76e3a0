"""Appointment domain entity and the clinical record extracted for it.

The scheduling workflow creates appointments; the capture pipeline only ever
moves them to in_progress and then, once, to completed together with the
transcript and every structured clinical field.
"""

from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from ..enums.status import AppointmentStatus
from ..errors import InvalidStatusTransitionError
from ..value_objects.appointment_id import AppointmentId


def _clean_str(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _clean_list(value: Any) -> Optional[List[Any]]:
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, (dict, str))]


def _clean_dict(value: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(value, dict):
        return None
    return {str(k): v for k, v in value.items()}


@dataclass(frozen=True)
class ClinicalRecord:
    """Structured clinical fields produced by the extraction service.

    Every field is optional; a missing or malformed value is None.
    """

    chief_complaint: Optional[str] = None
    symptoms: Optional[List[Any]] = None
    diagnosis: Optional[str] = None
    prescription: Optional[List[Any]] = None
    lab_tests: Optional[List[Any]] = None
    vital_signs: Optional[Dict[str, Any]] = None
    examination_findings: Optional[str] = None
    follow_up_date: Optional[str] = None
    follow_up_notes: Optional[str] = None

    @classmethod
    def from_extraction(cls, payload: Any) -> "ClinicalRecord":
        """Map an extraction response onto a record, defaulting anything unusable to None.

        Accepts either the bare field mapping or the service envelope
        ``{"data": {...}}``.
        """
        if isinstance(payload, Mapping) and isinstance(payload.get("data"), Mapping):
            payload = payload["data"]
        if not isinstance(payload, Mapping):
            return cls()

        return cls(
            chief_complaint=_clean_str(payload.get("chief_complaint")),
            symptoms=_clean_list(payload.get("symptoms")),
            diagnosis=_clean_str(payload.get("diagnosis")),
            prescription=_clean_list(payload.get("prescription")),
            lab_tests=_clean_list(payload.get("lab_tests")),
            vital_signs=_clean_dict(payload.get("vital_signs")),
            examination_findings=_clean_str(payload.get("examination_findings")),
            follow_up_date=_clean_str(payload.get("follow_up_date")),
            follow_up_notes=_clean_str(payload.get("follow_up_notes")),
        )

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in self.field_names())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Appointment:
    """Appointment domain entity."""

    appointment_id: AppointmentId
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    patient_name: Optional[str] = None
    patient_email: Optional[str] = None
    appointment_date: Optional[str] = None
    appointment_time: Optional[str] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    transcription: Optional[str] = None
    record: ClinicalRecord = field(default_factory=ClinicalRecord)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def start(self, now: Optional[datetime] = None) -> None:
        """Mark the appointment in progress.

        Re-starting an in-progress appointment just refreshes started_at.
        """
        if self.status == AppointmentStatus.COMPLETED:
            raise InvalidStatusTransitionError(
                self.appointment_id.value,
                self.status.value,
                AppointmentStatus.IN_PROGRESS.value,
            )
        now = now or datetime.utcnow()
        self.status = AppointmentStatus.IN_PROGRESS
        self.started_at = now
        self.updated_at = now

    def complete(
        self,
        transcription: str,
        record: ClinicalRecord,
        now: Optional[datetime] = None,
    ) -> None:
        """Write transcript, clinical fields and completion status together."""
        if self.status == AppointmentStatus.COMPLETED:
            raise InvalidStatusTransitionError(
                self.appointment_id.value,
                self.status.value,
                AppointmentStatus.COMPLETED.value,
            )
        if not transcription or not transcription.strip():
            raise ValueError("A completed appointment requires a non-empty transcription")
        now = now or datetime.utcnow()
        self.transcription = transcription
        self.record = record
        self.completed_at = now
        self.status = AppointmentStatus.COMPLETED
        self.updated_at = now

    def completion_fields(self) -> Dict[str, Any]:
        """Fields written by the single completion update."""
        return {
            "transcription": self.transcription,
            **self.record.to_dict(),
            "completed_at": self.completed_at,
            "status": self.status.value,
        }

    def copy(self) -> "Appointment":
        return replace(self)

    def is_completed(self) -> bool:
        return self.status == AppointmentStatus.COMPLETED
