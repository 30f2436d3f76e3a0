"""
Appointment capture request/response schemas.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ...application.capture.session import SessionSnapshot
from ...domain.entities.appointment import Appointment, ClinicalRecord


class ClinicalRecordResponse(BaseModel):
    """Structured clinical fields extracted from the transcript."""

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
    def from_record(cls, record: ClinicalRecord) -> "ClinicalRecordResponse":
        return cls(**record.to_dict())


class SessionResponse(BaseModel):
    """Live view of a recording session."""

    appointment_id: Optional[str] = Field(None, description="Appointment ID")
    state: str = Field(..., description="Session state")
    transcript: str = Field("", description="Latest transcript (replaced on every pass)")
    recording: bool = Field(False, description="Capture device is open")
    in_flight: bool = Field(False, description="A transcription call is outstanding")
    buffered_bytes: int = Field(0, description="Total audio captured")
    pending_bytes: int = Field(0, description="Audio not yet covered by a successful transcription")
    transcription_calls: int = Field(0, description="Transcription calls issued")
    last_error: Optional[str] = Field(None, description="Last failure message")
    failed_step: Optional[str] = Field(None, description="Step to retry: capture, stop, extract or save")
    record: Optional[ClinicalRecordResponse] = Field(None, description="Extracted clinical record")

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot) -> "SessionResponse":
        return cls(
            appointment_id=snapshot.appointment_id,
            state=snapshot.state.value,
            transcript=snapshot.transcript,
            recording=snapshot.recording,
            in_flight=snapshot.in_flight,
            buffered_bytes=snapshot.buffered_bytes,
            pending_bytes=snapshot.pending_bytes,
            transcription_calls=snapshot.transcription_calls,
            last_error=snapshot.last_error,
            failed_step=snapshot.failed_step,
            record=ClinicalRecordResponse.from_record(snapshot.record) if snapshot.record else None,
        )


class AppointmentStartedResponse(BaseModel):
    appointment_id: str
    status: str
    started_at: Optional[datetime] = None
    patient_name: Optional[str] = None
    reason: Optional[str] = None
    session: SessionResponse

    @classmethod
    def build(cls, appointment: Appointment, snapshot: SessionSnapshot) -> "AppointmentStartedResponse":
        return cls(
            appointment_id=appointment.appointment_id.value,
            status=appointment.status.value,
            started_at=appointment.started_at,
            patient_name=appointment.patient_name,
            reason=appointment.reason,
            session=SessionResponse.from_snapshot(snapshot),
        )
