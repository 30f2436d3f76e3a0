"""Ephemeral recording session owned by the capture use case."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from ...domain.entities.appointment import ClinicalRecord
from ...domain.enums.status import SessionState
from ...domain.value_objects.appointment_id import AppointmentId
from .buffer import CaptureBuffer


@dataclass
class RecordingSession:
    """In-memory state for one active appointment. Never persisted."""

    appointment_id: Optional[AppointmentId] = None
    state: SessionState = SessionState.NOT_STARTED
    buffer: CaptureBuffer = field(default_factory=CaptureBuffer)
    transcript: str = ""
    in_flight: Optional["asyncio.Task[Optional[str]]"] = None
    recording: bool = False
    record: Optional[ClinicalRecord] = None
    last_error: Optional[str] = None
    failed_step: Optional[str] = None  # capture, stop, extract, save
    transcription_calls: int = 0
    started_at: Optional[datetime] = None
    stopped_at: Optional[datetime] = None

    def has_in_flight(self) -> bool:
        return self.in_flight is not None and not self.in_flight.done()

    def snapshot(self) -> "SessionSnapshot":
        return SessionSnapshot(
            appointment_id=self.appointment_id.value if self.appointment_id else None,
            state=self.state,
            transcript=self.transcript,
            recording=self.recording,
            in_flight=self.has_in_flight(),
            buffered_bytes=self.buffer.size,
            pending_bytes=self.buffer.pending_size,
            transcription_calls=self.transcription_calls,
            last_error=self.last_error,
            failed_step=self.failed_step,
            record=self.record,
        )


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a recording session for the UI."""

    appointment_id: Optional[str]
    state: SessionState
    transcript: str
    recording: bool
    in_flight: bool
    buffered_bytes: int
    pending_bytes: int
    transcription_calls: int
    last_error: Optional[str] = None
    failed_step: Optional[str] = None
    record: Optional[ClinicalRecord] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "appointment_id": self.appointment_id,
            "state": self.state.value,
            "transcript": self.transcript,
            "recording": self.recording,
            "in_flight": self.in_flight,
            "buffered_bytes": self.buffered_bytes,
            "pending_bytes": self.pending_bytes,
            "transcription_calls": self.transcription_calls,
            "last_error": self.last_error,
            "failed_step": self.failed_step,
            "record": self.record.to_dict() if self.record else None,
        }
