"""
MongoDB Beanie model for appointments.

The scheduling workflow owns document creation; the capture pipeline only
updates status, timestamps, transcription and the clinical fields.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from beanie import Document
from pydantic import Field


class AppointmentMongo(Document):
    """MongoDB model for Appointment entity."""

    appointment_id: str = Field(..., description="Appointment ID")
    status: str = Field(default="scheduled", description="Status: scheduled, in_progress, completed")
    patient_name: Optional[str] = None
    patient_email: Optional[str] = None
    appointment_date: Optional[str] = None
    appointment_time: Optional[str] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    # Written once, together, when the capture session completes
    transcription: Optional[str] = None
    chief_complaint: Optional[str] = None
    symptoms: Optional[List[Any]] = None
    diagnosis: Optional[str] = None
    prescription: Optional[List[Any]] = None
    lab_tests: Optional[List[Any]] = None
    vital_signs: Optional[Dict[str, Any]] = None
    examination_findings: Optional[str] = None
    follow_up_date: Optional[str] = None
    follow_up_notes: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "appointments"
        indexes = [
            "appointment_id",
            "status",
            [("status", 1), ("started_at", -1)],
        ]
