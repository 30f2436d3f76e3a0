"""
Appointment status and recording session state enums.
"""

from enum import Enum


class AppointmentStatus(str, Enum):
    """Durable appointment lifecycle."""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class SessionState(str, Enum):
    """In-memory recording session lifecycle."""

    NOT_STARTED = "not_started"
    STARTED = "started"          # Appointment marked in_progress
    RECORDING = "recording"      # Device open, scheduler ticking
    STOPPING = "stopping"        # Timer cancelled, final pass running
    EXTRACTING = "extracting"
    SAVING = "saving"
    COMPLETED = "completed"
    ERROR = "error"              # Retryable, see RecordingSession.failed_step
