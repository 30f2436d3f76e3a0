"""
Domain-specific error types for the capture pipeline.

Every failure is scoped to one appointment session; none is fatal to the
process.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class AppointmentNotFoundError(DomainError):
    """Appointment not found."""

    def __init__(self, appointment_id: str) -> None:
        message = f"Appointment with ID '{appointment_id}' not found"
        super().__init__(
            message, "APPOINTMENT_NOT_FOUND", {"appointment_id": appointment_id}
        )


class InvalidStatusTransitionError(DomainError):
    """Appointment status cannot move in the requested direction."""

    def __init__(self, appointment_id: str, current: str, target: str) -> None:
        message = f"Appointment '{appointment_id}' cannot move from '{current}' to '{target}'"
        super().__init__(
            message,
            "INVALID_STATUS_TRANSITION",
            {"appointment_id": appointment_id, "current": current, "target": target},
        )


class InvalidSessionTransitionError(DomainError):
    """Operation not allowed in the current recording session state."""

    def __init__(self, operation: str, state: str) -> None:
        message = f"Cannot {operation} while session is '{state}'"
        super().__init__(
            message,
            "INVALID_SESSION_TRANSITION",
            {"operation": operation, "state": state},
        )


class CaptureError(DomainError):
    """Capture device unavailable or permission denied."""

    retryable = True

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, "CAPTURE_ERROR", details)


class TranscriptionError(DomainError):
    """Speech-to-text call failed."""

    retryable = True

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, "TRANSCRIPTION_ERROR", details)


class ExtractionError(DomainError):
    """Structured extraction failed."""

    retryable = True

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, "EXTRACTION_ERROR", details)


class PersistenceError(DomainError):
    """Record store write or read failed."""

    retryable = True

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, "PERSISTENCE_ERROR", details)
