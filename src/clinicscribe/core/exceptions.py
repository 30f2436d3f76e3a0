"""
Exception handling for Clinic-Scribe infrastructure.

Domain failures live in clinicscribe.domain.errors; this module covers
problems with the process environment itself.
"""

from typing import Any, Dict, Optional


class ClinicScribeException(Exception):
    """Base exception class for Clinic-Scribe infrastructure."""

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


class ConfigurationError(ClinicScribeException):
    """Raised when there's a configuration error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, "CONFIG_ERROR", details)
