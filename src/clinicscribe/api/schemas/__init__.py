"""
API schemas package.
"""

# Common schemas
from .common import ApiResponse, ErrorResponse

# Capture session schemas
from .appointments import (
    AppointmentStartedResponse,
    ClinicalRecordResponse,
    SessionResponse,
)

__all__ = [
    "ApiResponse",
    "ErrorResponse",
    "AppointmentStartedResponse",
    "ClinicalRecordResponse",
    "SessionResponse",
]
