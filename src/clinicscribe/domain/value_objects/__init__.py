"""
Value objects package for domain layer.
"""

from .appointment_id import AppointmentId

__all__ = [
    "AppointmentId",
]
