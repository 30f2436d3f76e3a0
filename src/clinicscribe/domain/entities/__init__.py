"""
Domain entities package.
"""

from .appointment import Appointment, ClinicalRecord

__all__ = [
    "Appointment",
    "ClinicalRecord",
]
