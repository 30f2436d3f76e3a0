"""
Appointment ID value object for type-safe appointment identification.
The record store issues opaque identifiers (UUIDs in practice).
"""

import re
import uuid
from dataclasses import dataclass
from typing import Any

_ALLOWED = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_\-]{0,127}$")


@dataclass(frozen=True)
class AppointmentId:
    """Immutable appointment identifier value object."""

    value: str

    def __post_init__(self) -> None:
        """Validate appointment ID format."""
        if not isinstance(self.value, str):
            raise ValueError("Appointment ID must be a string")

        if not self.value:
            raise ValueError("Appointment ID cannot be empty")

        if not _ALLOWED.match(self.value):
            raise ValueError(
                "Appointment ID may only contain letters, digits, '-' and '_' (max 128 chars)"
            )

    def __str__(self) -> str:
        """String representation."""
        return self.value

    def __eq__(self, other: Any) -> bool:
        """Equality comparison."""
        if not isinstance(other, AppointmentId):
            return False
        return self.value == other.value

    def __hash__(self) -> int:
        """Hash for use in sets and dictionaries."""
        return hash(self.value)

    @classmethod
    def generate(cls) -> "AppointmentId":
        """Generate a new appointment ID."""
        return cls(str(uuid.uuid4()))
