"""
Extraction service interface for turning a transcript into clinical fields.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class ExtractionService(ABC):
    """Abstract structured-extraction collaborator."""

    @abstractmethod
    async def extract(self, transcript: str) -> Dict[str, Any]:
        """
        Extract structured appointment data from a transcript.

        Args:
            transcript: Full session transcript

        Returns:
            ``{"data": {chief_complaint, symptoms, diagnosis, prescription,
            lab_tests, vital_signs, examination_findings, follow_up_date,
            follow_up_notes}}``; any field may be null

        Raises:
            ExtractionError: service failure
        """
        pass
