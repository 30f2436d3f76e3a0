"""
Transcription service interface for audio-to-text conversion.
"""

from abc import ABC, abstractmethod


class TranscriptionService(ABC):
    """Abstract speech-to-text collaborator."""

    @abstractmethod
    async def transcribe(self, audio: bytes, *, stream: bool = True) -> str:
        """
        Transcribe a complete audio blob.

        Args:
            audio: Concatenated audio captured so far
            stream: Prefer a line-delimited streaming response

        Returns:
            The full transcript for the blob ("" for an empty blob)

        Raises:
            TranscriptionError: network or service failure
        """
        pass
