"""
OpenAI speech-to-text client.
Streams transcript deltas from the audio transcription endpoint.
"""

import logging
import os
import time
from typing import Any, List, Optional

import openai
from openai import AsyncOpenAI

from clinicscribe.application.ports.services.transcription_service import TranscriptionService
from clinicscribe.core.config import get_settings
from clinicscribe.core.exceptions import ConfigurationError
from clinicscribe.domain.errors import TranscriptionError

logger = logging.getLogger(__name__)


class OpenAITranscriptionService(TranscriptionService):
    def __init__(self, client: Optional[AsyncOpenAI] = None) -> None:
        self._settings = get_settings()
        if client is None:
            api_key = self._settings.openai.api_key or os.getenv("OPENAI_API_KEY", "")
            if not api_key:
                raise ConfigurationError("OPENAI_API_KEY is not set")
            client = AsyncOpenAI(
                api_key=api_key,
                timeout=self._settings.transcription.timeout_seconds,
            )
        self._client = client
        self._model = self._settings.transcription.model

    async def transcribe(self, audio: bytes, *, stream: bool = True) -> str:
        if not audio:
            return ""

        upload = (
            self._settings.transcription.filename,
            audio,
            self._settings.transcription.content_type,
        )
        start_time = time.time()
        try:
            if stream:
                events = await self._client.audio.transcriptions.create(
                    model=self._model,
                    file=upload,
                    stream=True,
                )
                text = await self._fold_events(events)
            else:
                resp = await self._client.audio.transcriptions.create(
                    model=self._model,
                    file=upload,
                )
                text = resp if isinstance(resp, str) else (resp.text or "")
        except openai.OpenAIError as e:
            raise TranscriptionError(f"Transcription failed: {e}") from e

        logger.info(
            f"OpenAI transcription of {len(audio)} bytes took {time.time() - start_time:.2f}s "
            f"(model={self._model}, stream={stream})"
        )
        return text.strip()

    @staticmethod
    async def _fold_events(events: Any) -> str:
        # The done event carries the authoritative text; deltas are the fallback.
        deltas: List[str] = []
        async for event in events:
            event_type = getattr(event, "type", None)
            if event_type == "transcript.text.delta":
                deltas.append(getattr(event, "delta", "") or "")
            elif event_type == "transcript.text.done":
                final = getattr(event, "text", None)
                if isinstance(final, str):
                    return final
                break
        return "".join(deltas)
