"""
HTTP speech-to-text client.

Posts the audio snapshot as multipart form data and reads either a single
JSON result or a line-delimited event stream.
"""

import asyncio
import logging
import time
from typing import Optional

import aiohttp

from clinicscribe.application.ports.services.transcription_service import TranscriptionService
from clinicscribe.core.config import get_settings
from clinicscribe.domain.errors import TranscriptionError

from .transcription_stream import parse_single_shot, read_transcript_stream

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096


class HttpTranscriptionService(TranscriptionService):
    """Speech-to-text over HTTP with streaming and single-shot responses."""

    def __init__(
        self,
        endpoint_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> None:
        settings = get_settings().transcription
        self._endpoint_url = endpoint_url or settings.endpoint_url
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds or settings.timeout_seconds)
        self._filename = filename or settings.filename
        self._content_type = content_type or settings.content_type

        if not self._endpoint_url:
            raise ValueError(
                "Transcription endpoint is required. Please set TRANSCRIPTION_ENDPOINT_URL."
            )

    async def transcribe(self, audio: bytes, *, stream: bool = True) -> str:
        if not audio:
            return ""

        form = aiohttp.FormData()
        form.add_field("audio", audio, filename=self._filename, content_type=self._content_type)
        form.add_field("stream", "true" if stream else "false")

        start_time = time.time()
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.post(self._endpoint_url, data=form) as response:
                    if response.status >= 400:
                        error_text = await response.text()
                        logger.error(f"Transcription request failed: {response.status} {error_text[:200]}")
                        raise TranscriptionError(
                            f"Transcription service returned {response.status}",
                            {"status": response.status, "body": error_text[:500]},
                        )

                    if response.content_type == "application/json":
                        transcript = parse_single_shot(await response.json())
                    else:
                        transcript = await read_transcript_stream(
                            response.content.iter_chunked(READ_CHUNK_SIZE)
                        )
        except asyncio.TimeoutError as e:
            raise TranscriptionError(
                f"Transcription timed out after {self._timeout.total}s",
                {"timeout_seconds": self._timeout.total},
            ) from e
        except aiohttp.ClientError as e:
            raise TranscriptionError(f"Transcription request failed: {e}") from e

        logger.info(
            f"Transcribed {len(audio)} bytes in {time.time() - start_time:.2f}s "
            f"(stream={stream}, chars={len(transcript)})"
        )
        return transcript
