"""Periodic retranscription of the whole session buffer while recording."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..capture.buffer import AudioSnapshot
from ..capture.session import RecordingSession
from ..ports.services.transcription_service import TranscriptionService
from ...domain.errors import TranscriptionError

LOGGER = logging.getLogger("clinicscribe")


class RetranscriptionScheduler:
    """Timer loop that resubmits the full snapshot, at most one call at a time.

    The speech-to-text service has no incremental mode, so every call covers
    the audio from session start and its result replaces the transcript.
    Tick failures are logged and swallowed; the next tick retries with a
    larger buffer.
    """

    def __init__(
        self,
        session: RecordingSession,
        transcription_service: TranscriptionService,
        interval_seconds: float = 3.0,
        min_pending_bytes: int = 1024,
        stream: bool = True,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be greater than 0")
        self._session = session
        self._transcription_service = transcription_service
        self._interval = interval_seconds
        self._min_pending_bytes = min_pending_bytes
        self._stream = stream
        self._timer: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def start(self) -> None:
        """Start the timer loop on the running event loop."""
        if self.running:
            return
        self._timer = asyncio.create_task(self._run(), name="retranscription-timer")

    def cancel(self) -> None:
        """Stop scheduling ticks. An in-flight transcription keeps running."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def tick(self) -> Optional[asyncio.Task[Optional[str]]]:
        """Submit the current snapshot if allowed; return the in-flight task or None if skipped."""
        session = self._session
        if not session.recording:
            return None
        if session.has_in_flight():
            LOGGER.debug("Retranscription tick skipped: previous call still in flight")
            return None
        if session.buffer.pending_size < self._min_pending_bytes:
            return None

        snapshot = session.buffer.snapshot()
        session.transcription_calls += 1
        task = asyncio.create_task(
            self._transcribe_snapshot(snapshot), name="retranscription-call"
        )
        session.in_flight = task
        return task

    async def _run(self) -> None:
        while self._session.recording:
            await asyncio.sleep(self._interval)
            if not self._session.recording:
                break
            self.tick()

    async def _transcribe_snapshot(self, snapshot: AudioSnapshot) -> Optional[str]:
        session = self._session
        try:
            transcript = await self._transcription_service.transcribe(
                snapshot.data, stream=self._stream
            )
        except TranscriptionError as e:
            LOGGER.warning(
                f"Periodic transcription failed for {snapshot.size} bytes: {e.message}"
            )
            return None
        except Exception as e:
            LOGGER.warning(
                f"Periodic transcription failed for {snapshot.size} bytes: {e}",
                exc_info=True,
            )
            return None
        else:
            if transcript.strip():
                session.transcript = transcript
            session.buffer.acknowledge(snapshot)
            LOGGER.debug(
                f"Transcript replaced from {snapshot.fragment_count} fragments ({snapshot.size} bytes)"
            )
            return transcript
        finally:
            if session.in_flight is asyncio.current_task():
                session.in_flight = None
