"""Capture session use case.

Owns one RecordingSession for an appointment and drives it through

    not_started -> started -> recording -> stopping -> extracting -> saving -> completed

with ``error`` reachable from stopping, extracting and saving. Each failure
records the step that failed so the matching retry resumes from there
without repeating work that already succeeded.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional, Union

from ..capture.session import RecordingSession, SessionSnapshot
from ..ports.devices.capture_device import CaptureDevice
from ..ports.repositories.appointment_repo import AppointmentRepository
from ..ports.services.transcription_service import TranscriptionService
from .extract_and_save import ExtractAndSaveUseCase
from .retranscription_scheduler import RetranscriptionScheduler
from ...core.config import CaptureSettings
from ...core.structured_logger import get_logger
from ...domain.entities.appointment import Appointment
from ...domain.enums.status import SessionState
from ...domain.errors import (
    AppointmentNotFoundError,
    CaptureError,
    DomainError,
    ExtractionError,
    InvalidSessionTransitionError,
    PersistenceError,
    TranscriptionError,
)
from ...domain.value_objects.appointment_id import AppointmentId

LOGGER = logging.getLogger("clinicscribe")
slog = get_logger("clinicscribe.capture")

DeviceFactory = Callable[[AppointmentId], CaptureDevice]
StateListener = Callable[[SessionState, SessionState], None]


class CaptureSessionUseCase:
    """Drives one appointment's live capture, transcription, extraction and save."""

    def __init__(
        self,
        appointment_repository: AppointmentRepository,
        transcription_service: TranscriptionService,
        extract_and_save: ExtractAndSaveUseCase,
        device_factory: DeviceFactory,
        capture_settings: Optional[CaptureSettings] = None,
        stream: bool = True,
        on_state_change: Optional[StateListener] = None,
    ):
        self._appointment_repository = appointment_repository
        self._transcription_service = transcription_service
        self._extract_and_save = extract_and_save
        self._device_factory = device_factory
        self._capture_settings = capture_settings or CaptureSettings()
        self._stream = stream
        self._on_state_change = on_state_change

        self._session = RecordingSession()
        self._device: Optional[CaptureDevice] = None
        self._scheduler: Optional[RetranscriptionScheduler] = None

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def session(self) -> RecordingSession:
        return self._session

    @property
    def device(self) -> Optional[CaptureDevice]:
        return self._device

    def snapshot(self) -> SessionSnapshot:
        return self._session.snapshot()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def start_appointment(self, appointment_id: Union[AppointmentId, str]) -> Appointment:
        """Mark the appointment in progress and open a session for it."""
        self._require("start appointment", SessionState.NOT_STARTED)
        if isinstance(appointment_id, str):
            appointment_id = AppointmentId(appointment_id)

        appointment = await self._appointment_repository.get(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(appointment_id.value)

        appointment.start()
        updated = await self._appointment_repository.mark_started(
            appointment_id, appointment.started_at
        )
        if not updated:
            raise AppointmentNotFoundError(appointment_id.value)

        self._session.appointment_id = appointment_id
        self._session.started_at = appointment.started_at
        self._transition(SessionState.STARTED)
        return appointment

    async def start_recording(self) -> SessionSnapshot:
        """Open the capture device and begin periodic retranscription."""
        self._require("start recording", SessionState.STARTED)
        session = self._session

        device = self._device_factory(session.appointment_id)
        try:
            await device.start(session.buffer.on_fragment)
        except (CaptureError, OSError) as e:
            await self._release(device)
            error = e if isinstance(e, CaptureError) else CaptureError(
                f"Could not access capture device: {e}"
            )
            session.last_error = error.message
            session.failed_step = "capture"
            slog.warning(
                "capture_start_failed",
                appointment_id=str(session.appointment_id),
                error=error.message,
            )
            if error is e:
                raise
            raise error from e

        self._device = device
        session.last_error = None
        session.failed_step = None
        session.recording = True
        self._transition(SessionState.RECORDING)

        self._scheduler = RetranscriptionScheduler(
            session,
            self._transcription_service,
            interval_seconds=self._capture_settings.tick_interval_seconds,
            min_pending_bytes=self._capture_settings.min_pending_bytes,
            stream=self._stream,
        )
        self._scheduler.start()
        return self.snapshot()

    async def stop_recording(self) -> SessionSnapshot:
        """
        Stop capture and finish the session.

        Cancels the timer, releases the device, waits for any in-flight call,
        runs exactly one final transcription pass over the whole buffer and then
        extraction and save. An empty transcript completes without either.
        """
        self._require("stop recording", SessionState.RECORDING)
        self._transition(SessionState.STOPPING)

        self._cancel_scheduler()
        self._session.recording = False
        self._session.stopped_at = datetime.utcnow()
        await self._release_device()
        await self._await_in_flight()

        await self._final_pass()
        await self._finish()
        return self.snapshot()

    async def retry_transcription(self) -> SessionSnapshot:
        """Repeat the final transcription pass after a failed stop."""
        self._require_failed("retry transcription", "stop")
        self._transition(SessionState.STOPPING)
        await self._final_pass()
        await self._finish()
        return self.snapshot()

    async def retry_extraction(self) -> SessionSnapshot:
        self._require_failed("retry extraction", "extract")
        await self._extract()
        await self._save()
        return self.snapshot()

    async def retry_save(self) -> SessionSnapshot:
        """Repeat only the write, reusing the already extracted record."""
        self._require_failed("retry save", "save")
        if self._session.record is None:
            raise InvalidSessionTransitionError("retry save", "error without extracted record")
        await self._save()
        return self.snapshot()

    async def close(self) -> None:
        """Tear the session down, e.g. when the client disconnects mid-recording."""
        self._cancel_scheduler()
        was_recording = self._session.recording
        self._session.recording = False
        await self._release_device()
        await self._await_in_flight()
        if was_recording and self._session.state == SessionState.RECORDING:
            # Captured audio is kept; retry_transcription finishes the session.
            self._session.stopped_at = datetime.utcnow()
            self._fail("stop", "Capture closed before recording was stopped")

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    async def _final_pass(self) -> None:
        session = self._session
        snapshot = session.buffer.snapshot()
        session.transcription_calls += 1
        try:
            transcript = await self._transcription_service.transcribe(
                snapshot.data, stream=self._stream
            )
        except TranscriptionError as e:
            self._fail("stop", e.message)
            raise
        except Exception as e:
            self._fail("stop", f"Transcription failed: {e}")
            raise TranscriptionError(f"Transcription failed: {e}") from e

        if transcript.strip():
            session.transcript = transcript
        session.buffer.acknowledge(snapshot)

    async def _finish(self) -> None:
        if not self._session.transcript.strip():
            slog.info(
                "session_completed_without_transcript",
                appointment_id=str(self._session.appointment_id),
            )
            self._complete()
            return
        await self._extract()
        await self._save()

    async def _extract(self) -> None:
        self._transition(SessionState.EXTRACTING)
        try:
            record = await self._extract_and_save.extract(self._session.transcript)
        except ExtractionError as e:
            self._fail("extract", e.message)
            raise
        self._session.record = record

    async def _save(self) -> None:
        self._transition(SessionState.SAVING)
        session = self._session
        try:
            await self._extract_and_save.save(
                session.appointment_id, session.transcript, session.record
            )
        except DomainError as e:
            self._fail("save", e.message)
            if isinstance(e, PersistenceError):
                raise
            raise PersistenceError(e.message, {"error_code": e.error_code}) from e
        self._complete()

    def _complete(self) -> None:
        # The transcript is final; captured audio is no longer needed
        self._clear_failure()
        self._session.buffer.release()
        self._transition(SessionState.COMPLETED)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require(self, operation: str, *allowed: SessionState) -> None:
        if self._session.state not in allowed:
            raise InvalidSessionTransitionError(operation, self._session.state.value)

    def _require_failed(self, operation: str, step: str) -> None:
        session = self._session
        if session.state != SessionState.ERROR or session.failed_step != step:
            current = session.state.value
            if session.state == SessionState.ERROR and session.failed_step:
                current = f"{current} ({session.failed_step})"
            raise InvalidSessionTransitionError(operation, current)

    def _transition(self, new_state: SessionState) -> None:
        previous = self._session.state
        self._session.state = new_state
        slog.info(
            "session_state_changed",
            appointment_id=str(self._session.appointment_id),
            from_state=previous.value,
            to_state=new_state.value,
        )
        if self._on_state_change is not None:
            self._on_state_change(previous, new_state)

    def _fail(self, step: str, message: str) -> None:
        self._session.failed_step = step
        self._session.last_error = message
        slog.error(
            "session_step_failed",
            appointment_id=str(self._session.appointment_id),
            step=step,
            error=message,
        )
        self._transition(SessionState.ERROR)

    def _clear_failure(self) -> None:
        self._session.failed_step = None
        self._session.last_error = None

    def _cancel_scheduler(self) -> None:
        if self._scheduler is not None:
            self._scheduler.cancel()
            self._scheduler = None

    async def _await_in_flight(self) -> None:
        task = self._session.in_flight
        if task is None:
            return
        # The task handles its own failures; wait without propagating.
        await asyncio.wait({task})
        if self._session.in_flight is task:
            self._session.in_flight = None

    async def _release_device(self) -> None:
        device, self._device = self._device, None
        if device is not None:
            await self._release(device)

    @staticmethod
    async def _release(device: CaptureDevice) -> None:
        try:
            await device.stop()
        except Exception as e:
            LOGGER.warning(f"Failed to release capture device: {e}", exc_info=True)
