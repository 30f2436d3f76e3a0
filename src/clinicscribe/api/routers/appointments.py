"""
Appointment capture endpoints.

The browser records in fixed time slices and pushes each slice over the
``/audio`` WebSocket; every other step is a plain HTTP call so the UI can
poll the session and offer the matching retry after a failure.
"""

import json
import logging

from fastapi import APIRouter, Request, WebSocket, WebSocketDisconnect, status

from ...adapters.devices.push_capture_device import PushCaptureDevice
from ...application.use_cases.capture_session import CaptureSessionUseCase
from ...domain.enums.status import SessionState
from ...domain.errors import DomainError, InvalidSessionTransitionError
from ..deps import CaptureSessionFactoryDep, SessionRegistryDep
from ..schemas.appointments import AppointmentStartedResponse, SessionResponse
from ..schemas.common import ApiResponse, ErrorResponse
from ..session_registry import SessionRegistry
from ..utils.responses import ok

router = APIRouter(prefix="/appointments", tags=["appointments"])
logger = logging.getLogger("clinicscribe")

# Application-defined close codes (4000-4999)
WS_CLOSE_NO_RECORDING = 4409


def _require_session(registry: SessionRegistry, appointment_id: str, operation: str) -> CaptureSessionUseCase:
    session = registry.get(appointment_id)
    if session is None:
        raise InvalidSessionTransitionError(operation, SessionState.NOT_STARTED.value)
    return session


def _is_stop_message(text: str) -> bool:
    text = text.strip()
    if text.lower() == "stop":
        return True
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return False
    return isinstance(payload, dict) and payload.get("type") == "stop"


@router.post(
    "/{appointment_id}/start",
    response_model=ApiResponse[AppointmentStartedResponse],
    status_code=status.HTTP_200_OK,
    responses={
        404: {"model": ErrorResponse, "description": "Appointment not found"},
        409: {"model": ErrorResponse, "description": "Appointment already completed or session active"},
    },
)
async def start_appointment(
    request: Request,
    appointment_id: str,
    registry: SessionRegistryDep,
    session_factory: CaptureSessionFactoryDep,
):
    """Mark the appointment in progress and open a capture session for it."""
    existing = registry.get(appointment_id)
    if existing is not None and existing.state != SessionState.COMPLETED:
        raise InvalidSessionTransitionError("start appointment", existing.state.value)

    # Claim the slot before the first await so a concurrent start sees it
    session = session_factory()
    registry.register(appointment_id, session)
    try:
        appointment = await session.start_appointment(appointment_id)
    except Exception:
        registry.discard(appointment_id, session)
        if existing is not None and registry.get(appointment_id) is None:
            registry.register(appointment_id, existing)
        raise
    logger.info(f"Appointment {appointment_id} started")
    return ok(
        request,
        data=AppointmentStartedResponse.build(appointment, session.snapshot()),
        message="Appointment started",
    )


@router.post(
    "/{appointment_id}/recording/start",
    response_model=ApiResponse[SessionResponse],
    responses={409: {"model": ErrorResponse, "description": "Capture unavailable or wrong state"}},
)
async def start_recording(request: Request, appointment_id: str, registry: SessionRegistryDep):
    session = _require_session(registry, appointment_id, "start recording")
    snapshot = await session.start_recording()
    return ok(request, data=SessionResponse.from_snapshot(snapshot), message="Recording started")


@router.post(
    "/{appointment_id}/recording/stop",
    response_model=ApiResponse[SessionResponse],
    responses={502: {"model": ErrorResponse, "description": "Transcription, extraction or save failed"}},
)
async def stop_recording(request: Request, appointment_id: str, registry: SessionRegistryDep):
    """Stop capture, run the final transcription pass, extract and save."""
    session = _require_session(registry, appointment_id, "stop recording")
    snapshot = await session.stop_recording()
    return ok(request, data=SessionResponse.from_snapshot(snapshot), message="Recording stopped")


@router.post("/{appointment_id}/retry-transcription", response_model=ApiResponse[SessionResponse])
async def retry_transcription(request: Request, appointment_id: str, registry: SessionRegistryDep):
    session = _require_session(registry, appointment_id, "retry transcription")
    snapshot = await session.retry_transcription()
    return ok(request, data=SessionResponse.from_snapshot(snapshot), message="Transcription retried")


@router.post("/{appointment_id}/retry-extraction", response_model=ApiResponse[SessionResponse])
async def retry_extraction(request: Request, appointment_id: str, registry: SessionRegistryDep):
    session = _require_session(registry, appointment_id, "retry extraction")
    snapshot = await session.retry_extraction()
    return ok(request, data=SessionResponse.from_snapshot(snapshot), message="Extraction retried")


@router.post("/{appointment_id}/retry-save", response_model=ApiResponse[SessionResponse])
async def retry_save(request: Request, appointment_id: str, registry: SessionRegistryDep):
    session = _require_session(registry, appointment_id, "retry save")
    snapshot = await session.retry_save()
    return ok(request, data=SessionResponse.from_snapshot(snapshot), message="Save retried")


@router.get("/{appointment_id}/session", response_model=ApiResponse[SessionResponse])
async def get_session(request: Request, appointment_id: str, registry: SessionRegistryDep):
    """Current transcript and state, for polling while recording."""
    session = _require_session(registry, appointment_id, "read session")
    return ok(request, data=SessionResponse.from_snapshot(session.snapshot()))


@router.websocket("/{appointment_id}/audio")
async def audio_stream(websocket: WebSocket, appointment_id: str, registry: SessionRegistryDep):
    """
    Receive audio slices while recording.

    Binary frames are fragments; a text frame ``stop`` (or ``{"type": "stop"}``)
    stops the recording and returns the final session view.
    """
    session = registry.get(appointment_id)
    device = session.device if session is not None else None
    if not isinstance(device, PushCaptureDevice) or not device.is_open:
        await websocket.close(code=WS_CLOSE_NO_RECORDING)
        return

    await websocket.accept()
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", status.WS_1000_NORMAL_CLOSURE))

            data = message.get("bytes")
            if data is not None:
                if not device.push(data):
                    # Recording was stopped through the HTTP endpoint
                    break
                continue

            text = message.get("text")
            if text is not None and _is_stop_message(text):
                try:
                    snapshot = await session.stop_recording()
                except DomainError as e:
                    await websocket.send_json({
                        "type": "error",
                        "error": e.error_code,
                        "message": e.message,
                        "session": SessionResponse.from_snapshot(session.snapshot()).model_dump(mode="json"),
                    })
                else:
                    await websocket.send_json({
                        "type": "stopped",
                        "session": SessionResponse.from_snapshot(snapshot).model_dump(mode="json"),
                    })
                break
    except WebSocketDisconnect:
        logger.info(f"Audio stream for appointment {appointment_id} disconnected")
        if session.state == SessionState.RECORDING:
            await session.close()
        return

    await websocket.close()
