"""In-process registry of live capture sessions, one per appointment."""

import logging
from typing import Dict, List, Optional

from ..application.use_cases.capture_session import CaptureSessionUseCase

logger = logging.getLogger("clinicscribe")


class SessionRegistry:
    def __init__(self) -> None:
        self._sessions: Dict[str, CaptureSessionUseCase] = {}

    def register(self, appointment_id: str, session: CaptureSessionUseCase) -> None:
        self._sessions[appointment_id] = session

    def get(self, appointment_id: Optional[str]) -> Optional[CaptureSessionUseCase]:
        if appointment_id is None:
            return None
        return self._sessions.get(appointment_id)

    def remove(self, appointment_id: str) -> Optional[CaptureSessionUseCase]:
        return self._sessions.pop(appointment_id, None)

    def discard(self, appointment_id: str, session: CaptureSessionUseCase) -> None:
        """Remove the entry only if it still holds this session."""
        if self._sessions.get(appointment_id) is session:
            del self._sessions[appointment_id]

    def appointment_ids(self) -> List[str]:
        return list(self._sessions)

    async def close_all(self) -> None:
        """Release every open device; used on application shutdown."""
        for appointment_id, session in list(self._sessions.items()):
            try:
                await session.close()
            except Exception as e:
                logger.warning(f"Failed to close session for appointment {appointment_id}: {e}")
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)
