"""
Capture device fed by an external producer.

The browser owns the microphone; it records in fixed time slices and pushes
each slice over a WebSocket. This adapter turns those pushes into fragment
callbacks while the device is open.
"""

import logging
from typing import Optional

from clinicscribe.application.ports.devices.capture_device import CaptureDevice, FragmentCallback
from clinicscribe.domain.errors import CaptureError

logger = logging.getLogger("clinicscribe")


class PushCaptureDevice(CaptureDevice):
    def __init__(self, name: str = "browser") -> None:
        self.name = name
        self._on_fragment: Optional[FragmentCallback] = None
        self._open = False
        self.fragments_received = 0
        self.fragments_dropped = 0

    @property
    def is_open(self) -> bool:
        return self._open

    async def start(self, on_fragment: FragmentCallback) -> None:
        if self._open:
            raise CaptureError(f"Capture device '{self.name}' is already open")
        self._on_fragment = on_fragment
        self._open = True
        logger.info(f"Capture device '{self.name}' opened")

    async def stop(self) -> None:
        if not self._open:
            return
        self._open = False
        self._on_fragment = None
        logger.info(
            f"Capture device '{self.name}' released "
            f"(received={self.fragments_received}, dropped={self.fragments_dropped})"
        )

    def push(self, fragment: bytes) -> bool:
        """Deliver one slice. Returns False when the device is closed and the slice is dropped."""
        if not self._open or self._on_fragment is None:
            self.fragments_dropped += 1
            return False
        self.fragments_received += 1
        self._on_fragment(fragment)
        return True
