"""
Capture device interface for live audio input.
"""

from abc import ABC, abstractmethod
from typing import Callable

FragmentCallback = Callable[[bytes], None]


class CaptureDevice(ABC):
    """Boundary contract of the OS/browser audio layer."""

    @abstractmethod
    async def start(self, on_fragment: FragmentCallback) -> None:
        """
        Open the device and begin emitting fragments on a fixed cadence.

        Raises:
            CaptureError: device unavailable or permission denied
        """
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Release the device. Must be safe to call more than once."""
        pass
