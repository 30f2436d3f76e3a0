"""
Browser push capture device tests.
"""

import asyncio

import pytest

from clinicscribe.adapters.devices.push_capture_device import PushCaptureDevice
from clinicscribe.application.capture.buffer import CaptureBuffer
from clinicscribe.domain.errors import CaptureError


def test_pushed_fragments_reach_buffer_while_open():
    device = PushCaptureDevice()
    buffer = CaptureBuffer()

    asyncio.run(device.start(buffer.on_fragment))
    assert device.push(b"abc")
    assert device.push(b"def")
    asyncio.run(device.stop())

    assert buffer.snapshot().data == b"abcdef"
    assert device.fragments_received == 2


def test_fragments_after_stop_are_dropped():
    device = PushCaptureDevice()
    buffer = CaptureBuffer()
    asyncio.run(device.start(buffer.on_fragment))
    asyncio.run(device.stop())

    assert not device.push(b"late")
    assert device.fragments_dropped == 1
    assert buffer.size == 0


def test_stop_is_idempotent():
    device = PushCaptureDevice()
    asyncio.run(device.start(lambda fragment: None))
    asyncio.run(device.stop())
    asyncio.run(device.stop())
    assert not device.is_open


def test_double_start_raises_capture_error():
    device = PushCaptureDevice()
    asyncio.run(device.start(lambda fragment: None))
    with pytest.raises(CaptureError):
        asyncio.run(device.start(lambda fragment: None))
