"""
Capture buffer tests.
"""

import pytest

from clinicscribe.application.capture.buffer import AudioSnapshot, CaptureBuffer


def test_snapshot_is_full_concatenation_in_arrival_order():
    buffer = CaptureBuffer()
    buffer.on_fragment(b"aa")
    buffer.on_fragment(b"bbb")
    buffer.on_fragment(b"c")

    snapshot = buffer.snapshot()
    assert snapshot.data == b"aabbbc"
    assert snapshot.fragment_count == 3
    assert snapshot.size == 6
    assert len(buffer) == 6


def test_snapshot_never_drops_earlier_fragments():
    buffer = CaptureBuffer()
    buffer.on_fragment(b"first")
    first = buffer.snapshot()
    buffer.acknowledge(first)
    buffer.on_fragment(b"second")

    assert buffer.snapshot().data == b"firstsecond"


def test_empty_fragments_are_ignored():
    buffer = CaptureBuffer()
    buffer.on_fragment(b"")
    assert buffer.fragment_count == 0
    assert buffer.snapshot().is_empty()


def test_pending_size_tracks_bytes_after_last_acknowledged_snapshot():
    buffer = CaptureBuffer()
    buffer.on_fragment(b"x" * 2048)
    assert buffer.pending_size == 2048

    snapshot = buffer.snapshot()
    buffer.on_fragment(b"y" * 100)
    buffer.acknowledge(snapshot)

    assert buffer.pending_size == 100
    assert buffer.pending_fragments == [b"y" * 100]


def test_unacknowledged_snapshot_keeps_audio_pending():
    buffer = CaptureBuffer()
    buffer.on_fragment(b"x" * 10)
    buffer.snapshot()
    assert buffer.pending_size == 10


def test_older_snapshot_does_not_move_acknowledgement_back():
    buffer = CaptureBuffer()
    buffer.on_fragment(b"a")
    older = buffer.snapshot()
    buffer.on_fragment(b"b")
    newer = buffer.snapshot()

    buffer.acknowledge(newer)
    buffer.acknowledge(older)
    assert buffer.pending_size == 0


def test_acknowledging_unknown_fragments_is_rejected():
    buffer = CaptureBuffer()
    buffer.on_fragment(b"a")
    with pytest.raises(ValueError):
        buffer.acknowledge(AudioSnapshot(data=b"ab", fragment_count=2))


def test_release_drops_all_audio():
    buffer = CaptureBuffer()
    buffer.on_fragment(b"x" * 512)
    buffer.acknowledge(buffer.snapshot())
    buffer.on_fragment(b"y" * 64)

    buffer.release()
    assert buffer.size == 0
    assert buffer.fragment_count == 0
    assert buffer.pending_size == 0
    assert buffer.snapshot().is_empty()
