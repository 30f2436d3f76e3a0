"""Append-only audio buffer for one recording session.

Each retranscription pass re-derives the transcript from everything captured
so far, so fragments are never dropped once accepted.
"""

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class AudioSnapshot:
    """Concatenation of the first ``fragment_count`` fragments of a session."""

    data: bytes
    fragment_count: int

    @property
    def size(self) -> int:
        return len(self.data)

    def is_empty(self) -> bool:
        return not self.data


class CaptureBuffer:
    """Session buffer plus the pending tail not yet covered by a successful transcription."""

    def __init__(self) -> None:
        self._fragments: List[bytes] = []
        self._size = 0
        self._acknowledged_count = 0
        self._acknowledged_size = 0

    def on_fragment(self, fragment: bytes) -> None:
        """Append one device emission. Zero-length slices are ignored."""
        if not fragment:
            return
        data = bytes(fragment)
        self._fragments.append(data)
        self._size += len(data)

    def snapshot(self) -> AudioSnapshot:
        return AudioSnapshot(data=b"".join(self._fragments), fragment_count=len(self._fragments))

    def acknowledge(self, snapshot: AudioSnapshot) -> None:
        """Fold everything the snapshot covered out of the pending tail."""
        if snapshot.fragment_count <= self._acknowledged_count:
            return
        if snapshot.fragment_count > len(self._fragments):
            raise ValueError("Snapshot covers more fragments than were captured")
        self._acknowledged_count = snapshot.fragment_count
        self._acknowledged_size = snapshot.size

    def release(self) -> None:
        """Drop all captured audio. Called once the session has completed."""
        self._fragments = []
        self._size = 0
        self._acknowledged_count = 0
        self._acknowledged_size = 0

    @property
    def size(self) -> int:
        return self._size

    @property
    def fragment_count(self) -> int:
        return len(self._fragments)

    @property
    def pending_size(self) -> int:
        """Bytes captured after the last acknowledged snapshot."""
        return self._size - self._acknowledged_size

    @property
    def pending_fragments(self) -> List[bytes]:
        return list(self._fragments[self._acknowledged_count:])

    def __len__(self) -> int:
        return self._size
