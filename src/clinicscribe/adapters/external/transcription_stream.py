"""
Decoder for line-delimited JSON transcription streams.

Each line is one event:
    {"type": "delta", "delta": "..."}
    {"type": "done", "transcript": "..."}
    {"type": "error", "error": "..."}

Bytes may arrive split anywhere, including inside a multi-byte character.
A malformed line is skipped; it never aborts the read.
"""

import codecs
import json
import logging
from typing import Any, AsyncIterable, Dict, List, Optional

from clinicscribe.domain.errors import TranscriptionError

logger = logging.getLogger("clinicscribe")


class TranscriptStreamDecoder:
    """Incremental NDJSON decoder that folds events into a transcript."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._partial = ""
        self._deltas: List[str] = []
        self._final: Optional[str] = None
        self.done = False
        self.skipped_lines = 0

    def feed(self, chunk: bytes) -> List[Dict[str, Any]]:
        """Consume raw bytes and return the events completed by them."""
        if self.done:
            return []
        text = self._partial + self._decoder.decode(chunk)
        lines = text.split("\n")
        self._partial = lines.pop()
        return self._handle_lines(lines)

    def close(self) -> List[Dict[str, Any]]:
        """Flush the decoder and parse whatever trailing line is buffered."""
        if self.done:
            return []
        text = self._partial + self._decoder.decode(b"", final=True)
        self._partial = ""
        return self._handle_lines(text.split("\n"))

    @property
    def transcript(self) -> str:
        """Terminal transcript if one was received, otherwise the joined deltas."""
        if self._final is not None:
            return self._final
        return "".join(self._deltas)

    def _handle_lines(self, lines: List[str]) -> List[Dict[str, Any]]:
        events = []
        for line in lines:
            event = self._parse_line(line)
            if event is None:
                continue
            events.append(event)
            self._apply(event)
            if self.done:
                break
        return events

    def _parse_line(self, line: str) -> Optional[Dict[str, Any]]:
        line = line.strip()
        if not line:
            return None
        try:
            event = json.loads(line)
        except json.JSONDecodeError:
            self.skipped_lines += 1
            logger.debug(f"Skipping malformed transcription stream line: {line[:80]!r}")
            return None
        if not isinstance(event, dict):
            self.skipped_lines += 1
            return None
        return event

    def _apply(self, event: Dict[str, Any]) -> None:
        event_type = event.get("type")
        if event_type == "delta":
            delta = event.get("delta")
            if isinstance(delta, str):
                self._deltas.append(delta)
        elif event_type == "done":
            final = event.get("transcript")
            if isinstance(final, str):
                self._final = final
            self.done = True
        elif event_type == "error":
            message = event.get("error") or "Transcription stream reported an error"
            raise TranscriptionError(str(message), {"stage": "stream"})


async def read_transcript_stream(chunks: AsyncIterable[bytes]) -> str:
    """Read a streaming transcription response to completion.

    Returns the terminal transcript, or the concatenated deltas when the stream
    ends without a terminal event. Raises TranscriptionError on an error event.
    """
    decoder = TranscriptStreamDecoder()
    async for chunk in chunks:
        decoder.feed(chunk)
        if decoder.done:
            break
    else:
        decoder.close()

    if decoder.skipped_lines:
        logger.warning(f"Transcription stream contained {decoder.skipped_lines} unparseable line(s)")
    return decoder.transcript


def parse_single_shot(payload: Any) -> str:
    """Extract the transcript from a single JSON response ``{transcript, words[]}``."""
    if not isinstance(payload, dict):
        raise TranscriptionError("Transcription response is not a JSON object")
    if payload.get("error"):
        raise TranscriptionError(str(payload.get("details") or payload["error"]))
    transcript = payload.get("transcript")
    if transcript is None:
        transcript = payload.get("text")
    if not isinstance(transcript, str):
        raise TranscriptionError("Transcription response has no transcript")
    return transcript
