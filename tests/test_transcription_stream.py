"""
Streaming transcription decoder tests.
"""

import asyncio
import json

import pytest

from clinicscribe.adapters.external.transcription_stream import (
    TranscriptStreamDecoder,
    parse_single_shot,
    read_transcript_stream,
)
from clinicscribe.domain.errors import TranscriptionError


def _lines(*events):
    return "".join(json.dumps(e, ensure_ascii=False) + "\n" for e in events).encode("utf-8")


async def _chunks(*parts):
    for part in parts:
        yield part


def _read(*parts):
    return asyncio.run(read_transcript_stream(_chunks(*parts)))


def test_terminal_transcript_wins_over_deltas():
    body = _lines(
        {"type": "delta", "delta": "Hello "},
        {"type": "delta", "delta": "world"},
        {"type": "done", "transcript": "Hello world"},
    )
    assert _read(body) == "Hello world"


def test_terminal_transcript_is_authoritative_even_if_different():
    body = _lines(
        {"type": "delta", "delta": "Hallo "},
        {"type": "delta", "delta": "wurld"},
        {"type": "done", "transcript": "Hello world"},
    )
    assert _read(body) == "Hello world"


def test_stream_without_terminal_event_falls_back_to_deltas():
    body = _lines(
        {"type": "delta", "delta": "Hello "},
        {"type": "delta", "delta": "world"},
    )
    assert _read(body) == "Hello world"


def test_done_without_transcript_uses_accumulated_deltas():
    body = _lines(
        {"type": "delta", "delta": "Hello "},
        {"type": "delta", "delta": "world"},
        {"type": "done"},
    )
    assert _read(body) == "Hello world"


def test_lines_split_across_reads_are_reassembled():
    body = _lines(
        {"type": "delta", "delta": "Hello "},
        {"type": "delta", "delta": "world"},
    )
    parts = [body[i:i + 7] for i in range(0, len(body), 7)]
    assert _read(*parts) == "Hello world"


def test_multibyte_character_split_across_reads():
    body = _lines({"type": "done", "transcript": "Patient reports naïve pain ± 3/10"})
    split_at = body.index("ï".encode("utf-8")) + 1
    assert _read(body[:split_at], body[split_at:]) == "Patient reports naïve pain ± 3/10"


def test_trailing_line_without_newline_is_parsed_at_end_of_stream():
    body = _lines({"type": "delta", "delta": "Hello "}) + b'{"type": "delta", "delta": "world"}'
    assert _read(body) == "Hello world"


def test_crlf_line_endings_and_unknown_events_are_tolerated():
    body = (
        b'{"type":"delta","delta":"Hello "}\r\n'
        b'{"type":"progress","pct":50}\r\n'
        b'{"type":"done","transcript":"Hello world"}\r\n'
    )
    split_at = body.index(b"\r\n") + 1
    decoder = TranscriptStreamDecoder()
    events = decoder.feed(body[:split_at]) + decoder.feed(body[split_at:]) + decoder.close()

    assert decoder.transcript == "Hello world"
    assert decoder.skipped_lines == 0
    assert [event["type"] for event in events] == ["delta", "progress", "done"]
    assert _read(body[:split_at], body[split_at:]) == "Hello world"


def test_malformed_lines_are_skipped():
    decoder = TranscriptStreamDecoder()
    decoder.feed(b'{"type": "delta", "delta": "Hello "}\n')
    decoder.feed(b'{"type": "delta", "del\n')
    decoder.feed(b"not json at all\n")
    decoder.feed(b"[1, 2, 3]\n")
    decoder.feed(b'{"type": "delta", "delta": "world"}\n')
    decoder.close()

    assert decoder.transcript == "Hello world"
    assert decoder.skipped_lines == 3


def test_error_event_raises_transcription_error():
    body = _lines(
        {"type": "delta", "delta": "Hello"},
        {"type": "error", "error": "Transcription failed"},
    )
    with pytest.raises(TranscriptionError) as exc_info:
        _read(body)
    assert exc_info.value.message == "Transcription failed"


def test_events_after_done_are_ignored():
    decoder = TranscriptStreamDecoder()
    decoder.feed(_lines({"type": "done", "transcript": "final"}, {"type": "error", "error": "late"}))
    assert decoder.done
    assert decoder.transcript == "final"
    assert decoder.feed(_lines({"type": "delta", "delta": "more"})) == []


def test_single_shot_reads_transcript_field():
    assert parse_single_shot({"transcript": "Hello world", "words": []}) == "Hello world"


def test_single_shot_error_payload_raises():
    with pytest.raises(TranscriptionError):
        parse_single_shot({"error": "Transcription failed", "details": "bad audio"})


def test_single_shot_non_object_raises():
    with pytest.raises(TranscriptionError):
        parse_single_shot(["Hello"])
