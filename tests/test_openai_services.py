"""
OpenAI transcription and extraction adapters against stub clients.
"""

import asyncio
import json
from types import SimpleNamespace

import openai
import pytest

from clinicscribe.adapters.external.extraction_service_openai import OpenAIExtractionService
from clinicscribe.adapters.external.transcription_service_openai import OpenAITranscriptionService
from clinicscribe.core.exceptions import ConfigurationError
from clinicscribe.domain.errors import ExtractionError, TranscriptionError


class _Events:
    def __init__(self, events):
        self._events = list(events)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._events:
            raise StopAsyncIteration
        return self._events.pop(0)


class StubTranscriptions:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


class StubCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _transcription_client(transcriptions):
    return SimpleNamespace(audio=SimpleNamespace(transcriptions=transcriptions))


def _chat_client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_streamed_transcription_prefers_done_text():
    events = _Events([
        SimpleNamespace(type="transcript.text.delta", delta="Hello "),
        SimpleNamespace(type="transcript.text.delta", delta="wrld"),
        SimpleNamespace(type="transcript.text.done", text="Hello world"),
    ])
    transcriptions = StubTranscriptions(response=events)
    service = OpenAITranscriptionService(client=_transcription_client(transcriptions))

    assert asyncio.run(service.transcribe(b"\x01" * 10)) == "Hello world"
    request = transcriptions.requests[0]
    assert request["stream"] is True
    assert request["file"] == ("recording.webm", b"\x01" * 10, "audio/webm")


def test_streamed_transcription_without_done_joins_deltas():
    events = _Events([
        SimpleNamespace(type="transcript.text.delta", delta="Hello "),
        SimpleNamespace(type="transcript.text.delta", delta="world"),
    ])
    service = OpenAITranscriptionService(client=_transcription_client(StubTranscriptions(response=events)))
    assert asyncio.run(service.transcribe(b"\x01")) == "Hello world"


def test_single_shot_transcription():
    transcriptions = StubTranscriptions(response=SimpleNamespace(text=" Hello world "))
    service = OpenAITranscriptionService(client=_transcription_client(transcriptions))
    assert asyncio.run(service.transcribe(b"\x01", stream=False)) == "Hello world"
    assert "stream" not in transcriptions.requests[0]


def test_transcription_api_error_is_wrapped():
    transcriptions = StubTranscriptions(error=openai.OpenAIError("rate limited"))
    service = OpenAITranscriptionService(client=_transcription_client(transcriptions))
    with pytest.raises(TranscriptionError, match="rate limited"):
        asyncio.run(service.transcribe(b"\x01"))


def test_transcription_empty_audio_makes_no_request():
    transcriptions = StubTranscriptions(response=None)
    service = OpenAITranscriptionService(client=_transcription_client(transcriptions))
    assert asyncio.run(service.transcribe(b"")) == ""
    assert transcriptions.requests == []


def test_missing_api_key_is_a_configuration_error(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(ConfigurationError):
        OpenAITranscriptionService()
    with pytest.raises(ConfigurationError):
        OpenAIExtractionService()


def test_extraction_requests_json_object_and_wraps_data():
    content = json.dumps({"chief_complaint": "Cough", "diagnosis": None})
    completions = StubCompletions(content=content)
    service = OpenAIExtractionService(client=_chat_client(completions))

    result = asyncio.run(service.extract("Patient has a cough."))
    assert result == {"data": {"chief_complaint": "Cough", "diagnosis": None}}

    request = completions.requests[0]
    assert request["response_format"] == {"type": "json_object"}
    assert request["model"] == "gpt-4o"
    assert "Patient has a cough." in request["messages"][-1]["content"]


def test_extraction_invalid_json_degrades_to_empty_data():
    service = OpenAIExtractionService(client=_chat_client(StubCompletions(content="not json")))
    assert asyncio.run(service.extract("text")) == {"data": {}}


def test_extraction_api_error_is_wrapped():
    completions = StubCompletions(error=openai.OpenAIError("service unavailable"))
    service = OpenAIExtractionService(client=_chat_client(completions))
    with pytest.raises(ExtractionError, match="service unavailable"):
        asyncio.run(service.extract("text"))
