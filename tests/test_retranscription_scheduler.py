"""
Periodic retranscription tests.

Ticks are driven by hand so the assertions do not depend on wall-clock timing;
one test exercises the real timer loop with a short interval.
"""

import asyncio

from clinicscribe.application.capture.session import RecordingSession
from clinicscribe.application.use_cases.retranscription_scheduler import RetranscriptionScheduler
from clinicscribe.domain.errors import TranscriptionError

from fakes import FakeTranscriptionService

KIB = 1024


def _recording_session():
    session = RecordingSession()
    session.recording = True
    return session


def test_three_chunks_three_ticks_each_over_larger_snapshot():
    async def scenario():
        session = _recording_session()
        service = FakeTranscriptionService()
        scheduler = RetranscriptionScheduler(session, service, interval_seconds=3.0, min_pending_bytes=KIB)

        for chunk in (b"a" * 2 * KIB, b"b" * 2 * KIB, b"c" * 2 * KIB):
            session.buffer.on_fragment(chunk)
            task = scheduler.tick()
            assert task is not None
            await task
        return session, service

    session, service = asyncio.run(scenario())
    assert len(service.calls) == 3
    sizes = [len(audio) for audio in service.calls]
    assert sizes == sorted(sizes) and len(set(sizes)) == 3
    assert session.transcription_calls == 3


def test_each_call_covers_every_fragment_and_result_replaces_transcript():
    async def scenario():
        session = _recording_session()
        service = FakeTranscriptionService(results=["Hello", "Hello world"])
        scheduler = RetranscriptionScheduler(session, service, min_pending_bytes=1)

        session.buffer.on_fragment(b"one")
        await scheduler.tick()
        first = session.transcript
        session.buffer.on_fragment(b"two")
        await scheduler.tick()
        return session, service, first

    session, service, first = asyncio.run(scenario())
    assert service.calls == [b"one", b"onetwo"]
    assert first == "Hello"
    assert session.transcript == "Hello world"


def test_tick_is_skipped_while_a_call_is_in_flight():
    async def scenario():
        session = _recording_session()
        service = FakeTranscriptionService()
        service.gate = asyncio.Event()
        scheduler = RetranscriptionScheduler(session, service, min_pending_bytes=1)

        session.buffer.on_fragment(b"x" * 10)
        first = scheduler.tick()
        await asyncio.sleep(0)
        session.buffer.on_fragment(b"y" * 10)
        second = scheduler.tick()
        in_flight_during = session.has_in_flight()

        service.gate.set()
        await first
        return session, service, second, in_flight_during

    session, service, second, in_flight_during = asyncio.run(scenario())
    assert second is None
    assert in_flight_during
    assert len(service.calls) == 1
    assert service.max_active == 1
    assert session.in_flight is None


def test_tick_below_threshold_makes_no_call():
    async def scenario():
        session = _recording_session()
        service = FakeTranscriptionService()
        scheduler = RetranscriptionScheduler(session, service, min_pending_bytes=KIB)
        session.buffer.on_fragment(b"x" * 100)
        return scheduler.tick(), service

    task, service = asyncio.run(scenario())
    assert task is None
    assert service.calls == []


def test_tick_does_nothing_when_not_recording():
    async def scenario():
        session = RecordingSession()
        service = FakeTranscriptionService()
        scheduler = RetranscriptionScheduler(session, service, min_pending_bytes=0)
        session.buffer.on_fragment(b"x" * 10)
        return scheduler.tick(), service

    task, service = asyncio.run(scenario())
    assert task is None
    assert service.calls == []


def test_failed_tick_is_swallowed_and_next_tick_retries():
    async def scenario():
        session = _recording_session()
        service = FakeTranscriptionService(
            results=[TranscriptionError("Transcription service returned 503"), "Hello again"]
        )
        scheduler = RetranscriptionScheduler(session, service, min_pending_bytes=KIB)

        session.buffer.on_fragment(b"x" * 2 * KIB)
        failed = await scheduler.tick()
        transcript_after_failure = session.transcript
        pending_after_failure = session.buffer.pending_size

        session.buffer.on_fragment(b"y" * 10)
        await scheduler.tick()
        return session, service, failed, transcript_after_failure, pending_after_failure

    session, service, failed, transcript_after_failure, pending_after_failure = asyncio.run(scenario())
    assert failed is None
    assert transcript_after_failure == ""
    assert pending_after_failure == 2 * KIB
    assert len(service.calls) == 2
    assert len(service.calls[1]) == 2 * KIB + 10
    assert session.transcript == "Hello again"
    assert session.in_flight is None


def test_empty_result_does_not_erase_transcript():
    async def scenario():
        session = _recording_session()
        session.transcript = "Earlier text"
        service = FakeTranscriptionService(results=[""])
        scheduler = RetranscriptionScheduler(session, service, min_pending_bytes=1)
        session.buffer.on_fragment(b"x")
        await scheduler.tick()
        return session

    assert asyncio.run(scenario()).transcript == "Earlier text"


def test_timer_loop_ticks_and_cancel_leaves_in_flight_call_running():
    async def scenario():
        session = _recording_session()
        service = FakeTranscriptionService()
        service.gate = asyncio.Event()
        scheduler = RetranscriptionScheduler(session, service, interval_seconds=0.01, min_pending_bytes=1)

        session.buffer.on_fragment(b"x" * 10)
        scheduler.start()
        for _ in range(200):
            if session.has_in_flight():
                break
            await asyncio.sleep(0.01)

        in_flight = session.in_flight
        scheduler.cancel()
        running_after_cancel = scheduler.running
        await asyncio.sleep(0.05)
        cancelled_call = in_flight.cancelled()

        service.gate.set()
        await in_flight
        return session, service, running_after_cancel, cancelled_call

    session, service, running_after_cancel, cancelled_call = asyncio.run(scenario())
    assert not running_after_cancel
    assert not cancelled_call
    assert len(service.calls) == 1
    assert session.transcript == "words:10"
