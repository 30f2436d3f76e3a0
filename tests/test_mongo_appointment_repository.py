"""
Mongo appointment repository update tests against a stubbed query.
"""

import asyncio
from datetime import datetime
from types import SimpleNamespace

from clinicscribe.adapters.db.mongo.models.appointment_m import AppointmentMongo
from clinicscribe.adapters.db.mongo.repositories.appointment_repository import (
    MongoAppointmentRepository,
)
from clinicscribe.domain.value_objects.appointment_id import AppointmentId


class StubQuery:
    def __init__(self, matched_count):
        self.matched_count = matched_count
        self.updates = []

    async def update(self, update):
        self.updates.append(update)
        return SimpleNamespace(matched_count=self.matched_count)


def _stub_find_one(monkeypatch, matched_count):
    query = StubQuery(matched_count)
    filters = []

    def find_one(*args):
        filters.extend(args)
        return query

    monkeypatch.setattr(AppointmentMongo, "find_one", find_one)
    return filters, query


def test_completion_filter_excludes_completed_appointments():
    assert MongoAppointmentRepository.completion_filter(AppointmentId("appt-1")) == {
        "appointment_id": "appt-1",
        "status": {"$ne": "completed"},
    }


def test_complete_writes_through_the_guarded_filter(monkeypatch):
    filters, query = _stub_find_one(monkeypatch, matched_count=1)
    fields = {"transcription": "Hello", "status": "completed"}

    updated = asyncio.run(MongoAppointmentRepository().complete(AppointmentId("appt-1"), fields))

    assert updated is True
    assert filters == [{"appointment_id": "appt-1", "status": {"$ne": "completed"}}]
    assert len(query.updates) == 1
    written = query.updates[0]["$set"]
    assert written["transcription"] == "Hello"
    assert written["status"] == "completed"
    assert "updated_at" in written


def test_complete_reports_lost_race_when_nothing_matched(monkeypatch):
    _stub_find_one(monkeypatch, matched_count=0)
    fields = {"transcription": "late", "status": "completed"}

    updated = asyncio.run(MongoAppointmentRepository().complete(AppointmentId("appt-1"), fields))
    assert updated is False


def test_mark_started_matches_on_id_only(monkeypatch):
    filters, query = _stub_find_one(monkeypatch, matched_count=1)

    started_at = datetime(2024, 4, 1, 9, 0)
    assert asyncio.run(MongoAppointmentRepository().mark_started(AppointmentId("appt-1"), started_at))
    assert filters == [{"appointment_id": "appt-1"}]
    assert query.updates[0]["$set"]["started_at"] == started_at
