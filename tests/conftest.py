"""Shared fixtures: an in-memory calendar spy and a recording notifier."""

import pytest
from fastapi.testclient import TestClient

from app.calendar_service import CalendarEvent, InsertedEvent
from app.exceptions import EventNotFound, UpstreamCallFailed
from app.main import create_app
from app.services import BookingService

TIMEZONE = "Europe/Lisbon"


class FakeCalendar:
    """Behaves like Google Calendar for one calendar, and records every call."""

    def __init__(self):
        self.events: dict[str, CalendarEvent] = {}
        self.calls: list[tuple] = []
        self.fail_inserts: set[int] = set()
        self.no_id_inserts: set[int] = set()
        self.delete_errors: set[str] = set()
        self._inserted = 0

    async def insert(self, draft):
        self._inserted += 1
        n = self._inserted
        self.calls.append(("insert", draft))
        if n in self.fail_inserts:
            raise UpstreamCallFailed("insert", "Erro ao criar evento no Google Calendar")
        if n in self.no_id_inserts:
            return InsertedEvent(id=None)

        event_id = f"evt{n}"
        self.events[event_id] = CalendarEvent(
            id=event_id,
            title=draft.title,
            note=draft.note,
            start=draft.start,
            end=draft.end,
            link=f"https://calendar.google.com/event?eid={event_id}",
            created=f"2025-06-01T10:00:{n:02d}Z",
            correlation_tag=draft.correlation_tag,
            member=draft.member,
        )
        self.events[event_id].color_id = draft.color_id
        return InsertedEvent(
            id=event_id,
            link=self.events[event_id].link,
            ical_uid=f"{event_id}@google.com",
            correlation_tag=draft.correlation_tag,
        )

    async def delete(self, event_id):
        self.calls.append(("delete", event_id))
        if event_id in self.delete_errors:
            raise UpstreamCallFailed("delete", "Erro ao remover evento do Google Calendar")
        if event_id not in self.events:
            raise EventNotFound(event_id)
        del self.events[event_id]

    async def list_by_tag(self, tag):
        self.calls.append(("list", tag))
        return [event for event in self.events.values() if event.correlation_tag == tag]

    def calls_of(self, kind):
        return [call for call in self.calls if call[0] == kind]


class FakeNotifier:
    def __init__(self, ok=True):
        self.ok = ok
        self.sent = []

    async def send(self, message):
        self.sent.append(message)
        return self.ok


@pytest.fixture
def calendar():
    return FakeCalendar()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def booking_service(calendar, notifier):
    return BookingService(calendar, notifier, timezone=TIMEZONE, default_minutes=60, absence_minutes=30)


@pytest.fixture
def client(calendar, notifier):
    app = create_app(calendar=calendar, notifier=notifier)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def booking_payload():
    return {
        "name": "Ana",
        "service": "Corte",
        "staff": "X",
        "date": "2025-06-10",
        "time": "14:00",
    }
