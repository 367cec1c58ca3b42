"""In-memory stand-ins for Google Calendar"""

import itertools
from copy import deepcopy
from typing import Any, Optional

from backoffice.services.google_calendar_service import CalendarAPIError, CalendarEventNotFound
from backoffice.shared.errors import CalendarNotConnected


class FakeCalendar:
    """Behaves like GoogleCalendarClient for the calls the sync code makes.

    ``failures`` maps an operation name (insert, update, delete, list) to
    the exception it should raise.
    """

    def __init__(self, events: Optional[list[dict[str, Any]]] = None):
        self.events: dict[str, dict[str, Any]] = {}
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, Optional[str]]] = []
        self._ids = itertools.count(1)
        for event in events or []:
            self.events[event["id"]] = deepcopy(event)

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.failures:
            raise self.failures[operation]

    async def list_events(self, time_min, time_max, max_results=None, single_events=True, order_by="startTime"):
        self.calls.append(("list", None))
        self._maybe_fail("list")
        events = [deepcopy(e) for e in self.events.values()]
        return events[:max_results] if max_results else events

    async def insert_event(self, body: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("insert", None))
        self._maybe_fail("insert")
        event_id = f"evt-{next(self._ids)}"
        event = deepcopy(body)
        event.update({"id": event_id, "status": "confirmed"})
        self.events[event_id] = event
        return deepcopy(event)

    async def update_event(self, event_id: str, body: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("update", event_id))
        self._maybe_fail("update")
        if event_id not in self.events:
            raise CalendarEventNotFound("Calendar event not found", 404)
        event = deepcopy(body)
        event.update({"id": event_id, "status": "confirmed"})
        self.events[event_id] = event
        return deepcopy(event)

    async def delete_event(self, event_id: str) -> None:
        self.calls.append(("delete", event_id))
        self._maybe_fail("delete")
        if event_id not in self.events:
            raise CalendarEventNotFound("Calendar event not found", 410)
        del self.events[event_id]

    def edit(self, event_id: str, **changes) -> None:
        """Simulate an edit made directly in Google Calendar"""
        self.events[event_id].update(changes)


def calendar_factory(calendar: FakeCalendar):
    async def factory(user_id: int):
        return calendar

    return factory


def not_connected_factory():
    async def factory(user_id: int):
        raise CalendarNotConnected()

    return factory


def api_error(status_code: int = 500) -> CalendarAPIError:
    return CalendarAPIError(f"Google Calendar API error {status_code}", status_code)
