"""In-memory calendar gateway.

Holds events in process and records every call made to it, so the sync core
can be exercised without network access.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, time, timezone

from busy_blocker.calendar.base import CalendarEvent, CalendarGateway, EventTime
from busy_blocker.errors import GatewayError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListCall:
    """Arguments of one `list_events` call."""

    calendar_id: str
    time_min: datetime | None
    time_max: datetime | None
    private_tags: dict[str, str]


def _instant(value: EventTime) -> datetime | None:
    if value.day is not None:
        return datetime.combine(value.day, time.min, tzinfo=timezone.utc)
    return value.date_time


class InMemoryCalendarGateway(CalendarGateway):
    """Calendar gateway backed by a dict of events per calendar.

    Args:
        events: Initial events, keyed by calendar id
        apply_tag_filter: When False, `list_events` ignores the private tag
            filter, mimicking a service that returns too much
        failures: Exceptions to raise, keyed by operation name
            ("list", "insert" or "delete")
    """

    def __init__(
        self,
        events: dict[str, list[CalendarEvent]] | None = None,
        apply_tag_filter: bool = True,
        failures: dict[str, Exception] | None = None,
    ):
        self.calendars: dict[str, dict[str, CalendarEvent]] = {}
        for calendar_id, calendar_events in (events or {}).items():
            for event in calendar_events:
                self._store(calendar_id, event)

        self.apply_tag_filter = apply_tag_filter
        self.failures = dict(failures or {})

        self.list_calls: list[ListCall] = []
        self.inserted: list[CalendarEvent] = []
        self.deleted: list[str] = []

    def _store(self, calendar_id: str, event: CalendarEvent) -> CalendarEvent:
        if event.id is None:
            event = replace(event, id=uuid.uuid4().hex)
        self.calendars.setdefault(calendar_id, {})[event.id] = event
        return event

    def _maybe_fail(self, operation: str) -> None:
        error = self.failures.get(operation)
        if error is not None:
            raise error

    def events(self, calendar_id: str) -> list[CalendarEvent]:
        """Return every event currently stored in a calendar."""
        return list(self.calendars.get(calendar_id, {}).values())

    def list_events(
        self,
        calendar_id: str,
        time_min: datetime | None = None,
        time_max: datetime | None = None,
        private_tags: dict[str, str] | None = None,
    ) -> list[CalendarEvent]:
        wanted = dict(private_tags or {})
        self.list_calls.append(ListCall(calendar_id, time_min, time_max, wanted))
        self._maybe_fail("list")

        matches = []
        for event in self.events(calendar_id):
            start = _instant(event.start) if event.start else None
            end = _instant(event.end) if event.end else None
            if time_min is not None and end is not None and end <= time_min:
                continue
            if time_max is not None and start is not None and start >= time_max:
                continue
            if self.apply_tag_filter and any(
                event.private_tags.get(key) != value for key, value in wanted.items()
            ):
                continue
            matches.append(event)
        return matches

    def insert_event(self, calendar_id: str, event: CalendarEvent) -> CalendarEvent:
        self._maybe_fail("insert")
        stored = self._store(calendar_id, replace(event, id=None))
        self.inserted.append(stored)
        logger.debug(f"Inserted event {stored.id} into {calendar_id}")
        return stored

    def delete_event(self, calendar_id: str, event_id: str) -> None:
        self._maybe_fail("delete")
        if self.calendars.get(calendar_id, {}).pop(event_id, None) is None:
            raise GatewayError(
                f"Event {event_id} not found in calendar {calendar_id}",
                operation="delete",
                event_id=event_id,
                status_code=404,
            )
        self.deleted.append(event_id)
