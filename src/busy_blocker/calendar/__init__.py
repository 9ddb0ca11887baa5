"""Calendar integration module.

Provides the gateway interface the sync core uses to read and write events,
with a Google Calendar implementation and an in-memory one.

## Google Calendar API

Uses the Google Calendar API v3:
- https://developers.google.com/calendar/api/v3/reference

## Private Tags

Events created by busy-blocker are marked with private extended properties.
They are the only sync state: there is no database. See
`busy_blocker.sync.shaping` for the keys.
"""

from busy_blocker.calendar.base import (
    CalendarEvent,
    CalendarGateway,
    EventTime,
)
from busy_blocker.calendar.google_calendar import GoogleCalendarClient
from busy_blocker.calendar.memory import InMemoryCalendarGateway

__all__ = [
    "CalendarEvent",
    "CalendarGateway",
    "EventTime",
    "GoogleCalendarClient",
    "InMemoryCalendarGateway",
]
