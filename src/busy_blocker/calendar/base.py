"""Calendar gateway abstraction.

This module defines the interface the sync core uses to talk to a calendar
service, and the canonical event format every gateway translates into.

## Canonical Event Format

Gateways translate service responses into `CalendarEvent`. Start and end are
kept as `EventTime` values so a timed instant, its time zone, or an all-day
date can be copied from one calendar to another without reinterpretation.

Private tags map onto Google's private extended properties: string key/value
pairs visible only to the application that wrote them.

## Implementations

- `GoogleCalendarClient`: Google Calendar API v3
- `InMemoryCalendarGateway`: in-process double that records calls
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any


@dataclass(frozen=True)
class EventTime:
    """Start or end of an event.

    Exactly one of `date_time` (timed events) or `day` (all-day events) is set.
    """

    date_time: datetime | None = None
    day: date | None = None
    time_zone: str | None = None

    @property
    def is_all_day(self) -> bool:
        return self.day is not None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> EventTime:
        """Create from a Google Calendar `start`/`end` object."""
        if "date" in data:
            return cls(day=date.fromisoformat(data["date"]), time_zone=data.get("timeZone"))

        date_time = None
        if data.get("dateTime"):
            date_time = datetime.fromisoformat(data["dateTime"].replace("Z", "+00:00"))
        return cls(date_time=date_time, time_zone=data.get("timeZone"))

    def to_api(self) -> dict[str, Any]:
        """Convert to a Google Calendar `start`/`end` object."""
        body: dict[str, Any] = {}
        if self.day is not None:
            body["date"] = self.day.isoformat()
        elif self.date_time is not None:
            body["dateTime"] = self.date_time.isoformat()
        if self.time_zone:
            body["timeZone"] = self.time_zone
        return body


@dataclass
class CalendarEvent:
    """A calendar event."""

    id: str | None = None  # Assigned by the calendar on insert
    title: str = ""
    description: str | None = None
    start: EventTime | None = None
    end: EventTime | None = None
    private_tags: dict[str, str] = field(default_factory=dict)
    location: str | None = None
    color_id: str | None = None
    transparency: str | None = None  # opaque, transparent
    status: str = "confirmed"  # confirmed, tentative, cancelled
    source_title: str | None = None
    source_url: str | None = None
    raw_data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> CalendarEvent:
        """Create from Google Calendar API response."""
        extended = data.get("extendedProperties") or {}
        source = data.get("source") or {}

        return cls(
            id=data.get("id"),
            title=data.get("summary", ""),
            description=data.get("description"),
            start=EventTime.from_api(data["start"]) if "start" in data else None,
            end=EventTime.from_api(data["end"]) if "end" in data else None,
            private_tags=dict(extended.get("private") or {}),
            location=data.get("location"),
            color_id=data.get("colorId"),
            transparency=data.get("transparency"),
            status=data.get("status", "confirmed"),
            source_title=source.get("title"),
            source_url=source.get("url"),
            raw_data=data,
        )

    def to_api_body(self) -> dict[str, Any]:
        """Convert to API insert body format."""
        body: dict[str, Any] = {"summary": self.title}

        if self.id is not None:
            body["id"] = self.id
        if self.description is not None:
            body["description"] = self.description
        if self.location is not None:
            body["location"] = self.location
        if self.start is not None:
            body["start"] = self.start.to_api()
        if self.end is not None:
            body["end"] = self.end.to_api()
        if self.color_id is not None:
            body["colorId"] = self.color_id
        if self.transparency is not None:
            body["transparency"] = self.transparency
        if self.private_tags:
            body["extendedProperties"] = {"private": dict(self.private_tags)}
        if self.source_title and self.source_url:
            body["source"] = {"title": self.source_title, "url": self.source_url}

        return body


class CalendarGateway(ABC):
    """Abstract base class for calendar services.

    The sync core depends only on this interface. Implementations perform
    the network (or in-memory) side effects on its behalf and raise
    `GatewayError` when the service fails.
    """

    @abstractmethod
    def list_events(
        self,
        calendar_id: str,
        time_min: datetime | None = None,
        time_max: datetime | None = None,
        private_tags: dict[str, str] | None = None,
    ) -> list[CalendarEvent]:
        """List events overlapping a time range.

        Args:
            calendar_id: Calendar ID (use 'primary' for primary calendar)
            time_min: Lower bound on event end (None for unbounded)
            time_max: Upper bound on event start (None for unbounded)
            private_tags: Only return events whose private tags contain all
                of these key/value pairs (None or empty for no filter)

        Returns:
            Events in no guaranteed order

        Raises:
            GatewayError: If the events cannot be listed
        """
        pass

    @abstractmethod
    def insert_event(self, calendar_id: str, event: CalendarEvent) -> CalendarEvent:
        """Create an event and return it as stored by the calendar.

        Raises:
            GatewayError: If the event cannot be created
        """
        pass

    @abstractmethod
    def delete_event(self, calendar_id: str, event_id: str) -> None:
        """Delete an event by id.

        Raises:
            GatewayError: If the event cannot be deleted
        """
        pass
