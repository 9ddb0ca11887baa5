"""Google Calendar API client.

Implements `CalendarGateway` on top of the Google Calendar API v3:
- List events (with private extended property filters)
- Insert events
- Delete events

## API Documentation

https://developers.google.com/calendar/api/v3/reference

## Authentication

Uses OAuth 2.0 credentials obtained with `busy-blocker login`. Access tokens
are refreshed by google-auth when they expire.

## Recurring Events

Listing always passes ``singleEvents=True`` so recurring events are expanded
into their instances by the API; each instance has its own id.

Requests are not retried. Any failure is raised as `GatewayError`.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from busy_blocker.calendar.base import CalendarEvent, CalendarGateway
from busy_blocker.errors import GatewayError

logger = logging.getLogger(__name__)


def _gateway_error(
    error: Exception,
    operation: str,
    calendar_id: str,
    event_id: str | None = None,
) -> GatewayError:
    """Translate a client library failure into a `GatewayError`."""
    status_code = None
    if isinstance(error, HttpError):
        status_code = error.resp.status

    target = f"event {event_id}" if event_id else f"calendar {calendar_id}"
    return GatewayError(
        f"Google Calendar {operation} failed for {target}: {error}",
        operation=operation,
        event_id=event_id,
        status_code=status_code,
    )


class GoogleCalendarClient(CalendarGateway):
    """Client for Google Calendar API.

    Example:
        ```python
        client = GoogleCalendarClient(credentials)

        # List events we created
        events = client.list_events("primary", private_tags={"busy-blocker": "true"})

        # Delete one
        client.delete_event("primary", events[0].id)
        ```
    """

    def __init__(self, credentials: Credentials, page_size: int = 250):
        """Initialize the client.

        Args:
            credentials: Authorized OAuth credentials
            page_size: Events requested per page when listing
        """
        self.page_size = page_size
        self._service = build(
            "calendar",
            "v3",
            credentials=credentials,
            cache_discovery=False,
        )

    def list_events(
        self,
        calendar_id: str,
        time_min: datetime | None = None,
        time_max: datetime | None = None,
        private_tags: dict[str, str] | None = None,
    ) -> list[CalendarEvent]:
        """List events from a calendar.

        Args:
            calendar_id: Calendar ID (use 'primary' for primary calendar)
            time_min: Lower bound on event end (exclusive)
            time_max: Upper bound on event start (exclusive)
            private_tags: Private extended properties every event must carry

        Returns:
            List of CalendarEvent objects
        """
        events = []
        page_token = None

        params: dict[str, Any] = {
            "calendarId": calendar_id,
            "maxResults": self.page_size,
            "singleEvents": True,  # Expand recurring events
            "orderBy": "startTime",
            "showDeleted": False,
        }

        if time_min:
            params["timeMin"] = time_min.isoformat()
        if time_max:
            params["timeMax"] = time_max.isoformat()
        if private_tags:
            params["privateExtendedProperty"] = [
                f"{key}={value}" for key, value in private_tags.items()
            ]

        while True:
            if page_token:
                params["pageToken"] = page_token

            try:
                result = self._service.events().list(**params).execute()
            except (HttpError, GoogleAuthError, OSError) as e:
                raise _gateway_error(e, "list", calendar_id) from e

            for item in result.get("items", []):
                if item.get("status") == "cancelled":
                    continue
                events.append(CalendarEvent.from_api(item))

            page_token = result.get("nextPageToken")
            if not page_token:
                break

        logger.debug(f"Listed {len(events)} events from calendar {calendar_id}")
        return events

    def insert_event(self, calendar_id: str, event: CalendarEvent) -> CalendarEvent:
        """Insert an event.

        Args:
            calendar_id: Calendar ID
            event: Event to create; its id is normally left unset

        Returns:
            The created CalendarEvent, including its new id
        """
        try:
            result = (
                self._service.events()
                .insert(calendarId=calendar_id, body=event.to_api_body())
                .execute()
            )
        except (HttpError, GoogleAuthError, OSError) as e:
            raise _gateway_error(e, "insert", calendar_id, event.id) from e

        return CalendarEvent.from_api(result)

    def delete_event(self, calendar_id: str, event_id: str) -> None:
        """Delete an event.

        Args:
            calendar_id: Calendar ID
            event_id: Event ID
        """
        try:
            (
                self._service.events()
                .delete(calendarId=calendar_id, eventId=event_id)
                .execute()
            )
        except (HttpError, GoogleAuthError, OSError) as e:
            raise _gateway_error(e, "delete", calendar_id, event_id) from e
