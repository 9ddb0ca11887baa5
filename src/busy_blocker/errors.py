"""Exception types raised while syncing calendars.

Every error carries the operation that failed and, where one exists, the id
of the event involved, so a failed run can be diagnosed without retrying it.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base exception for calendar sync errors."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        event_id: str | None = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.event_id = event_id


class GatewayError(SyncError):
    """Raised when the calendar service rejects or fails a request."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        event_id: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, operation=operation, event_id=event_id)
        self.status_code = status_code


class OwnershipError(SyncError):
    """Raised when a delete targets an event this tool did not create."""

    def __init__(self, event_id: str):
        super().__init__(
            f"Refusing to delete an event not created by busy-blocker. Event ID = {event_id}",
            operation="delete",
            event_id=event_id,
        )


class PreviewError(SyncError):
    """Raised when a dry-run preview cannot be serialized."""

    pass


class AuthError(Exception):
    """Raised when OAuth credentials are missing, unreadable or rejected."""

    pass
