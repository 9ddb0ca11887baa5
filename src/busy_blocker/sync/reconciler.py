"""Busy block reconciliation.

Makes the destination calendar reflect the busy time of the source calendar.

## Sync Process

1. List source events overlapping the window
2. List destination events carrying the ownership tag, from the beginning
   of time up to the end of the window
3. Create a placeholder for every source event no placeholder links to
4. Delete every owned placeholder whose linked source event is gone
5. Report what was scanned, skipped, created and deleted

Matching is by source event id only. A source event that moves keeps its
placeholder untouched; there is no update step.

## Dry Run

Dry runs perform the same reads and ownership checks but never insert or
delete. Placeholders that would be created are logged as JSON.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable

from busy_blocker.calendar.base import CalendarEvent, CalendarGateway
from busy_blocker.errors import GatewayError, OwnershipError, PreviewError
from busy_blocker.sync.shaping import (
    SyncConfig,
    create_destination_event,
    is_owned,
    linked_source_id,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SyncWindow:
    """Half-open time interval ``[start, end)``."""

    start: datetime
    end: datetime

    @classmethod
    def days_from(cls, now: datetime, days_ahead: int) -> SyncWindow:
        """Window covering `days_ahead` days starting at `now`."""
        if days_ahead < 1:
            raise ValueError(f"days_ahead must be at least 1, got {days_ahead}")
        try:
            end = now + timedelta(days=days_ahead)
        except OverflowError as e:
            raise ValueError(f"days_ahead is too large: {days_ahead}") from e
        return cls(start=now, end=end)


@dataclass
class SyncReport:
    """Result of a sync or clean run."""

    scanned: int = 0
    skipped: int = 0
    created: int = 0
    deleted: int = 0
    dry_run: bool = False
    previews: list[str] = field(default_factory=list)
    deleted_event_ids: list[str] = field(default_factory=list)

    def summary(self) -> str:
        prefix = "DRY RUN: would have " if self.dry_run else ""
        return (
            f"{prefix}scanned {self.scanned}, skipped {self.skipped}, "
            f"created {self.created}, deleted {self.deleted}"
        )


class Reconciler:
    """Syncs busy blocks from a source calendar into a destination calendar.

    Example:
        ```python
        reconciler = Reconciler(source_client, destination_client, settings.sync_config())

        report = reconciler.run(reconciler.window(days_ahead=30), dry_run=True)
        print(report.summary())
        ```
    """

    def __init__(
        self,
        source: CalendarGateway,
        destination: CalendarGateway,
        config: SyncConfig | None = None,
        clock: Clock = utc_now,
    ):
        """Initialize the reconciler.

        Args:
            source: Gateway for the calendar busy time is read from
            destination: Gateway for the calendar placeholders are written to
            config: Tag keys, placeholder shape and calendar ids
            clock: Returns the current time; used to build windows
        """
        self.source = source
        self.destination = destination
        self.config = config or SyncConfig()
        self.clock = clock

    def window(self, days_ahead: int) -> SyncWindow:
        """Sync window starting now."""
        return SyncWindow.days_from(self.clock(), days_ahead)

    def run(self, window: SyncWindow, dry_run: bool = False) -> SyncReport:
        """Sync the destination calendar with the source calendar.

        Args:
            window: Source events overlapping this window are synced
            dry_run: Log intended changes without making them

        Returns:
            SyncReport with counts of each action

        Raises:
            GatewayError: If a list, insert or delete call fails
            OwnershipError: If a delete candidate lacks the ownership tag
            PreviewError: If a dry-run preview cannot be serialized
        """
        report = SyncReport(dry_run=dry_run)
        if dry_run:
            logger.info("DRY RUN! No changes will be made")

        logger.info(f"Fetching source events from {window.start.isoformat()} to {window.end.isoformat()}")
        source_events = self.source.list_events(
            self.config.source_calendar_id,
            time_min=window.start,
            time_max=window.end,
        )

        if not source_events:
            logger.info("No upcoming events found in source calendar")
            return report

        report.scanned = len(source_events)
        logger.info(f"Found {len(source_events)} events in source calendar")

        destination_events = self._fetch_owned_events(time_max=window.end)
        linked_ids = {linked_source_id(event, self.config) for event in destination_events}

        for event in source_events:
            if event.id in linked_ids:
                logger.debug(f"Event already synced: {event.id}, skipping")
                report.skipped += 1
                continue
            self._create_placeholder(event, report)

        source_ids = {event.id for event in source_events}
        stale = [
            event
            for event in destination_events
            if linked_source_id(event, self.config) not in source_ids
        ]
        self._delete_events(stale, report)

        logger.info(f"Sync completed: {report.summary()}")
        return report

    def clean(self, dry_run: bool = False) -> SyncReport:
        """Remove every placeholder this tool has created.

        Args:
            dry_run: Log intended deletions without making them

        Returns:
            SyncReport with the number of deleted events
        """
        report = SyncReport(dry_run=dry_run)
        if dry_run:
            logger.info("DRY RUN! No changes will be made")

        events = self._fetch_owned_events(time_max=None)
        self._delete_events(events, report)

        logger.info(f"Clean completed: {report.summary()}")
        return report

    def _fetch_owned_events(self, time_max: datetime | None) -> list[CalendarEvent]:
        """List placeholders from the beginning of time up to `time_max`."""
        events = self.destination.list_events(
            self.config.destination_calendar_id,
            time_min=None,
            time_max=time_max,
            private_tags=self.config.ownership_filter,
        )
        logger.info(f"Found {len(events)} existing busy blocks in destination calendar")
        return events

    def _create_placeholder(self, source_event: CalendarEvent, report: SyncReport) -> None:
        placeholder = create_destination_event(source_event, self.config)

        if report.dry_run:
            preview = self._preview(placeholder, source_event)
            logger.info(f"Would create busy block for {source_event.id}:\n{preview}")
            report.previews.append(preview)
            report.created += 1
            return

        logger.info(f"Creating busy block for {source_event.id}")
        try:
            self.destination.insert_event(self.config.destination_calendar_id, placeholder)
        except GatewayError as e:
            logger.error(f"Error creating busy block for {source_event.id}: {e}")
            raise GatewayError(
                f"Error creating busy block for source event {source_event.id}: {e}",
                operation="insert",
                event_id=source_event.id,
                status_code=e.status_code,
            ) from e
        report.created += 1

    def _preview(self, placeholder: CalendarEvent, source_event: CalendarEvent) -> str:
        try:
            return json.dumps(placeholder.to_api_body(), indent=2, sort_keys=True)
        except (TypeError, ValueError) as e:
            raise PreviewError(
                f"Unable to serialize busy block for source event {source_event.id}: {e}",
                operation="preview",
                event_id=source_event.id,
            ) from e

    def _delete_events(self, events: list[CalendarEvent], report: SyncReport) -> None:
        """Delete placeholders after checking every one is ours."""
        # Sanity check, ensure each event is definitely ours
        for event in events:
            if not is_owned(event, self.config):
                logger.error(f"Aborting, almost deleted an event we weren't supposed to: {event.id}")
                raise OwnershipError(event.id)

        for event in events:
            start = event.start.to_api() if event.start else {}
            if report.dry_run:
                logger.info(f"Would delete busy block {event.id} at {start}")
            else:
                logger.info(f"Deleting busy block {event.id} at {start}")
                try:
                    self.destination.delete_event(self.config.destination_calendar_id, event.id)
                except GatewayError as e:
                    raise GatewayError(
                        f"Error deleting busy block {event.id}: {e}",
                        operation="delete",
                        event_id=event.id,
                        status_code=e.status_code,
                    ) from e
            report.deleted += 1
            report.deleted_event_ids.append(event.id)
