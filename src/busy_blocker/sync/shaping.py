"""Placeholder event shaping and tag helpers.

A placeholder copies only the time span of its source event. Title,
description, attendees and location of the source are never copied, so the
destination calendar learns when the user is busy and nothing else.

## Private Tags

- Ownership tag (default ``busy-blocker=true``): marks an event as created by
  this tool. Only events carrying it are ever deleted.
- Source link tag (default ``busy-blocker-source-event-id``): id of the
  source event the placeholder stands in for.

The keys must stay stable across releases; placeholders written under other
keys are invisible to the sync.
"""

from __future__ import annotations

from dataclasses import dataclass

from busy_blocker.calendar.base import CalendarEvent

OPAQUE = "opaque"


@dataclass(frozen=True)
class SyncConfig:
    """Immutable settings the reconciler is constructed with."""

    source_calendar_id: str = "primary"
    destination_calendar_id: str = "primary"
    ownership_tag_key: str = "busy-blocker"
    ownership_tag_value: str = "true"
    source_link_tag_key: str = "busy-blocker-source-event-id"
    title: str = "Busy"
    description: str = "Created with busy-blocker."
    color_id: str = "4"
    source_title: str | None = None
    source_url: str | None = None

    @property
    def ownership_filter(self) -> dict[str, str]:
        """Private tag filter matching every event this tool created."""
        return {self.ownership_tag_key: self.ownership_tag_value}


def is_owned(event: CalendarEvent, config: SyncConfig) -> bool:
    """Check that an event carries the ownership tag with the expected value."""
    return event.private_tags.get(config.ownership_tag_key) == config.ownership_tag_value


def linked_source_id(event: CalendarEvent, config: SyncConfig) -> str | None:
    """Return the source event id a placeholder points at, if any."""
    return event.private_tags.get(config.source_link_tag_key)


def create_destination_event(source_event: CalendarEvent, config: SyncConfig) -> CalendarEvent:
    """Build the placeholder for a source event.

    Args:
        source_event: Event read from the source calendar
        config: Reconciler configuration supplying title, colour and tag keys

    Returns:
        Unsaved CalendarEvent with start/end copied verbatim and both
        private tags set
    """
    return CalendarEvent(
        title=config.title,
        description=config.description,
        start=source_event.start,
        end=source_event.end,
        color_id=config.color_id,
        transparency=OPAQUE,
        source_title=config.source_title,
        source_url=config.source_url,
        private_tags={
            config.ownership_tag_key: config.ownership_tag_value,
            config.source_link_tag_key: source_event.id,
        },
    )
