"""Pytest fixtures for busy-blocker tests.

This module provides test fixtures that ensure:
1. No external API calls are made (Google Calendar, OAuth token endpoint)
2. No real token or credential files are touched
3. A fixed clock, so sync windows are deterministic
"""

from datetime import datetime, timedelta, timezone

import pytest

from busy_blocker.calendar import CalendarEvent, EventTime, InMemoryCalendarGateway
from busy_blocker.sync import Reconciler, SyncConfig

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Test Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point configuration at a temporary directory and reset the cache."""
    from busy_blocker.config import get_settings

    monkeypatch.setenv("BUSY_BLOCKER_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# Event Fixtures
# =============================================================================


def make_event(
    event_id: str | None,
    start: datetime = NOW,
    end: datetime | None = None,
    title: str = "test summary",
    tags: dict[str, str] | None = None,
    **kwargs,
) -> CalendarEvent:
    """Build a timed event; `end` defaults to one hour after `start`."""
    return CalendarEvent(
        id=event_id,
        title=title,
        start=EventTime(date_time=start),
        end=EventTime(date_time=end if end is not None else start + timedelta(hours=1)),
        private_tags=dict(tags or {}),
        **kwargs,
    )


@pytest.fixture
def fixed_now() -> datetime:
    return NOW


@pytest.fixture
def sync_config() -> SyncConfig:
    """Configuration with short, recognisable tag keys."""
    return SyncConfig(
        ownership_tag_key="busy-blocker",
        ownership_tag_value="true",
        source_link_tag_key="busy-blocker-source-event-id",
        description="Created with busy-blocker",
        source_title="busy-blocker",
        source_url="https://example.com/busy-blocker",
    )


@pytest.fixture
def owned_tags(sync_config: SyncConfig):
    """Factory for the private tags of a placeholder linked to `source_id`."""

    def _tags(source_id: str) -> dict[str, str]:
        return {
            sync_config.ownership_tag_key: sync_config.ownership_tag_value,
            sync_config.source_link_tag_key: source_id,
        }

    return _tags


@pytest.fixture
def source_events() -> list[CalendarEvent]:
    """Two upcoming source events, the second one zero length."""
    return [
        make_event("123", NOW + timedelta(hours=1), NOW + timedelta(hours=2)),
        make_event("456", NOW + timedelta(hours=1), NOW + timedelta(hours=1), title="test summary2"),
    ]


@pytest.fixture
def source_gateway(source_events, sync_config) -> InMemoryCalendarGateway:
    return InMemoryCalendarGateway({sync_config.source_calendar_id: source_events})


@pytest.fixture
def destination_gateway() -> InMemoryCalendarGateway:
    return InMemoryCalendarGateway()


@pytest.fixture
def reconciler(source_gateway, destination_gateway, sync_config) -> Reconciler:
    return Reconciler(source_gateway, destination_gateway, sync_config, clock=lambda: NOW)
