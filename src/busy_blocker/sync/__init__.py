"""Busy block sync core.

Reads events from a source calendar and keeps one opaque "Busy" placeholder
per source event in a destination calendar. The placeholders' private tags
are the only sync state.
"""

from busy_blocker.sync.reconciler import (
    Reconciler,
    SyncReport,
    SyncWindow,
)
from busy_blocker.sync.shaping import (
    SyncConfig,
    create_destination_event,
)

__all__ = [
    "Reconciler",
    "SyncReport",
    "SyncWindow",
    "SyncConfig",
    "create_destination_event",
]
