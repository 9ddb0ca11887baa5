"""Application configuration.

Configuration is loaded from environment variables using pydantic-settings.
Every variable carries the ``BUSY_BLOCKER_`` prefix and may also be placed in
a ``.env`` file in the working directory.

## Common Environment Variables

- BUSY_BLOCKER_CONFIG_DIR: Where credentials and tokens live
  (default: ~/.config/busy-blocker)
- BUSY_BLOCKER_SOURCE_CALENDAR_ID: Calendar to read busy time from (default: primary)
- BUSY_BLOCKER_DESTINATION_CALENDAR_ID: Calendar to write blocks into (default: primary)
- BUSY_BLOCKER_DAYS_AHEAD: Default sync window size in days (default: 30)
- BUSY_BLOCKER_TOKEN_ENCRYPTION_KEY: Encrypt token files at rest when set
- BUSY_BLOCKER_LOG_LEVEL: Logging level for the CLI (default: INFO)

## Example .env file

```
BUSY_BLOCKER_DESTINATION_CALENDAR_ID=me@work.example.com
BUSY_BLOCKER_DAYS_AHEAD=14
BUSY_BLOCKER_TOKEN_ENCRYPTION_KEY=a-long-random-passphrase-for-token-files
```

Changing the tag keys after placeholders have been created orphans those
placeholders: they will no longer be recognised as owned by this tool.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from busy_blocker.sync.shaping import SyncConfig

APP_NAME = "busy-blocker"
MAX_DAYS_AHEAD = 365

# Google Calendar permission scopes
SOURCE_SCOPES = [
    "https://www.googleapis.com/auth/calendar.readonly",
    "https://www.googleapis.com/auth/calendar.events.readonly",
]
DESTINATION_SCOPES = ["https://www.googleapis.com/auth/calendar"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="BUSY_BLOCKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = APP_NAME
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Files
    config_dir: Path = Field(
        default=Path.home() / ".config" / APP_NAME,
        description="Directory holding OAuth client secrets and tokens",
    )
    credentials_file: str = "credentials.json"
    source_token_file: str = "source_token.json"
    destination_token_file: str = "destination_token.json"
    token_encryption_key: str | None = Field(
        default=None,
        min_length=16,
        description="Passphrase used to encrypt token files (optional)",
    )

    # Google OAuth
    google_redirect_uri: str = "http://localhost"

    # Calendars
    source_calendar_id: str = "primary"
    destination_calendar_id: str = "primary"
    days_ahead: int = Field(default=30, ge=1, le=MAX_DAYS_AHEAD)

    # Placeholder events
    placeholder_title: str = "Busy"
    placeholder_color_id: str = "4"
    placeholder_description: str = (
        f"Created with {APP_NAME}. "
        "User has a personal commitment and is busy at this time. "
        "Please find another time to avoid scheduling conflicts."
    )
    project_url: str | None = Field(
        default=None,
        description="Link attached to busy blocks as their event source (optional)",
    )

    # Private extended property keys
    ownership_tag_key: str = APP_NAME
    ownership_tag_value: str = "true"
    source_link_tag_key: str = f"{APP_NAME}-source-event-id"

    @field_validator("config_dir", mode="before")
    @classmethod
    def expand_config_dir(cls, v: str | Path) -> Path:
        """Expand ``~`` in the configured directory."""
        return Path(v).expanduser()

    @property
    def credentials_path(self) -> Path:
        return self.config_dir / self.credentials_file

    @property
    def source_token_path(self) -> Path:
        return self.config_dir / self.source_token_file

    @property
    def destination_token_path(self) -> Path:
        return self.config_dir / self.destination_token_file

    def sync_config(self) -> SyncConfig:
        """Build the immutable reconciler configuration."""
        return SyncConfig(
            source_calendar_id=self.source_calendar_id,
            destination_calendar_id=self.destination_calendar_id,
            ownership_tag_key=self.ownership_tag_key,
            ownership_tag_value=self.ownership_tag_value,
            source_link_tag_key=self.source_link_tag_key,
            title=self.placeholder_title,
            description=self.placeholder_description,
            color_id=self.placeholder_color_id,
            source_title=self.app_name,
            source_url=self.project_url,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are loaded once and cached. To reload, clear the cache:
    ```python
    get_settings.cache_clear()
    ```
    """
    return Settings()
