"""Command-line interface for busy-blocker."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from busy_blocker import __version__
from busy_blocker.auth import (
    ClientSecrets,
    GoogleOAuth,
    TokenStore,
    install_client_secrets,
    load_credentials,
    login,
)
from busy_blocker.calendar import GoogleCalendarClient
from busy_blocker.config import (
    DESTINATION_SCOPES,
    MAX_DAYS_AHEAD,
    SOURCE_SCOPES,
    Settings,
    get_settings,
)
from busy_blocker.errors import AuthError, SyncError
from busy_blocker.sync import Reconciler

logger = logging.getLogger(__name__)

ROLES = ("source", "destination")


def _days_ahead(value: str) -> int:
    number = int(value)
    if not 1 <= number <= MAX_DAYS_AHEAD:
        raise argparse.ArgumentTypeError(f"must be between 1 and {MAX_DAYS_AHEAD}, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="busy-blocker",
        description="Copy event blocks from one Google calendar to another to reflect your availability",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Login command
    login_parser = subparsers.add_parser("login", help="Login to Google Calendar and save a token")
    login_parser.add_argument("role", choices=ROLES, help="Which calendar account to log in to")

    # Credentials command
    credentials_parser = subparsers.add_parser(
        "set-oauth-credentials",
        help="Set the OAuth 2.0 client ID JSON file generated from the GCP console",
    )
    credentials_parser.add_argument(
        "-p",
        "--path",
        required=True,
        type=Path,
        help="Path to the credentials JSON file",
    )

    # Sync command
    sync_parser = subparsers.add_parser("sync", help="Run the calendar sync")
    sync_parser.add_argument(
        "--days-ahead",
        type=_days_ahead,
        default=None,
        help="Number of days ahead to sync, 1-365 (default: 30)",
    )
    sync_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the events that would be created instead of writing them",
    )

    # Clean command
    clean_parser = subparsers.add_parser(
        "clean", help="Remove all generated events from the destination calendar"
    )
    clean_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the events that would be deleted instead of deleting them",
    )

    return parser


def _token_store(settings: Settings, role: str) -> TokenStore:
    path = settings.source_token_path if role == "source" else settings.destination_token_path
    return TokenStore(path, settings.token_encryption_key)


def _oauth(settings: Settings, role: str) -> GoogleOAuth:
    scopes = SOURCE_SCOPES if role == "source" else DESTINATION_SCOPES
    return GoogleOAuth(
        ClientSecrets.from_file(settings.credentials_path),
        scopes,
        redirect_uri=settings.google_redirect_uri,
    )


def build_reconciler(settings: Settings) -> Reconciler:
    """Create a reconciler talking to the two logged-in Google accounts."""
    clients = {}
    for role in ROLES:
        credentials = load_credentials(_oauth(settings, role), _token_store(settings, role), role)
        clients[role] = GoogleCalendarClient(credentials)

    return Reconciler(clients["source"], clients["destination"], settings.sync_config())


def run_login(args: argparse.Namespace, settings: Settings) -> int:
    print(f"Authenticating {args.role} calendar account...")
    store = _token_store(settings, args.role)
    login(_oauth(settings, args.role), store)
    print(f"Authentication successful! Token saved to {store.path}")
    return 0


def run_set_oauth_credentials(args: argparse.Namespace, settings: Settings) -> int:
    install_client_secrets(args.path, settings.credentials_path)
    print(f"OAuth credentials saved to {settings.credentials_path}")
    return 0


def run_sync(args: argparse.Namespace, settings: Settings) -> int:
    reconciler = build_reconciler(settings)
    days_ahead = args.days_ahead or settings.days_ahead
    report = reconciler.run(reconciler.window(days_ahead), dry_run=args.dry_run)
    print(report.summary())
    return 0


def run_clean(args: argparse.Namespace, settings: Settings) -> int:
    reconciler = build_reconciler(settings)
    report = reconciler.clean(dry_run=args.dry_run)
    print(report.summary())
    return 0


COMMANDS = {
    "login": run_login,
    "set-oauth-credentials": run_set_oauth_credentials,
    "sync": run_sync,
    "clean": run_clean,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        return COMMANDS[args.command](args, settings)
    except AuthError as e:
        logger.error(f"Authentication error: {e}")
    except SyncError as e:
        logger.error(f"Sync failed during {e.operation or 'sync'}: {e}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
