"""Authentication module.

Handles Google OAuth for the two calendar accounts busy-blocker talks to:

- source: read-only access to the calendar busy time is copied from
- destination: read/write access to the calendar busy blocks are written to

Each account has its own token file, written by ``busy-blocker login``.
"""

from busy_blocker.auth.google import (
    ClientSecrets,
    GoogleOAuth,
    install_client_secrets,
    load_credentials,
    login,
)
from busy_blocker.auth.token_store import StoredToken, TokenStore

__all__ = [
    "ClientSecrets",
    "GoogleOAuth",
    "install_client_secrets",
    "load_credentials",
    "login",
    "StoredToken",
    "TokenStore",
]
