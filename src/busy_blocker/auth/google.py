"""Google OAuth for installed applications.

Implements the OAuth 2.0 authorization code flow used by ``busy-blocker
login``: the user opens a URL, grants access, and pastes the code (or the
whole redirect URL) back into the terminal.

## Required Setup

1. Create a project in Google Cloud Console
2. Enable Google Calendar API
3. Create OAuth 2.0 credentials (Desktop app)
4. Download the client secrets JSON
5. Run ``busy-blocker set-oauth-credentials --path <file>``

## OAuth Endpoints

- Authorization: https://accounts.google.com/o/oauth2/v2/auth
- Token: https://oauth2.googleapis.com/token
"""

from __future__ import annotations

import json
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

import httpx
from google.oauth2.credentials import Credentials

from busy_blocker.auth.token_store import StoredToken, TokenStore, write_private_file
from busy_blocker.errors import AuthError

logger = logging.getLogger(__name__)

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"


@dataclass
class ClientSecrets:
    """OAuth client from a Google Cloud Console client secrets file."""

    client_id: str
    client_secret: str
    auth_uri: str = GOOGLE_AUTHORIZE_URL
    token_uri: str = GOOGLE_TOKEN_URL

    @classmethod
    def from_file(cls, path: Path) -> ClientSecrets:
        """Load a client secrets JSON file.

        Both "installed" and "web" client types are accepted.

        Raises:
            AuthError: If the file is missing or malformed
        """
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise AuthError(
                f"OAuth client secrets not found at {path}, "
                "please run 'busy-blocker set-oauth-credentials' first"
            ) from e
        except (OSError, json.JSONDecodeError) as e:
            raise AuthError(f"Unable to read OAuth client secrets {path}: {e}") from e

        client = (data.get("installed") or data.get("web")) if isinstance(data, dict) else None
        if not client or "client_id" not in client or "client_secret" not in client:
            raise AuthError(f"{path} is not a Google OAuth client secrets file")

        return cls(
            client_id=client["client_id"],
            client_secret=client["client_secret"],
            auth_uri=client.get("auth_uri", GOOGLE_AUTHORIZE_URL),
            token_uri=client.get("token_uri", GOOGLE_TOKEN_URL),
        )


def _expires_at(data: dict) -> datetime | None:
    if "expires_in" not in data:
        return None
    return datetime.now(timezone.utc).replace(microsecond=0) + timedelta(
        seconds=data["expires_in"]
    )


class GoogleOAuth:
    """Google OAuth 2.0 client for one set of scopes.

    Example:
        ```python
        oauth = GoogleOAuth(ClientSecrets.from_file(path), SOURCE_SCOPES)

        auth_url = oauth.get_authorization_url(state="random-state")
        # User visits auth_url and pastes back the code
        token = oauth.exchange_code(code)
        ```
    """

    def __init__(
        self,
        client: ClientSecrets,
        scopes: list[str],
        redirect_uri: str = "http://localhost",
        timeout: float = 30.0,
    ):
        """Initialize Google OAuth client.

        Args:
            client: OAuth client id and secret
            scopes: OAuth scopes to request
            redirect_uri: Redirect URI registered for the client
            timeout: HTTP timeout in seconds
        """
        self.client = client
        self.scopes = scopes
        self.redirect_uri = redirect_uri
        self.timeout = timeout

    def get_authorization_url(
        self,
        state: str,
        access_type: str = "offline",
        prompt: str = "consent",
    ) -> str:
        """Generate the Google OAuth authorization URL.

        Args:
            state: Random state parameter for CSRF protection
            access_type: "offline" to get refresh token
            prompt: "consent" to always show consent screen

        Returns:
            URL for the user to open
        """
        params = {
            "client_id": self.client.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "state": state,
            "access_type": access_type,
            "prompt": prompt,
        }
        return str(httpx.URL(self.client.auth_uri, params=params))

    def exchange_code(self, code: str) -> StoredToken:
        """Exchange authorization code for tokens.

        Args:
            code: Authorization code from the redirect

        Returns:
            StoredToken with access and refresh tokens

        Raises:
            AuthError: If token exchange fails
        """
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(
                    self.client.token_uri,
                    data={
                        "client_id": self.client.client_id,
                        "client_secret": self.client.client_secret,
                        "code": code,
                        "grant_type": "authorization_code",
                        "redirect_uri": self.redirect_uri,
                    },
                )
        except httpx.HTTPError as e:
            raise AuthError(f"Token exchange failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"Token exchange failed: {response.text}")
            raise AuthError(f"Token exchange failed: {response.status_code}")

        try:
            data = response.json()
            return StoredToken(
                access_token=data["access_token"],
                refresh_token=data.get("refresh_token"),
                token_type=data.get("token_type", "Bearer"),
                expires_at=_expires_at(data),
                scope=data.get("scope", " ".join(self.scopes)),
            )
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Unexpected token response: {response.text}")
            raise AuthError(f"Token exchange returned an invalid response: {e}") from e

    def credentials(self, token: StoredToken) -> Credentials:
        """Build google-auth credentials that refresh themselves."""
        expiry = None
        if token.expires_at is not None:
            # google-auth compares against naive UTC
            expiry = token.expires_at.astimezone(timezone.utc).replace(tzinfo=None)

        return Credentials(
            token=token.access_token,
            refresh_token=token.refresh_token,
            token_uri=self.client.token_uri,
            client_id=self.client.client_id,
            client_secret=self.client.client_secret,
            scopes=self.scopes,
            expiry=expiry,
        )


def parse_authorization_response(response: str, state: str) -> str:
    """Extract the code from a pasted code or redirect URL.

    Raises:
        AuthError: If the URL carries an error, no code or the wrong state
    """
    response = response.strip()
    if "://" not in response:
        if not response:
            raise AuthError("No authorization code entered")
        return response

    params = httpx.URL(response).params
    if "error" in params:
        raise AuthError(f"Authorization was denied: {params['error']}")
    if params.get("state") not in (None, state):
        raise AuthError("Authorization response state does not match")
    code = params.get("code")
    if not code:
        raise AuthError("No authorization code found in URL")
    return code


def login(
    oauth: GoogleOAuth,
    store: TokenStore,
    read_input: Callable[[str], str] = input,
    write_output: Callable[[str], None] = print,
) -> StoredToken:
    """Run the interactive authorization flow and persist the token."""
    state = secrets.token_urlsafe(16)
    auth_url = oauth.get_authorization_url(state=state)

    write_output(f"Go to the following link in your browser:\n{auth_url}")
    response = read_input("Enter the authorization code (or the full redirect URL): ")

    token = oauth.exchange_code(parse_authorization_response(response, state))
    if token.refresh_token is None:
        logger.warning("No refresh token returned; you will need to log in again when it expires")
    store.save(token)
    return token


def load_credentials(oauth: GoogleOAuth, store: TokenStore, role: str) -> Credentials:
    """Load stored credentials for the "source" or "destination" account.

    Raises:
        AuthError: If no token has been stored yet
    """
    token = store.load()
    if token is None:
        raise AuthError(
            f"{role} token not found at {store.path}, "
            f"please run 'busy-blocker login {role}' first"
        )
    return oauth.credentials(token)


def install_client_secrets(source: Path, destination: Path) -> ClientSecrets:
    """Validate a client secrets file and copy it into the config directory."""
    client = ClientSecrets.from_file(source)

    destination.parent.mkdir(parents=True, exist_ok=True)
    write_private_file(destination, Path(source).read_bytes())
    logger.info(f"Copied OAuth client secrets to {destination}")
    return client
