"""Tests for Google OAuth login."""

import json
import stat
from unittest.mock import MagicMock, patch

import httpx
import pytest

from busy_blocker.auth import (
    ClientSecrets,
    GoogleOAuth,
    StoredToken,
    TokenStore,
    install_client_secrets,
    load_credentials,
    login,
)
from busy_blocker.auth.google import parse_authorization_response
from busy_blocker.config import SOURCE_SCOPES
from busy_blocker.errors import AuthError

CLIENT_SECRETS = {
    "installed": {
        "client_id": "test-client-id.apps.googleusercontent.com",
        "client_secret": "test-client-secret",
        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        "token_uri": "https://oauth2.googleapis.com/token",
    }
}


@pytest.fixture
def secrets_file(tmp_path):
    path = tmp_path / "client_secret.json"
    path.write_text(json.dumps(CLIENT_SECRETS))
    return path


@pytest.fixture
def oauth(secrets_file) -> GoogleOAuth:
    return GoogleOAuth(ClientSecrets.from_file(secrets_file), SOURCE_SCOPES)


@pytest.fixture
def mock_httpx_client():
    """Mock httpx client to prevent any external HTTP calls."""
    with patch("busy_blocker.auth.google.httpx.Client") as mock_client:
        mock_instance = MagicMock()
        mock_client.return_value.__enter__.return_value = mock_instance
        yield mock_instance


def token_response(status_code: int = 200, data: dict | None = None) -> MagicMock:
    response = MagicMock(status_code=status_code, text="error body")
    response.json.return_value = data or {
        "access_token": "test-access-token",
        "refresh_token": "test-refresh-token",
        "expires_in": 3600,
        "token_type": "Bearer",
    }
    return response


class TestClientSecrets:
    """Tests for loading client secrets files."""

    def test_installed_client(self, secrets_file):
        client = ClientSecrets.from_file(secrets_file)
        assert client.client_id == "test-client-id.apps.googleusercontent.com"
        assert client.auth_uri == "https://accounts.google.com/o/oauth2/auth"

    def test_web_client(self, tmp_path):
        path = tmp_path / "web.json"
        path.write_text(json.dumps({"web": {"client_id": "id", "client_secret": "secret"}}))

        client = ClientSecrets.from_file(path)
        assert client.client_secret == "secret"
        assert client.token_uri == "https://oauth2.googleapis.com/token"

    def test_missing_file(self, tmp_path):
        with pytest.raises(AuthError, match="set-oauth-credentials"):
            ClientSecrets.from_file(tmp_path / "nope.json")

    def test_not_a_secrets_file(self, tmp_path):
        path = tmp_path / "other.json"
        path.write_text(json.dumps({"type": "service_account"}))

        with pytest.raises(AuthError):
            ClientSecrets.from_file(path)

    def test_install_copies_file(self, secrets_file, tmp_path):
        destination = tmp_path / "config" / "credentials.json"

        install_client_secrets(secrets_file, destination)

        assert json.loads(destination.read_text()) == CLIENT_SECRETS
        assert stat.S_IMODE(destination.stat().st_mode) == 0o600

    def test_install_tightens_existing_file(self, secrets_file, tmp_path):
        destination = tmp_path / "credentials.json"
        destination.write_text("{}")
        destination.chmod(0o644)

        install_client_secrets(secrets_file, destination)

        assert stat.S_IMODE(destination.stat().st_mode) == 0o600

    def test_install_rejects_invalid_file(self, tmp_path):
        source = tmp_path / "bad.json"
        source.write_text("not json")
        destination = tmp_path / "config" / "credentials.json"

        with pytest.raises(AuthError):
            install_client_secrets(source, destination)
        assert not destination.exists()


class TestGoogleOAuth:
    """Tests for the authorization code flow."""

    def test_authorization_url(self, oauth):
        url = httpx.URL(oauth.get_authorization_url(state="test-state"))

        assert url.params["client_id"] == "test-client-id.apps.googleusercontent.com"
        assert url.params["state"] == "test-state"
        assert url.params["access_type"] == "offline"
        assert url.params["scope"] == " ".join(SOURCE_SCOPES)

    def test_exchange_code(self, oauth, mock_httpx_client):
        mock_httpx_client.post.return_value = token_response()

        token = oauth.exchange_code("auth-code")

        assert token.access_token == "test-access-token"
        assert token.refresh_token == "test-refresh-token"
        assert token.expires_at is not None
        data = mock_httpx_client.post.call_args.kwargs["data"]
        assert data["code"] == "auth-code"
        assert data["grant_type"] == "authorization_code"

    def test_exchange_code_rejected(self, oauth, mock_httpx_client):
        mock_httpx_client.post.return_value = token_response(status_code=400)

        with pytest.raises(AuthError):
            oauth.exchange_code("bad-code")

    def test_exchange_code_malformed_body(self, oauth, mock_httpx_client):
        response = token_response(data={"error": "unexpected"})
        mock_httpx_client.post.return_value = response

        with pytest.raises(AuthError, match="invalid response"):
            oauth.exchange_code("auth-code")

        response.json.side_effect = ValueError("Expecting value")
        with pytest.raises(AuthError):
            oauth.exchange_code("auth-code")

    def test_credentials(self, oauth):
        token = StoredToken(access_token="a", refresh_token="r")
        credentials = oauth.credentials(token)

        assert credentials.token == "a"
        assert credentials.refresh_token == "r"
        assert credentials.client_id == "test-client-id.apps.googleusercontent.com"


class TestAuthorizationResponse:
    """Tests for parsing what the user pastes back."""

    def test_bare_code(self):
        assert parse_authorization_response("  4/abc  \n", "s") == "4/abc"

    def test_redirect_url(self):
        url = "http://localhost/?state=s&code=4%2Fabc&scope=x"
        assert parse_authorization_response(url, "s") == "4/abc"

    def test_state_mismatch(self):
        with pytest.raises(AuthError):
            parse_authorization_response("http://localhost/?state=other&code=c", "s")

    def test_denied(self):
        with pytest.raises(AuthError):
            parse_authorization_response("http://localhost/?error=access_denied", "s")

    def test_empty(self):
        with pytest.raises(AuthError):
            parse_authorization_response("", "s")


class TestLogin:
    """Tests for the interactive login flow."""

    def test_login_saves_token(self, oauth, mock_httpx_client, tmp_path):
        mock_httpx_client.post.return_value = token_response()
        store = TokenStore(tmp_path / "source_token.json")
        output = []

        login(oauth, store, read_input=lambda prompt: "auth-code", write_output=output.append)

        assert "accounts.google.com" in output[0]
        assert store.load().access_token == "test-access-token"

    def test_load_credentials_requires_login(self, oauth, tmp_path):
        store = TokenStore(tmp_path / "source_token.json")

        with pytest.raises(AuthError, match="busy-blocker login source"):
            load_credentials(oauth, store, "source")

    def test_load_credentials(self, oauth, tmp_path):
        store = TokenStore(tmp_path / "source_token.json")
        store.save(StoredToken(access_token="a", refresh_token="r"))

        credentials = load_credentials(oauth, store, "source")
        assert credentials.token == "a"
