"""Tests for OAuth token persistence."""

import stat
from datetime import datetime, timedelta, timezone

import pytest

from busy_blocker.auth import StoredToken, TokenStore
from busy_blocker.errors import AuthError

ENCRYPTION_KEY = "test-encryption-key-at-least-16"


@pytest.fixture
def token() -> StoredToken:
    return StoredToken(
        access_token="test-access-token",
        refresh_token="test-refresh-token",
        expires_at=datetime(2030, 1, 1, tzinfo=timezone.utc),
        scope="https://www.googleapis.com/auth/calendar",
    )


class TestTokenStore:
    """Tests for TokenStore."""

    def test_missing_file(self, tmp_path):
        store = TokenStore(tmp_path / "token.json")
        assert not store.exists()
        assert store.load() is None

    def test_round_trip(self, tmp_path, token):
        store = TokenStore(tmp_path / "nested" / "token.json")
        store.save(token)

        assert store.load() == token

    def test_file_is_private(self, tmp_path, token):
        path = tmp_path / "token.json"
        TokenStore(path).save(token)

        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_existing_file_is_made_private(self, tmp_path, token):
        path = tmp_path / "token.json"
        path.write_text("{}")
        path.chmod(0o644)

        TokenStore(path).save(token)

        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert TokenStore(path).load() == token

    def test_encrypted_at_rest(self, tmp_path, token):
        path = tmp_path / "token.json"
        store = TokenStore(path, encryption_key=ENCRYPTION_KEY)
        store.save(token)

        assert b"test-refresh-token" not in path.read_bytes()
        assert store.load() == token

    def test_wrong_key(self, tmp_path, token):
        path = tmp_path / "token.json"
        TokenStore(path, encryption_key=ENCRYPTION_KEY).save(token)

        with pytest.raises(AuthError):
            TokenStore(path, encryption_key="a-different-key-of-16").load()

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "token.json"
        path.write_text('{"refresh_token": "only"}')

        with pytest.raises(AuthError):
            TokenStore(path).load()


class TestStoredToken:
    """Tests for StoredToken."""

    def test_is_expired(self):
        past = StoredToken(access_token="a", expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
        future = StoredToken(access_token="a", expires_at=datetime.now(timezone.utc) + timedelta(hours=1))

        assert past.is_expired
        assert not future.is_expired
        assert not StoredToken(access_token="a").is_expired
