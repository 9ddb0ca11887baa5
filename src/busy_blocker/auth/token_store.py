"""OAuth token persistence.

Tokens are stored as JSON files readable only by the current user (mode
0600). When an encryption key is configured the file body is encrypted with
Fernet instead of being written in plain text.

## Key Derivation

The Fernet key is derived from the configured passphrase using PBKDF2:
- Salt: derived from the passphrase
- Iterations: 480,000 (OWASP recommendation for PBKDF2-HMAC-SHA256)
- Key length: 32 bytes (256 bits)

## Usage

```python
store = TokenStore(settings.source_token_path, settings.token_encryption_key)
store.save(token)
token = store.load()
```
"""

from __future__ import annotations

import base64
import hashlib
import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from pydantic import BaseModel, ValidationError

from busy_blocker.errors import AuthError

logger = logging.getLogger(__name__)


class StoredToken(BaseModel):
    """OAuth tokens for one calendar account."""

    access_token: str
    refresh_token: str | None = None
    token_type: str = "Bearer"
    expires_at: datetime | None = None
    scope: str = ""

    @property
    def is_expired(self) -> bool:
        """Check if the access token has expired."""
        if self.expires_at is None:
            return False
        return datetime.now(timezone.utc) >= self.expires_at


def _create_fernet(secret_key: str) -> Fernet:
    """Create a Fernet cipher from a passphrase.

    Args:
        secret_key: Passphrase from configuration

    Returns:
        Configured Fernet cipher
    """
    salt = hashlib.sha256(f"{secret_key}-salt".encode("utf-8")).hexdigest()[:32]
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,  # 256 bits for Fernet
        salt=salt.encode("utf-8"),
        iterations=480_000,
    )

    key = base64.urlsafe_b64encode(kdf.derive(secret_key.encode("utf-8")))
    return Fernet(key)


def write_private_file(path: Path, data: bytes) -> None:
    """Write `data` to `path` with mode 0600, tightening an existing file too."""
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as f:
        os.fchmod(f.fileno(), 0o600)
        f.write(data)


class TokenStore:
    """Reads and writes one token file."""

    def __init__(self, path: Path, encryption_key: str | None = None):
        self.path = Path(path)
        self._fernet = _create_fernet(encryption_key) if encryption_key else None

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> StoredToken | None:
        """Load the stored token.

        Returns:
            StoredToken, or None if no token file exists

        Raises:
            AuthError: If the file cannot be decrypted or parsed
        """
        if not self.path.exists():
            return None

        raw = self.path.read_bytes()
        if self._fernet is not None:
            try:
                raw = self._fernet.decrypt(raw)
            except InvalidToken as e:
                logger.error(f"Failed to decrypt token file {self.path}: invalid token or key")
                raise AuthError(f"Failed to decrypt token file {self.path}") from e

        try:
            return StoredToken.model_validate_json(raw)
        except ValidationError as e:
            raise AuthError(f"Token file {self.path} is not valid: {e}") from e

    def save(self, token: StoredToken) -> None:
        """Write the token, replacing any previous one."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

        data = token.model_dump_json(indent=2).encode("utf-8")
        if self._fernet is not None:
            data = self._fernet.encrypt(data)

        write_private_file(self.path, data)
        logger.info(f"Saved credential file to {self.path}")
