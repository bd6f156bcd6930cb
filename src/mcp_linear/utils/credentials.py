"""Encrypted, per-identity credential persistence.

Credential sets are serialized to JSON, encrypted (see :mod:`.crypto`) and
written to a key-value backend. The default backend is the OS keyring, with a
file fallback for environments where no keyring is available.
"""

import asyncio
import logging
import re
from pathlib import Path
from typing import Protocol

import keyring
from keyring.errors import KeyringError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .crypto import DecryptionError, decrypt, encrypt

logger = logging.getLogger("mcp-linear.credentials")

KEYRING_SERVICE_NAME = "mcp-linear-oauth"
DEFAULT_FALLBACK_DIR = Path.home() / ".mcp-linear"


class CredentialSet(BaseModel):
    """Access credential, optional refresh credential and optional expiry.

    ``expires_at`` is an absolute instant in epoch milliseconds. ``None``
    means the credential does not expire (static keys, or OAuth grants that
    came back without a refresh token and therefore cannot be renewed).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    access_token: str = Field(alias="accessToken", min_length=1)
    refresh_token: str | None = Field(default=None, alias="refreshToken")
    expires_at: int | None = Field(default=None, alias="expiresAt")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> "CredentialSet":
        return cls.model_validate_json(raw)


class KeyValueStore(Protocol):
    """Minimal async string store the credential store persists into."""

    async def get(self, key: str) -> str | None: ...

    async def put(self, key: str, value: str) -> None: ...


class InMemoryKeyValueStore:
    """Process-local store, used for static keys and in tests."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def put(self, key: str, value: str) -> None:
        self._data[key] = value


class KeyringKeyValueStore:
    """Store backed by the system keyring, falling back to files.

    Keyring calls are blocking, so they run in a worker thread.
    """

    def __init__(
        self,
        service_name: str = KEYRING_SERVICE_NAME,
        fallback_dir: Path | None = None,
    ) -> None:
        self.service_name = service_name
        self.fallback_dir = fallback_dir or DEFAULT_FALLBACK_DIR

    def _fallback_path(self, key: str) -> Path:
        safe_name = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.fallback_dir / f"{safe_name}.enc"

    async def get(self, key: str) -> str | None:
        try:
            value = await asyncio.to_thread(keyring.get_password, self.service_name, key)
        except KeyringError as e:
            logger.warning(f"Keyring unavailable ({e}), trying file fallback")
            value = None
        if value is not None:
            return value
        path = self._fallback_path(key)
        if not path.exists():
            return None
        return await asyncio.to_thread(path.read_text, "utf-8")

    async def put(self, key: str, value: str) -> None:
        try:
            await asyncio.to_thread(keyring.set_password, self.service_name, key, value)
            logger.debug(f"Saved credentials to keyring for {key}")
            return
        except KeyringError as e:
            logger.warning(f"Keyring unavailable ({e}), saving credentials to file")
        await asyncio.to_thread(self._write_fallback, key, value)

    def _write_fallback(self, key: str, value: str) -> None:
        self.fallback_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        path = self._fallback_path(key)
        path.write_text(value, "utf-8")
        path.chmod(0o600)
        logger.debug(f"Saved credentials to file {path} (fallback storage)")


class CredentialStore:
    """Reads and writes encrypted :class:`CredentialSet` objects per identity."""

    def __init__(self, backend: KeyValueStore, encryption_key: str) -> None:
        if not encryption_key:
            raise ValueError("encryption_key must not be empty")
        self.backend = backend
        self._encryption_key = encryption_key

    @staticmethod
    def _key(identity: str) -> str:
        return f"credentials:{identity}"

    async def get(self, identity: str) -> CredentialSet | None:
        """Load the credential set for ``identity``.

        A blob that cannot be decrypted or parsed is treated as absent, so the
        caller falls through to re-authentication.
        """
        blob = await self.backend.get(self._key(identity))
        if blob is None:
            return None
        try:
            return CredentialSet.from_json(decrypt(blob, self._encryption_key))
        except DecryptionError as e:
            logger.warning(f"Could not decrypt stored credentials for {identity}: {e}")
            return None
        except ValidationError as e:
            logger.warning(
                f"Stored credentials for {identity} are malformed: "
                f"{e.error_count()} validation error(s)"
            )
            return None

    async def set(self, identity: str, credentials: CredentialSet) -> None:
        """Persist ``credentials`` for ``identity``, replacing any previous set."""
        await self.backend.put(
            self._key(identity), encrypt(credentials.to_json(), self._encryption_key)
        )
        logger.debug(f"Stored credentials for {identity}")
