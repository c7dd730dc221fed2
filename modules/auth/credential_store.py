"""
Persisted-credential stores.

- InMemoryCredentialStore: process-lifetime storage for tests and previews
- FileCredentialStore: JSON file readable only by the owner

Both implement ICredentialStore.
"""

import asyncio
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

import jwt
from pydantic import ValidationError as PydanticValidationError

from .exceptions import CredentialStoreError
from .models import SessionToken

logger = logging.getLogger(__name__)


def token_expires_at(token: SessionToken) -> Optional[datetime]:
    """
    Read the expiry of a JWT access token.

    The signature is not verified; the server remains the authority on
    validity. Opaque tokens and tokens without an `exp` claim return None.
    """
    try:
        payload = jwt.decode(
            token.access_token,
            options={"verify_signature": False},
        )
    except jwt.InvalidTokenError:
        return None

    exp = payload.get("exp")
    if not isinstance(exp, (int, float)):
        return None
    return datetime.fromtimestamp(exp, tz=timezone.utc)


class InMemoryCredentialStore:
    """Credential store kept in memory."""

    def __init__(self, token: Optional[SessionToken] = None):
        self._token = token

    async def load(self) -> Optional[SessionToken]:
        return self._token

    async def save(self, token: SessionToken) -> None:
        self._token = token

    async def clear(self) -> None:
        self._token = None


class FileCredentialStore:
    """
    Credential store backed by a JSON file.

    The file is created with mode 0600. A corrupt file is treated as an
    empty store so a bad write never locks the user out of the login flow.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> Optional[SessionToken]:
        return await asyncio.to_thread(self._read)

    async def save(self, token: SessionToken) -> None:
        await asyncio.to_thread(self._write, token)

    async def clear(self) -> None:
        await asyncio.to_thread(self._remove)

    def _read(self) -> Optional[SessionToken]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CredentialStoreError(str(e)) from e

        try:
            return SessionToken.model_validate(json.loads(raw))
        except (ValueError, PydanticValidationError):
            logger.warning(f"Ignoring unreadable credential file {self._path}")
            return None

    def _write(self, token: SessionToken) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(token.model_dump_json())
        except OSError as e:
            raise CredentialStoreError(str(e)) from e

    def _remove(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise CredentialStoreError(str(e)) from e
