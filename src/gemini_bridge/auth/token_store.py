"""
OAuth credential storage.

The adapter only reads from a store and asks it whether a credential needs
refreshing; writing refreshed credentials back is the OAuth client's job.
Stored credentials use the same shape as gemini-cli's ``oauth_creds.json``
(``expiry_date`` in epoch milliseconds).
"""

from __future__ import annotations

import abc
import json
import logging
import time
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from gemini_bridge.core.interfaces.model_bases import DomainModel

logger = logging.getLogger(__name__)

TOKEN_EXPIRY_BUFFER_SECONDS = 30.0


class OAuthCredential(DomainModel):
    """An access token plus the metadata needed to refresh it."""

    access_token: str
    refresh_token: str | None = None
    token_type: str = "Bearer"
    expiry_date: int | None = None  # epoch milliseconds
    scope: str | None = None

    def seconds_until_expiry(self, now: float | None = None) -> float | None:
        """Return seconds remaining before expiry, or None if unknown."""
        if self.expiry_date is None:
            return None
        current = time.time() if now is None else now
        return self.expiry_date / 1000.0 - current


class TokenStore(abc.ABC):
    """Abstract credential store keyed by provider id."""

    def __init__(
        self, refresh_buffer_seconds: float = TOKEN_EXPIRY_BUFFER_SECONDS
    ) -> None:
        self.refresh_buffer_seconds = refresh_buffer_seconds

    @abc.abstractmethod
    def get(self, provider_id: str) -> OAuthCredential | None:
        """Return the stored credential for ``provider_id`` if there is one."""

    @abc.abstractmethod
    def save(self, provider_id: str, credential: OAuthCredential) -> None:
        """Persist ``credential`` for ``provider_id``."""

    def needs_refresh(self, credential: OAuthCredential) -> bool:
        """Check if the token is expired or within the refresh buffer.

        Credentials without an expiry date never need refreshing.
        """
        seconds_remaining = credential.seconds_until_expiry()
        if seconds_remaining is None:
            return False
        return seconds_remaining <= self.refresh_buffer_seconds


class InMemoryTokenStore(TokenStore):
    """Process-local store, mainly for tests and embedding."""

    def __init__(
        self,
        credentials: dict[str, OAuthCredential] | None = None,
        refresh_buffer_seconds: float = TOKEN_EXPIRY_BUFFER_SECONDS,
    ) -> None:
        super().__init__(refresh_buffer_seconds)
        self._credentials: dict[str, OAuthCredential] = dict(credentials or {})

    def get(self, provider_id: str) -> OAuthCredential | None:
        return self._credentials.get(provider_id)

    def save(self, provider_id: str, credential: OAuthCredential) -> None:
        self._credentials[provider_id] = credential


class FileTokenStore(TokenStore):
    """Store with one ``<provider_id>.json`` file per provider in a directory."""

    def __init__(
        self,
        directory: str | Path,
        refresh_buffer_seconds: float = TOKEN_EXPIRY_BUFFER_SECONDS,
    ) -> None:
        super().__init__(refresh_buffer_seconds)
        self.directory = Path(directory).expanduser()

    def _path_for(self, provider_id: str) -> Path:
        return self.directory / f"{provider_id}.json"

    def get(self, provider_id: str) -> OAuthCredential | None:
        creds_path = self._path_for(provider_id)
        if not creds_path.exists():
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("No OAuth credentials file at %s", creds_path)
            return None

        try:
            with open(creds_path, encoding="utf-8") as f:
                data: Any = json.load(f)
            return OAuthCredential.model_validate(data)
        except (
            json.JSONDecodeError,
            UnicodeDecodeError,
            ValidationError,
            OSError,
        ) as e:
            if logger.isEnabledFor(logging.WARNING):
                logger.warning(
                    "Ignoring unreadable OAuth credentials at %s: %s", creds_path, e
                )
            return None

    def save(self, provider_id: str, credential: OAuthCredential) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        creds_path = self._path_for(provider_id)
        with open(creds_path, "w", encoding="utf-8") as f:
            json.dump(credential.model_dump(exclude_none=True), f, indent=4)
        if logger.isEnabledFor(logging.INFO):
            logger.info("OAuth credentials for '%s' saved to %s", provider_id, creds_path)
