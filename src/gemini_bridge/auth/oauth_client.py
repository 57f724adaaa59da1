"""
OAuth 2.0 refresh client for Google AI (Gemini) credentials.

Client id/secret are the installed-application credentials used by the Gemini
CLI. They are read from the environment first, then from
``~/.gemini/oauth_client.json``.
"""

from __future__ import annotations

import json
import logging
import os
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

import httpx
from pydantic import ValidationError

from gemini_bridge.auth.token_store import OAuthCredential, TokenStore
from gemini_bridge.core.common.exceptions import OAuthRefreshError

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
GEMINI_OAUTH_SCOPES = [
    "https://www.googleapis.com/auth/cloud-platform",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
]
DEFAULT_EXPIRES_IN_SECONDS = 3600


@dataclass(frozen=True)
class OAuthConfig:
    client_id: str
    client_secret: str | None = None
    token_uri: str = GOOGLE_TOKEN_URI
    scopes: list[str] = field(default_factory=lambda: list(GEMINI_OAUTH_SCOPES))

    @classmethod
    def gemini(
        cls,
        environ: Mapping[str, str] | None = None,
        client_file: Path | None = None,
    ) -> OAuthConfig:
        """Build the Google AI OAuth configuration.

        Order of precedence:
        1) GEMINI_OAUTH_CLIENT_ID / GEMINI_OAUTH_CLIENT_SECRET
        2) ~/.gemini/oauth_client.json (fields: client_id, client_secret, scopes)
        """
        env = os.environ if environ is None else environ
        client_id = env.get("GEMINI_OAUTH_CLIENT_ID")
        if client_id:
            return cls(
                client_id=client_id,
                client_secret=env.get("GEMINI_OAUTH_CLIENT_SECRET") or None,
            )

        path = client_file or Path.home() / ".gemini" / "oauth_client.json"
        try:
            if path.exists():
                with open(path, encoding="utf-8") as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("expected a JSON object")
                file_client_id = data.get("client_id") or data.get("clientId")
                if file_client_id:
                    secret = data.get("client_secret") or data.get("clientSecret")
                    scopes = data.get("scopes")
                    return cls(
                        client_id=str(file_client_id),
                        client_secret=str(secret) if secret else None,
                        scopes=(
                            [str(s) for s in scopes]
                            if isinstance(scopes, list) and scopes
                            else list(GEMINI_OAUTH_SCOPES)
                        ),
                    )
        except (OSError, ValueError) as e:
            # ValueError covers JSONDecodeError and UnicodeDecodeError
            if logger.isEnabledFor(logging.WARNING):
                logger.warning("Could not read OAuth client config %s: %s", path, e)

        # An empty client id still lets the token endpoint report the problem
        return cls(client_id="")


class OAuthClient:
    """Performs refresh-token grants and writes the result to a token store."""

    def __init__(
        self,
        config: OAuthConfig,
        token_store: TokenStore,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self.token_store = token_store
        self.client = client

    async def refresh_token(self, provider_id: str) -> OAuthCredential:
        """Exchange the stored refresh token for a new access token.

        Raises:
            OAuthRefreshError: if there is nothing to refresh or the grant fails.
        """
        current = self.token_store.get(provider_id)
        if current is None:
            raise OAuthRefreshError(
                f"No OAuth token found for provider '{provider_id}'",
                provider_id=provider_id,
            )
        if not current.refresh_token:
            raise OAuthRefreshError(
                f"No refresh token available for provider '{provider_id}'",
                provider_id=provider_id,
            )

        data = {
            "grant_type": "refresh_token",
            "refresh_token": current.refresh_token,
            "client_id": self.config.client_id,
        }
        if self.config.client_secret:
            data["client_secret"] = self.config.client_secret
        headers = {"Content-Type": "application/x-www-form-urlencoded"}

        try:
            if self.client is not None:
                response = await self.client.post(
                    self.config.token_uri, headers=headers, data=data
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(
                        self.config.token_uri, headers=headers, data=data
                    )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            if logger.isEnabledFor(logging.ERROR):
                logger.error(
                    "HTTP error during token refresh: %s - %s",
                    e.response.status_code,
                    e.response.text,
                )
            raise OAuthRefreshError(
                f"Token endpoint returned {e.response.status_code}: {e.response.text}",
                provider_id=provider_id,
            ) from e
        except httpx.RequestError as e:
            if logger.isEnabledFor(logging.ERROR):
                logger.error("Network error during token refresh: %s", e)
            raise OAuthRefreshError(
                f"Network error during token refresh: {e}", provider_id=provider_id
            ) from e
        except json.JSONDecodeError as e:
            if logger.isEnabledFor(logging.ERROR):
                logger.error("Malformed JSON response during token refresh: %s", e)
            raise OAuthRefreshError(
                "Malformed JSON response from token endpoint", provider_id=provider_id
            ) from e

        try:
            expires_in = int(payload.get("expires_in", DEFAULT_EXPIRES_IN_SECONDS))
            new_credential = OAuthCredential(
                access_token=payload["access_token"],
                refresh_token=payload.get("refresh_token") or current.refresh_token,
                token_type=payload.get("token_type", "Bearer"),
                expiry_date=int(time.time() * 1000) + expires_in * 1000,
                scope=payload.get("scope", current.scope),
            )
        except (AttributeError, KeyError, TypeError, ValueError, ValidationError) as e:
            raise OAuthRefreshError(
                f"Token endpoint response is missing an access token: {e}",
                provider_id=provider_id,
            ) from e

        self.token_store.save(provider_id, new_credential)
        if logger.isEnabledFor(logging.INFO):
            logger.info("Successfully refreshed OAuth token for '%s'", provider_id)
        return new_credential
