"""Authorization header resolution for the Gemini connector."""

from __future__ import annotations

import logging

import httpx

from gemini_bridge.auth.oauth_client import OAuthClient, OAuthConfig
from gemini_bridge.core.common.exceptions import AuthenticationError, OAuthRefreshError
from gemini_bridge.core.common.logging_utils import redact
from gemini_bridge.core.config.app_config import AuthStrategy, OAuthAuth

logger = logging.getLogger(__name__)


class GeminiAuthResolver:
    """Produces the ``Authorization`` header value for the active strategy.

    ``None`` means no header is needed: API keys travel in the
    URL and Vertex AI relies on ambient credentials attached by the transport.
    Nothing is cached here; every call asks the token store again.
    """

    def __init__(
        self, auth: AuthStrategy, client: httpx.AsyncClient | None = None
    ) -> None:
        self.auth = auth
        self.client = client

    async def resolve(self) -> str | None:
        """Return ``"Bearer <token>"`` for OAuth, ``None`` otherwise.

        Raises:
            AuthenticationError: if no credential is stored or refresh fails.
        """
        if not isinstance(self.auth, OAuthAuth):
            return None

        provider_id = self.auth.provider_id
        token_store = self.auth.token_store
        credential = token_store.get(provider_id)
        if credential is None:
            if logger.isEnabledFor(logging.ERROR):
                logger.error("No OAuth token found for provider '%s'", provider_id)
            raise AuthenticationError(
                f"No OAuth token found for provider '{provider_id}'",
                details={"provider_id": provider_id},
            )

        if not token_store.needs_refresh(credential):
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(
                    "Using stored OAuth token %s for '%s'",
                    redact(credential.access_token),
                    provider_id,
                )
            return f"Bearer {credential.access_token}"

        if logger.isEnabledFor(logging.INFO):
            logger.info("Token for '%s' needs refresh, refreshing...", provider_id)

        try:
            oauth_client = OAuthClient(OAuthConfig.gemini(), token_store, self.client)
            new_credential = await oauth_client.refresh_token(provider_id)
        except (OAuthRefreshError, OSError) as e:
            if logger.isEnabledFor(logging.ERROR):
                logger.error("Failed to refresh token for '%s': %s", provider_id, e)
            raise AuthenticationError(
                f"Failed to refresh OAuth token: {e}",
                details={"provider_id": provider_id},
            ) from e

        if logger.isEnabledFor(logging.INFO):
            logger.info("Token for '%s' refreshed successfully", provider_id)
        return f"Bearer {new_credential.access_token}"
