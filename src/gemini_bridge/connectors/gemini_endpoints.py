"""Endpoint URLs for the three Gemini auth strategies."""

from __future__ import annotations

from urllib.parse import quote

from gemini_bridge.core.common.logging_utils import QUERY_KEY_PATTERN
from gemini_bridge.core.config.app_config import (
    GOOGLE_AI_BASE_URL,
    VERTEX_AI_BASE_URL_TEMPLATE,
    ApiKeyAuth,
    AuthStrategy,
    GeminiBackendConfig,
    VertexAIAuth,
)

GENERATE_CONTENT_METHOD = "generateContent"


def resolve_base_url(auth: AuthStrategy, override: str | None = None) -> str:
    """Return the base URL for ``auth``; an explicit override always wins."""
    if override:
        return override.rstrip("/")
    if isinstance(auth, VertexAIAuth):
        return VERTEX_AI_BASE_URL_TEMPLATE.format(location=auth.location)
    return GOOGLE_AI_BASE_URL


def build_url(config: GeminiBackendConfig, model: str) -> str:
    """Build the generateContent URL for ``model``.

    - Vertex AI: project/location scoped publisher model path
    - API key: Google AI model path with the key as a query parameter
    - OAuth: Google AI model path, the token travels in a header
    """
    base = resolve_base_url(config.auth, config.api_url)
    auth = config.auth

    if isinstance(auth, VertexAIAuth):
        return (
            f"{base}/projects/{auth.project_id}/locations/{auth.location}"
            f"/publishers/google/models/{model}:{GENERATE_CONTENT_METHOD}"
        )
    if isinstance(auth, ApiKeyAuth):
        return (
            f"{base}/models/{model}:{GENERATE_CONTENT_METHOD}"
            f"?key={quote(auth.api_key, safe='')}"
        )
    return f"{base}/models/{model}:{GENERATE_CONTENT_METHOD}"


def redact_url(url: str, mask: str = "***") -> str:
    """Mask the ``key`` query parameter so the URL can be logged."""
    return QUERY_KEY_PATTERN.sub(rf"\g<1>{mask}", url)
