from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx
from google.auth.exceptions import GoogleAuthError
from pydantic import ValidationError

from gemini_bridge.anthropic_models import (
    AnthropicMessagesRequest,
    AnthropicMessagesResponse,
    CountTokensRequest,
    CountTokensResponse,
)
from gemini_bridge.auth.adc import GoogleADCAuth
from gemini_bridge.connectors.base import LLMBackend
from gemini_bridge.connectors.gemini_auth import GeminiAuthResolver
from gemini_bridge.connectors.gemini_endpoints import build_url, redact_url
from gemini_bridge.core.common.exceptions import (
    ApiError,
    APIConnectionError,
    AuthenticationError,
    ConfigurationError,
    DeserializationError,
)
from gemini_bridge.core.config.app_config import GeminiBackendConfig, VertexAIAuth
from gemini_bridge.gemini_converters import (
    anthropic_to_gemini_request,
    gemini_to_anthropic_response,
)
from gemini_bridge.gemini_models import GenerateContentResponse

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_BODY = "Unknown error"


class GeminiBackend(LLMBackend):
    """LLMBackend implementation for Google's Gemini API.

    Supports three authentication methods:
    1. OAuth 2.0 (Google AI Pro/Ultra), bearer token from a token store
    2. API key (Google AI Studio), key as a query parameter
    3. Vertex AI (Google Cloud), ambient Application Default Credentials
    """

    backend_type: str = "gemini"

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: GeminiBackendConfig,
        ambient_auth: httpx.Auth | None = None,
    ) -> None:
        self.client = client
        self.config = config
        self.auth_resolver = GeminiAuthResolver(config.auth, client)
        if ambient_auth is None and isinstance(config.auth, VertexAIAuth):
            ambient_auth = GoogleADCAuth()
        self.ambient_auth = ambient_auth

    @property
    def name(self) -> str:
        return self.config.name

    async def send_message(
        self, request: AnthropicMessagesRequest
    ) -> AnthropicMessagesResponse:
        model = request.model
        gemini_request = anthropic_to_gemini_request(request)
        url = build_url(self.config, model)

        # Fails before anything is sent when no credential can be produced
        auth_header = await self.auth_resolver.resolve()

        headers = {"Content-Type": "application/json"}
        if auth_header is not None:
            headers["Authorization"] = auth_header
        headers.update(self.config.custom_headers)

        request_kwargs: dict[str, Any] = {
            "json": gemini_request.to_wire(),
            "headers": headers,
        }
        if self.ambient_auth is not None:
            request_kwargs["auth"] = self.ambient_auth

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("POST %s (model=%s)", redact_url(url), model)

        try:
            response = await self.client.post(url, **request_kwargs)
        except httpx.RequestError as e:
            if logger.isEnabledFor(logging.ERROR):
                logger.error(
                    "Request error connecting to Gemini at %s: %s", redact_url(url), e
                )
            raise APIConnectionError(
                message=f"Could not connect to Gemini ({e})",
                details={"backend": self.name},
            ) from e
        except GoogleAuthError as e:
            # Raised by the ambient auth flow (ADC discovery or refresh)
            if logger.isEnabledFor(logging.ERROR):
                logger.error("Google Auth error for Gemini backend: %s", e)
            raise AuthenticationError(
                f"Could not obtain Google credentials: {e}",
                details={"backend": self.name},
            ) from e

        if not response.is_success:
            status = response.status_code
            error_text = _read_error_body(response)
            if logger.isEnabledFor(logging.ERROR):
                logger.error("Gemini API error (%s): %s", status, error_text)
            raise ApiError(status, error_text, backend_name=self.name)

        try:
            gemini_response = GenerateContentResponse.model_validate(response.json())
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
            if logger.isEnabledFor(logging.ERROR):
                logger.error("Failed to parse Gemini response: %s", e)
            raise DeserializationError(
                f"Failed to parse Gemini response: {e}",
                details={"backend": self.name},
            ) from e

        return gemini_to_anthropic_response(gemini_response, model)

    async def send_message_stream(
        self, request: AnthropicMessagesRequest
    ) -> AsyncIterator[bytes]:
        # TODO: map streamGenerateContent SSE chunks to Anthropic stream events
        raise ConfigurationError("Streaming not yet implemented for Gemini")

    async def count_tokens(self, request: CountTokensRequest) -> CountTokensResponse:
        # TODO: call the countTokens method once request mapping is shared
        raise ConfigurationError("Token counting not yet implemented for Gemini")

    def supports_model(self, model: str) -> bool:
        return model in self.config.models


def _read_error_body(response: httpx.Response) -> str:
    try:
        return response.text
    except (httpx.ResponseNotRead, UnicodeDecodeError, LookupError):
        return UNKNOWN_ERROR_BODY
