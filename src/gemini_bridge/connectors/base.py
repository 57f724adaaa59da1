from __future__ import annotations

import abc
from collections.abc import AsyncIterator

from gemini_bridge.anthropic_models import (
    AnthropicMessagesRequest,
    AnthropicMessagesResponse,
    CountTokensRequest,
    CountTokensResponse,
)


class LLMBackend(abc.ABC):
    """
    Abstract base class for backends that accept Anthropic Messages requests.
    Defines the interface callers use regardless of the upstream provider.
    """

    backend_type: str

    @abc.abstractmethod
    async def send_message(
        self, request: AnthropicMessagesRequest
    ) -> AnthropicMessagesResponse:
        """
        Forwards one non-streaming message request to the provider.

        Args:
            request: The canonical request.

        Returns:
            The provider's answer mapped back to the canonical response.
        """

    @abc.abstractmethod
    async def send_message_stream(
        self, request: AnthropicMessagesRequest
    ) -> AsyncIterator[bytes]:
        """Forwards a request and streams the raw server-sent events back."""

    @abc.abstractmethod
    async def count_tokens(self, request: CountTokensRequest) -> CountTokensResponse:
        """Counts the input tokens a request would use."""

    @abc.abstractmethod
    def supports_model(self, model: str) -> bool:
        """Whether this backend serves ``model``."""
