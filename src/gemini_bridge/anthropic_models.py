"""
Pydantic models for Anthropic Messages API request/response structures.

These are the canonical shapes the adapter accepts from its caller and
returns to it.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, ConfigDict, Discriminator, Field, Tag

from gemini_bridge.core.interfaces.model_bases import DomainModel


class TextBlock(DomainModel):
    """Plain text content."""

    type: Literal["text"] = "text"
    text: str


class ImageSource(DomainModel):
    """Source of an image block. Only base64 sources carry inline data."""

    type: str = "base64"
    media_type: str | None = None
    data: str | None = None
    url: str | None = None


class ImageBlock(DomainModel):
    type: Literal["image"] = "image"
    source: ImageSource


class ThinkingBlock(DomainModel):
    """Extended-thinking output from a previous assistant turn."""

    type: Literal["thinking"] = "thinking"
    thinking: str
    signature: str | None = None


class ToolUseBlock(DomainModel):
    """Represents a tool invocation block in Anthropic messages."""

    type: Literal["tool_use"] = "tool_use"
    id: str | None = None
    name: str | None = None
    input: dict[str, Any] = Field(default_factory=dict)


class ToolResultBlock(DomainModel):
    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str | None = None
    content: str | list[dict[str, Any]] | None = None
    is_error: bool | None = None


class OtherBlock(DomainModel):
    """Any block type this adapter has no dedicated model for."""

    model_config = ConfigDict(extra="allow")

    type: str


_KNOWN_BLOCK_TYPES = {"text", "image", "thinking", "tool_use", "tool_result"}


def _block_tag(value: Any) -> str:
    block_type = (
        value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    )
    return block_type if block_type in _KNOWN_BLOCK_TYPES else "other"


ContentBlock = Annotated[
    Union[
        Annotated[TextBlock, Tag("text")],
        Annotated[ImageBlock, Tag("image")],
        Annotated[ThinkingBlock, Tag("thinking")],
        Annotated[ToolUseBlock, Tag("tool_use")],
        Annotated[ToolResultBlock, Tag("tool_result")],
        Annotated[OtherBlock, Tag("other")],
    ],
    Discriminator(_block_tag),
]


class SystemBlock(DomainModel):
    """A text block of a structured system prompt."""

    model_config = ConfigDict(extra="allow")

    type: str = "text"
    text: str


class AnthropicMessage(DomainModel):
    """Represents a message in the Anthropic API."""

    role: str
    content: str | list[ContentBlock]


class AnthropicTool(DomainModel):
    """Tool declaration. Every field is optional on input."""

    name: str | None = None
    description: str | None = None
    input_schema: dict[str, Any] | None = None


class AnthropicMessagesRequest(DomainModel):
    """Represents a request to the Anthropic Messages API."""

    model: str
    messages: list[AnthropicMessage]
    system: str | list[SystemBlock] | None = None
    max_tokens: int | None = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("max_tokens", "max_output_tokens"),
    )
    metadata: dict[str, Any] | None = None
    stop_sequences: list[str] | None = None
    stream: bool | None = False
    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    tools: list[AnthropicTool] | None = None
    tool_choice: str | dict[str, Any] | None = None


class CountTokensRequest(DomainModel):
    """Request body of the count_tokens endpoint."""

    model: str
    messages: list[AnthropicMessage]
    system: str | list[SystemBlock] | None = None
    tools: list[AnthropicTool] | None = None


class CountTokensResponse(DomainModel):
    input_tokens: int


class Usage(DomainModel):
    """Represents the usage statistics for a request."""

    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)


class AnthropicMessagesResponse(DomainModel):
    """Represents a response from the Anthropic Messages API."""

    id: str
    type: str = "message"
    role: str = "assistant"
    content: list[ContentBlock]
    model: str
    stop_reason: str | None = None
    stop_sequence: str | None = None
    usage: Usage
