"""
Pydantic models for Google Gemini generateContent request/response structures.

Field names are snake_case in Python and camelCase on the wire; dump with
`to_wire()` to get the JSON body the API expects.
"""

from enum import Enum
from typing import Annotated, Any, Union

from pydantic import Field

from gemini_bridge.core.interfaces.model_bases import DomainModel


class FinishReason(str, Enum):
    """Finish reasons for candidate responses."""

    FINISH_REASON_UNSPECIFIED = "FINISH_REASON_UNSPECIFIED"
    STOP = "STOP"
    MAX_TOKENS = "MAX_TOKENS"
    SAFETY = "SAFETY"
    RECITATION = "RECITATION"
    OTHER = "OTHER"


class Blob(DomainModel):
    """Raw bytes data with MIME type."""

    mime_type: str = Field(alias="mimeType")
    data: str  # Base64 encoded data


class TextPart(DomainModel):
    text: str


class InlineDataPart(DomainModel):
    # Accepts both "inlineData" and "inline_data" on input
    inline_data: Blob = Field(alias="inlineData")


# The wire format does not tag parts. Parsing tries the text shape first, then
# inline data, and rejects anything else.
Part = Annotated[
    Union[TextPart, InlineDataPart],
    Field(union_mode="left_to_right"),
]


class Content(DomainModel):
    """Content of a conversation turn."""

    role: str | None = None  # "user" or "model"
    parts: list[Part]


class GenerationConfig(DomainModel):
    """Configuration options for model generation."""

    temperature: float | None = None
    top_p: float | None = Field(None, alias="topP")
    top_k: int | None = Field(None, alias="topK")
    max_output_tokens: int | None = Field(None, alias="maxOutputTokens")
    stop_sequences: list[str] | None = Field(None, alias="stopSequences")


class FunctionDeclaration(DomainModel):
    name: str
    description: str = ""
    parameters: dict[str, Any] = Field(default_factory=dict)


class Tool(DomainModel):
    function_declarations: list[FunctionDeclaration] = Field(
        default_factory=list, alias="functionDeclarations"
    )


class GenerateContentRequest(DomainModel):
    """Request for generating content with Gemini."""

    contents: list[Content]
    system_instruction: Content | None = Field(None, alias="systemInstruction")
    generation_config: GenerationConfig | None = Field(
        None, alias="generationConfig"
    )
    tools: list[Tool] | None = None


class Candidate(DomainModel):
    """A generated candidate response."""

    content: Content
    # Kept as a plain string; unknown reasons must not fail parsing
    finish_reason: str | None = Field(None, alias="finishReason")
    index: int | None = None


class UsageMetadata(DomainModel):
    """Usage metadata for the generation request."""

    prompt_token_count: int | None = Field(None, alias="promptTokenCount")
    candidates_token_count: int | None = Field(None, alias="candidatesTokenCount")
    total_token_count: int | None = Field(None, alias="totalTokenCount")


class GenerateContentResponse(DomainModel):
    """Response from generating content with Gemini."""

    candidates: list[Candidate] = Field(default_factory=list)
    usage_metadata: UsageMetadata | None = Field(None, alias="usageMetadata")
