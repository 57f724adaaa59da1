"""
Converter functions between the Anthropic Messages format and Gemini
generateContent format.

The mapping is lossy. Roles other than user/assistant, tool blocks and unnamed
tools are dropped; non-text response parts become empty text blocks.
"""

import logging
import time

from gemini_bridge.anthropic_models import (
    AnthropicMessage,
    AnthropicMessagesRequest,
    AnthropicMessagesResponse,
    AnthropicTool,
    ImageBlock,
    SystemBlock,
    TextBlock,
    ThinkingBlock,
    Usage,
)
from gemini_bridge.core.common.exceptions import UpstreamResponseError
from gemini_bridge.gemini_models import (
    Blob,
    Content,
    FinishReason,
    FunctionDeclaration,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfig,
    InlineDataPart,
    Part,
    TextPart,
    Tool,
)

logger = logging.getLogger(__name__)

# Gemini's own default; the Anthropic schema has no usable top-k equivalent
DEFAULT_TOP_K = 40
MAX_INT32 = 2**31 - 1
RESPONSE_ID_PREFIX = "gemini-"

_ROLE_MAP = {"user": "user", "assistant": "model"}

_STOP_REASON_MAP = {
    FinishReason.STOP.value: "end_turn",
    FinishReason.MAX_TOKENS.value: "max_tokens",
}


def anthropic_to_gemini_request(
    anthropic_request: AnthropicMessagesRequest,
) -> GenerateContentRequest:
    """Convert an Anthropic `MessagesRequest` into a Gemini request."""
    system_instruction = None
    if anthropic_request.system is not None:
        system_instruction = Content(
            parts=[TextPart(text=_flatten_system(anthropic_request.system))]
        )

    contents: list[Content] = []
    for msg in anthropic_request.messages:
        role = _ROLE_MAP.get(msg.role)
        if role is None:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("Dropping message with unsupported role %r", msg.role)
            continue
        contents.append(Content(role=role, parts=_convert_message_parts(msg)))

    max_output_tokens = None
    if anthropic_request.max_tokens is not None:
        max_output_tokens = min(anthropic_request.max_tokens, MAX_INT32)

    generation_config = GenerationConfig(
        temperature=anthropic_request.temperature,
        top_p=anthropic_request.top_p,
        top_k=DEFAULT_TOP_K,
        max_output_tokens=max_output_tokens,
        stop_sequences=anthropic_request.stop_sequences,
    )

    tools = None
    if anthropic_request.tools is not None:
        tools = [
            Tool(
                function_declarations=[
                    declaration
                    for declaration in (
                        _convert_tool_definition(tool)
                        for tool in anthropic_request.tools
                    )
                    if declaration is not None
                ]
            )
        ]

    return GenerateContentRequest(
        contents=contents,
        system_instruction=system_instruction,
        generation_config=generation_config,
        tools=tools,
    )


def gemini_to_anthropic_response(
    gemini_response: GenerateContentResponse, model: str
) -> AnthropicMessagesResponse:
    """Convert a Gemini response into an Anthropic `MessagesResponse`.

    Only the first candidate is used.

    Raises:
        UpstreamResponseError: if the response has no candidates.
    """
    if not gemini_response.candidates:
        raise UpstreamResponseError("No candidates in response")

    candidate = gemini_response.candidates[0]
    content = [_part_to_text_block(part) for part in candidate.content.parts]

    usage_metadata = gemini_response.usage_metadata
    usage = Usage(
        input_tokens=(usage_metadata.prompt_token_count or 0) if usage_metadata else 0,
        output_tokens=(
            (usage_metadata.candidates_token_count or 0) if usage_metadata else 0
        ),
    )

    return AnthropicMessagesResponse(
        id=f"{RESPONSE_ID_PREFIX}{int(time.time() * 1000)}",
        type="message",
        role="assistant",
        content=content,
        model=model,
        stop_reason=_map_finish_reason(candidate.finish_reason),
        stop_sequence=None,
        usage=usage,
    )


def _flatten_system(system: str | list[SystemBlock]) -> str:
    if isinstance(system, str):
        return system
    return "\n".join(block.text for block in system)


def _convert_message_parts(msg: AnthropicMessage) -> list[Part]:
    if isinstance(msg.content, str):
        return [TextPart(text=msg.content)]

    parts: list[Part] = []
    for block in msg.content:
        if isinstance(block, TextBlock):
            parts.append(TextPart(text=block.text))
        elif isinstance(block, ImageBlock):
            source = block.source
            if source.media_type is not None and source.data is not None:
                parts.append(
                    InlineDataPart(
                        inline_data=Blob(mime_type=source.media_type, data=source.data)
                    )
                )
        elif isinstance(block, ThinkingBlock):
            # No reasoning part on the Gemini side
            parts.append(TextPart(text=block.thinking))
        elif logger.isEnabledFor(logging.DEBUG):
            logger.debug("Dropping unsupported content block of type %r", block.type)
    return parts


def _convert_tool_definition(tool: AnthropicTool) -> FunctionDeclaration | None:
    if tool.name is None:
        return None
    return FunctionDeclaration(
        name=tool.name,
        description=tool.description or "",
        parameters=tool.input_schema if tool.input_schema is not None else {},
    )


def _part_to_text_block(part: Part) -> TextBlock:
    if isinstance(part, TextPart):
        return TextBlock(text=part.text)
    # Non-text parts keep their position as an empty block
    return TextBlock(text="")


def _map_finish_reason(finish_reason: str | None) -> str | None:
    if finish_reason is None:
        return None
    return _STOP_REASON_MAP.get(finish_reason)
