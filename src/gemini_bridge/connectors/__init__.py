from gemini_bridge.connectors.base import LLMBackend
from gemini_bridge.connectors.gemini import GeminiBackend
from gemini_bridge.connectors.gemini_auth import GeminiAuthResolver
from gemini_bridge.connectors.gemini_endpoints import build_url, resolve_base_url

__all__ = [
    "GeminiAuthResolver",
    "GeminiBackend",
    "LLMBackend",
    "build_url",
    "resolve_base_url",
]
