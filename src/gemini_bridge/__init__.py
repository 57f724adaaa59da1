"""Serve Anthropic Messages requests from Google Gemini."""

from gemini_bridge.connectors.gemini import GeminiBackend
from gemini_bridge.core.config.app_config import GeminiBackendConfig, load_config

__all__ = ["GeminiBackend", "GeminiBackendConfig", "load_config"]
__version__ = "0.1.0"
