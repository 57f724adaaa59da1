from gemini_bridge.core.config.app_config import (
    ApiKeyAuth,
    AuthStrategy,
    BridgeConfig,
    GeminiBackendConfig,
    LoggingConfig,
    LogLevel,
    OAuthAuth,
    VertexAIAuth,
    load_config,
)

__all__ = [
    "ApiKeyAuth",
    "AuthStrategy",
    "BridgeConfig",
    "GeminiBackendConfig",
    "LogLevel",
    "LoggingConfig",
    "OAuthAuth",
    "VertexAIAuth",
    "load_config",
]
