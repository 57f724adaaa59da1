from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import ConfigDict, Field, field_validator

from gemini_bridge.auth.token_store import FileTokenStore, TokenStore
from gemini_bridge.core.common.exceptions import ConfigurationError
from gemini_bridge.core.interfaces.model_bases import DomainModel

logger = logging.getLogger(__name__)

GOOGLE_AI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
VERTEX_AI_BASE_URL_TEMPLATE = "https://{location}-aiplatform.googleapis.com/v1"
DEFAULT_OAUTH_CREDS_DIR = "~/.gemini-bridge"


class LogLevel(str, Enum):
    """Log levels for configuration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingConfig(DomainModel):
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    log_file: str | None = None


class ApiKeyAuth(DomainModel):
    """Google AI Studio API key, sent as the ``key`` query parameter."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["api_key"] = "api_key"
    api_key: str = Field(min_length=1, repr=False)


class OAuthAuth(DomainModel):
    """Google AI OAuth credential looked up in a token store by provider id."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["oauth"] = "oauth"
    provider_id: str = Field(min_length=1)
    token_store: TokenStore = Field(exclude=True, repr=False)


class VertexAIAuth(DomainModel):
    """Vertex AI with ambient (Application Default) credentials."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["vertex_ai"] = "vertex_ai"
    project_id: str = Field(min_length=1)
    location: str = Field(min_length=1)


AuthStrategy = Annotated[
    ApiKeyAuth | OAuthAuth | VertexAIAuth, Field(discriminator="kind")
]


class GeminiBackendConfig(DomainModel):
    """Configuration of one Gemini backend.

    Exactly one auth strategy is active and the config is frozen once built.
    """

    model_config = ConfigDict(frozen=True)

    name: str = "gemini"
    models: list[str] = Field(default_factory=list)
    api_url: str | None = None
    custom_headers: dict[str, str] = Field(default_factory=dict)
    auth: AuthStrategy

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str | None) -> str | None:
        """Validate the API URL if provided."""
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError("API URL must start with http:// or https://")
        return v

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        token_store: TokenStore | None = None,
    ) -> GeminiBackendConfig:
        """Create a backend config from environment variables.

        Exactly one of GEMINI_API_KEY, GEMINI_OAUTH_PROVIDER_ID or the
        GOOGLE_CLOUD_PROJECT/GOOGLE_CLOUD_LOCATION pair must be set.
        """
        env: Mapping[str, str] = os.environ if environ is None else environ

        data: dict[str, Any] = {
            "name": env.get("GEMINI_BACKEND_NAME", "gemini"),
            "models": _split_csv(env.get("GEMINI_MODELS", "")),
            "api_url": env.get("GEMINI_API_BASE_URL") or None,
            "custom_headers": _parse_headers(env.get("GEMINI_CUSTOM_HEADERS")),
        }
        data["auth"] = _auth_from_mapping(
            {
                "api_key": env.get("GEMINI_API_KEY"),
                "oauth_provider_id": env.get("GEMINI_OAUTH_PROVIDER_ID"),
                "oauth_creds_dir": env.get("GEMINI_OAUTH_CREDS_DIR"),
                "project_id": env.get("GOOGLE_CLOUD_PROJECT"),
                "location": env.get("GOOGLE_CLOUD_LOCATION"),
            },
            token_store,
        )
        return cls.model_validate(data)


class BridgeConfig(DomainModel):
    """Top-level configuration: one backend plus logging."""

    model_config = ConfigDict(frozen=True)

    backend: GeminiBackendConfig
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_headers(raw: str | None) -> dict[str, str]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"GEMINI_CUSTOM_HEADERS must be a JSON object: {e}"
        ) from e
    if not isinstance(parsed, dict):
        raise ConfigurationError("GEMINI_CUSTOM_HEADERS must be a JSON object")
    return {str(k): str(v) for k, v in parsed.items()}


def _auth_from_mapping(
    raw: Mapping[str, Any], token_store: TokenStore | None
) -> ApiKeyAuth | OAuthAuth | VertexAIAuth:
    """Pick the single auth strategy described by ``raw``."""
    api_key = raw.get("api_key")
    provider_id = raw.get("oauth_provider_id")
    project_id = raw.get("project_id")
    location = raw.get("location")

    configured = [
        name
        for name, present in (
            ("api_key", bool(api_key)),
            ("oauth", bool(provider_id)),
            ("vertex_ai", bool(project_id) or bool(location)),
        )
        if present
    ]
    if len(configured) != 1:
        raise ConfigurationError(
            "Exactly one Gemini auth strategy must be configured "
            f"(found: {', '.join(configured) or 'none'})"
        )

    strategy = configured[0]
    if strategy == "api_key":
        return ApiKeyAuth(api_key=str(api_key))
    if strategy == "oauth":
        store = token_store or FileTokenStore(
            raw.get("oauth_creds_dir") or DEFAULT_OAUTH_CREDS_DIR
        )
        return OAuthAuth(provider_id=str(provider_id), token_store=store)
    if not (project_id and location):
        raise ConfigurationError(
            "Vertex AI requires both a project id and a location"
        )
    return VertexAIAuth(project_id=str(project_id), location=str(location))


def load_config(
    config_path: str | Path,
    *,
    environ: Mapping[str, str] | None = None,
    token_store: TokenStore | None = None,
) -> BridgeConfig:
    """Load configuration from a YAML file.

    The file has a ``backend`` section (name, models, api_url, custom_headers
    and the auth keys accepted by ``from_env``) and an optional ``logging``
    section. When the file does not define an auth strategy, it is taken from
    the environment.
    """
    import yaml
    from dotenv import load_dotenv

    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")
    if path.suffix.lower() not in [".yaml", ".yml"]:
        raise ConfigurationError(
            f"Unsupported configuration file format: {path.suffix}. Use YAML (.yaml/.yml)."
        )

    with open(path, encoding="utf-8") as f:
        file_config: dict[str, Any] = yaml.safe_load(f) or {}

    backend_raw = dict(file_config.get("backend") or {})
    auth_keys = ("api_key", "oauth_provider_id", "oauth_creds_dir", "project_id", "location")
    auth_raw = {key: backend_raw.pop(key, None) for key in auth_keys}

    if not any(auth_raw[key] for key in auth_keys if key != "oauth_creds_dir"):
        if environ is None:
            load_dotenv()
        env_config = GeminiBackendConfig.from_env(environ, token_store)
        auth: ApiKeyAuth | OAuthAuth | VertexAIAuth = env_config.auth
    else:
        auth = _auth_from_mapping(auth_raw, token_store)

    try:
        backend = GeminiBackendConfig.model_validate({**backend_raw, "auth": auth})
        logging_config = LoggingConfig.model_validate(file_config.get("logging") or {})
    except ValueError as e:
        if logger.isEnabledFor(logging.ERROR):
            logger.error("Invalid configuration in %s: %s", path, e)
        raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e

    return BridgeConfig(backend=backend, logging=logging_config)
