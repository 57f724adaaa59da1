import time
from collections.abc import Callable

import pytest
from gemini_bridge.anthropic_models import AnthropicMessage, AnthropicMessagesRequest
from gemini_bridge.auth.token_store import InMemoryTokenStore, OAuthCredential
from gemini_bridge.core.config.app_config import (
    ApiKeyAuth,
    GeminiBackendConfig,
    OAuthAuth,
    VertexAIAuth,
)

TEST_API_KEY = "AI" + "z" * 37
TEST_PROVIDER_ID = "gemini-oauth"
GOOGLE_AI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
TOKEN_URI = "https://oauth2.googleapis.com/token"


@pytest.fixture(autouse=True)
def _oauth_client_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pin the OAuth client so refreshes never read ~/.gemini."""
    monkeypatch.setenv("GEMINI_OAUTH_CLIENT_ID", "test-client-id")
    monkeypatch.setenv("GEMINI_OAUTH_CLIENT_SECRET", "test-client-secret")


@pytest.fixture
def make_credential() -> Callable[..., OAuthCredential]:
    def _make(
        access_token: str = "access-token",
        refresh_token: str | None = "refresh-token",
        expires_in: float | None = 3600,
    ) -> OAuthCredential:
        expiry_date = (
            int((time.time() + expires_in) * 1000) if expires_in is not None else None
        )
        return OAuthCredential(
            access_token=access_token,
            refresh_token=refresh_token,
            expiry_date=expiry_date,
        )

    return _make


@pytest.fixture
def token_store() -> InMemoryTokenStore:
    return InMemoryTokenStore()


@pytest.fixture
def api_key_config() -> GeminiBackendConfig:
    return GeminiBackendConfig(
        name="gemini",
        models=["gemini-pro", "gemini-1.5-flash"],
        auth=ApiKeyAuth(api_key=TEST_API_KEY),
    )


@pytest.fixture
def oauth_config(token_store: InMemoryTokenStore) -> GeminiBackendConfig:
    return GeminiBackendConfig(
        name="gemini-oauth",
        models=["gemini-pro"],
        auth=OAuthAuth(provider_id=TEST_PROVIDER_ID, token_store=token_store),
    )


@pytest.fixture
def vertex_config() -> GeminiBackendConfig:
    return GeminiBackendConfig(
        name="vertex",
        models=["gemini-pro"],
        auth=VertexAIAuth(project_id="p1", location="us-central1"),
    )


@pytest.fixture
def simple_request() -> AnthropicMessagesRequest:
    return AnthropicMessagesRequest(
        model="gemini-pro",
        messages=[AnthropicMessage(role="user", content="Hello")],
        max_tokens=64,
    )


def gemini_text_response(
    *texts: str, finish_reason: str | None = "STOP", usage: dict | None = None
) -> dict:
    """Build a generateContent response body with one candidate."""
    candidate: dict = {
        "content": {"role": "model", "parts": [{"text": t} for t in texts]},
    }
    if finish_reason is not None:
        candidate["finishReason"] = finish_reason
    body: dict = {"candidates": [candidate]}
    if usage is not None:
        body["usageMetadata"] = usage
    return body
