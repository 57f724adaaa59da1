"""Tests for Authorization header resolution in the Gemini connector."""

import logging
from collections.abc import AsyncGenerator, Callable
from pathlib import Path
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio
from gemini_bridge.auth.token_store import (
    FileTokenStore,
    InMemoryTokenStore,
    OAuthCredential,
)
from gemini_bridge.connectors.gemini_auth import GeminiAuthResolver
from gemini_bridge.core.common.exceptions import AuthenticationError
from gemini_bridge.core.config.app_config import ApiKeyAuth, OAuthAuth, VertexAIAuth
from pytest_httpx import HTTPXMock

from tests.conftest import TEST_API_KEY, TEST_PROVIDER_ID, TOKEN_URI


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient() as c:
        yield c


@pytest.fixture
def oauth_auth(token_store: InMemoryTokenStore) -> OAuthAuth:
    return OAuthAuth(provider_id=TEST_PROVIDER_ID, token_store=token_store)


@pytest.mark.asyncio
async def test_api_key_resolves_to_none(client: httpx.AsyncClient) -> None:
    resolver = GeminiAuthResolver(ApiKeyAuth(api_key=TEST_API_KEY), client)

    assert await resolver.resolve() is None


@pytest.mark.asyncio
async def test_vertex_resolves_to_none(client: httpx.AsyncClient) -> None:
    resolver = GeminiAuthResolver(
        VertexAIAuth(project_id="p1", location="us-central1"), client
    )

    assert await resolver.resolve() is None


@pytest.mark.asyncio
async def test_missing_credential_raises(
    oauth_auth: OAuthAuth, client: httpx.AsyncClient
) -> None:
    resolver = GeminiAuthResolver(oauth_auth, client)

    with pytest.raises(AuthenticationError) as exc_info:
        await resolver.resolve()

    assert str(exc_info.value) == (
        f"No OAuth token found for provider '{TEST_PROVIDER_ID}'"
    )
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_fresh_token_is_used_without_refresh(
    oauth_auth: OAuthAuth,
    token_store: InMemoryTokenStore,
    make_credential: Callable[..., OAuthCredential],
    client: httpx.AsyncClient,
    httpx_mock: HTTPXMock,
) -> None:
    token_store.save(TEST_PROVIDER_ID, make_credential(access_token="fresh"))
    resolver = GeminiAuthResolver(oauth_auth, client)

    assert await resolver.resolve() == "Bearer fresh"
    assert httpx_mock.get_requests() == []


@pytest.mark.asyncio
async def test_token_without_expiry_is_never_refreshed(
    oauth_auth: OAuthAuth,
    token_store: InMemoryTokenStore,
    make_credential: Callable[..., OAuthCredential],
    client: httpx.AsyncClient,
) -> None:
    token_store.save(
        TEST_PROVIDER_ID, make_credential(access_token="forever", expires_in=None)
    )

    assert await GeminiAuthResolver(oauth_auth, client).resolve() == "Bearer forever"


@pytest.mark.asyncio
async def test_expiring_token_is_refreshed_and_saved(
    oauth_auth: OAuthAuth,
    token_store: InMemoryTokenStore,
    make_credential: Callable[..., OAuthCredential],
    client: httpx.AsyncClient,
    httpx_mock: HTTPXMock,
) -> None:
    # Inside the 30 second refresh buffer
    token_store.save(
        TEST_PROVIDER_ID,
        make_credential(access_token="stale", refresh_token="r1", expires_in=10),
    )
    httpx_mock.add_response(
        method="POST",
        url=TOKEN_URI,
        json={"access_token": "renewed", "expires_in": 3600, "token_type": "Bearer"},
    )

    header = await GeminiAuthResolver(oauth_auth, client).resolve()

    assert header == "Bearer renewed"
    stored = token_store.get(TEST_PROVIDER_ID)
    assert stored is not None
    assert stored.access_token == "renewed"
    assert stored.refresh_token == "r1"
    assert len(httpx_mock.get_requests()) == 1


@pytest.mark.asyncio
async def test_expired_token_refresh_failure_raises(
    oauth_auth: OAuthAuth,
    token_store: InMemoryTokenStore,
    make_credential: Callable[..., OAuthCredential],
    client: httpx.AsyncClient,
    httpx_mock: HTTPXMock,
) -> None:
    token_store.save(TEST_PROVIDER_ID, make_credential(expires_in=-60))
    httpx_mock.add_response(
        method="POST", url=TOKEN_URI, status_code=400, json={"error": "invalid_grant"}
    )

    with pytest.raises(AuthenticationError, match="Failed to refresh OAuth token"):
        await GeminiAuthResolver(oauth_auth, client).resolve()


@pytest.mark.asyncio
async def test_expired_token_without_refresh_token_raises(
    oauth_auth: OAuthAuth,
    token_store: InMemoryTokenStore,
    make_credential: Callable[..., OAuthCredential],
    client: httpx.AsyncClient,
) -> None:
    token_store.save(
        TEST_PROVIDER_ID, make_credential(refresh_token=None, expires_in=-60)
    )

    with pytest.raises(AuthenticationError, match="No refresh token available"):
        await GeminiAuthResolver(oauth_auth, client).resolve()


@pytest.mark.asyncio
@pytest.mark.parametrize("client_file_bytes", [b"[1, 2]", b"\xff\xfe\x00"])
async def test_unusable_oauth_client_file_still_attempts_refresh(
    client_file_bytes: bytes,
    oauth_auth: OAuthAuth,
    token_store: InMemoryTokenStore,
    make_credential: Callable[..., OAuthCredential],
    client: httpx.AsyncClient,
    httpx_mock: HTTPXMock,
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    monkeypatch.delenv("GEMINI_OAUTH_CLIENT_ID")
    monkeypatch.delenv("GEMINI_OAUTH_CLIENT_SECRET")
    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    (tmp_path / ".gemini").mkdir()
    (tmp_path / ".gemini" / "oauth_client.json").write_bytes(client_file_bytes)
    token_store.save(TEST_PROVIDER_ID, make_credential(expires_in=-60))
    httpx_mock.add_response(
        method="POST", url=TOKEN_URI, status_code=401, json={"error": "invalid_client"}
    )

    with pytest.raises(AuthenticationError, match="Failed to refresh OAuth token"):
        await GeminiAuthResolver(oauth_auth, client).resolve()

    request = httpx_mock.get_request()
    assert request is not None
    assert parse_qs(request.content.decode(), keep_blank_values=True)["client_id"] == [
        ""
    ]


@pytest.mark.asyncio
async def test_undecodable_credentials_file_means_no_token(
    client: httpx.AsyncClient, tmp_path: Path
) -> None:
    (tmp_path / f"{TEST_PROVIDER_ID}.json").write_bytes(b"\xff\xfe")
    auth = OAuthAuth(provider_id=TEST_PROVIDER_ID, token_store=FileTokenStore(tmp_path))

    with pytest.raises(AuthenticationError, match="No OAuth token found"):
        await GeminiAuthResolver(auth, client).resolve()


@pytest.mark.asyncio
async def test_debug_log_masks_stored_token(
    oauth_auth: OAuthAuth,
    token_store: InMemoryTokenStore,
    make_credential: Callable[..., OAuthCredential],
    client: httpx.AsyncClient,
    caplog: pytest.LogCaptureFixture,
) -> None:
    token_store.save(TEST_PROVIDER_ID, make_credential(access_token="ya29.secretvalue"))

    with caplog.at_level(logging.DEBUG, logger="gemini_bridge.connectors.gemini_auth"):
        await GeminiAuthResolver(oauth_auth, client).resolve()

    assert "ya***ue" in caplog.text
    assert "ya29.secretvalue" not in caplog.text
