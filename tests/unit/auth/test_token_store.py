import json
import time
from collections.abc import Callable
from pathlib import Path

import pytest
from gemini_bridge.auth.token_store import (
    TOKEN_EXPIRY_BUFFER_SECONDS,
    FileTokenStore,
    InMemoryTokenStore,
    OAuthCredential,
)


class TestNeedsRefresh:
    def test_fresh_token(
        self,
        token_store: InMemoryTokenStore,
        make_credential: Callable[..., OAuthCredential],
    ) -> None:
        assert not token_store.needs_refresh(make_credential(expires_in=3600))

    def test_expired_token(
        self,
        token_store: InMemoryTokenStore,
        make_credential: Callable[..., OAuthCredential],
    ) -> None:
        assert token_store.needs_refresh(make_credential(expires_in=-5))

    def test_token_inside_buffer(
        self,
        token_store: InMemoryTokenStore,
        make_credential: Callable[..., OAuthCredential],
    ) -> None:
        expires_in = TOKEN_EXPIRY_BUFFER_SECONDS - 5
        assert token_store.needs_refresh(make_credential(expires_in=expires_in))

    def test_no_expiry_never_refreshes(
        self,
        token_store: InMemoryTokenStore,
        make_credential: Callable[..., OAuthCredential],
    ) -> None:
        assert not token_store.needs_refresh(make_credential(expires_in=None))

    def test_custom_buffer(
        self, make_credential: Callable[..., OAuthCredential]
    ) -> None:
        store = InMemoryTokenStore(refresh_buffer_seconds=600)

        assert store.needs_refresh(make_credential(expires_in=300))


def test_seconds_until_expiry_uses_milliseconds() -> None:
    credential = OAuthCredential(access_token="a", expiry_date=1_000_000)

    assert credential.seconds_until_expiry(now=990.0) == pytest.approx(10.0)
    assert OAuthCredential(access_token="a").seconds_until_expiry() is None


def test_in_memory_store_round_trip(
    make_credential: Callable[..., OAuthCredential],
) -> None:
    credential = make_credential()
    store = InMemoryTokenStore({"p": credential})

    assert store.get("p") == credential
    assert store.get("other") is None


class TestFileTokenStore:
    def test_missing_file_returns_none(self, tmp_path: Path) -> None:
        assert FileTokenStore(tmp_path).get("gemini") is None

    def test_save_then_get(
        self, tmp_path: Path, make_credential: Callable[..., OAuthCredential]
    ) -> None:
        store = FileTokenStore(tmp_path / "nested")
        credential = make_credential(access_token="abc", refresh_token="def")

        store.save("gemini", credential)

        assert (tmp_path / "nested" / "gemini.json").exists()
        assert store.get("gemini") == credential

    def test_reads_gemini_cli_credentials_file(self, tmp_path: Path) -> None:
        expiry = int((time.time() + 3600) * 1000)
        (tmp_path / "gemini.json").write_text(
            json.dumps(
                {
                    "access_token": "ya29.token",
                    "refresh_token": "1//refresh",
                    "token_type": "Bearer",
                    "expiry_date": expiry,
                    "scope": "https://www.googleapis.com/auth/cloud-platform",
                    "id_token": "ignored",
                }
            ),
            encoding="utf-8",
        )

        credential = FileTokenStore(tmp_path).get("gemini")

        assert credential is not None
        assert credential.access_token == "ya29.token"
        assert credential.expiry_date == expiry

    def test_corrupt_file_returns_none(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        (tmp_path / "gemini.json").write_text("{not json", encoding="utf-8")

        assert FileTokenStore(tmp_path).get("gemini") is None
        assert "Ignoring unreadable OAuth credentials" in caplog.text

    def test_file_without_access_token_returns_none(self, tmp_path: Path) -> None:
        (tmp_path / "gemini.json").write_text(
            json.dumps({"refresh_token": "r"}), encoding="utf-8"
        )

        assert FileTokenStore(tmp_path).get("gemini") is None

    def test_undecodable_file_returns_none(self, tmp_path: Path) -> None:
        (tmp_path / "gemini.json").write_bytes(b"\xff\xfe")

        assert FileTokenStore(tmp_path).get("gemini") is None
