"""Credential collaborators used by the Gemini connector."""

from gemini_bridge.auth.oauth_client import OAuthClient, OAuthConfig
from gemini_bridge.auth.token_store import (
    FileTokenStore,
    InMemoryTokenStore,
    OAuthCredential,
    TokenStore,
)

__all__ = [
    "FileTokenStore",
    "InMemoryTokenStore",
    "OAuthClient",
    "OAuthConfig",
    "OAuthCredential",
    "TokenStore",
]
