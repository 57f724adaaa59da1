"""
httpx authentication using Google Application Default Credentials.

Vertex AI requests carry no adapter-managed credential; the transport attaches
whatever the environment provides (service account, gcloud user login,
metadata server).
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import AsyncGenerator, Generator
from typing import Any

import google.auth
import google.auth.transport.requests
import httpx

logger = logging.getLogger(__name__)

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


class GoogleADCAuth(httpx.Auth):
    """Attach an ADC bearer token to every request without one.

    Credentials are discovered lazily on the first request and refreshed
    whenever they are no longer valid. The google-auth refresh is blocking, so
    the async flow runs it in a worker thread.
    """

    def __init__(self, scopes: list[str] | None = None) -> None:
        self.scopes = scopes or [CLOUD_PLATFORM_SCOPE]
        self._credentials: Any = None
        self._lock = threading.Lock()

    def _get_token(self) -> str:
        with self._lock:
            if self._credentials is None:
                self._credentials, project = google.auth.default(scopes=self.scopes)
                if logger.isEnabledFor(logging.INFO):
                    logger.info(
                        "Using Application Default Credentials (project: %s)", project
                    )
            if not self._credentials.valid:
                self._credentials.refresh(google.auth.transport.requests.Request())
            return self._credentials.token

    def sync_auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        # An explicit Authorization header (custom headers) takes precedence
        if "Authorization" not in request.headers:
            request.headers["Authorization"] = f"Bearer {self._get_token()}"
        yield request

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        if "Authorization" not in request.headers:
            token = await asyncio.to_thread(self._get_token)
            request.headers["Authorization"] = f"Bearer {token}"
        yield request
