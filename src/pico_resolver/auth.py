"""Bearer tokens for the Vertex AI REST endpoints.

``GoogleAccessTokenProvider`` loads a service-account key from
``ResolverSettings`` (or falls back to application default credentials) and
refreshes it off the event loop, since google-auth refreshes synchronously.
"""

import asyncio
from typing import Any, Optional

import google.auth
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from .config import ResolverSettings
from .exceptions import ResolverConfigurationError
from .logging import get_logger

logger = get_logger(__name__)

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


class GoogleAccessTokenProvider:
    def __init__(self, settings: ResolverSettings):
        self.settings = settings
        self._credentials: Optional[Any] = None
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop: Optional[asyncio.AbstractEventLoop] = None

    def _current_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    def _load_credentials(self) -> Any:
        try:
            info = self.settings.service_account_info()
        except ValueError as exc:
            raise ResolverConfigurationError(str(exc)) from exc

        try:
            if info is not None:
                logger.debug("Using service account credentials for %s", info.get("client_email", "<unknown>"))
                return service_account.Credentials.from_service_account_info(info, scopes=[CLOUD_PLATFORM_SCOPE])
            credentials, _ = google.auth.default(scopes=[CLOUD_PLATFORM_SCOPE])
            logger.debug("Using application default credentials")
            return credentials
        except (GoogleAuthError, ValueError) as exc:
            raise ResolverConfigurationError(f"Google Cloud authentication failed: {exc}") from exc

    async def get_token(self) -> str:
        async with self._current_lock():
            if self._credentials is None:
                self._credentials = self._load_credentials()

            credentials = self._credentials
            if not credentials.valid:
                try:
                    await asyncio.to_thread(credentials.refresh, Request())
                except GoogleAuthError as exc:
                    raise ResolverConfigurationError(f"Unable to generate an access token: {exc}") from exc

            if not credentials.token:
                raise ResolverConfigurationError("Failed to obtain access token from credentials")
            return credentials.token
