"""Service-account access tokens for the Google APIs."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Sequence

import google.auth.exceptions
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from .errors import CredentialsError

logger = logging.getLogger(__name__)


class ServiceAccountTokenSource:
    """Lazily builds service-account credentials and hands out valid bearer tokens."""

    def __init__(self, info: Optional[Dict[str, Any]], scopes: Sequence[str]) -> None:
        self._info = info
        self._scopes = list(scopes)
        self._credentials: Optional[service_account.Credentials] = None
        self._lock = asyncio.Lock()

    def _build_credentials(self) -> service_account.Credentials:
        if not self._info:
            raise CredentialsError("Service account key is not configured.")
        try:
            return service_account.Credentials.from_service_account_info(self._info, scopes=self._scopes)
        except (ValueError, KeyError) as exc:
            raise CredentialsError("Service account key is invalid.") from exc

    async def token(self) -> str:
        async with self._lock:
            if self._credentials is None:
                self._credentials = self._build_credentials()
            if not self._credentials.valid:
                # google-auth refreshes synchronously over requests.
                try:
                    await asyncio.to_thread(self._credentials.refresh, GoogleAuthRequest())
                except google.auth.exceptions.GoogleAuthError as exc:
                    logger.warning("Service account token refresh failed")
                    raise CredentialsError("Failed to obtain an access token.") from exc
            return self._credentials.token
