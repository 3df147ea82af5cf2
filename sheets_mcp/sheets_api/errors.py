"""Exceptions raised by the Google Sheets/Drive client."""

from __future__ import annotations

from typing import Optional


class SheetsApiError(Exception):
    """Base exception for Google Sheets and Drive API errors."""

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class CredentialsError(SheetsApiError):
    """Raised when the service-account key is missing or cannot mint a token."""


class UnauthorizedError(SheetsApiError):
    """Raised when Google rejects the access token."""


class PermissionDeniedError(SheetsApiError):
    """Raised when the service account lacks access to the document."""


class SpreadsheetNotFoundError(SheetsApiError):
    """Raised when a spreadsheet or sheet does not exist."""


class InvalidRangeError(SheetsApiError):
    """Raised when A1 range notation cannot be parsed."""


class QuotaExceededError(SheetsApiError):
    """Raised when the API rate limit or quota is exhausted."""


class ServiceUnreachableError(SheetsApiError):
    """Raised when the Google API cannot be reached."""
