"""HTTP client wrappers for the Google Sheets and Drive APIs."""

from .client import SheetsApiClient
from .errors import (
    CredentialsError,
    InvalidRangeError,
    PermissionDeniedError,
    QuotaExceededError,
    ServiceUnreachableError,
    SheetsApiError,
    SpreadsheetNotFoundError,
    UnauthorizedError,
)

__all__ = [
    "SheetsApiClient",
    "SheetsApiError",
    "CredentialsError",
    "UnauthorizedError",
    "PermissionDeniedError",
    "SpreadsheetNotFoundError",
    "InvalidRangeError",
    "QuotaExceededError",
    "ServiceUnreachableError",
]
