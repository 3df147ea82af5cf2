"""
Configuration helpers for the Sheets MCP server.

This module centralizes the Google API endpoints, service-account key loading,
default timeouts, and safety limits. No secrets are stored in the repository;
the key is read from environment or a local file if present.
"""

from __future__ import annotations

import base64
import binascii
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

# Google API endpoints
DEFAULT_SHEETS_BASE_URL = os.getenv("SHEETS_MCP_SHEETS_BASE_URL", "https://sheets.googleapis.com/v4")
DEFAULT_DRIVE_BASE_URL = os.getenv("SHEETS_MCP_DRIVE_BASE_URL", "https://www.googleapis.com/drive/v3")
SCOPES: Tuple[str, ...] = (
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.readonly",
)


def _load_timeout() -> float:
    raw_timeout = os.getenv("SHEETS_MCP_HTTP_TIMEOUT")
    if raw_timeout:
        try:
            return float(raw_timeout)
        except ValueError:
            return 30.0
    return 30.0


DEFAULT_TIMEOUT = _load_timeout()

# Service account key handling
SERVICE_ACCOUNT_KEY_ENV_VAR = "GOOGLE_SERVICE_ACCOUNT_KEY"
SERVICE_ACCOUNT_KEY_FILE_ENV_VAR = "GOOGLE_SERVICE_ACCOUNT_KEY_FILE"
DEFAULT_SERVICE_ACCOUNT_KEY_FILE = "service-account.json"

# Safety limits
MAX_SPREADSHEETS_LISTED = 50
LOG_LEVEL = os.getenv("SHEETS_MCP_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("SHEETS_MCP_LOG_FORMAT", "json")  # json or plain


def _parse_key(raw: str) -> Optional[Dict[str, Any]]:
    """Parse a service-account key given as raw JSON or base64-encoded JSON."""
    raw = raw.strip()
    if not raw:
        return None
    if not raw.startswith("{"):
        try:
            raw = base64.b64decode(raw, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return None
    try:
        parsed = json.loads(raw)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def load_service_account_info() -> Optional[Dict[str, Any]]:
    """
    Load the service-account key from environment or a local file.

    Returns:
        The parsed key mapping if available, otherwise None. The key is never
        logged or returned to callers.
    """
    env_key = os.getenv(SERVICE_ACCOUNT_KEY_ENV_VAR)
    if env_key:
        return _parse_key(env_key)

    key_path = os.getenv(SERVICE_ACCOUNT_KEY_FILE_ENV_VAR, DEFAULT_SERVICE_ACCOUNT_KEY_FILE)
    if key_path:
        path = Path(key_path)
        if path.is_file():
            return _parse_key(path.read_text(encoding="utf-8"))

    return None


@dataclass(frozen=True, slots=True)
class SheetsConfig:
    """Runtime configuration for Google Sheets and Drive access."""

    sheets_base_url: str = DEFAULT_SHEETS_BASE_URL
    drive_base_url: str = DEFAULT_DRIVE_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    service_account_info: Optional[Dict[str, Any]] = field(default=None, repr=False)
    scopes: Tuple[str, ...] = SCOPES
    max_spreadsheets: int = MAX_SPREADSHEETS_LISTED
    log_level: str = LOG_LEVEL
    log_format: str = LOG_FORMAT


default_config = SheetsConfig(service_account_info=load_service_account_info())
