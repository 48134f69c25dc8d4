"""Small HTTP-related constants shared across castor.

This module is intentionally tiny to avoid circular imports and drift.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    SDK_VERSION = version("castor-genai")
except PackageNotFoundError:
    SDK_VERSION = "0.0.0+unknown"

DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com"
DEFAULT_API_VERSION = "v1beta"

API_KEY_HEADER = "x-goog-api-key"
CLIENT_HEADER = "x-goog-api-client"
CLIENT_NAME = "castor-python"


def client_identifier(sdk_version: str = SDK_VERSION) -> str:
    """Return the value sent in the client-identifier header."""
    return f"{CLIENT_NAME}/{sdk_version}"
