"""Exception hierarchy shared by the bridge preparation helpers.

Preparing a bridge invocation spans HTTP discovery of published bridge
versions, construction of SSL-aware clients, and rewriting of the JSON input
documents the bridge consumes. This module groups the failure modes the
package raises itself; errors from the standard library (``OSError``,
``json.JSONDecodeError``) and from HTTPX are never wrapped and reach callers
unchanged.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "ScanBridgeError",
    "ConfigDocumentError",
    "RetryableStatusError",
    "BridgeVersionError",
    "BridgeDownloadError",
]


class ScanBridgeError(RuntimeError):
    """Base exception for bridge preparation failures."""


class ConfigDocumentError(ScanBridgeError):
    """Raised when a bridge input document lacks the expected structure."""

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class RetryableStatusError(ScanBridgeError):
    """Raised when an HTTP response carries a status worth retrying."""

    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(f"Request to {url} failed with HTTP status {status_code}")
        self.status_code = status_code
        self.url = url


class BridgeVersionError(ScanBridgeError):
    """Raised when no usable bridge version could be determined."""


class BridgeDownloadError(ScanBridgeError):
    """Raised when a bridge bundle cannot be downloaded or unpacked."""
