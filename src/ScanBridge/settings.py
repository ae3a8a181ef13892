# === NAVMAP v1 ===
# {
#   "module": "ScanBridge.settings",
#   "purpose": "Environment-backed settings models for network, retry, and logging behaviour",
#   "sections": [
#     {"id": "helpers", "name": "parse_to_boolean / clean_url", "anchor": "HLP", "kind": "helpers"},
#     {"id": "network", "name": "NetworkSettings", "anchor": "class-networksettings", "kind": "class"},
#     {"id": "retry", "name": "RetrySettings", "anchor": "class-retrysettings", "kind": "class"},
#     {"id": "logging", "name": "LoggingSettings", "anchor": "class-loggingsettings", "kind": "class"},
#     {"id": "aggregate", "name": "ScanBridgeSettings", "anchor": "class-scanbridgesettings", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Settings models for ScanBridge.

Configuration arrives through the CI runner's environment. Each concern gets a
small pydantic-settings model:

- ``NetworkSettings``: SSL policy switches (``NETWORK_SSL_TRUST_ALL``,
  ``NETWORK_SSL_CERT_FILE``). These are read fresh on every HTTP client
  lookup so a change in the environment is noticed by the client cache.
- ``RetrySettings``: retry budget for bridge downloads and version discovery
  (``SCANBRIDGE_RETRY_COUNT``, ``SCANBRIDGE_RETRY_DELAY_MILLISECONDS``).
- ``LoggingSettings``: level and output format (``SCANBRIDGE_LOG_LEVEL``,
  ``SCANBRIDGE_LOG_JSON``).

Example:
    >>> from ScanBridge.settings import get_settings
    >>> get_settings().retry.count
    3
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .network.policy import ENV_SSL_CERT_FILE, ENV_SSL_TRUST_ALL

__all__ = [
    "parse_to_boolean",
    "clean_url",
    "NetworkSettings",
    "RetrySettings",
    "LoggingSettings",
    "ScanBridgeSettings",
    "load_network_settings",
    "get_settings",
    "invalidate_settings_cache",
]


# ============================================================================
# Helpers
# ============================================================================


def parse_to_boolean(value: Any) -> bool:
    """Interpret ``value`` the way the action's string inputs are interpreted.

    Only the string ``"true"`` (any case) and the boolean ``True`` count as
    true; everything else, including ``"1"`` and ``"yes"``, is false.

    Examples:
        >>> parse_to_boolean("TRUE"), parse_to_boolean("1"), parse_to_boolean(None)
        (True, False, False)
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() == "true"


def clean_url(url: str) -> str:
    """Strip a single trailing slash from ``url``."""
    return url[:-1] if url.endswith("/") else url


# ============================================================================
# Domain models
# ============================================================================


class NetworkSettings(BaseSettings):
    """SSL policy inputs shared by every outbound HTTP request."""

    model_config = SettingsConfigDict(
        frozen=True, case_sensitive=False, extra="ignore"
    )

    ssl_trust_all: bool = Field(
        default=False,
        validation_alias=ENV_SSL_TRUST_ALL,
        description="Disable certificate-chain validation entirely",
    )
    ssl_cert_file: Optional[str] = Field(
        default=None,
        validation_alias=ENV_SSL_CERT_FILE,
        description="Path to a PEM bundle used as the trust anchor",
    )

    @field_validator("ssl_trust_all", mode="before")
    @classmethod
    def _coerce_trust_all(cls, v: Any) -> bool:
        return parse_to_boolean(v)

    @field_validator("ssl_cert_file", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        text = str(v).strip()
        return text or None


class RetrySettings(BaseSettings):
    """Retry budget for bridge downloads and version discovery."""

    model_config = SettingsConfigDict(
        env_prefix="SCANBRIDGE_RETRY_", frozen=True, case_sensitive=False, extra="ignore"
    )

    count: int = Field(default=3, ge=0, le=20, description="Additional attempts after the first")
    delay_milliseconds: int = Field(
        default=15000,
        ge=0,
        le=600_000,
        description="Pause between attempts in milliseconds",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SCANBRIDGE_LOG_",
        frozen=True,
        case_sensitive=False,
        extra="ignore",
    )

    level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    json_output: bool = Field(
        default=False,
        validation_alias="SCANBRIDGE_LOG_JSON",
        description="Emit JSON-formatted log lines",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Normalize and validate logging level."""
        upper = str(v).upper()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if upper not in valid_levels:
            raise ValueError(f"level must be one of {sorted(valid_levels)}, got '{v}'")
        return upper

    def level_int(self) -> int:
        """Convert level string to logging module integer."""
        return getattr(logging, self.level)


class ScanBridgeSettings(BaseModel):
    """Aggregate of every settings domain."""

    model_config = ConfigDict(frozen=True)

    network: NetworkSettings = Field(default_factory=NetworkSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# ============================================================================
# Accessors
# ============================================================================

_SETTINGS_CACHE: Optional[ScanBridgeSettings] = None
_SETTINGS_LOCK = threading.Lock()


def load_network_settings() -> NetworkSettings:
    """Read the SSL policy inputs from the current environment (never cached)."""
    return NetworkSettings()


def get_settings() -> ScanBridgeSettings:
    """Return memoised settings built from the environment."""

    global _SETTINGS_CACHE  # noqa: PLW0603

    with _SETTINGS_LOCK:
        if _SETTINGS_CACHE is None:
            _SETTINGS_CACHE = ScanBridgeSettings()
        return _SETTINGS_CACHE


def invalidate_settings_cache() -> None:
    """Drop the memoised settings so the next access re-reads the environment."""

    global _SETTINGS_CACHE  # noqa: PLW0603

    with _SETTINGS_LOCK:
        _SETTINGS_CACHE = None
