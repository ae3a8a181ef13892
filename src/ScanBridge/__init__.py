"""Helpers that prepare a scanning bridge invocation in CI pipelines.

The package bundles the infrastructure pieces the pipeline integrations share:

- :mod:`ScanBridge.network`: SSL-policy-aware HTTP client cache and an async
  fixed-delay retry engine
- :mod:`ScanBridge.versioning`: tolerant comparison of bridge version strings
- :mod:`ScanBridge.migrations`: version-gated rewriting of bridge input documents
- :mod:`ScanBridge.bridge`: bridge version discovery on Artifactory
"""

from __future__ import annotations

__version__ = "0.1.0"

from .errors import BridgeVersionError, ConfigDocumentError, RetryableStatusError, ScanBridgeError
from .migrations import downgrade_coverity_prcomment, reconcile_coverity_config
from .network import HttpClientCache, RetryEngine, clear_http_client_cache, get_shared_http_client
from .versioning import coerce_version, is_version_greater_or_equal, is_version_less

__all__ = [
    "__version__",
    "ScanBridgeError",
    "ConfigDocumentError",
    "RetryableStatusError",
    "BridgeVersionError",
    "HttpClientCache",
    "RetryEngine",
    "get_shared_http_client",
    "clear_http_client_cache",
    "coerce_version",
    "is_version_less",
    "is_version_greater_or_equal",
    "downgrade_coverity_prcomment",
    "reconcile_coverity_config",
]
