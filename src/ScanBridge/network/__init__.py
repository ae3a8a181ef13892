"""Network subsystem: SSL-aware HTTP client cache and async retry engine.

Modules:
- client: HTTPX client cache keyed by the SSL policy from the environment
- policy: HTTP policy constants (timeouts, pooling, retry classification)
- retry: Tenacity-based retry engine for async operations

Example:
    >>> from ScanBridge.network import RetryEngine, get_shared_http_client
    >>> engine = RetryEngine(max_retries=3, delay_milliseconds=15000)
    >>> client = get_shared_http_client()
"""

from ScanBridge.network.client import (
    ClientCacheEntry,
    HttpClientCache,
    SslPolicy,
    build_http_client,
    clear_http_client_cache,
    create_ssl_context,
    get_default_cache,
    get_shared_http_client,
    resolve_ssl_policy,
)
from ScanBridge.network.policy import (
    DEFAULT_USER_AGENT,
    NON_RETRY_HTTP_CODES,
)
from ScanBridge.network.retry import RetryEngine, RetryPolicy, always_retry

__all__ = [
    # Client cache
    "SslPolicy",
    "ClientCacheEntry",
    "HttpClientCache",
    "resolve_ssl_policy",
    "create_ssl_context",
    "build_http_client",
    "get_default_cache",
    "get_shared_http_client",
    "clear_http_client_cache",
    # Policy
    "DEFAULT_USER_AGENT",
    "NON_RETRY_HTTP_CODES",
    # Retry
    "RetryEngine",
    "RetryPolicy",
    "always_retry",
]
