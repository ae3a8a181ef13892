# === NAVMAP v1 ===
# {
#   "module": "ScanBridge.network.client",
#   "purpose": "SSL-policy-aware HTTPX client cache.",
#   "sections": [
#     {"id": "sslpolicy", "name": "SslPolicy", "anchor": "class-sslpolicy", "kind": "class"},
#     {"id": "resolve-ssl-policy", "name": "resolve_ssl_policy", "anchor": "function-resolve-ssl-policy", "kind": "function"},
#     {"id": "create-ssl-context", "name": "create_ssl_context", "anchor": "function-create-ssl-context", "kind": "function"},
#     {"id": "build-http-client", "name": "build_http_client", "anchor": "function-build-http-client", "kind": "function"},
#     {"id": "httpclientcache", "name": "HttpClientCache", "anchor": "class-httpclientcache", "kind": "class"},
#     {"id": "shared-client", "name": "get_shared_http_client", "anchor": "function-get-shared-http-client", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""HTTPX client cache keyed by SSL policy.

Building an ``httpx.Client`` is not free: it creates an SSL context (parsing
a CA bundle) and a connection pool. Callers ask for a client many times per
job, so the cache hands back the same instance for as long as the SSL policy
stays the same.

Key design:
- **Policy resolved per call**: ``NETWORK_SSL_TRUST_ALL`` and
  ``NETWORK_SSL_CERT_FILE`` are read on every :meth:`HttpClientCache.get_client`
  call. A change in either discards the cached client and builds a new one.
- **Single slot**: only the client for the current policy is kept.
- **User agent is not a key**: it is applied when a client is built; a cached
  client keeps the agent it was built with.
- **Thread-safe**: check, build and store happen under one lock.
- **Failures are not cached**: a bad CA path raises from ``get_client`` and
  leaves the cache empty.

Example:
    >>> from ScanBridge.network.client import HttpClientCache
    >>> cache = HttpClientCache()
    >>> client = cache.get_client()
    >>> client is cache.get_client()
    True
    >>> cache.clear()
"""

from __future__ import annotations

import logging
import ssl
import threading
from dataclasses import dataclass
from typing import Callable, Optional

import certifi
import httpx

from .policy import (
    DEFAULT_USER_AGENT,
    ENV_SSL_TRUST_ALL,
    FOLLOW_REDIRECTS,
    HTTP_CONNECT_TIMEOUT,
    HTTP_POOL_TIMEOUT,
    HTTP_READ_TIMEOUT,
    HTTP_WRITE_TIMEOUT,
    KEEPALIVE_EXPIRY,
    MAX_CONNECTIONS,
    MAX_KEEPALIVE_CONNECTIONS,
)

logger = logging.getLogger(__name__)

PolicyResolver = Callable[[], "SslPolicy"]
ClientFactory = Callable[["SslPolicy", str], httpx.Client]


# ============================================================================
# SSL Policy
# ============================================================================


@dataclass(frozen=True)
class SslPolicy:
    """SSL settings a client was (or will be) built from."""

    trust_all_certificates: bool = False
    custom_ca_certificate_path: Optional[str] = None


def resolve_ssl_policy() -> SslPolicy:
    """Read the current SSL policy from the environment."""
    # Imported here to avoid a circular import with ScanBridge.settings
    from ScanBridge.settings import load_network_settings

    settings = load_network_settings()
    return SslPolicy(
        trust_all_certificates=settings.ssl_trust_all,
        custom_ca_certificate_path=settings.ssl_cert_file,
    )


def create_ssl_context(policy: SslPolicy) -> ssl.SSLContext:
    """Create the SSL context for ``policy``.

    - Trust-all: no hostname check, no certificate validation.
    - Custom CA: the PEM file at the configured path is the only trust anchor.
    - Otherwise: the certifi bundle.

    Raises:
        OSError: If the custom CA file cannot be read.
        ssl.SSLError: If the custom CA file holds no usable certificate.
    """
    if policy.trust_all_certificates:
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        logger.warning("TLS certificate validation DISABLED (%s=true)", ENV_SSL_TRUST_ALL)
        return ctx

    if policy.custom_ca_certificate_path:
        ctx = ssl.create_default_context(cafile=policy.custom_ca_certificate_path)
        logger.debug(
            "Loaded custom CA certificate",
            extra={"cafile": policy.custom_ca_certificate_path},
        )
        return ctx

    return ssl.create_default_context(cafile=certifi.where())


def build_http_client(policy: SslPolicy, user_agent: str) -> httpx.Client:
    """Create an HTTPX client configured for ``policy`` and ``user_agent``."""
    ssl_ctx = create_ssl_context(policy)
    client = httpx.Client(
        verify=ssl_ctx,
        headers={"User-Agent": user_agent},
        timeout=httpx.Timeout(
            connect=HTTP_CONNECT_TIMEOUT,
            read=HTTP_READ_TIMEOUT,
            write=HTTP_WRITE_TIMEOUT,
            pool=HTTP_POOL_TIMEOUT,
        ),
        limits=httpx.Limits(
            max_connections=MAX_CONNECTIONS,
            max_keepalive_connections=MAX_KEEPALIVE_CONNECTIONS,
            keepalive_expiry=KEEPALIVE_EXPIRY,
        ),
        follow_redirects=FOLLOW_REDIRECTS,
    )
    logger.debug(
        "HTTPX client created",
        extra={
            "trust_all": policy.trust_all_certificates,
            "cafile": policy.custom_ca_certificate_path,
            "user_agent": user_agent,
        },
    )
    return client


# ============================================================================
# Cache
# ============================================================================


@dataclass
class ClientCacheEntry:
    """The cached client together with the policy it was built from."""

    client: httpx.Client
    policy: SslPolicy


class HttpClientCache:
    """Single-slot cache of HTTPX clients keyed by :class:`SslPolicy`.

    Args:
        policy_resolver: Returns the SSL policy in force right now.
        client_factory: Builds a client from a policy and a user agent.
    """

    def __init__(
        self,
        policy_resolver: PolicyResolver = resolve_ssl_policy,
        client_factory: ClientFactory = build_http_client,
    ) -> None:
        self._policy_resolver = policy_resolver
        self._client_factory = client_factory
        self._entry: Optional[ClientCacheEntry] = None
        self._lock = threading.Lock()

    @property
    def entry(self) -> Optional[ClientCacheEntry]:
        return self._entry

    def get_client(self, user_agent: Optional[str] = None) -> httpx.Client:
        """Return the client for the current SSL policy, building it if needed.

        Args:
            user_agent: Agent used when a client has to be built. Ignored when
                the cached client is reused.

        Returns:
            The cached client when the SSL policy is unchanged, otherwise a
            newly built one.
        """
        with self._lock:
            policy = self._policy_resolver()
            entry = self._entry
            if entry is not None and entry.policy == policy:
                return entry.client

            if entry is not None:
                logger.debug(
                    "SSL policy changed; rebuilding HTTP client",
                    extra={"previous": entry.policy, "current": policy},
                )
                self._entry = None
                self._close_quietly(entry.client)

            client = self._client_factory(policy, user_agent or DEFAULT_USER_AGENT)
            self._entry = ClientCacheEntry(client=client, policy=policy)
            return client

    def clear(self) -> None:
        """Discard the cached client; the next lookup always rebuilds."""
        with self._lock:
            entry, self._entry = self._entry, None
        if entry is not None:
            self._close_quietly(entry.client)
            logger.debug("HTTP client cache cleared")

    close = clear

    @staticmethod
    def _close_quietly(client: httpx.Client) -> None:
        try:
            client.close()
        except Exception as e:  # pragma: no cover - close failures are not actionable
            logger.debug(f"Error closing HTTP client: {e}")


# ============================================================================
# Process-wide default
# ============================================================================

_default_cache = HttpClientCache()


def get_default_cache() -> HttpClientCache:
    """Return the process-wide cache used by the module-level helpers."""
    return _default_cache


def get_shared_http_client(user_agent: Optional[str] = None) -> httpx.Client:
    """Return the client from the process-wide cache."""
    return _default_cache.get_client(user_agent)


def clear_http_client_cache() -> None:
    """Discard the client held by the process-wide cache."""
    _default_cache.clear()


__all__ = [
    "SslPolicy",
    "ClientCacheEntry",
    "HttpClientCache",
    "resolve_ssl_policy",
    "create_ssl_context",
    "build_http_client",
    "get_default_cache",
    "get_shared_http_client",
    "clear_http_client_cache",
]
