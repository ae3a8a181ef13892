# === NAVMAP v1 ===
# {
#   "module": "ScanBridge.network.policy",
#   "purpose": "HTTP policy constants and defaults.",
#   "sections": []
# }
# === /NAVMAP ===

"""HTTP policy constants and defaults.

Timeouts, pooling limits and retry classification shared by the client cache
and the Artifactory helpers. Values are tuned for a CI runner that talks to a
single artifact repository per job.
"""

# ============================================================================
# Timeout Budgets (seconds)
# ============================================================================

#: Connection establishment timeout
HTTP_CONNECT_TIMEOUT = 10.0

#: Read timeout; generous for slow mirrors serving large bridge bundles
HTTP_READ_TIMEOUT = 60.0

#: Write timeout (time to send request body)
HTTP_WRITE_TIMEOUT = 15.0

#: Pool timeout (acquiring a connection from the pool)
HTTP_POOL_TIMEOUT = 5.0


# ============================================================================
# Connection Pooling
# ============================================================================

MAX_CONNECTIONS = 20

MAX_KEEPALIVE_CONNECTIONS = 10

KEEPALIVE_EXPIRY = 5.0

#: Artifactory redirects bundle downloads to storage backends
FOLLOW_REDIRECTS = True


# ============================================================================
# Environment switches
# ============================================================================

#: Set to "true" to disable certificate validation
ENV_SSL_TRUST_ALL = "NETWORK_SSL_TRUST_ALL"

#: Path to a PEM file used as the only trust anchor
ENV_SSL_CERT_FILE = "NETWORK_SSL_CERT_FILE"


# ============================================================================
# User-Agent
# ============================================================================

DEFAULT_USER_AGENT = "ScanBridge"


# ============================================================================
# Retry classification
# ============================================================================

#: Statuses that settle a request; anything else is retried
NON_RETRY_HTTP_CODES = frozenset({200, 201, 401, 403, 416})

HTTP_STATUS_OK = 200


__all__ = [
    "HTTP_CONNECT_TIMEOUT",
    "HTTP_READ_TIMEOUT",
    "HTTP_WRITE_TIMEOUT",
    "HTTP_POOL_TIMEOUT",
    "MAX_CONNECTIONS",
    "MAX_KEEPALIVE_CONNECTIONS",
    "KEEPALIVE_EXPIRY",
    "FOLLOW_REDIRECTS",
    "ENV_SSL_TRUST_ALL",
    "ENV_SSL_CERT_FILE",
    "DEFAULT_USER_AGENT",
    "NON_RETRY_HTTP_CODES",
    "HTTP_STATUS_OK",
]
