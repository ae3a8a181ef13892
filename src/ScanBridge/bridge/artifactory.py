"""Artifactory lookups for published bridge versions.

Every GET goes through the shared :class:`~ScanBridge.network.client.HttpClientCache`
and is retried by a :class:`~ScanBridge.network.retry.RetryEngine`:

- statuses outside :data:`~ScanBridge.network.policy.NON_RETRY_HTTP_CODES`
  raise :class:`~ScanBridge.errors.RetryableStatusError` and are retried,
- ``httpx.TransportError`` (connect/read failures, timeouts) is retried,
- anything else propagates on the first failure.

A settled but unsuccessful status (401, 403, 416, 201), or a transient failure
that outlives the retry budget, yields an empty result with a warning; callers
decide whether that is fatal.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

import httpx

from ..errors import BridgeVersionError, RetryableStatusError
from ..network.client import HttpClientCache, get_default_cache
from ..network.policy import HTTP_STATUS_OK, NON_RETRY_HTTP_CODES
from ..network.retry import RetryEngine
from .versions import BRIDGE_CLI_BUNDLE, parse_available_versions, parse_latest_versions_listing

__all__ = ["ArtifactoryClient", "is_retryable_http_error"]

logger = logging.getLogger(__name__)


def is_retryable_http_error(exc: BaseException) -> bool:
    """Return ``True`` for transient HTTP failures."""
    return isinstance(exc, (RetryableStatusError, httpx.TransportError))


class ArtifactoryClient:
    """Fetch bridge version listings from an Artifactory repository.

    Args:
        cache: Source of the HTTP client; defaults to the process-wide cache.
        retry_engine: Retry policy for each GET; defaults to no retries.
    """

    def __init__(
        self,
        cache: Optional[HttpClientCache] = None,
        retry_engine: Optional[RetryEngine] = None,
    ) -> None:
        self._cache = cache or get_default_cache()
        self._retry_engine = retry_engine or RetryEngine(max_retries=0, delay_milliseconds=0)

    async def _get(self, url: str) -> Optional[httpx.Response]:
        """GET ``url`` with retries; ``None`` once transient failures exhaust the budget."""

        def _request() -> httpx.Response:
            response = self._cache.get_client().get(url)
            if response.status_code not in NON_RETRY_HTTP_CODES:
                raise RetryableStatusError(response.status_code, url)
            return response

        async def _operation() -> httpx.Response:
            return await asyncio.to_thread(_request)

        try:
            return await self._retry_engine.execute(_operation, is_retryable_http_error)
        except (RetryableStatusError, httpx.TransportError) as exc:
            logger.debug("Giving up on %s: %s", url, exc)
            return None

    async def fetch_latest_version(self, url: str, bridge_type: str = BRIDGE_CLI_BUNDLE) -> str:
        """Return the latest ``bridge_type`` version advertised at ``url``.

        Args:
            url: Location of the remote ``versions.txt``.
            bridge_type: Bridge artifact name to look up.

        Returns:
            The version string, or ``""`` when the listing is unavailable or
            does not mention ``bridge_type``.
        """
        response = await self._get(url)
        if response is None or response.status_code != HTTP_STATUS_OK:
            logger.warning(
                "Unable to retrieve the most recent version from Artifactory URL",
                extra={"url": url, "status": response.status_code if response is not None else None},
            )
            return ""
        version = parse_latest_versions_listing(response.text, bridge_type)
        logger.debug("Latest %s version: %s", bridge_type, version or "<none>")
        return version

    async def require_latest_version(self, url: str, bridge_type: str = BRIDGE_CLI_BUNDLE) -> str:
        """Like :meth:`fetch_latest_version` but fail when nothing was found.

        Raises:
            BridgeVersionError: If no version could be determined.
        """
        version = await self.fetch_latest_version(url, bridge_type)
        if not version:
            raise BridgeVersionError(
                f"Unable to determine the latest {bridge_type} version from {url}"
            )
        return version

    async def fetch_available_versions(self, url: str) -> List[str]:
        """List the bridge versions linked from the Artifactory index at ``url``."""
        response = await self._get(url)
        if response is None or response.status_code != HTTP_STATUS_OK:
            logger.warning(
                "Unable to retrieve the Bridge Versions from Artifactory",
                extra={"url": url, "status": response.status_code if response is not None else None},
            )
            return []
        return parse_available_versions(response.text)
