"""Shared pytest fixtures for the ScanBridge test suite."""

from __future__ import annotations

import logging
from typing import Callable, Iterator, List

import httpx
import pytest

from ScanBridge.logging_config import LOGGER_NAME
from ScanBridge.network.client import HttpClientCache, SslPolicy, clear_http_client_cache
from ScanBridge.settings import invalidate_settings_cache

_ENV_VARS = (
    "NETWORK_SSL_TRUST_ALL",
    "NETWORK_SSL_CERT_FILE",
    "SCANBRIDGE_RETRY_COUNT",
    "SCANBRIDGE_RETRY_DELAY_MILLISECONDS",
    "SCANBRIDGE_LOG_LEVEL",
    "SCANBRIDGE_LOG_JSON",
)


def _reset_package_logger() -> None:
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Start every test with no SSL/retry/logging overrides and empty caches."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    invalidate_settings_cache()
    clear_http_client_cache()
    yield
    clear_http_client_cache()
    invalidate_settings_cache()
    _reset_package_logger()


@pytest.fixture
def sleep_recorder() -> tuple[List[float], Callable[[float], object]]:
    """Return ``(sleeps, sleep)`` where ``sleep`` records delays instead of waiting."""
    sleeps: List[float] = []

    async def _sleep(delay: float) -> None:
        sleeps.append(delay)

    return sleeps, _sleep


@pytest.fixture
def mock_cache() -> Iterator[Callable[[Callable[[httpx.Request], httpx.Response]], HttpClientCache]]:
    """Build an :class:`HttpClientCache` whose clients use ``httpx.MockTransport``."""
    caches: List[HttpClientCache] = []

    def _factory(handler: Callable[[httpx.Request], httpx.Response]) -> HttpClientCache:
        def _client_factory(policy: SslPolicy, user_agent: str) -> httpx.Client:
            return httpx.Client(
                transport=httpx.MockTransport(handler),
                headers={"User-Agent": user_agent},
            )

        cache = HttpClientCache(policy_resolver=SslPolicy, client_factory=_client_factory)
        caches.append(cache)
        return cache

    yield _factory
    for cache in caches:
        cache.clear()
