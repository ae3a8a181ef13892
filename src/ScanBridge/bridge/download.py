# === NAVMAP v1 ===
# {
#   "module": "ScanBridge.bridge.download",
#   "purpose": "Download, unpack and install bridge bundles from Artifactory.",
#   "sections": [
#     {"id": "validate-bridge-url", "name": "validate_bridge_url", "anchor": "function-validate-bridge-url", "kind": "function"},
#     {"id": "bridgedownloader", "name": "BridgeDownloader", "anchor": "class-bridgedownloader", "kind": "class"},
#     {"id": "extract-bridge", "name": "extract_bridge", "anchor": "function-extract-bridge", "kind": "function"},
#     {"id": "is-bridge-installed", "name": "is_bridge_installed", "anchor": "function-is-bridge-installed", "kind": "function"},
#     {"id": "install-bridge", "name": "install_bridge", "anchor": "function-install-bridge", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Bridge bundle installation.

A bundle is a zip archive published per version and platform. Installing one
means streaming it to a temporary ``.part`` file, extracting it into a staging
directory, and moving the unpacked tree to ``<install_dir>/<bridge_type>-<platform>``.
The install directory carries a ``versions.txt``; when it already lists the
requested version the download is skipped.

Downloads share the HTTP client cache and retry engine used by the Artifactory
lookups. A 404 means the URL does not exist for the platform and fails
immediately; other unexpected statuses and transport errors are retried.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import tempfile
import zipfile
from pathlib import Path, PurePosixPath
from typing import Optional, Union

import httpx

from ..errors import BridgeDownloadError, RetryableStatusError
from ..network.client import HttpClientCache, get_default_cache
from ..network.policy import HTTP_STATUS_OK, NON_RETRY_HTTP_CODES
from ..network.retry import RetryEngine
from .artifactory import is_retryable_http_error
from .versions import BRIDGE_CLI_BUNDLE, is_version_in_content

__all__ = [
    "DEFAULT_ARCHIVE_NAME",
    "VERSIONS_FILE",
    "BridgeDownloader",
    "bridge_install_path",
    "extract_bridge",
    "install_bridge",
    "is_bridge_installed",
    "validate_bridge_url",
]

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_NAME = "bridge.zip"
VERSIONS_FILE = "versions.txt"

_CHUNK_SIZE = 1 << 20
_HTTP_NOT_FOUND = 404

PathLike = Union[str, os.PathLike]


# ============================================================================
# URL handling
# ============================================================================


def validate_bridge_url(url: Optional[str]) -> httpx.URL:
    """Parse ``url`` and make sure it can be downloaded from.

    Raises:
        BridgeDownloadError: If ``url`` is empty, malformed, not HTTP(S), or
            has no host.
    """
    if not url or not url.strip():
        raise BridgeDownloadError("Bridge CLI URL cannot be empty")
    try:
        parsed = httpx.URL(url.strip())
    except httpx.InvalidURL as exc:
        raise BridgeDownloadError(f"Invalid Bridge CLI URL: {url}") from exc
    if parsed.scheme not in {"http", "https"} or not parsed.host:
        raise BridgeDownloadError(f"Invalid Bridge CLI URL: {url}")
    return parsed


def _archive_name(url: httpx.URL) -> str:
    name = PurePosixPath(url.path).name
    return name or DEFAULT_ARCHIVE_NAME


def bridge_install_path(
    install_dir: PathLike, platform: str, bridge_type: str = BRIDGE_CLI_BUNDLE
) -> Path:
    """Return the directory a ``bridge_type`` build for ``platform`` is installed to."""
    return Path(install_dir) / f"{bridge_type}-{platform}"


# ============================================================================
# Download
# ============================================================================


class BridgeDownloader:
    """Stream bridge archives to disk with retries.

    Args:
        cache: Source of the HTTP client; defaults to the process-wide cache.
        retry_engine: Retry policy for each download; defaults to no retries.
    """

    def __init__(
        self,
        cache: Optional[HttpClientCache] = None,
        retry_engine: Optional[RetryEngine] = None,
    ) -> None:
        self._cache = cache or get_default_cache()
        self._retry_engine = retry_engine or RetryEngine(max_retries=0, delay_milliseconds=0)

    def _stream_to(self, url: str, target: Path) -> Path:
        part_path = target.with_suffix(target.suffix + ".part")
        client = self._cache.get_client()
        with client.stream("GET", url) as response:
            status = response.status_code
            if status == _HTTP_NOT_FOUND:
                raise BridgeDownloadError(
                    f"Bridge CLI URL is not valid for this platform: {url}"
                )
            if status not in NON_RETRY_HTTP_CODES:
                raise RetryableStatusError(status, url)
            if status != HTTP_STATUS_OK:
                raise BridgeDownloadError(
                    f"Bridge CLI download from {url} failed with HTTP status {status}"
                )
            try:
                with part_path.open("wb") as stream:
                    for chunk in response.iter_bytes(_CHUNK_SIZE):
                        if chunk:
                            stream.write(chunk)
            except (OSError, httpx.TransportError):
                part_path.unlink(missing_ok=True)
                raise
        os.replace(part_path, target)
        return target

    async def download(self, url: str, destination_dir: PathLike) -> Path:
        """Download the archive at ``url`` into ``destination_dir``.

        The file keeps the last segment of the URL path as its name, or
        ``bridge.zip`` when the path has none.

        Args:
            url: Location of the bridge archive.
            destination_dir: Existing or new directory for the archive.

        Returns:
            Path of the downloaded archive.

        Raises:
            BridgeDownloadError: If the URL is invalid, answers 404 or another
                settled error status, or keeps failing after every retry.
        """
        parsed = validate_bridge_url(url)
        destination = Path(destination_dir)
        destination.mkdir(parents=True, exist_ok=True)
        target = destination / _archive_name(parsed)

        async def _operation() -> Path:
            return await asyncio.to_thread(self._stream_to, str(parsed), target)

        logger.info("Downloading Bridge CLI from %s", parsed)
        try:
            path = await self._retry_engine.execute(_operation, is_retryable_http_error)
        except (RetryableStatusError, httpx.TransportError) as exc:
            raise BridgeDownloadError(f"Bridge CLI download failed: {exc}") from exc
        logger.debug("Downloaded %s (%d bytes)", path, path.stat().st_size)
        return path


# ============================================================================
# Extraction
# ============================================================================


def _validate_member_path(member_name: str) -> Path:
    """Reject archive members that would land outside the extraction root."""
    relative = PurePosixPath(member_name.replace("\\", "/"))
    if relative.is_absolute():
        raise BridgeDownloadError(f"Unsafe absolute path detected in archive: {member_name}")
    if not relative.parts:
        raise BridgeDownloadError(f"Empty path detected in archive: {member_name}")
    if any(part in {"", ".", ".."} for part in relative.parts):
        raise BridgeDownloadError(f"Unsafe path detected in archive: {member_name}")
    return Path(*relative.parts)


def extract_bridge(archive: PathLike, destination: PathLike) -> Path:
    """Unpack a bridge zip into ``destination``.

    Executable bits recorded in the archive are restored so the bridge binary
    can be launched straight away.

    Args:
        archive: Path of the downloaded zip.
        destination: Directory receiving the archive contents.

    Returns:
        The destination directory.

    Raises:
        BridgeDownloadError: If either path is empty, the file is not a zip,
            or a member path escapes ``destination``.
    """
    if not archive or not destination:
        raise BridgeDownloadError("Archive and destination paths are required for extraction")
    root = Path(destination)
    root.mkdir(parents=True, exist_ok=True)
    resolved_root = root.resolve()

    try:
        bundle = zipfile.ZipFile(archive)
    except zipfile.BadZipFile as exc:
        raise BridgeDownloadError(f"Bridge CLI archive is not a zip file: {archive}") from exc

    with bundle:
        for info in bundle.infolist():
            relative = _validate_member_path(info.filename)
            target = root / relative
            try:
                target.resolve().relative_to(resolved_root)
            except ValueError:
                raise BridgeDownloadError(
                    f"Path escapes extraction root: {info.filename}"
                ) from None
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            with bundle.open(info) as source, target.open("wb") as sink:
                shutil.copyfileobj(source, sink)
            mode = (info.external_attr >> 16) & 0o777
            if mode:
                target.chmod(mode)
    return root


# ============================================================================
# Installation
# ============================================================================


def is_bridge_installed(
    bridge_path: PathLike, version: str, bridge_type: str = BRIDGE_CLI_BUNDLE
) -> bool:
    """Return ``True`` when ``bridge_path/versions.txt`` lists ``version``."""
    versions_file = Path(bridge_path) / VERSIONS_FILE
    if not versions_file.is_file():
        return False
    content = versions_file.read_text(encoding="utf-8")
    return is_version_in_content(version, content, bridge_type)


async def install_bridge(
    url: str,
    version: str,
    bridge_path: PathLike,
    *,
    bridge_type: str = BRIDGE_CLI_BUNDLE,
    downloader: Optional[BridgeDownloader] = None,
) -> bool:
    """Make ``version`` of the bridge available at ``bridge_path``.

    Nothing is downloaded when the installed ``versions.txt`` already lists
    ``version``. Otherwise the archive is fetched and unpacked, and any
    previous installation at ``bridge_path`` is replaced. Archives that wrap
    everything in a single top-level directory have that directory unwrapped.

    Args:
        url: Download URL of the bridge archive.
        version: Version the caller expects to end up with.
        bridge_path: Installation directory.
        bridge_type: Bridge artifact name listed in ``versions.txt``.
        downloader: Downloader to use; defaults to one on the shared cache.

    Returns:
        ``True`` if a new bridge was installed, ``False`` if it was already present.

    Raises:
        BridgeDownloadError: If downloading or extraction fails.
    """
    target = Path(bridge_path)
    if version and is_bridge_installed(target, version, bridge_type):
        logger.info("Bridge CLI already exists", extra={"path": str(target), "version": version})
        return False

    downloader = downloader or BridgeDownloader()
    with tempfile.TemporaryDirectory(prefix="scanbridge-") as workdir:
        archive = await downloader.download(url, Path(workdir) / "download")
        staging = extract_bridge(archive, Path(workdir) / "extract")
        entries = list(staging.iterdir())
        source = entries[0] if len(entries) == 1 and entries[0].is_dir() else staging

        if target.exists():
            logger.debug("Removing previous installation at %s", target)
            shutil.rmtree(target)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source), str(target))

    logger.info("Bridge CLI installed", extra={"path": str(target), "version": version})
    return True
