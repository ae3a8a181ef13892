"""Parsing helpers for bridge version manifests and download URLs.

The bridge is published to Artifactory as ``<type>/<version>/<type>-<platform>.zip``
with a ``versions.txt`` next to the ``latest`` folder. An installed bundle
carries its own ``versions.txt`` listing ``<type>: <version>``. These helpers
read those formats and pick the download platform for a runner.
"""

from __future__ import annotations

import logging
import platform as _platform
import re
import sys
from typing import List, Optional

from bs4 import BeautifulSoup

from ..versioning import is_version_greater_or_equal

__all__ = [
    "BRIDGE_CLI_BUNDLE",
    "MIN_SUPPORTED_BRIDGE_CLI_MAC_ARM_VERSION",
    "MIN_SUPPORTED_BRIDGE_CLI_LINUX_ARM_VERSION",
    "PLATFORM_WINDOWS",
    "PLATFORM_LINUX",
    "PLATFORM_LINUX_ARM",
    "PLATFORM_MAC",
    "PLATFORM_MAC_ARM",
    "parse_version_file",
    "is_version_in_content",
    "parse_latest_versions_listing",
    "parse_available_versions",
    "select_platform",
    "version_url",
]

LOGGER = logging.getLogger(__name__)

BRIDGE_CLI_BUNDLE = "bridge-cli-bundle"

MIN_SUPPORTED_BRIDGE_CLI_MAC_ARM_VERSION = "2.1.0"
MIN_SUPPORTED_BRIDGE_CLI_LINUX_ARM_VERSION = "3.5.1"

PLATFORM_WINDOWS = "win64"
PLATFORM_LINUX = "linux64"
PLATFORM_LINUX_ARM = "linux_arm"
PLATFORM_MAC = "macosx"
PLATFORM_MAC_ARM = "macos_arm"

_LISTING_VERSION = re.compile(r"^[0-9]+.[0-9]+.[0-9]+")
_ARM_MACHINE = re.compile(r"^(arm.*|aarch.*)$", re.IGNORECASE)


def parse_version_file(content: str, bridge_type: str = BRIDGE_CLI_BUNDLE) -> str:
    """Return the version recorded for ``bridge_type`` in a ``versions.txt`` body.

    Examples:
        >>> parse_version_file("bridge-cli-bundle: 3.5.0\\nbridge-cli: 2.9.0")
        '3.5.0'
    """
    match = re.search(rf"{re.escape(bridge_type)}:\s*([0-9.]+)", content)
    return match.group(1) if match else ""


def is_version_in_content(
    bridge_version: str, content: str, bridge_type: str = BRIDGE_CLI_BUNDLE
) -> bool:
    """Return ``True`` when ``content`` lists ``bridge_type: bridge_version``."""
    return f"{bridge_type}: {bridge_version}" in content


def parse_latest_versions_listing(body: str, bridge_type: str = BRIDGE_CLI_BUNDLE) -> str:
    """Extract the latest version of ``bridge_type`` from a remote ``versions.txt``.

    The first line mentioning ``bridge_type`` wins; its value is whatever
    follows the first colon.
    """
    for line in body.strip().splitlines():
        if bridge_type in line and ":" in line:
            return line.split(":", 1)[1].strip()
    return ""


def parse_available_versions(html: str) -> List[str]:
    """List the versions linked from an Artifactory directory index.

    Args:
        html: Body of the ``<artifactory>/<bridge_type>/`` listing.

    Returns:
        Versions in document order, taken from anchors whose text starts with
        ``major.minor.patch``.
    """
    soup = BeautifulSoup(html, "html.parser")
    versions: List[str] = []
    for anchor in soup.find_all("a"):
        match = _LISTING_VERSION.match(anchor.get_text())
        if match:
            versions.append(match.group(0))
    return versions


def select_platform(
    version: str,
    system: Optional[str] = None,
    machine: Optional[str] = None,
) -> str:
    """Pick the bridge download platform for this runner.

    ARM builds are only chosen when ``version`` is at least the first release
    that shipped them; older versions fall back to the x86 build.

    Args:
        version: Bridge version about to be downloaded.
        system: ``sys.platform`` style name; defaults to the current process.
        machine: ``platform.machine()`` value; defaults to the current host.
    """
    system = system or sys.platform
    machine = machine if machine is not None else _platform.machine()
    is_arm = bool(_ARM_MACHINE.match(machine))

    if system == "darwin":
        return _arm_or_default(
            version,
            is_arm,
            PLATFORM_MAC_ARM,
            PLATFORM_MAC,
            MIN_SUPPORTED_BRIDGE_CLI_MAC_ARM_VERSION,
        )
    if system.startswith("linux"):
        return _arm_or_default(
            version,
            is_arm,
            PLATFORM_LINUX_ARM,
            PLATFORM_LINUX,
            MIN_SUPPORTED_BRIDGE_CLI_LINUX_ARM_VERSION,
        )
    return PLATFORM_WINDOWS


def _arm_or_default(
    version: str, is_arm: bool, arm_platform: str, default_platform: str, min_version: str
) -> str:
    if not is_arm:
        return default_platform
    if is_version_greater_or_equal(version, min_version):
        return arm_platform
    LOGGER.info(
        "Detected Bridge CLI version (%s) below the minimum ARM support requirement (%s). "
        "Defaulting to %s platform.",
        version,
        min_version,
        default_platform,
    )
    return default_platform


def version_url(pattern: str, version: str, platform: str) -> str:
    """Fill ``$version`` and ``$platform`` placeholders in a download URL pattern."""
    return pattern.replace("$version", version).replace("$platform", platform)
