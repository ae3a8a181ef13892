"""Bridge version discovery built on the network primitives.

Modules:
- versions: parsers for ``versions.txt`` files and Artifactory indexes, platform selection
- artifactory: retried HTTP lookups against an Artifactory repository
- download: streamed bundle download, zip extraction and installation
"""

from ScanBridge.bridge.artifactory import ArtifactoryClient, is_retryable_http_error
from ScanBridge.bridge.download import (
    BridgeDownloader,
    bridge_install_path,
    extract_bridge,
    install_bridge,
    is_bridge_installed,
    validate_bridge_url,
)
from ScanBridge.bridge.versions import (
    BRIDGE_CLI_BUNDLE,
    is_version_in_content,
    parse_available_versions,
    parse_latest_versions_listing,
    parse_version_file,
    select_platform,
    version_url,
)

__all__ = [
    "ArtifactoryClient",
    "is_retryable_http_error",
    "BridgeDownloader",
    "bridge_install_path",
    "extract_bridge",
    "install_bridge",
    "is_bridge_installed",
    "validate_bridge_url",
    "BRIDGE_CLI_BUNDLE",
    "is_version_in_content",
    "parse_available_versions",
    "parse_latest_versions_listing",
    "parse_version_file",
    "select_platform",
    "version_url",
]
