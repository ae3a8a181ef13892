# === NAVMAP v1 ===
# {
#   "module": "ScanBridge.cli",
#   "purpose": "Typer CLI: reconcile bridge input documents and inspect bridge versions.",
#   "sections": [
#     {"id": "main", "name": "main", "anchor": "function-main", "kind": "function"},
#     {"id": "reconcile-config", "name": "reconcile_config", "anchor": "function-reconcile-config", "kind": "function"},
#     {"id": "compare-versions", "name": "compare_versions", "anchor": "function-compare-versions", "kind": "function"},
#     {"id": "latest-version", "name": "latest_version", "anchor": "function-latest-version", "kind": "function"},
#     {"id": "available-versions", "name": "available_versions", "anchor": "function-available-versions", "kind": "function"},
#     {"id": "install", "name": "install", "anchor": "function-install", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Command line entry point for the bridge preparation helpers.

Commands:
- ``reconcile-config``: rewrite a Coverity bridge input document for the
  installed bridge version
- ``compare-versions``: show how two version strings are coerced and compared
- ``latest-version``: read the latest bridge version from Artifactory
- ``available-versions``: list bridge versions published on Artifactory
- ``install``: download and unpack a bridge bundle unless already installed

Example:
    $ scanbridge --log-level DEBUG reconcile-config input.json --bridge-version 3.8.0
    $ scanbridge compare-versions 3.8.0 3.9.0
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .bridge.artifactory import ArtifactoryClient
from .bridge.download import BridgeDownloader, bridge_install_path, install_bridge
from .bridge.versions import BRIDGE_CLI_BUNDLE, select_platform, version_url
from .errors import BridgeDownloadError, BridgeVersionError, ConfigDocumentError
from .logging_config import setup_logging
from .migrations import COVERITY_PRCOMMENT_THRESHOLD, reconcile_coverity_config
from .network.client import get_default_cache
from .network.retry import RetryEngine
from .settings import LoggingSettings, clean_url, get_settings
from .versioning import coerce_version, is_version_greater_or_equal, is_version_less

_console = Console()

app = typer.Typer(
    name="scanbridge",
    help="Prepare bridge invocations: config migration and version discovery",
    no_args_is_help=True,
)


def _build_artifactory_client() -> ArtifactoryClient:
    """Create the Artifactory client from the environment's retry budget."""
    engine = RetryEngine.from_settings(get_settings().retry)
    return ArtifactoryClient(cache=get_default_cache(), retry_engine=engine)


def _build_downloader() -> BridgeDownloader:
    engine = RetryEngine.from_settings(get_settings().retry)
    return BridgeDownloader(cache=get_default_cache(), retry_engine=engine)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"scanbridge {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR); defaults to SCANBRIDGE_LOG_LEVEL",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """ScanBridge CLI - bridge input migration and version discovery."""
    try:
        settings = (
            LoggingSettings(level=log_level) if log_level else get_settings().logging
        )
    except ValidationError as e:
        _console.print(f"[red]Invalid --log-level: {log_level}[/red]")
        raise typer.Exit(2) from e
    setup_logging(settings)


@app.command("reconcile-config")
def reconcile_config(
    path: Path = typer.Argument(..., help="Bridge input JSON document"),
    bridge_version: str = typer.Option(
        ...,
        "--bridge-version",
        "-b",
        help="Version of the installed bridge",
    ),
    threshold: str = typer.Option(
        COVERITY_PRCOMMENT_THRESHOLD,
        "--threshold",
        help="First bridge version that understands coverity.prcomment",
    ),
) -> None:
    """Downgrade the Coverity PR-comment block for bridges older than THRESHOLD."""
    try:
        changed = reconcile_coverity_config(path, bridge_version, threshold)
    except (ConfigDocumentError, json.JSONDecodeError, OSError) as e:
        _console.print(f"[red]✗ Error: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e

    if changed:
        _console.print(f"[green]✓ Updated {path} for bridge {bridge_version}[/green]")
    else:
        _console.print(f"[cyan]No changes needed for {path}[/cyan]")


@app.command("compare-versions")
def compare_versions(
    first: str = typer.Argument(..., help="Left-hand version"),
    second: str = typer.Argument(..., help="Right-hand version"),
) -> None:
    """Show coerced versions and both comparison results."""
    table = Table(title="Version comparison")
    table.add_column("Input", style="cyan")
    table.add_column("Coerced", style="green")
    for value in (first, second):
        token = coerce_version(value)
        table.add_row(value, str(token) if token else "[red]not a version[/red]")
    _console.print(table)
    _console.print(f"{first} < {second}: {is_version_less(first, second)}")
    _console.print(f"{first} >= {second}: {is_version_greater_or_equal(first, second)}")


@app.command("latest-version")
def latest_version(
    url: str = typer.Argument(..., help="URL of the remote versions.txt"),
    bridge_type: str = typer.Option(
        BRIDGE_CLI_BUNDLE,
        "--bridge-type",
        help="Bridge artifact name",
    ),
) -> None:
    """Print the latest bridge version advertised at URL."""
    client = _build_artifactory_client()
    try:
        found = asyncio.run(client.require_latest_version(clean_url(url), bridge_type))
    except BridgeVersionError as e:
        _console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(1) from e
    typer.echo(found)


@app.command("available-versions")
def available_versions(
    url: str = typer.Argument(..., help="URL of the Artifactory directory index"),
) -> None:
    """List the bridge versions linked from the Artifactory index at URL."""
    client = _build_artifactory_client()
    versions = asyncio.run(client.fetch_available_versions(clean_url(url) + "/"))
    if not versions:
        _console.print("[yellow]No versions found[/yellow]")
        raise typer.Exit(1)
    for found in versions:
        typer.echo(found)


@app.command("install")
def install(
    url: str = typer.Argument(
        ..., help="Bundle URL; $version and $platform placeholders are filled in"
    ),
    version: str = typer.Option(..., "--version", "-v", help="Bridge version to install"),
    install_dir: Path = typer.Option(
        Path.home(), "--install-dir", "-d", help="Directory holding bridge installations"
    ),
    platform: Optional[str] = typer.Option(
        None, "--platform", help="Download platform; detected from this host when omitted"
    ),
    bridge_type: str = typer.Option(
        BRIDGE_CLI_BUNDLE,
        "--bridge-type",
        help="Bridge artifact name",
    ),
) -> None:
    """Download VERSION of the bridge into INSTALL_DIR unless it is already there."""
    platform = platform or select_platform(version)
    target = bridge_install_path(install_dir, platform, bridge_type)
    try:
        installed = asyncio.run(
            install_bridge(
                version_url(url, version, platform),
                version,
                target,
                bridge_type=bridge_type,
                downloader=_build_downloader(),
            )
        )
    except (BridgeDownloadError, OSError) as e:
        _console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(1) from e

    if installed:
        _console.print(f"[green]✓ Installed {bridge_type} {version} to {target}[/green]")
    else:
        _console.print(f"[cyan]{bridge_type} {version} already present at {target}[/cyan]")


if __name__ == "__main__":  # pragma: no cover
    app()
