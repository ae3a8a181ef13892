"""
ScanBridge CLI Tests

This module exercises the ``scanbridge`` Typer application end to end with
``typer.testing.CliRunner``.

Key Scenarios:
- reconcile-config rewrites documents for old bridges and reports errors
- compare-versions renders coerced versions and both predicates
- latest-version / available-versions go through a mocked Artifactory
- install downloads a bundle once and skips it when already present
- --log-level validation and --version

Usage:
    pytest tests/test_cli.py
"""

from __future__ import annotations

import io
import json
import zipfile

import httpx
import pytest
from typer.testing import CliRunner

from ScanBridge import __version__, cli
from ScanBridge.bridge.artifactory import ArtifactoryClient
from ScanBridge.bridge.download import BridgeDownloader
from ScanBridge.network.retry import RetryEngine

runner = CliRunner()


@pytest.fixture
def coverity_input(tmp_path):
    path = tmp_path / "in.json"
    path.write_text(
        json.dumps({"data": {"coverity": {"prcomment": {"enabled": True, "impacts": ["HIGH"]}}}}),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def artifactory(monkeypatch, mock_cache, sleep_recorder):
    """Point the CLI at an Artifactory served by ``handler``."""
    _, sleep = sleep_recorder

    def _install(handler):
        client = ArtifactoryClient(
            cache=mock_cache(handler),
            retry_engine=RetryEngine(max_retries=1, delay_milliseconds=0, sleep=sleep),
        )
        monkeypatch.setattr(cli, "_build_artifactory_client", lambda: client)

    return _install


def test_version_flag():
    result = runner.invoke(cli.app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_reconcile_config_rewrites_for_old_bridge(coverity_input):
    result = runner.invoke(
        cli.app, ["reconcile-config", str(coverity_input), "--bridge-version", "3.8.0"]
    )
    assert result.exit_code == 0, result.output
    assert "Updated" in result.output
    coverity = json.loads(coverity_input.read_text())["data"]["coverity"]
    assert coverity == {"automation": {"prcomment": True}}


def test_reconcile_config_no_change_for_new_bridge(coverity_input):
    before = coverity_input.read_text()
    result = runner.invoke(
        cli.app, ["reconcile-config", str(coverity_input), "--bridge-version", "3.9.0"]
    )
    assert result.exit_code == 0, result.output
    assert "No changes needed" in result.output
    assert coverity_input.read_text() == before


def test_reconcile_config_threshold_option(coverity_input):
    result = runner.invoke(
        cli.app,
        [
            "reconcile-config",
            str(coverity_input),
            "--bridge-version",
            "3.8.0",
            "--threshold",
            "3.7.0",
        ],
    )
    assert result.exit_code == 0
    assert "prcomment" in json.loads(coverity_input.read_text())["data"]["coverity"]


def test_reconcile_config_missing_section_exits_1(tmp_path):
    path = tmp_path / "in.json"
    path.write_text(json.dumps({"data": {}}), encoding="utf-8")
    result = runner.invoke(cli.app, ["reconcile-config", str(path), "--bridge-version", "3.8.0"])
    assert result.exit_code == 1
    assert "Error" in result.output


def test_reconcile_config_missing_file_exits_1(tmp_path):
    result = runner.invoke(
        cli.app, ["reconcile-config", str(tmp_path / "absent.json"), "--bridge-version", "3.8.0"]
    )
    assert result.exit_code == 1


def test_compare_versions():
    result = runner.invoke(cli.app, ["compare-versions", "3.8.0", "3.9.0"])
    assert result.exit_code == 0
    assert "3.8.0 < 3.9.0: True" in result.output
    assert "3.8.0 >= 3.9.0: False" in result.output


def test_compare_versions_unparseable():
    result = runner.invoke(cli.app, ["compare-versions", "invalid", "3.9.0"])
    assert result.exit_code == 0
    assert "not a version" in result.output
    assert "invalid < 3.9.0: False" in result.output
    assert "invalid >= 3.9.0: False" in result.output


def test_latest_version(artifactory):
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, text="bridge-cli-bundle: 3.5.1\n")

    artifactory(handler)
    result = runner.invoke(cli.app, ["latest-version", "https://repo.example/latest/versions.txt/"])
    assert result.exit_code == 0, result.output
    assert result.output.strip().splitlines()[-1] == "3.5.1"
    assert seen == ["https://repo.example/latest/versions.txt"]


def test_latest_version_missing_exits_1(artifactory):
    artifactory(lambda request: httpx.Response(403))
    result = runner.invoke(cli.app, ["latest-version", "https://repo.example/versions.txt"])
    assert result.exit_code == 1


def test_latest_version_unavailable_server_exits_1(artifactory):
    artifactory(lambda request: httpx.Response(503))
    result = runner.invoke(cli.app, ["latest-version", "https://repo.example/versions.txt"])
    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert "Unable to determine the latest" in result.output


def test_available_versions_connection_refused_exits_1(artifactory):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    artifactory(handler)
    result = runner.invoke(
        cli.app, ["available-versions", "https://repo.example/bridge-cli-bundle"]
    )
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "No versions found" in result.output


def test_available_versions(artifactory):
    body = '<a href="3.4.0/">3.4.0/</a><a href="3.5.1/">3.5.1/</a>'
    artifactory(lambda request: httpx.Response(200, text=body))
    result = runner.invoke(
        cli.app, ["available-versions", "https://repo.example/bridge-cli-bundle"]
    )
    assert result.exit_code == 0, result.output
    assert result.output.split() == ["3.4.0", "3.5.1"]


def test_available_versions_none_exits_1(artifactory):
    artifactory(lambda request: httpx.Response(200, text="<html></html>"))
    result = runner.invoke(
        cli.app, ["available-versions", "https://repo.example/bridge-cli-bundle"]
    )
    assert result.exit_code == 1


def test_invalid_log_level_exits_2():
    result = runner.invoke(cli.app, ["--log-level", "LOUD", "compare-versions", "1", "2"])
    assert result.exit_code == 2


def _bundle_zip() -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as bundle:
        bundle.writestr("bridge-cli-bundle-linux64/versions.txt", "bridge-cli-bundle: 3.5.1\n")
        bundle.writestr("bridge-cli-bundle-linux64/bridge-cli", "#!/bin/sh\n")
    return buffer.getvalue()


@pytest.fixture
def bundle_server(monkeypatch, mock_cache, sleep_recorder):
    """Serve bundles from ``handler`` to the install command."""
    _, sleep = sleep_recorder

    def _install(handler):
        downloader = BridgeDownloader(
            cache=mock_cache(handler),
            retry_engine=RetryEngine(max_retries=1, delay_milliseconds=0, sleep=sleep),
        )
        monkeypatch.setattr(cli, "_build_downloader", lambda: downloader)

    return _install


def test_install_downloads_platform_bundle(bundle_server, tmp_path):
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, content=_bundle_zip())

    bundle_server(handler)
    result = runner.invoke(
        cli.app,
        [
            "install",
            "https://repo.example/$version/bridge-cli-bundle-$version-$platform.zip",
            "--version",
            "3.5.1",
            "--platform",
            "linux64",
            "--install-dir",
            str(tmp_path),
        ],
    )
    assert result.exit_code == 0, result.output
    assert seen == ["https://repo.example/3.5.1/bridge-cli-bundle-3.5.1-linux64.zip"]
    assert (tmp_path / "bridge-cli-bundle-linux64" / "bridge-cli").is_file()

    again = runner.invoke(
        cli.app,
        ["install", seen[0], "-v", "3.5.1", "--platform", "linux64", "-d", str(tmp_path)],
    )
    assert again.exit_code == 0, again.output
    assert "already present" in again.output
    assert len(seen) == 1


def test_install_missing_bundle_exits_1(bundle_server, tmp_path):
    bundle_server(lambda request: httpx.Response(404))
    result = runner.invoke(
        cli.app,
        [
            "install",
            "https://repo.example/bundle.zip",
            "--version",
            "3.5.1",
            "--platform",
            "linux64",
            "--install-dir",
            str(tmp_path),
        ],
    )
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert not (tmp_path / "bridge-cli-bundle-linux64").exists()
