from __future__ import annotations

import pydantic
import pytest

from ScanBridge.settings import (
    LoggingSettings,
    NetworkSettings,
    RetrySettings,
    clean_url,
    get_settings,
    invalidate_settings_cache,
    load_network_settings,
    parse_to_boolean,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("true", True),
        ("TRUE", True),
        ("True", True),
        (True, True),
        ("false", False),
        ("1", False),
        ("yes", False),
        ("", False),
        (None, False),
        (False, False),
    ],
)
def test_parse_to_boolean(value, expected: bool) -> None:
    assert parse_to_boolean(value) is expected


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://repo.example/artifactory/", "https://repo.example/artifactory"),
        ("https://repo.example/artifactory", "https://repo.example/artifactory"),
        ("https://repo.example//", "https://repo.example/"),
    ],
)
def test_clean_url(url: str, expected: str) -> None:
    assert clean_url(url) == expected


def test_network_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NETWORK_SSL_TRUST_ALL", "TRUE")
    monkeypatch.setenv("NETWORK_SSL_CERT_FILE", "/etc/ssl/custom.pem")
    settings = load_network_settings()
    assert settings.ssl_trust_all is True
    assert settings.ssl_cert_file == "/etc/ssl/custom.pem"


def test_network_settings_defaults() -> None:
    settings = NetworkSettings()
    assert settings.ssl_trust_all is False
    assert settings.ssl_cert_file is None


def test_network_settings_ignore_field_names_in_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SSL_TRUST_ALL", "true")
    monkeypatch.setenv("SSL_CERT_FILE", "/etc/ssl/certs/ca-certificates.crt")
    settings = NetworkSettings()
    assert settings.ssl_trust_all is False
    assert settings.ssl_cert_file is None


def test_network_settings_read_fresh(monkeypatch: pytest.MonkeyPatch) -> None:
    assert load_network_settings().ssl_trust_all is False
    monkeypatch.setenv("NETWORK_SSL_TRUST_ALL", "true")
    assert load_network_settings().ssl_trust_all is True


def test_retry_settings_defaults() -> None:
    settings = RetrySettings()
    assert settings.count == 3
    assert settings.delay_milliseconds == 15000


def test_retry_settings_reject_negative(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SCANBRIDGE_RETRY_COUNT", "-1")
    with pytest.raises(pydantic.ValidationError):
        RetrySettings()


def test_logging_settings_level_normalized(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SCANBRIDGE_LOG_LEVEL", "debug")
    monkeypatch.setenv("SCANBRIDGE_LOG_JSON", "true")
    settings = LoggingSettings()
    assert settings.level == "DEBUG"
    assert settings.json_output is True
    assert settings.level_int() == 10


def test_logging_settings_invalid_level() -> None:
    with pytest.raises(pydantic.ValidationError):
        LoggingSettings(level="LOUD")


def test_get_settings_memoised(monkeypatch: pytest.MonkeyPatch) -> None:
    first = get_settings()
    assert get_settings() is first

    monkeypatch.setenv("SCANBRIDGE_RETRY_COUNT", "7")
    assert get_settings().retry.count == 3

    invalidate_settings_cache()
    refreshed = get_settings()
    assert refreshed is not first
    assert refreshed.retry.count == 7
