"""
Tests for environment-backed configuration accessors.
"""

from __future__ import annotations

import pytest

from registrar_console.utils import config


def test_required_values_raise_when_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REGISTRAR_CONSOLE_CLIENT_ID", "  ")
    with pytest.raises(ValueError, match="REGISTRAR_CONSOLE_CLIENT_ID"):
        config.client_id()


def test_defaults_and_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REGISTRAR_CONSOLE_BASE_URL", "https://registry.example/")
    monkeypatch.setenv("REGISTRAR_CONSOLE_TIMEOUT_SECONDS", "not-a-number")
    monkeypatch.setenv("REGISTRAR_CONSOLE_LOG_LEVEL", "debug")
    monkeypatch.setenv("REGISTRAR_CONSOLE_XHR_PATH", "")
    assert config.base_url() == "https://registry.example"
    assert config.request_timeout_seconds() == 30.0
    assert config.log_level() == "DEBUG"
    assert config.xhr_path() == "/registrar-xhr"
