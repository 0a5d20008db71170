"""Logging configuration tests."""

from typing import Any

import pytest
import structlog

from searchsync.config import Settings
from searchsync.logging import configure_logging


@pytest.fixture
def structlog_config(monkeypatch: pytest.MonkeyPatch) -> dict[str, Any]:
    """Capture the arguments passed to structlog.configure without applying them."""
    captured: dict[str, Any] = {}
    monkeypatch.setattr(structlog, "configure", lambda **kwargs: captured.update(kwargs))
    return captured


def test_json_renderer_by_default(structlog_config: dict[str, Any]) -> None:
    configure_logging()
    assert isinstance(structlog_config["processors"][-1], structlog.processors.JSONRenderer)


def test_console_renderer_when_json_disabled(structlog_config: dict[str, Any]) -> None:
    configure_logging(json_logs=False)
    assert isinstance(structlog_config["processors"][-1], structlog.dev.ConsoleRenderer)


def test_json_logs_setting_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SEARCHSYNC_JSON_LOGS", "false")
    assert Settings().json_logs is False
