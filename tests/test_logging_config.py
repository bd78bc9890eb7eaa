"""Tests for logging configuration."""

import json
import logging

import pytest

from shopledger.logging_config import JsonFormatter, get_logging_config


def test_defaults(monkeypatch):
    monkeypatch.delenv("SHOPLEDGER_LOG_LEVEL", raising=False)
    monkeypatch.delenv("SHOPLEDGER_LOG_FORMAT", raising=False)

    config = get_logging_config()

    assert config["loggers"]["shopledger"]["level"] == "WARNING"
    assert "format" in config["formatters"]["default"]


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SHOPLEDGER_LOG_LEVEL", "debug")
    monkeypatch.setenv("SHOPLEDGER_LOG_FORMAT", "json")

    config = get_logging_config()

    assert config["loggers"]["shopledger"]["level"] == "DEBUG"
    assert config["formatters"]["default"]["()"] is JsonFormatter


def test_argument_beats_environment(monkeypatch):
    monkeypatch.setenv("SHOPLEDGER_LOG_LEVEL", "DEBUG")
    assert get_logging_config(level="error")["loggers"]["shopledger"]["level"] == "ERROR"


def test_unknown_level():
    with pytest.raises(ValueError, match="Unknown log level"):
        get_logging_config(level="CHATTY")


def test_json_formatter_includes_extras():
    record = logging.LogRecord(
        name="shopledger.domain.posting",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Posted %s",
        args=("TXN-1",),
        exc_info=None,
    )
    record.invoice_id = 5
    record.amount = object()

    entry = json.loads(JsonFormatter().format(record))

    assert entry["message"] == "Posted TXN-1"
    assert entry["level"] == "INFO"
    assert entry["logger"] == "shopledger.domain.posting"
    assert entry["extra"]["invoice_id"] == 5
    assert isinstance(entry["extra"]["amount"], str)
