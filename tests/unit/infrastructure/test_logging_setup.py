"""Tests for the uvicorn-compatible logging dictConfig builder."""

from __future__ import annotations

import logging

import structlog

from reelscout.infrastructure.config.schema import AppConfig
from reelscout.infrastructure.logging.setup import (
    _add_record_created_timestamp_utc,
    _drop_color_message,
    build_logging_config,
)


def _renderer(cfg: dict) -> object:
    return cfg["formatters"]["structlog"]["processors"][-1]


class TestBuildLoggingConfig:
    def test_console_renderer_in_dev(self) -> None:
        cfg = build_logging_config(AppConfig(environment="dev"))
        assert isinstance(_renderer(cfg), structlog.dev.ConsoleRenderer)

    def test_json_renderer_in_prod(self) -> None:
        cfg = build_logging_config(AppConfig(environment="prod"))
        assert isinstance(_renderer(cfg), structlog.processors.JSONRenderer)

    def test_level_applied_to_uvicorn_and_root(self) -> None:
        cfg = build_logging_config(AppConfig(log_level="WARNING"))
        assert {c["level"] for c in cfg["loggers"].values()} == {"WARNING"}
        assert cfg["root"] == {"handlers": ["default"], "level": "WARNING"}

    def test_handlers_use_structlog_formatter(self) -> None:
        cfg = build_logging_config(AppConfig())
        assert cfg["handlers"]["default"]["formatter"] == "structlog"
        assert cfg["handlers"]["access"]["formatter"] == "structlog"
        assert (
            cfg["formatters"]["structlog"]["()"]
            is structlog.stdlib.ProcessorFormatter
        )

    def test_base_config_not_mutated(self) -> None:
        build_logging_config(AppConfig(log_level="DEBUG"))
        cfg = build_logging_config(AppConfig(log_level="ERROR"))
        assert cfg["root"]["level"] == "ERROR"


class TestProcessors:
    def test_drop_color_message(self) -> None:
        event = {"event": "x", "color_message": "\x1b[1mx"}
        assert _drop_color_message(None, None, event) == {"event": "x"}

    def test_foreign_record_timestamp(self) -> None:
        record = logging.LogRecord("uvicorn", logging.INFO, "", 0, "hi", None, None)
        record.created = 0.0
        event = _add_record_created_timestamp_utc(None, None, {"_record": record})
        assert event["timestamp"] == "1970-01-01T00:00:00Z"
