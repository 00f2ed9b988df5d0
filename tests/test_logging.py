"""
Tests for the logging module.

Tests verify:
- configure_logging picks level, renderer and service from args or settings
- ECS field renaming and service metadata processors
- LogContext binds and unbinds contextvars
"""

import logging

import pytest
import structlog

from trackable import logging as trackable_logging
from trackable.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


@pytest.fixture
def captured_config(monkeypatch):
    """Capture structlog.configure kwargs instead of reconfiguring globally."""
    calls = {}

    def fake_configure(**kwargs):
        calls.update(kwargs)

    monkeypatch.setattr(structlog, "configure", fake_configure)
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: None)
    monkeypatch.setattr(trackable_logging, "_SERVICE_NAME", "trackable")
    return calls


class TestConfigureLogging:
    def test_json_renderer(self, captured_config):
        configure_logging(level="debug", json_format=True, service="checkout")

        processors = captured_config["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert trackable_logging._elasticsearch_compatible in processors
        assert trackable_logging._SERVICE_NAME == "checkout"
        assert captured_config["cache_logger_on_first_use"] is True

    def test_console_renderer(self, captured_config):
        configure_logging(level="INFO", json_format=False)

        processors = captured_config["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
        assert trackable_logging._elasticsearch_compatible not in processors

    def test_defaults_from_settings(self, captured_config, monkeypatch):
        monkeypatch.setenv("TRACKABLE_JSON_LOGS", "true")
        monkeypatch.setenv("TRACKABLE_SERVICE_NAME", "analytics")
        monkeypatch.setenv("TRACKABLE_LOG_LEVEL", "WARNING")

        configure_logging()

        assert isinstance(captured_config["processors"][-1], structlog.processors.JSONRenderer)
        assert trackable_logging._SERVICE_NAME == "analytics"

    def test_without_timestamp(self, captured_config):
        configure_logging(json_format=True, add_timestamp=False)
        assert not any(
            isinstance(p, structlog.processors.TimeStamper)
            for p in captured_config["processors"]
        )


class TestProcessors:
    def test_elasticsearch_compatible(self):
        event = trackable_logging._elasticsearch_compatible(
            None, "info", {"timestamp": "t", "level": "info", "event": "x"}
        )
        assert event == {"@timestamp": "t", "log.level": "info", "event": "x"}

    def test_service_metadata_does_not_override(self):
        event = trackable_logging._add_service_metadata(
            None, "info", {"service.name": "explicit"}
        )
        assert event["service.name"] == "explicit"

    def test_service_metadata_default(self, monkeypatch):
        monkeypatch.setattr(trackable_logging, "_SERVICE_NAME", "svc")
        event = trackable_logging._add_service_metadata(None, "info", {})
        assert event["service.name"] == "svc"


class TestLogContext:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_binds_within_scope(self):
        with LogContext(pipeline="pricing"):
            assert structlog.contextvars.get_contextvars() == {"pipeline": "pricing"}
        assert structlog.contextvars.get_contextvars() == {}

    @pytest.mark.asyncio
    async def test_async_scope(self):
        async with LogContext(request_id="r1"):
            assert structlog.contextvars.get_contextvars()["request_id"] == "r1"
        assert "request_id" not in structlog.contextvars.get_contextvars()

    def test_bind_context(self):
        bind_context(order_id="o-1")
        assert structlog.contextvars.get_contextvars() == {"order_id": "o-1"}

    def test_get_logger(self):
        assert get_logger("trackable.test") is not None
