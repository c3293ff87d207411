"""Tests for structured logging."""

import json

import pytest
import structlog

from herald.observability.context import set_correlation_id, clear_correlation_id
from herald.observability.logging import add_correlation_id_processor, configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    """Rebind logging to the real stderr once capsys is torn down."""
    yield
    configure_logging(level="INFO", json_output=False)


class TestAddCorrelationIdProcessor:
    """Tests for add_correlation_id_processor."""

    def test_adds_correlation_id_when_set(self):
        set_correlation_id("test-corr-id")

        result = add_correlation_id_processor(None, "info", {"event": "x"})

        assert result["correlation_id"] == "test-corr-id"
        clear_correlation_id()

    def test_adds_none_marker_when_not_set(self):
        clear_correlation_id()

        result = add_correlation_id_processor(None, "info", {"event": "x"})

        assert result["correlation_id"] == "none"


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def teardown_method(self):
        structlog.contextvars.clear_contextvars()
        clear_correlation_id()

    def test_json_output_carries_context(self, capsys):
        configure_logging(level="INFO", json_output=True)
        set_correlation_id("registry_poll-1")
        structlog.contextvars.bind_contextvars(registry="http://registry.test")

        structlog.get_logger().info("poll_started", since=1000)

        line = capsys.readouterr().err.strip().splitlines()[-1]
        entry = json.loads(line)
        assert entry["event"] == "poll_started"
        assert entry["since"] == 1000
        assert entry["correlation_id"] == "registry_poll-1"
        assert entry["registry"] == "http://registry.test"
        assert entry["level"] == "info"
        assert "timestamp" in entry

    def test_level_filtering(self, capsys):
        configure_logging(level="WARNING", json_output=True)

        structlog.get_logger().info("hidden_event")
        structlog.get_logger().warning("shown_event")

        err = capsys.readouterr().err
        assert "hidden_event" not in err
        assert "shown_event" in err

    def test_console_output(self, capsys):
        configure_logging(level="DEBUG", json_output=False)

        structlog.get_logger().debug("console_event")

        assert "console_event" in capsys.readouterr().err

    def test_unknown_level_falls_back_to_info(self, capsys):
        configure_logging(level="LOUD", json_output=True)

        structlog.get_logger().debug("debug_event")
        structlog.get_logger().info("info_event")

        err = capsys.readouterr().err
        assert "debug_event" not in err
        assert "info_event" in err
