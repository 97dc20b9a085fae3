"""Tests for logging setup."""

import json
import logging
import sys

from dockerstats.logging_setup import JSONFormatter, setup_logging


def _record(message, *args):
    return logging.LogRecord(
        name="dockerstats.exporter",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=args,
        exc_info=None,
    )


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_fields(self):
        """Test each line carries the standard fields."""
        data = json.loads(JSONFormatter().format(_record("Failed to get stats for abc123")))

        assert data["level"] == "WARNING"
        assert data["logger"] == "dockerstats.exporter"
        assert data["message"] == "Failed to get stats for abc123"
        assert data["service_name"] == "dockerstats"

    def test_quotes_and_newlines_escaped(self):
        """Test messages with quotes and newlines still produce one valid JSON line."""
        message = 'daemon said "no such container"\nsecond line'
        line = JSONFormatter().format(_record(message))

        assert "\n" not in line
        assert json.loads(line)["message"] == message

    def test_exception_included(self):
        """Test exception tracebacks are added under their own key."""
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record("failed")
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in data["exception"]


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_json_output(self):
        """Test json_output installs the JSON formatter."""
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging("debug", json_output=True)

            assert isinstance(root.handlers[0].formatter, JSONFormatter)
            assert root.level == logging.DEBUG
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
