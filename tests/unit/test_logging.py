"""
Unit tests for the JSON log formatter
"""

import json
import logging
import sys

from authflow.core.logging import JsonFormatter


def make_record(message, exc_info=None):
    return logging.LogRecord(
        name="authflow.test",
        level=logging.ERROR,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=exc_info,
    )


class TestJsonFormatter:
    """Each record renders as one parseable JSON line"""

    def test_fields(self):
        line = JsonFormatter().format(make_record("User registered"))

        data = json.loads(line)
        assert data["level"] == "ERROR"
        assert data["module"] == "authflow.test"
        assert data["message"] == "User registered"
        assert "timestamp" in data

    def test_quotes_and_newlines_are_escaped(self):
        message = 'bad "value"\nsecond line'

        line = JsonFormatter().format(make_record(message))

        assert "\n" not in line
        assert json.loads(line)["message"] == message

    def test_traceback_included(self):
        try:
            raise RuntimeError("store down")
        except RuntimeError:
            record = make_record("Registration failed", exc_info=sys.exc_info())

        line = JsonFormatter().format(record)

        assert "\n" not in line
        data = json.loads(line)
        assert "RuntimeError: store down" in data["exc_info"]
