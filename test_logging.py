"""
Tests for structured JSON logging.
"""

import io
import json
import logging
import sys

import pytest

from msgboard.logging_utils import CustomJsonFormatter, get_request_id, request_id_ctx


@pytest.fixture
def capture():
    """Logger writing JSON lines into a buffer."""
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(CustomJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s'))

    logger = logging.getLogger("msgboard.tests.logging")
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    def lines():
        return [json.loads(line) for line in stream.getvalue().splitlines()]

    yield logger, lines
    logger.handlers = []


class TestJsonFormatter:
    """Test the shape of emitted log lines."""

    def test_core_fields(self, capture):
        logger, lines = capture

        logger.info("Messages saved", extra={"count": 3})

        record = lines()[0]
        assert record["message"] == "Messages saved"
        assert record["level"] == "INFO"
        assert record["count"] == 3
        assert record["timestamp"].endswith("Z")
        assert "request_id" not in record

    def test_error_level(self, capture):
        logger, lines = capture

        logger.error("Failed to read messages", extra={"error": "boom"})

        record = lines()[0]
        assert record["level"] == "ERROR"
        assert record["error"] == "boom"

    def test_request_id_from_context(self, capture):
        logger, lines = capture
        token = request_id_ctx.set("req-123")
        try:
            logger.info("Message created", extra={"id": "1"})
        finally:
            request_id_ctx.reset(token)

        assert lines()[0]["request_id"] == "req-123"

    def test_one_line_per_record(self, capture):
        logger, lines = capture

        logger.info("first")
        logger.warning("second")

        assert [r["message"] for r in lines()] == ["first", "second"]

    def test_get_request_id(self):
        assert get_request_id() is None
        token = request_id_ctx.set("req-456")
        try:
            assert get_request_id() == "req-456"
        finally:
            request_id_ctx.reset(token)


class TestSetupLogging:
    """Test the process-wide logging configuration."""

    def test_single_stdout_json_handler(self, json_stdout):
        """Test the root logger writes JSON to stdout through one handler."""
        root = logging.getLogger()

        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        assert handler.stream is sys.stdout
        assert isinstance(handler.formatter, CustomJsonFormatter)
        assert root.level == logging.INFO

    def test_uvicorn_shares_handler(self, json_stdout):
        """Test uvicorn's loggers reuse the JSON handler and its access log is off."""
        handler = logging.getLogger().handlers[0]

        for name in ("uvicorn", "uvicorn.error"):
            assert logging.getLogger(name).handlers == [handler]
            assert logging.getLogger(name).propagate is False
        assert logging.getLogger("uvicorn.access").disabled is True

    def test_lines_on_stdout(self, json_stdout):
        """Test application records reach stdout as JSON lines."""
        logging.getLogger("msgboard.storage").error("Failed to write messages", extra={"error": "disk full"})

        records = [r for r in json_stdout() if r["message"] == "Failed to write messages"]
        assert len(records) == 1
        assert records[0]["level"] == "ERROR"
        assert records[0]["name"] == "msgboard.storage"
        assert records[0]["error"] == "disk full"
        assert records[0]["timestamp"].endswith("Z")
