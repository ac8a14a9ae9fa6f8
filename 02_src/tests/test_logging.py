"""Tests for JSON logging."""

import json
import logging
import sys

from workroom.logging_config import JSONFormatter, room_logger


class CaptureHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.setFormatter(JSONFormatter())
        self.lines: list[str] = []

    def emit(self, record):
        self.lines.append(self.format(record))


class TestJSONLogging:
    """Tests for the formatter and room adapter."""

    def test_room_context_merged(self):
        handler = CaptureHandler()
        base = logging.getLogger("tests.room")
        base.addHandler(handler)
        base.setLevel(logging.INFO)
        try:
            log = room_logger("tests.room", "r1", user_id="u1")
            log.info("joined %s", "now", extra={"context": {"count": 3}})
        finally:
            base.removeHandler(handler)

        entry = json.loads(handler.lines[0])
        assert entry["message"] == "joined now"
        assert entry["level"] == "INFO"
        assert entry["context"] == {"room_id": "r1", "user_id": "u1", "count": 3}

    def test_exception_included(self):
        formatter = JSONFormatter()
        try:
            raise ValueError("bad")
        except ValueError:
            record = logging.getLogger("x").makeRecord(
                "x", logging.ERROR, __file__, 1, "failed", (), exc_info=sys.exc_info()
            )

        entry = json.loads(formatter.format(record))

        assert "ValueError: bad" in entry["exception"]
        assert "context" not in entry
