"""
Unit Tests for logging configuration
"""
import json
import logging

from aether.core.logging_config import (
    AetherLogger,
    ContextualFormatter,
    JSONFormatter,
    generate_session_id,
    logger,
    session_id_var,
    set_session_id,
)


def _record(message="hello", **extra):
    record = logging.LogRecord("aether", logging.INFO, __file__, 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLogger:
    """Test the module logger and its structured helpers"""

    def test_logger_class(self):
        assert isinstance(logger, AetherLogger)
        assert logger.name == "aether"

    def test_log_generation_event(self, caplog):
        caplog.set_level(logging.INFO, logger="aether")

        logger.log_generation_event("completed", files=3)

        record = caplog.records[-1]
        assert record.getMessage() == "Generation completed (files=3)"
        assert record.generation_event == "completed"
        assert record.files == 3

    def test_log_performance_over_threshold_warns(self, caplog):
        caplog.set_level(logging.DEBUG, logger="aether")

        logger.log_performance("extract", 500.0, threshold_ms=100)

        assert caplog.records[-1].levelno == logging.WARNING
        assert caplog.records[-1].exceeded_threshold is True

    def test_generate_session_id(self):
        assert len(generate_session_id()) == 8
        assert generate_session_id() != generate_session_id()


class TestFormatters:
    """Test JSON and contextual formatting"""

    def test_json_formatter_includes_context_and_extra(self):
        token = session_id_var.set("abc12345")
        try:
            output = json.loads(JSONFormatter().format(_record(generation_event="started")))
        finally:
            session_id_var.reset(token)

        assert output["message"] == "hello"
        assert output["level"] == "INFO"
        assert output["session_id"] == "abc12345"
        assert output["generation_event"] == "started"

    def test_contextual_formatter_defaults(self):
        formatter = ContextualFormatter("[%(session_id)s] %(message)s")
        token = session_id_var.set("")
        try:
            assert formatter.format(_record()) == "[-] hello"
            set_session_id("s1")
            assert formatter.format(_record()) == "[s1] hello"
        finally:
            session_id_var.reset(token)
