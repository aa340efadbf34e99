"""
Tests for structured logging functionality.

Validates:
- Logging configuration is applied correctly
- Contextual fields are present in log records
- JSON logging works in production mode
- Human-readable logging works in development mode
"""

import json
import logging
import sys
import uuid

from flask import g

from backend.app.logging_config import (
    ContextualJsonFormatter,
    DevelopmentFormatter,
)


def _make_record(msg="Test message", exc_info=None, **extra):
    logger = logging.getLogger("test")
    record = logger.makeRecord(
        name="test.logger",
        level=logging.INFO,
        fn="test.py",
        lno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLoggingConfiguration:
    """Test logging configuration setup."""

    def test_logging_configured_on_app_creation(self, app):
        assert len(app.logger.handlers) > 0
        assert app.logger.handlers[-1].formatter is not None

    def test_test_env_logs_warnings_and_above(self, app):
        assert app.config["APP_ENV"] == "test"
        assert app.logger.level == logging.WARNING

    def test_explicit_log_level_wins(self, make_app):
        app = make_app(LOG_LEVEL="error")
        assert app.logger.level == logging.ERROR

    def test_json_formatter_selected_when_enabled(self, make_app):
        app = make_app(LOG_JSON_ENABLED=True)
        assert isinstance(app.logger.handlers[-1].formatter, ContextualJsonFormatter)


class TestStructuredLogFields:
    """Test structured logging fields and formatters."""

    def test_json_formatter_adds_standard_fields(self):
        formatter = ContextualJsonFormatter(app_env="production")

        log_data = json.loads(formatter.format(_make_record()))

        assert log_data["level"] == "INFO"
        assert log_data["logger"] == "test.logger"
        assert log_data["message"] == "Test message"
        assert log_data["app_env"] == "production"
        assert "timestamp" in log_data

    def test_json_formatter_with_request_context(self, app):
        formatter = ContextualJsonFormatter(app_env="test")

        with app.test_request_context(
            "/api/contact",
            method="POST",
            headers={"X-Forwarded-For": "203.0.113.9"},
        ):
            g.request_id = str(uuid.uuid4())
            log_data = json.loads(formatter.format(_make_record("With context")))

            assert log_data["request_id"] == g.request_id
            assert log_data["method"] == "POST"
            assert log_data["path"] == "/api/contact"
            assert log_data["remote_addr"] == "203.0.113.9"

    def test_json_formatter_includes_extra_event(self):
        formatter = ContextualJsonFormatter(app_env="production")

        log_data = json.loads(formatter.format(_make_record(event="contact.sent")))
        assert log_data["event"] == "contact.sent"

    def test_json_formatter_includes_exception(self):
        formatter = ContextualJsonFormatter(app_env="production")
        try:
            raise ValueError("Test exception")
        except ValueError:
            record = _make_record("Error occurred", exc_info=sys.exc_info())

        log_data = json.loads(formatter.format(record))
        assert "ValueError: Test exception" in log_data["exception"]


class TestDevelopmentFormatter:
    """Test human-readable formatter."""

    def test_formats_level_name_and_message(self):
        output = DevelopmentFormatter().format(_make_record("Hello"))
        assert "INFO" in output
        assert "test.logger" in output
        assert "Hello" in output

    def test_includes_request_context_and_event(self, app):
        with app.test_request_context("/api/contact", method="POST"):
            g.request_id = "abcdef1234567890"
            output = DevelopmentFormatter().format(_make_record("Hi", event="contact.sent"))

        assert "request_id=abcdef12" in output
        assert "POST /api/contact" in output
        assert "event=contact.sent" in output


class TestRequestLogging:
    """Test request lifecycle logging hooks."""

    def test_request_completion_logged(self, make_app, caplog):
        app = make_app(LOG_LEVEL="INFO")
        with caplog.at_level(logging.INFO):
            response = app.test_client().get("/api/health")

        assert response.status_code in (200, 503)
        events = [getattr(record, "event", None) for record in caplog.records]
        assert "request.started" in events
        assert "request.completed" in events
