"""
Unit tests for structured logging.

Tests verify:
- Trace and request ids propagate through context variables
- The request-context processor attaches ids and the service name
- configure_logging() installs a working structlog pipeline
"""
import uuid

import structlog

from freight_ai.core.logging import (
    SERVICE_NAME,
    add_request_context,
    configure_logging,
    generate_id,
    get_logger,
    get_request_id,
    get_trace_id,
    set_request_id,
    set_trace_id,
)


class TestContextVariables:
    """Trace/request id context variables."""

    def test_trace_id_roundtrip(self):
        """A trace id set in the current context is visible to readers."""
        set_trace_id("trace-123")
        try:
            assert get_trace_id() == "trace-123"
        finally:
            set_trace_id(None)

        assert get_trace_id() is None

    def test_request_id_roundtrip(self):
        set_request_id("req-456")
        try:
            assert get_request_id() == "req-456"
        finally:
            set_request_id(None)

    def test_generate_id_is_uuid4(self):
        value = generate_id()

        assert uuid.UUID(value).version == 4
        assert generate_id() != value


class TestRequestContextProcessor:
    def test_adds_ids_when_set(self):
        set_trace_id("trace-abc")
        set_request_id("req-abc")
        try:
            event = add_request_context(None, "info", {"event": "fanout_started"})
        finally:
            set_trace_id(None)
            set_request_id(None)

        assert event["trace_id"] == "trace-abc"
        assert event["request_id"] == "req-abc"
        assert event["service"] == SERVICE_NAME

    def test_omits_ids_outside_request(self):
        event = add_request_context(None, "info", {"event": "app_startup_completed"})

        assert "trace_id" not in event
        assert "request_id" not in event
        assert event["service"] == SERVICE_NAME


class TestConfigureLogging:
    def test_json_pipeline_ends_with_json_renderer(self):
        configure_logging(log_level="DEBUG", json_output=True)

        processors = structlog.get_config()["processors"]

        assert add_request_context in processors
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_pipeline_for_development(self):
        configure_logging(log_level="INFO", json_output=False)
        try:
            processors = structlog.get_config()["processors"]
            assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
        finally:
            configure_logging(log_level="INFO", json_output=True)

    def test_get_logger_accepts_keyword_fields(self):
        configure_logging(log_level="INFO", json_output=True)

        logger = get_logger("freight_ai.tests")
        logger.info("test_event", domain="facilities", slice_count=5)
