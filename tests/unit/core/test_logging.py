"""
Tests for structured logging.
Covers PII masking, free-text previews and the JSON formatter.
"""

import json
import logging
import sys

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from core.middleware.logging import (
    MAX_TEXT_PREVIEW,
    StructuredFormatter,
    StructuredLoggingMiddleware,
    is_sensitive_field,
    mask_sensitive_data,
    preview_text,
    setup_logging,
    should_log_request,
)


class TestSensitiveFieldDetection:

    @pytest.mark.parametrize("field_name,expected", [
        ("password", True),
        ("api_key", True),
        ("Authorization", True),
        ("resume_text", True),
        ("keystroke_data", True),
        ("wpm", False),
        ("question_id", False),
        ("answer", False),
    ])
    def test_field_names(self, field_name, expected):
        assert is_sensitive_field(field_name) is expected


class TestMasking:

    def test_nested_structures(self):
        data = {
            "application_id": "app-1",
            "candidate": {"email": "ada@example.com", "resume": "long text"},
            "answers": ["call me at 555-123-4567", "fine"],
            "keystroke_data": [{"key": "a"}],
        }

        masked = mask_sensitive_data(data)

        assert masked["application_id"] == "app-1"
        assert masked["candidate"]["email"] == "[EMAIL]"
        assert masked["candidate"]["resume"] == "[REDACTED]"
        assert masked["answers"] == ["call me at [PHONE]", "fine"]
        assert masked["keystroke_data"] == "[REDACTED]"

    def test_non_string_values_untouched(self):
        assert mask_sensitive_data({"wpm": 52, "passed": True}) == {"wpm": 52, "passed": True}

    def test_max_depth(self):
        data = current = {}
        for _ in range(15):
            current["child"] = {}
            current = current["child"]
        assert "[MAX_DEPTH_EXCEEDED]" in json.dumps(mask_sensitive_data(data))

    def test_preview_truncates_and_masks(self):
        text = "Reach me at ada@example.com. " + "x" * 200
        preview = preview_text(text)

        assert "ada@example.com" not in preview
        assert preview.endswith("...")
        assert len(preview) == MAX_TEXT_PREVIEW + 3

    def test_short_preview_unchanged(self):
        assert preview_text("short answer") == "short answer"


class TestStructuredFormatter:

    def _record(self, **extra):
        record = logging.LogRecord(
            name="assessments.coordinator",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Phase %s started",
            args=("typing-test",),
            exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_formats_json_with_context(self):
        record = self._record(application_id="app-1", job_id="job-1", phase="typing-test")

        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "Phase typing-test started"
        assert data["level"] == "INFO"
        assert data["logger"] == "assessments.coordinator"
        assert data["application_id"] == "app-1"
        assert data["phase"] == "typing-test"
        assert "session_id" not in data

    def test_includes_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = self._record()
            record.exc_info = sys.exc_info()

        data = json.loads(StructuredFormatter().format(record))

        assert data["exception"]["type"] == "RuntimeError"
        assert data["exception"]["message"] == "boom"


class TestMiddleware:

    def test_should_log_request(self):
        assert should_log_request("/api/v1/assessments/sessions")
        assert not should_log_request("/health")
        assert not should_log_request("/ready")

    def test_request_id_echoed(self):
        app = FastAPI()
        app.add_middleware(StructuredLoggingMiddleware)

        @app.get("/ping")
        async def ping():
            return {"ok": True}

        client = TestClient(app)
        response = client.get("/ping", headers={"x-request-id": "req-123"})

        assert response.status_code == 200
        assert response.headers["x-request-id"] == "req-123"
        assert client.get("/ping").headers["x-request-id"]

    def test_setup_logging_replaces_handlers(self):
        root = logging.getLogger()
        previous = root.handlers[:]
        previous_level = root.level
        try:
            setup_logging("DEBUG", json_logs=True)
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, StructuredFormatter)
            assert root.level == logging.DEBUG
        finally:
            for handler in root.handlers[:]:
                root.removeHandler(handler)
            for handler in previous:
                root.addHandler(handler)
            root.setLevel(previous_level)
