"""
Tests for error handling.
Covers exception-to-status mapping and sanitization of error messages.
"""

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel

from core.exceptions import (
    AssessmentError,
    ConfigurationError,
    EvaluationError,
    PersistenceError,
    PhaseTransitionError,
)
from core.middleware.error_handling import (
    get_safe_error_details,
    sanitize_error_message,
    setup_error_handlers,
)


class TestSensitiveDataSanitization:
    """Sanitization of messages before they reach a response."""

    @pytest.mark.parametrize("sensitive_input", [
        'password="secret123"',
        'user_password: "P@ssw0rd!"',
        'token="Bearer abc123xyz"',
        'access_token:jwt.token.here',
        'api_key="sk_live_12345"',
        'api-key="secret-key-123"',
        'client_secret:abc123',
        'candidate jane.doe@example.com not found',
    ])
    def test_redacts(self, sensitive_input):
        assert "[REDACTED]" in sanitize_error_message(sensitive_input)

    @pytest.mark.parametrize("safe_input", [
        'Job job-1 not found',
        'Phase typing-test is completed',
        'count=12345',
    ])
    def test_leaves_safe_messages(self, safe_input):
        assert sanitize_error_message(safe_input) == safe_input

    def test_safe_error_details(self):
        details = get_safe_error_details(ValueError("api_key=abc123"))
        assert details["type"] == "ValueError"
        assert "abc123" not in details["message"]
        assert "traceback" not in details


class _Body(BaseModel):
    value: int


@pytest.fixture
def client():
    app = FastAPI()
    setup_error_handlers(app)

    @app.get("/raise/{kind}")
    async def raise_error(kind: str):
        errors = {
            "config": ConfigurationError("Job job-9 not found", {"job_id": "job-9"}),
            "transition": PhaseTransitionError("Typing test is not active"),
            "persistence": PersistenceError("Database unavailable", "persist_typing_result"),
            "evaluation": EvaluationError("Model response is not valid JSON"),
            "base": AssessmentError("Something odd"),
            "email": ConfigurationError("Application for bob@example.com not found"),
            "value": ValueError("Unsupported category"),
        }
        raise errors[kind]

    @app.get("/http")
    async def http_error():
        raise HTTPException(status_code=403, detail="Forbidden")

    @app.post("/validate")
    async def validate(body: _Body):
        return body

    return TestClient(app)


class TestErrorHandlers:

    @pytest.mark.parametrize("kind,status_code,code", [
        ("config", 404, "CONFIGURATION_ERROR"),
        ("transition", 409, "INVALID_PHASE_TRANSITION"),
        ("persistence", 503, "PERSISTENCE_ERROR"),
        ("evaluation", 500, "ASSESSMENT_ERROR"),
        ("base", 500, "ASSESSMENT_ERROR"),
        ("value", 400, "INVALID_INPUT"),
    ])
    def test_status_mapping(self, client, kind, status_code, code):
        response = client.get(f"/raise/{kind}")

        assert response.status_code == status_code
        error = response.json()["error"]
        assert error["code"] == code
        assert error["path"] == f"/raise/{kind}"
        assert error["method"] == "GET"

    def test_message_is_returned(self, client):
        error = client.get("/raise/transition").json()["error"]
        assert error["message"] == "Typing test is not active"
        assert "details" not in error

    def test_email_redacted_from_message(self, client):
        message = client.get("/raise/email").json()["error"]["message"]
        assert "bob@example.com" not in message
        assert "[REDACTED]" in message

    def test_http_exception(self, client):
        response = client.get("/http")
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "HTTP_EXCEPTION"

    def test_validation_error(self, client):
        response = client.post("/validate", json={"value": "not-a-number"})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"][0]["field"] == "body.value"
