"""
Unit tests for the error handling infrastructure.

Tests cover:
- Application exception hierarchy
- Error context capture
- Message translation, categories and recovery hints
- HTTP status mapping and the error middleware
"""

import datetime
from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from error_handling.handlers import (
    ErrorContextCapture,
    ErrorHandler,
    ErrorHandlingMiddleware,
    ErrorMessageTranslator,
    create_error_response,
    get_status_code,
)
from models.errors import (
    ApplicationError,
    ConfigurationError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    FileSizeError,
    MimeTypeError,
    TransportError,
    UploadInProgressError,
)


def make_context() -> ErrorContext:
    return ErrorContext(
        error_id="abc123",
        timestamp=datetime.datetime.now(),
        request_id=None,
        user_agent=None,
        endpoint="/files/upload",
        stack_trace=None,
        request_data={},
    )


class TestApplicationErrors:
    """Test the application exception hierarchy."""

    def test_configuration_error_defaults(self):
        error = ConfigurationError("Upload URL missing")
        assert isinstance(error, ApplicationError)
        assert error.error_code == "CONFIGURATION_ERROR"
        assert error.severity == ErrorSeverity.CRITICAL
        assert error.user_message == "Upload URL missing"

    def test_transport_error_carries_status_code(self):
        error = TransportError("Bad gateway", status_code=502)
        assert error.status_code == 502
        assert error.severity == ErrorSeverity.HIGH

    def test_upload_in_progress_default_message(self):
        error = UploadInProgressError()
        assert str(error) == "An upload is already in progress"
        assert error.error_code == "UPLOAD_IN_PROGRESS"


class TestErrorContextCapture:
    """Test request context capture."""

    def test_capture_without_request(self):
        context = ErrorContextCapture().capture_request_context(additional_data={"files": 2})

        assert context.endpoint is None
        assert context.request_data == {"files": 2}
        assert len(context.error_id) == 32

    def test_capture_from_request(self):
        request = Mock()
        request.method = "POST"
        request.client.host = "127.0.0.1"
        request.headers = {"user-agent": "Test/1.0", "x-request-id": "req-1", "content-type": "multipart/form-data"}
        request.url.path = "/files"

        context = ErrorContextCapture().capture_request_context(request)

        assert context.endpoint == "/files"
        assert context.user_agent == "Test/1.0"
        assert context.request_id == "req-1"
        assert context.request_data["method"] == "POST"


class TestErrorMessageTranslator:
    """Test translation to user-facing results."""

    @pytest.mark.parametrize("exception,category,status", [
        (FileSizeError("too big"), ErrorCategory.VALIDATION, 400),
        (MimeTypeError("bad type"), ErrorCategory.VALIDATION, 400),
        (UploadInProgressError(), ErrorCategory.UPLOAD, 409),
        (TransportError("down"), ErrorCategory.NETWORK, 502),
        (ConfigurationError("no url"), ErrorCategory.CONFIGURATION, 500),
        (RuntimeError("boom"), ErrorCategory.SYSTEM, 500),
    ])
    def test_categories_and_status_codes(self, exception, category, status):
        result = ErrorMessageTranslator().translate_error(exception, make_context())

        assert result.category == category
        assert get_status_code(result) == status

    def test_application_error_code_is_used(self):
        result = ErrorMessageTranslator().translate_error(TransportError("down"), make_context())
        assert result.error_code == "TRANSPORT_ERROR"

    def test_generic_error_code_uses_type_name(self):
        result = ErrorMessageTranslator().translate_error(ValueError("x"), make_context())
        assert result.error_code.startswith("ValueError_")

    def test_recoverable_errors_suggest_retry(self):
        translator = ErrorMessageTranslator()

        transport = translator.translate_error(TransportError("down"), make_context())
        busy = translator.translate_error(UploadInProgressError(), make_context())
        config = translator.translate_error(ConfigurationError("no url"), make_context())

        assert transport.recoverable and transport.retry_after == 5
        assert busy.recoverable and busy.retry_after == 1
        assert not config.recoverable and config.retry_after is None

    def test_base64_content_is_truncated(self):
        message = "failed on data:image/png;base64," + "A" * 120
        result = ErrorMessageTranslator().translate_error(RuntimeError(message), make_context())

        assert "[BASE64_CONTENT_TRUNCATED]" in result.technical_message
        assert "A" * 120 not in result.technical_message

    def test_long_messages_are_truncated(self):
        result = ErrorMessageTranslator().translate_error(RuntimeError("x " * 400), make_context())
        assert result.technical_message.endswith("... [TRUNCATED]")


class TestErrorResponses:
    """Test the JSON error body and middleware."""

    def test_error_response_body(self):
        result = ErrorHandler().handle_error(TransportError("down", status_code=503))
        response = create_error_response(result)

        assert response.status_code == 502
        assert b'"error_code":"TRANSPORT_ERROR"' in response.body
        assert b'"retry_after":5' in response.body

    def test_middleware_converts_exceptions(self):
        app = FastAPI()
        app.add_middleware(ErrorHandlingMiddleware, error_handler=ErrorHandler())

        @app.get("/boom")
        async def boom():
            raise ConfigurationError("You must specify the upload URL before uploading files.")

        response = TestClient(app).get("/boom")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] is True
        assert body["category"] == "configuration"
        assert body["recoverable"] is False

    def test_middleware_passes_successful_responses(self):
        app = FastAPI()
        app.add_middleware(ErrorHandlingMiddleware, error_handler=ErrorHandler())

        @app.get("/ok")
        async def ok():
            return {"status": "ok"}

        response = TestClient(app).get("/ok")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
