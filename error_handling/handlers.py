"""Error handling and user feedback for the HTTP surface."""

import datetime
import json
import logging
import re
import traceback
import uuid
from typing import Dict, Optional, Any, Callable
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from models.errors import (
    ErrorSeverity, ErrorCategory, ErrorContext, ErrorResult,
    FileSizeError, MimeTypeError, ConfigurationError, TransportError, UploadInProgressError
)


class ErrorContextCapture:
    """Captures contextual information for error tracking and debugging."""

    def capture_request_context(
        self,
        request: Optional[Request] = None,
        additional_data: Optional[Dict[str, Any]] = None
    ) -> ErrorContext:
        """
        Capture context from a FastAPI request.

        Args:
            request: FastAPI Request object
            additional_data: Additional context data

        Returns:
            ErrorContext: Captured context information
        """
        request_data = dict(additional_data or {})
        user_agent = None
        endpoint = None

        if request:
            request_data.update({
                "method": request.method,
                "client_host": request.client.host if request.client else None,
                "content_type": request.headers.get("content-type"),
            })
            user_agent = request.headers.get("user-agent")
            endpoint = request.url.path

        return ErrorContext(
            error_id=uuid.uuid4().hex,
            timestamp=datetime.datetime.now(),
            request_id=request.headers.get("x-request-id") if request else None,
            user_agent=user_agent,
            endpoint=endpoint,
            stack_trace=traceback.format_exc(),
            request_data=request_data
        )


class ErrorMessageTranslator:
    """Translates technical error messages to user-friendly messages with suggested actions."""

    def __init__(self):
        """Initialize the translator with predefined message mappings."""
        self._translation_rules = {
            # Admission checks
            FileSizeError: {
                "user_message": "The file you selected is too large. Please choose a smaller file.",
                "suggested_actions": [
                    "Try compressing the file before uploading",
                    "Select a different file under the size limit"
                ],
                "severity": ErrorSeverity.MEDIUM,
                "category": ErrorCategory.VALIDATION
            },
            MimeTypeError: {
                "user_message": "This file type is not supported. Please select a supported file format.",
                "suggested_actions": [
                    "Check the list of supported file types",
                    "Convert your file to a supported format"
                ],
                "severity": ErrorSeverity.MEDIUM,
                "category": ErrorCategory.VALIDATION
            },

            # Upload workflow
            UploadInProgressError: {
                "user_message": "An upload is already running. Wait for it to finish or abort it.",
                "suggested_actions": [
                    "Wait for the current upload to complete",
                    "Abort the current upload and try again"
                ],
                "severity": ErrorSeverity.LOW,
                "category": ErrorCategory.UPLOAD
            },
            TransportError: {
                "user_message": "The files could not be uploaded. Please try again.",
                "suggested_actions": [
                    "Check your connection to the upload server",
                    "Try the upload again in a few moments"
                ],
                "severity": ErrorSeverity.HIGH,
                "category": ErrorCategory.NETWORK
            },
            ConfigurationError: {
                "user_message": "There's a configuration issue. Please contact support.",
                "suggested_actions": [
                    "Set the upload URL before uploading files",
                    "Report this error with the error ID"
                ],
                "severity": ErrorSeverity.CRITICAL,
                "category": ErrorCategory.CONFIGURATION
            },

            # Generic errors
            Exception: {
                "user_message": "An unexpected error occurred. Please try again.",
                "suggested_actions": [
                    "Try your request again",
                    "Contact support with the error ID if needed"
                ],
                "severity": ErrorSeverity.MEDIUM,
                "category": ErrorCategory.SYSTEM
            }
        }

    def translate_error(self, exception: Exception, context: ErrorContext) -> ErrorResult:
        """
        Translate a technical error to a user-friendly error result.

        Args:
            exception: The exception to translate
            context: Error context information

        Returns:
            ErrorResult: User-friendly error result
        """
        rule = self._get_translation_rule(exception)
        technical_message = self._sanitize_technical_message(str(exception))
        recoverable = self._is_recoverable(exception)

        return ErrorResult(
            error_code=self._generate_error_code(exception),
            severity=rule.get("severity", ErrorSeverity.MEDIUM),
            category=rule.get("category", ErrorCategory.SYSTEM),
            technical_message=technical_message,
            user_message=rule.get("user_message", technical_message),
            suggested_actions=rule.get("suggested_actions", []),
            context=context,
            recoverable=recoverable,
            retry_after=self._get_retry_delay(exception) if recoverable else None
        )

    def _get_translation_rule(self, exception: Exception) -> Dict[str, Any]:
        """Get the most specific translation rule for an exception."""
        exception_type = type(exception)
        if exception_type in self._translation_rules:
            return self._translation_rules[exception_type]

        for rule_type, rule in self._translation_rules.items():
            if rule_type is not Exception and isinstance(exception, rule_type):
                return rule

        return self._translation_rules.get(Exception, {})

    def _generate_error_code(self, exception: Exception) -> str:
        """Use the application error code when present, else derive one from the type."""
        error_code = getattr(exception, "error_code", None)
        if error_code:
            return error_code
        timestamp = int(datetime.datetime.now().timestamp())
        return f"{type(exception).__name__}_{timestamp}"

    def _is_recoverable(self, exception: Exception) -> bool:
        """Determine if an error is recoverable (can be retried)."""
        return isinstance(exception, (TransportError, UploadInProgressError))

    def _get_retry_delay(self, exception: Exception) -> Optional[int]:
        """Get suggested retry delay in seconds."""
        if isinstance(exception, TransportError):
            return 5
        if isinstance(exception, UploadInProgressError):
            return 1
        return None

    def _sanitize_technical_message(self, message: str) -> str:
        """
        Sanitize technical message to prevent logging of large content like base64 data.

        Args:
            message: Raw technical message from exception

        Returns:
            str: Sanitized message safe for logging
        """
        max_length = 500

        base64_pattern = re.compile(r'data:[^;]+;base64,[A-Za-z0-9+/]{50,}={0,2}|[A-Za-z0-9+/]{100,}={0,2}')
        if base64_pattern.search(message):
            message = base64_pattern.sub('[BASE64_CONTENT_TRUNCATED]', message)

        if len(message) > max_length:
            message = message[:max_length] + "... [TRUNCATED]"

        return message


class ErrorHandler:
    """Main error handler that orchestrates error processing."""

    def __init__(self):
        self.context_capture = ErrorContextCapture()
        self.message_translator = ErrorMessageTranslator()

    def handle_error(
        self,
        exception: Exception,
        request: Optional[Request] = None,
        additional_context: Optional[Dict[str, Any]] = None
    ) -> ErrorResult:
        """
        Capture context, translate and log an error.

        Args:
            exception: The exception to handle
            request: FastAPI request object
            additional_context: Additional context data

        Returns:
            ErrorResult: Complete error handling result
        """
        context = self.context_capture.capture_request_context(request, additional_context)
        error_result = self.message_translator.translate_error(exception, context)
        self._log_error(error_result)
        return error_result

    def _log_error(self, error_result: ErrorResult) -> None:
        """Log error with appropriate level based on severity."""
        log_data = {
            "error_id": error_result.context.error_id,
            "error_code": error_result.error_code,
            "category": error_result.category.value,
            "severity": error_result.severity.value,
            "endpoint": error_result.context.endpoint,
            "technical_message": error_result.technical_message
        }

        if error_result.severity == ErrorSeverity.CRITICAL:
            logging.critical(f"Critical error: {json.dumps(log_data)}")
        elif error_result.severity == ErrorSeverity.HIGH:
            logging.error(f"High severity error: {json.dumps(log_data)}")
        elif error_result.severity == ErrorSeverity.MEDIUM:
            logging.warning(f"Medium severity error: {json.dumps(log_data)}")
        else:
            logging.info(f"Low severity error: {json.dumps(log_data)}")


def get_status_code(error_result: ErrorResult) -> int:
    """Determine appropriate HTTP status code for error result."""
    category_status_map = {
        ErrorCategory.VALIDATION: 400,
        ErrorCategory.UPLOAD: 409,
        ErrorCategory.NETWORK: 502,
        ErrorCategory.CONFIGURATION: 500,
        ErrorCategory.SYSTEM: 500
    }

    return category_status_map.get(error_result.category, 500)


def create_error_response(error_result: ErrorResult) -> JSONResponse:
    """Create the JSON body returned for a handled error."""
    response_data = {
        "error": True,
        "error_id": error_result.context.error_id,
        "error_code": error_result.error_code,
        "message": error_result.user_message,
        "suggested_actions": error_result.suggested_actions,
        "severity": error_result.severity.value,
        "category": error_result.category.value,
        "recoverable": error_result.recoverable
    }

    if error_result.retry_after:
        response_data["retry_after"] = error_result.retry_after

    return JSONResponse(status_code=get_status_code(error_result), content=response_data)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """FastAPI middleware for centralized error handling."""

    def __init__(self, app, error_handler: ErrorHandler):
        super().__init__(app)
        self.error_handler = error_handler

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process requests and handle any errors that occur.

        Args:
            request: FastAPI request
            call_next: Next middleware or endpoint

        Returns:
            Response: HTTP response
        """
        try:
            return await call_next(request)
        except Exception as e:
            error_result = self.error_handler.handle_error(e, request)
            return create_error_response(error_result)
