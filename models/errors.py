"""Error models and exception hierarchy for the Droplet service."""

import datetime
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Any


# --- File Validation Exception Hierarchy ---

class FileValidationError(Exception):
    """Base exception for a failed admission check."""
    pass


class FileSizeError(FileValidationError):
    """File exceeds maximum allowed size."""
    pass


class MimeTypeError(FileValidationError):
    """File MIME type not allowed."""
    pass


# --- Error Handling Enums ---

class ErrorSeverity(Enum):
    """Enumeration for error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Enumeration for error categories."""
    VALIDATION = "validation"
    UPLOAD = "upload"
    NETWORK = "network"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


# --- Error Context and Result Models ---

@dataclass
class ErrorContext:
    """Captures contextual information about an error occurrence."""
    error_id: str
    timestamp: datetime.datetime
    request_id: Optional[str]
    user_agent: Optional[str]
    endpoint: Optional[str]
    stack_trace: Optional[str]
    request_data: Dict[str, Any]


@dataclass
class ErrorResult:
    """Complete error processing result with context and user-friendly messages."""
    error_code: str
    severity: ErrorSeverity
    category: ErrorCategory
    technical_message: str
    user_message: str
    suggested_actions: List[str]
    context: ErrorContext
    recoverable: bool
    retry_after: Optional[int]


# --- Application Exception Hierarchy ---

class ApplicationError(Exception):
    """Base exception for application errors with enhanced metadata."""

    def __init__(
        self,
        message: str,
        error_code: str,
        severity: ErrorSeverity,
        user_message: Optional[str] = None,
        suggested_actions: Optional[List[str]] = None
    ):
        super().__init__(message)
        self.error_code = error_code
        self.severity = severity
        self.user_message = user_message or message
        self.suggested_actions = suggested_actions or []


class ConfigurationError(ApplicationError):
    """Configuration and environment errors."""

    def __init__(self, message: str, error_code: str = "CONFIGURATION_ERROR", **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.CRITICAL)
        super().__init__(message, error_code, **kwargs)


class TransportError(ApplicationError):
    """The upload request failed or the server refused it."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: str = "TRANSPORT_ERROR",
        **kwargs
    ):
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        super().__init__(message, error_code, **kwargs)
        self.status_code = status_code


class UploadInProgressError(ApplicationError):
    """An upload was started while another one is still in flight."""

    def __init__(self, message: str = "An upload is already in progress", error_code: str = "UPLOAD_IN_PROGRESS", **kwargs):
        kwargs.setdefault("severity", ErrorSeverity.LOW)
        super().__init__(message, error_code, **kwargs)
