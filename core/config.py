"""Core configuration and utility functions."""

import logging
import math
import os
import re
from typing import List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI

from core.admission_engine import AdmissionEngine, Hooks
from core.upload_transport import DEFAULT_TIMEOUT, HttpUploadTransport
from error_handling.handlers import ErrorHandler, ErrorHandlingMiddleware
from models.validation import DEFAULT_MIME_TYPES, AdmissionConfig, ContentTypeRule

# Load environment variables
load_dotenv()

# Admission configuration constants
REQUEST_METHOD = "POST"
MAXIMUM_SIZE = math.inf
INCLUDE_HEADER = True
USE_ARRAY = False
UPLOAD_TIMEOUT_SECONDS = DEFAULT_TIMEOUT
LOG_LEVEL = "INFO"


def parse_mime_rule(entry: str) -> ContentTypeRule:
    """Compile an entry written as ``/expression/``; return any other entry unchanged."""
    if len(entry) > 2 and entry.startswith("/") and entry.endswith("/"):
        return re.compile(entry[1:-1])
    return entry


def parse_mime_types(mime_types_str: str) -> Optional[List[ContentTypeRule]]:
    """
    Parse comma-separated MIME types.

    Entries written as ``/expression/`` become compiled patterns; everything
    else stays a literal string. Order is preserved.
    """
    if not mime_types_str:
        return None
    rules: List[ContentTypeRule] = []
    for entry in (mt.strip() for mt in mime_types_str.split(",")):
        if entry:
            rules.append(parse_mime_rule(entry))
    return rules


class AppConfig:
    """Application configuration settings."""

    def __init__(self):
        self.upload_url = os.getenv("DROPLET_UPLOAD_URL") or None
        self.request_method = os.getenv("DROPLET_REQUEST_METHOD", REQUEST_METHOD).upper()
        self.maximum_size = float(os.getenv("DROPLET_MAXIMUM_SIZE", MAXIMUM_SIZE))
        self.include_header = os.getenv("DROPLET_INCLUDE_HEADER", str(INCLUDE_HEADER)).lower() == "true"
        self.use_array = os.getenv("DROPLET_USE_ARRAY", str(USE_ARRAY)).lower() == "true"
        self.mime_types = parse_mime_types(os.getenv("DROPLET_MIME_TYPES", "")) or list(DEFAULT_MIME_TYPES)
        self.upload_timeout = float(os.getenv("DROPLET_UPLOAD_TIMEOUT", UPLOAD_TIMEOUT_SECONDS))
        self.log_level = os.getenv("LOG_LEVEL", LOG_LEVEL)

        if self.maximum_size < 0:
            raise ValueError("DROPLET_MAXIMUM_SIZE must not be negative")

    def get_admission_config(self) -> AdmissionConfig:
        """Get admission configuration."""
        return AdmissionConfig(
            url=self.upload_url,
            allowed_content_types=list(self.mime_types),
            max_size=self.maximum_size,
            request_method=self.request_method,
            include_header=self.include_header,
            use_array=self.use_array,
        )


def create_fastapi_app() -> FastAPI:
    """Create and configure FastAPI application instance."""
    app = FastAPI(
        title="Droplet", description="File admission, status tracking and upload service", version="1.0.0"
    )

    return app


def setup_middleware(app: FastAPI, config: AppConfig) -> None:
    """Configure FastAPI middleware."""
    error_handler = ErrorHandler()
    app.add_middleware(ErrorHandlingMiddleware, error_handler=error_handler)


def create_admission_engine(config: AppConfig, hooks: Optional[Hooks] = None) -> AdmissionEngine:
    """Create an admission engine wired to the HTTP upload transport."""
    transport = HttpUploadTransport(timeout=config.upload_timeout)
    return AdmissionEngine(config=config.get_admission_config(), hooks=hooks, transport=transport)


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
        ],
    )

    # Suppress some noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_config() -> AppConfig:
    """Get the application configuration instance."""
    return AppConfig()
