"""Core admission engine, configuration and utilities."""

from .admission_engine import AdmissionEngine, Hooks
from .config import (
    AppConfig,
    create_admission_engine,
    create_fastapi_app,
    get_config,
    setup_logging,
    setup_middleware,
)
from .file_collection import CollectionSnapshot, FileCollection
from .upload_transport import HttpUploadTransport, UploadTransport

__all__ = [
    'AdmissionEngine',
    'Hooks',
    'AppConfig',
    'create_admission_engine',
    'create_fastapi_app',
    'get_config',
    'setup_logging',
    'setup_middleware',
    'CollectionSnapshot',
    'FileCollection',
    'HttpUploadTransport',
    'UploadTransport',
]
