"""
Common test fixtures for the Droplet service.

This module provides reusable handles, hooks and transports for testing the
admission engine and the HTTP surface.
"""

import asyncio
import base64
from typing import List, Optional, Sequence
from unittest.mock import Mock

import pytest

from core.admission_engine import Hooks
from models.errors import TransportError
from models.file_record import FileHandle, FileInput, FileRecord
from models.validation import AdmissionConfig, UploadResult

# Simple 1x1 pixel PNG image in bytes
PNG_PIXEL = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8/5+hHgAHggJ/PchI7wAAAABJRU5ErkJggg=="
)


def make_handle(
    name: str = "photo.png",
    content_type: str = "image/png",
    size: Optional[int] = 500,
    content: Optional[bytes] = None,
) -> FileHandle:
    """Build a handle whose reported size does not depend on its content."""
    return FileHandle(name=name, content_type=content_type, size=size, content=content if content is not None else b"x")


def raw(*handles: FileHandle) -> List[FileInput]:
    return [FileInput.raw(handle) for handle in handles]


def make_hooks() -> Hooks:
    return Hooks(did_add=Mock(), did_delete=Mock(), did_upload=Mock())


class FakeTransport:
    """Upload transport that records calls instead of sending them."""

    def __init__(self, failed_names: Sequence[str] = (), error: Optional[Exception] = None):
        self.failed_names = set(failed_names)
        self.error = error
        self.calls = []

    async def send(self, url: str, records: Sequence[FileRecord], config: AdmissionConfig) -> UploadResult:
        self.calls.append((url, list(records)))
        if self.error is not None:
            raise self.error
        result = UploadResult()
        for record in records:
            (result.failed if record.name in self.failed_names else result.uploaded).append(record)
        return result


class BlockingTransport:
    """Upload transport that never completes until released."""

    def __init__(self):
        self.release = asyncio.Event()
        self.started = asyncio.Event()
        self.sends = 0

    async def send(self, url: str, records: Sequence[FileRecord], config: AdmissionConfig) -> UploadResult:
        self.sends += 1
        self.started.set()
        await self.release.wait()
        return UploadResult(uploaded=list(records))


def failing_transport(status_code: int = 500) -> FakeTransport:
    return FakeTransport(error=TransportError("Upload rejected by server", status_code=status_code))


@pytest.fixture
def png_handle() -> FileHandle:
    """
    Fixture providing a small PNG handle.

    Returns:
        FileHandle: Handle carrying a real 1x1 PNG
    """
    return FileHandle.from_bytes("pixel.png", PNG_PIXEL, "image/png")


@pytest.fixture
def text_handle() -> FileHandle:
    """
    Fixture providing a plain text handle.

    Returns:
        FileHandle: Handle carrying text content
    """
    return FileHandle.from_bytes("notes.txt", b"This is a test text file content.", "text/plain")
