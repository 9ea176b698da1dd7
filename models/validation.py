"""Admission configuration and upload state models."""

import math
from dataclasses import dataclass, field
from typing import Any, Callable, List, Pattern, Union

from models.file_record import FileRecord

ContentTypeRule = Union[str, Pattern[str]]

DEFAULT_MIME_TYPES = ["image/jpeg", "image/jpg", "image/gif", "image/png", "image/tiff", "image/bmp"]


@dataclass
class AdmissionConfig:
    """Per-engine admission rules and upload request settings."""
    url: Union[str, Callable[[], Any], None] = None
    allowed_content_types: List[ContentTypeRule] = field(default_factory=lambda: list(DEFAULT_MIME_TYPES))
    max_size: float = math.inf
    request_method: str = "POST"
    include_header: bool = True
    use_array: bool = False


@dataclass
class UploadStatus:
    """Progress of the upload currently (or last) in flight."""
    uploading: bool = False
    percent_complete: float = 0
    error: bool = False


@dataclass
class UploadResult:
    """Records the server accepted and the ones it explicitly rejected."""
    uploaded: List[FileRecord] = field(default_factory=list)
    failed: List[FileRecord] = field(default_factory=list)
