"""File handle and record models used by the admission engine."""

import math
import mimetypes
import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from models.status import StatusType

IMAGE_TYPE_PATTERN = re.compile(r"^image/", re.IGNORECASE)


@dataclass
class FileHandle:
    """Reference to a file's bytes and the metadata reported alongside them."""
    name: str
    content_type: str = ""
    size: Optional[int] = None
    content: Optional[bytes] = field(default=None, repr=False)
    path: Optional[Path] = None

    @classmethod
    def from_bytes(cls, name: str, content: bytes, content_type: str = "") -> "FileHandle":
        """Wrap in-memory content, e.g. a submitted multipart part."""
        return cls(name=name, content_type=content_type or "", size=len(content), content=content)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "FileHandle":
        """
        Reference a file on disk without reading it.

        The content type is guessed from the extension and left empty when
        the extension is unknown.
        """
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(name=path.name, content_type=content_type or "", size=path.stat().st_size, path=path)

    def read(self) -> bytes:
        """Return the file's bytes."""
        if self.content is not None:
            return self.content
        if self.path is not None:
            return self.path.read_bytes()
        return b""


class FileRecord:
    """
    One admitted or rejected file.

    The record only references its handle. Its status starts as NONE and is
    moved along by the admission engine; callers read it through ``status``.
    """

    def __init__(self, handle: FileHandle):
        self.handle = handle
        self.id = uuid.uuid4().hex
        self._status = StatusType.NONE

    @property
    def name(self) -> str:
        return self.handle.name

    @property
    def content_type(self) -> str:
        return self.handle.content_type or ""

    @property
    def size(self) -> float:
        """Size in bytes, or infinity when the handle does not report one."""
        return self.handle.size if self.handle.size is not None else math.inf

    @property
    def status(self) -> StatusType:
        return self._status

    def is_image(self) -> bool:
        return bool(IMAGE_TYPE_PATTERN.match(self.content_type))

    def apply_status(self, status: StatusType) -> None:
        """
        Set the status directly.

        Reserved for FileCollection.set_status, which keeps the collection views
        in step with the change. Other callers go through the admission engine.
        """
        self._status = StatusType(status)

    def __repr__(self) -> str:
        return f"FileRecord(name={self.name!r}, content_type={self.content_type!r}, status={self._status.name})"


class InputKind(Enum):
    """Discriminator for values passed to ``AdmissionEngine.add_files``."""
    RAW = "raw"
    RECORD = "record"


@dataclass(frozen=True)
class FileInput:
    """Either a raw handle to be wrapped, or a record the caller already built."""
    kind: InputKind
    handle: Optional[FileHandle] = None
    record: Optional[FileRecord] = None

    @classmethod
    def raw(cls, handle: Optional[FileHandle]) -> "FileInput":
        return cls(kind=InputKind.RAW, handle=handle)

    @classmethod
    def existing(cls, record: Optional[FileRecord]) -> "FileInput":
        return cls(kind=InputKind.RECORD, record=record)
