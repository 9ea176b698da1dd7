"""Admission checks for file records."""

import logging
import re
from typing import List, Sequence

from models.errors import FileSizeError, FileValidationError, MimeTypeError
from models.file_record import FileRecord
from models.validation import AdmissionConfig, ContentTypeRule


class SizeValidator:
    """Validates file sizes against the configured ceiling."""

    def __init__(self, max_size: float):
        self.max_size = max_size

    def validate_size(self, file_size: float) -> None:
        """
        Validate file size against the ceiling.

        Args:
            file_size: Size of the file in bytes, infinity when unknown

        Raises:
            FileSizeError: If file size exceeds the ceiling
        """
        if not file_size <= float(self.max_size):
            raise FileSizeError(f"File size {file_size} bytes exceeds maximum allowed size {self.max_size} bytes")


class MimeTypeValidator:
    """
    Validates a content type against the allowed list.

    A list of plain strings is checked by exact membership. As soon as one
    entry is a compiled pattern, every entry is evaluated as a pattern as
    well as compared verbatim.
    """

    def __init__(self, allowed_content_types: Sequence[ContentTypeRule]):
        self.allowed_content_types = list(allowed_content_types)

    @property
    def pattern_mode(self) -> bool:
        return any(isinstance(rule, re.Pattern) for rule in self.allowed_content_types)

    def validate_mime_type(self, content_type: str) -> None:
        """
        Validate a content type.

        Args:
            content_type: Content type reported by the file handle

        Raises:
            MimeTypeError: If the content type is not allowed
        """
        if not self.pattern_mode:
            if content_type in self.allowed_content_types:
                return
        elif any(self._matches(rule, content_type) for rule in self.allowed_content_types):
            return

        raise MimeTypeError(f"MIME type '{content_type}' not allowed")

    def _matches(self, rule: ContentTypeRule, content_type: str) -> bool:
        if rule == content_type:
            return True
        try:
            return re.search(rule, content_type) is not None
        except re.error as e:
            logging.warning(f"Ignoring unusable MIME type pattern {rule!r}: {e}")
            return False


class AdmissionValidator:
    """Classifies file records as admissible or not."""

    def __init__(self, config: AdmissionConfig):
        self.config = config

    def _check_mime_type(self, record: FileRecord) -> None:
        MimeTypeValidator(self.config.allowed_content_types).validate_mime_type(record.content_type)

    def _check_size(self, record: FileRecord) -> None:
        SizeValidator(self.config.max_size).validate_size(record.size)

    def is_admissible(self, record: FileRecord) -> bool:
        """Return True when the record passes both the content type and the size check."""
        return not self.rejection_reasons(record)

    def rejection_reasons(self, record: FileRecord) -> List[str]:
        """
        Run each check independently and collect the failures.

        Args:
            record: Record to check

        Returns:
            List[str]: One message per failed check, empty when admissible
        """
        reasons = []
        # Content type is reported before size
        for check in (self._check_mime_type, self._check_size):
            try:
                check(record)
            except FileValidationError as e:
                reasons.append(str(e))
        return reasons


def is_admissible(record: FileRecord, config: AdmissionConfig) -> bool:
    """Return True when ``record`` satisfies the admission rules in ``config``."""
    return AdmissionValidator(config).is_admissible(record)


def rejection_reasons(record: FileRecord, config: AdmissionConfig) -> List[str]:
    """Explain why ``record`` is not admissible under ``config``."""
    return AdmissionValidator(config).rejection_reasons(record)
