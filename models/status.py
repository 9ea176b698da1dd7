"""Status flags and MIME list modes for admitted files."""

from enum import Enum, IntFlag


class StatusType(IntFlag):
    """Lifecycle status of a file record.

    Declared as bit flags so views can select several statuses at once,
    but a record only ever holds one of them.
    """
    NONE = 0
    VALID = 1
    INVALID = 2
    DELETED = 4
    UPLOADED = 8
    FAILED = 16


# Statuses a record can never be re-admitted from
TERMINAL_STATUSES = StatusType.DELETED | StatusType.UPLOADED | StatusType.FAILED


class MimeMode(Enum):
    """How new MIME types are merged into the allowed list."""
    APPEND = "append"
    REPLACE = "replace"
