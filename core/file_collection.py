"""Ordered collection of file records with status-partitioned views."""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Tuple

from models.file_record import FileRecord
from models.status import StatusType


@dataclass(frozen=True)
class CollectionSnapshot:
    """Derived views computed from one consistent state of the collection."""
    length: int
    valid_files: Tuple[FileRecord, ...]
    invalid_files: Tuple[FileRecord, ...]
    uploaded_files: Tuple[FileRecord, ...]
    deleted_files: Tuple[FileRecord, ...]
    failed_files: Tuple[FileRecord, ...]
    request_size: float


class FileCollection:
    """
    Ordered sequence of file records, oldest first.

    Duplicates are kept: adding the same record twice stores it twice.
    Every mutation (append, remove, clear, status change) recomputes a single
    snapshot from which all views are read, so no view can observe a
    different collection length than another.
    """

    def __init__(self):
        self._records: List[FileRecord] = []
        self._logger = logging.getLogger(__name__)
        self._snapshot = self._compute_snapshot()

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[FileRecord]:
        return iter(list(self._records))

    def __contains__(self, record: object) -> bool:
        # Identity, not equality
        return any(existing is record for existing in self._records)

    @property
    def records(self) -> Tuple[FileRecord, ...]:
        return tuple(self._records)

    @property
    def snapshot(self) -> CollectionSnapshot:
        return self._snapshot

    @property
    def valid_files(self) -> Tuple[FileRecord, ...]:
        return self._snapshot.valid_files

    @property
    def invalid_files(self) -> Tuple[FileRecord, ...]:
        return self._snapshot.invalid_files

    @property
    def uploaded_files(self) -> Tuple[FileRecord, ...]:
        return self._snapshot.uploaded_files

    @property
    def deleted_files(self) -> Tuple[FileRecord, ...]:
        return self._snapshot.deleted_files

    @property
    def failed_files(self) -> Tuple[FileRecord, ...]:
        return self._snapshot.failed_files

    @property
    def request_size(self) -> float:
        """Total size of every valid record."""
        return self._snapshot.request_size

    def get_files(self, status: StatusType) -> List[FileRecord]:
        """Records whose status shares any flag with ``status``, in collection order."""
        return [record for record in self._records if record.status & status]

    def append(self, record: FileRecord) -> None:
        self._records.append(record)
        self._refresh()

    def remove(self, record: FileRecord) -> bool:
        """
        Remove the first occurrence of ``record`` by identity.

        Returns:
            True if the record was a member and has been removed
        """
        for index, existing in enumerate(self._records):
            if existing is record:
                del self._records[index]
                self._refresh()
                return True
        return False

    def clear(self) -> None:
        self._records.clear()
        self._refresh()

    def set_status(self, record: FileRecord, status: StatusType) -> None:
        """Move ``record`` to ``status`` and recompute the views."""
        self._logger.debug(f"{record.name}: {record.status.name} -> {StatusType(status).name}")
        record.apply_status(status)
        self._refresh()

    def _refresh(self) -> None:
        self._snapshot = self._compute_snapshot()

    def _compute_snapshot(self) -> CollectionSnapshot:
        valid_files = tuple(self.get_files(StatusType.VALID))
        return CollectionSnapshot(
            length=len(self._records),
            valid_files=valid_files,
            invalid_files=tuple(self.get_files(StatusType.INVALID)),
            uploaded_files=tuple(self.get_files(StatusType.UPLOADED)),
            deleted_files=tuple(self.get_files(StatusType.DELETED)),
            failed_files=tuple(self.get_files(StatusType.FAILED)),
            request_size=sum((record.size for record in valid_files), 0),
        )
