"""Admission engine: owns the file collection and drives the action protocol."""

import asyncio
import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Union

from core.file_collection import FileCollection
from core.upload_transport import HttpUploadTransport, UploadTransport
from models.errors import ConfigurationError, UploadInProgressError
from models.file_record import FileInput, FileRecord, InputKind
from models.status import MimeMode, StatusType, TERMINAL_STATUSES
from models.validation import AdmissionConfig, ContentTypeRule, UploadResult, UploadStatus
from validation.validators import AdmissionValidator

URL_REQUIRED_MESSAGE = "You must specify the upload URL before uploading files."

Hook = Callable[..., Any]


def _noop(*records: FileRecord) -> None:
    return None


@dataclass
class Hooks:
    """Lifecycle callbacks, each called with the affected records."""
    did_add: Hook = field(default=_noop)
    did_delete: Hook = field(default=_noop)
    did_upload: Hook = field(default=_noop)


class AdmissionEngine:
    """
    Admits files, tracks their status and drives uploads.

    This class provides:
    - Classification of incoming files against the admission rules
    - Status-partitioned views over the admitted files
    - Deletion and clearing with per-call hooks
    - A single in-flight upload that can be aborted
    - Runtime changes to the allowed MIME types

    Config, hooks, collection and upload status are created per instance.
    """

    def __init__(
        self,
        config: Optional[AdmissionConfig] = None,
        hooks: Optional[Hooks] = None,
        transport: Optional[UploadTransport] = None,
    ):
        self.config = copy.deepcopy(config) if config is not None else AdmissionConfig()
        self.hooks = hooks or Hooks()
        self.collection = FileCollection()
        self.upload_status = UploadStatus()
        self._transport = transport or HttpUploadTransport()
        self._validator = AdmissionValidator(self.config)
        self._last_request: Optional[asyncio.Task] = None
        self._aborted_request: Optional[asyncio.Task] = None
        self._logger = logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def files(self):
        return self.collection.records

    @property
    def valid_files(self):
        return self.collection.valid_files

    @property
    def invalid_files(self):
        return self.collection.invalid_files

    @property
    def uploaded_files(self):
        return self.collection.uploaded_files

    @property
    def deleted_files(self):
        return self.collection.deleted_files

    @property
    def failed_files(self):
        return self.collection.failed_files

    @property
    def request_size(self) -> float:
        return self.collection.request_size

    def get_files(self, status: StatusType) -> List[FileRecord]:
        return self.collection.get_files(status)

    def find_record(self, record_id: str) -> Optional[FileRecord]:
        for record in self.collection:
            if record.id == record_id:
                return record
        return None

    @property
    def url(self) -> Any:
        """
        Resolve the configured upload URL.

        Raises:
            ConfigurationError: If no URL has been configured
        """
        url = self.config.url() if callable(self.config.url) else self.config.url
        if not url:
            raise ConfigurationError(URL_REQUIRED_MESSAGE)
        return url

    def is_valid(self, record: FileRecord) -> bool:
        return self._validator.is_admissible(record)

    def rejection_reasons(self, record: FileRecord) -> List[str]:
        return self._validator.rejection_reasons(record)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def add_files(self, *inputs: FileInput) -> None:
        """
        Classify and store each input.

        Raw handles are wrapped in new records; existing records are used as
        they are. Inputs that carry nothing usable, and records that already
        reached a terminal status, are dropped without error. ``did_add``
        receives the records that were accepted as valid, in input order.
        """
        accepted = []
        for item in inputs:
            record = self._record_for(item)
            if record is None:
                continue

            status = StatusType.VALID if self.is_valid(record) else StatusType.INVALID
            self.collection.set_status(record, status)
            self.collection.append(record)
            self._logger.debug(f"Admitted {record.name} ({record.content_type or 'unknown type'}) as {status.name}")

            if status == StatusType.VALID:
                accepted.append(record)

        if accepted:
            self._logger.info(f"Added {len(accepted)} valid file(s)")
            self.hooks.did_add(*accepted)

    def delete_files(self, *records: FileRecord) -> None:
        """Mark member records as deleted and remove them from the collection."""
        deleted = []
        for record in records:
            if not isinstance(record, FileRecord) or record not in self.collection:
                continue
            self.collection.set_status(record, StatusType.DELETED)
            self.collection.remove(record)
            deleted.append(record)

        if deleted:
            self._logger.info(f"Deleted {len(deleted)} file(s)")
            self.hooks.did_delete(*deleted)

    def clear_files(self) -> None:
        """Delete every record one at a time, then empty the collection."""
        for record in self.collection:
            self.delete_files(record)
        self.collection.clear()

    async def upload_files(self) -> List[FileRecord]:
        """
        Upload every valid record in one request.

        Returns:
            The records the server accepted, now UPLOADED

        Raises:
            ConfigurationError: If no URL has been configured
            UploadInProgressError: If another upload is still in flight
            TransportError: If the request failed; statuses are left unchanged
        """
        result = await self.upload()
        return result.uploaded

    async def upload(self) -> UploadResult:
        """
        Upload every valid record and report what this request did.

        Records deleted while the request was in flight keep their status and
        are left out of the result.
        """
        url = self.url
        if self.upload_status.uploading:
            raise UploadInProgressError()

        records = list(self.valid_files)
        if not records:
            self._logger.info("No valid files to upload")
            return UploadResult()

        self.upload_status.uploading = True
        self.upload_status.percent_complete = 0
        self.upload_status.error = False
        task = asyncio.ensure_future(self._transport.send(url, records, self.config))
        self._last_request = task

        try:
            response = await task
        except asyncio.CancelledError:
            if self._aborted_request is not task:
                raise
            self._aborted_request = None
            self._logger.warning(f"Upload of {len(records)} file(s) aborted")
            return UploadResult()
        except Exception:
            if self._last_request is task:
                self.upload_status.error = True
            self._logger.warning(f"Upload of {len(records)} file(s) failed", exc_info=True)
            raise
        finally:
            if self._last_request is task:
                self.upload_status.uploading = False

        result = UploadResult(
            uploaded=[r for r in response.uploaded if self._awaiting_upload(r)],
            failed=[r for r in response.failed if self._awaiting_upload(r)],
        )
        for record in result.uploaded:
            self.collection.set_status(record, StatusType.UPLOADED)
        for record in result.failed:
            self.collection.set_status(record, StatusType.FAILED)
        self.upload_status.percent_complete = 100

        self._logger.info(f"Uploaded {len(result.uploaded)} file(s), {len(result.failed)} rejected by server")
        if result.uploaded:
            self.hooks.did_upload(*result.uploaded)
        return result

    def abort_upload(self) -> None:
        """Cancel the in-flight upload, if there is one."""
        if self._last_request is not None and self.upload_status.uploading:
            self._aborted_request = self._last_request
            self._last_request.cancel()
            self.upload_status.uploading = False

    def set_mime_types(
        self,
        types: Union[ContentTypeRule, Iterable[ContentTypeRule]],
        mode: MimeMode = MimeMode.APPEND,
    ) -> None:
        """
        Extend or replace the allowed content types.

        Already admitted records are not re-validated.
        """
        if mode == MimeMode.REPLACE:
            self.config.allowed_content_types.clear()
        if isinstance(types, (str, bytes)) or not isinstance(types, Iterable):
            types = [types]
        self.config.allowed_content_types.extend(types)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _awaiting_upload(self, record: FileRecord) -> bool:
        return record in self.collection and record.status == StatusType.VALID

    def _record_for(self, item: Any) -> Optional[FileRecord]:
        kind = getattr(item, "kind", None)
        if kind == InputKind.RAW and item.handle is not None:
            return FileRecord(item.handle)
        if kind == InputKind.RECORD and item.record is not None:
            if item.record.status & TERMINAL_STATUSES:
                return None
            return item.record
        return None
