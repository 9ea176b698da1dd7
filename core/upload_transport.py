"""HTTP transport that sends admitted files to the upload endpoint."""

import asyncio
import logging
import math
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx

from models.errors import TransportError
from models.file_record import FileRecord
from models.validation import AdmissionConfig, UploadResult

FILE_SIZE_HEADER = "X-File-Size"
DEFAULT_TIMEOUT = 30.0


class UploadTransport(Protocol):
    """Sends a batch of records to ``url`` and reports what the server kept."""

    async def send(self, url: str, records: Sequence[FileRecord], config: AdmissionConfig) -> UploadResult:
        ...


class HttpUploadTransport:
    """
    Multipart upload over httpx.

    All records go in a single request. The field name is ``file[]`` when
    ``config.use_array`` is set and ``file`` otherwise. A 2xx response
    accepts every record unless its JSON body lists file names under
    ``failed``; those records are reported back as failed.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = DEFAULT_TIMEOUT):
        self._client = client
        self._timeout = timeout
        self._logger = logging.getLogger(__name__)

    async def send(self, url: str, records: Sequence[FileRecord], config: AdmissionConfig) -> UploadResult:
        field_name = "file[]" if config.use_array else "file"
        contents = await asyncio.gather(*(asyncio.to_thread(record.handle.read) for record in records))
        files = [
            (field_name, (record.name, content, record.content_type or "application/octet-stream"))
            for record, content in zip(records, contents)
        ]
        headers: Dict[str, str] = {}
        request_size = sum(record.size for record in records)
        if config.include_header and math.isfinite(request_size):
            headers[FILE_SIZE_HEADER] = str(int(request_size))

        self._logger.info(f"Uploading {len(records)} file(s) to {url} via {config.request_method}")

        try:
            if self._client is not None:
                response = await self._client.request(config.request_method, url, files=files, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.request(config.request_method, url, files=files, headers=headers)
        except httpx.HTTPError as e:
            raise TransportError(f"Upload request to {url} failed: {e}") from e

        if not response.is_success:
            raise TransportError(
                f"Upload rejected by server: [{response.status_code}] {response.text[:200]}",
                status_code=response.status_code,
            )

        return self._build_result(records, self._failed_names(response))

    def _failed_names(self, response: httpx.Response) -> List[str]:
        try:
            body: Any = response.json()
        except ValueError:
            return []
        if isinstance(body, dict) and isinstance(body.get("failed"), list):
            return [str(name) for name in body["failed"]]
        return []

    def _build_result(self, records: Sequence[FileRecord], failed_names: List[str]) -> UploadResult:
        failed = set(failed_names)
        result = UploadResult()
        for record in records:
            if record.name in failed:
                result.failed.append(record)
            else:
                result.uploaded.append(record)
        return result
