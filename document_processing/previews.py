"""Image previews for admitted files."""

import asyncio
import base64
import logging
from dataclasses import dataclass
from typing import Optional

from models.file_record import FileRecord


@dataclass
class ImagePreview:
    """Schema for a rendered preview."""
    record_id: str
    content_type: str
    data_url: str


class PreviewLoader:
    """
    Decodes image records into ``data:`` URLs.

    Reading happens off the event loop. Previewing never changes a
    record's status.
    """

    def __init__(self):
        self._logger = logging.getLogger(__name__)

    async def load_data_url(self, record: FileRecord) -> Optional[str]:
        """
        Read an image record and encode it as a data URL.

        Args:
            record: Record to preview

        Returns:
            str: ``data:<type>;base64,<payload>``, or None for non-image records
        """
        if not record.is_image():
            self._logger.debug(f"Skipping preview for non-image file {record.name}")
            return None

        content = await asyncio.to_thread(record.handle.read)
        payload = base64.b64encode(content).decode("ascii")
        return f"data:{record.content_type};base64,{payload}"

    async def load_preview(self, record: FileRecord) -> Optional[ImagePreview]:
        data_url = await self.load_data_url(record)
        if data_url is None:
            return None
        return ImagePreview(record_id=record.id, content_type=record.content_type, data_url=data_url)
