"""FastAPI route handlers exposing the admission engine."""

import logging
import math
from typing import Any, Dict, List, Optional

from fastapi import File, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from core.admission_engine import AdmissionEngine
from core.config import parse_mime_rule
from document_processing.previews import PreviewLoader
from models.file_record import FileHandle, FileInput, FileRecord
from models.status import MimeMode, StatusType

# Admission engine will be injected from main.py
admission_engine: Optional[AdmissionEngine] = None

preview_loader = PreviewLoader()


class MimeTypesUpdate(BaseModel):
    """Body for changing the allowed MIME types."""
    types: List[str]
    mode: MimeMode = MimeMode.APPEND


def set_admission_engine(engine_instance: AdmissionEngine) -> None:
    """Set the admission engine instance for use in endpoints."""
    global admission_engine
    admission_engine = engine_instance


def get_admission_engine() -> AdmissionEngine:
    if admission_engine is None:
        raise RuntimeError("Admission engine has not been initialized")
    return admission_engine


def _finite_or_none(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


def serialize_record(record: FileRecord, reasons: Optional[List[str]] = None) -> Dict[str, Any]:
    """Convert a record into a JSON-friendly dict."""
    data = {
        "id": record.id,
        "name": record.name,
        "content_type": record.content_type,
        "size": _finite_or_none(record.size),
        "status": record.status.name.lower(),
    }
    if reasons is not None:
        data["rejection_reasons"] = reasons
    return data


def serialize_state(engine: AdmissionEngine) -> Dict[str, Any]:
    """Serialize every view from the same collection snapshot."""
    snapshot = engine.collection.snapshot
    return {
        "total": snapshot.length,
        "valid": [serialize_record(r) for r in snapshot.valid_files],
        "invalid": [serialize_record(r) for r in snapshot.invalid_files],
        "uploaded": [serialize_record(r) for r in snapshot.uploaded_files],
        "failed": [serialize_record(r) for r in snapshot.failed_files],
        "request_size": _finite_or_none(snapshot.request_size),
        "upload_status": {
            "uploading": engine.upload_status.uploading,
            "percent_complete": engine.upload_status.percent_complete,
            "error": engine.upload_status.error,
        },
    }


async def list_files():
    """Return every view over the admitted files."""
    return JSONResponse(content=serialize_state(get_admission_engine()))


async def add_files(files: List[UploadFile] = File(...)):
    """
    Admit submitted files.

    Each multipart part becomes a record; rejected records are returned with
    the reasons they failed admission.

    Returns:
        JSONResponse with accepted and rejected records
    """
    engine = get_admission_engine()

    records = []
    for upload in files:
        content = await upload.read()
        handle = FileHandle.from_bytes(upload.filename or "", content, upload.content_type or "")
        records.append(FileRecord(handle))

    engine.add_files(*[FileInput.existing(record) for record in records])

    accepted = [serialize_record(r) for r in records if r.status == StatusType.VALID]
    rejected = [serialize_record(r, engine.rejection_reasons(r)) for r in records if r.status == StatusType.INVALID]
    logging.info(f"Received {len(records)} file(s): {len(accepted)} accepted, {len(rejected)} rejected")

    return JSONResponse(content={"accepted": accepted, "rejected": rejected}, status_code=201)


async def delete_file(record_id: str):
    """Delete one admitted file."""
    engine = get_admission_engine()
    record = engine.find_record(record_id)
    if record is None:
        return JSONResponse(content={"error": "File not found"}, status_code=404)

    engine.delete_files(record)
    return JSONResponse(content={"deleted": serialize_record(record)})


async def clear_files():
    """Delete every admitted file."""
    engine = get_admission_engine()
    removed = len(engine.files)
    engine.clear_files()
    return JSONResponse(content={"deleted_count": removed})


async def upload_files():
    """
    Upload every valid file.

    Configuration and transport failures propagate to the error middleware.
    """
    engine = get_admission_engine()
    result = await engine.upload()
    return JSONResponse(content={
        "uploaded": [serialize_record(r) for r in result.uploaded],
        "failed": [serialize_record(r) for r in result.failed],
        "upload_status": serialize_state(engine)["upload_status"],
    })


async def abort_upload():
    """Abort the in-flight upload, if any."""
    engine = get_admission_engine()
    was_uploading = engine.upload_status.uploading
    engine.abort_upload()
    return JSONResponse(content={"aborted": was_uploading})


async def update_mime_types(update: MimeTypesUpdate):
    """Append to or replace the allowed MIME types."""
    engine = get_admission_engine()
    rules = [parse_mime_rule(entry.strip()) for entry in update.types if entry.strip()]
    engine.set_mime_types(rules, update.mode)
    allowed = [rule if isinstance(rule, str) else f"/{rule.pattern}/" for rule in engine.config.allowed_content_types]
    return JSONResponse(content={"mime_types": allowed})


async def get_file_preview(record_id: str):
    """Return a data URL for an admitted image."""
    engine = get_admission_engine()
    record = engine.find_record(record_id)
    if record is None:
        return JSONResponse(content={"error": "File not found"}, status_code=404)

    data_url = await preview_loader.load_data_url(record)
    if data_url is None:
        return JSONResponse(content={"error": "Preview is only available for images"}, status_code=415)

    return JSONResponse(content={"id": record.id, "data_url": data_url})
