"""API endpoints and route handlers."""

from .endpoints import (
    abort_upload,
    add_files,
    clear_files,
    delete_file,
    get_file_preview,
    list_files,
    set_admission_engine,
    update_mime_types,
    upload_files,
)

__all__ = [
    "list_files",
    "add_files",
    "delete_file",
    "clear_files",
    "upload_files",
    "abort_upload",
    "update_mime_types",
    "get_file_preview",
    "set_admission_engine",
]
