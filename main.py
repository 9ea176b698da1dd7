"""
Droplet - file admission, status tracking and upload service.

This is the main entry point for the FastAPI application.
"""

import logging
from typing import Optional

from fastapi import FastAPI

from core.admission_engine import AdmissionEngine
from core.config import (
    AppConfig,
    create_admission_engine,
    create_fastapi_app,
    setup_logging,
    setup_middleware,
)
from api.endpoints import (
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


def create_app(engine: Optional[AdmissionEngine] = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    # Initialize configuration
    config = AppConfig()

    # Setup logging
    setup_logging(config.log_level)

    # Create FastAPI app
    app = create_fastapi_app()

    # Setup middleware
    setup_middleware(app, config)

    # Inject dependencies into endpoints
    set_admission_engine(engine or create_admission_engine(config))

    # Register routes
    app.get("/files")(list_files)
    app.post("/files")(add_files)
    app.delete("/files")(clear_files)
    app.post("/files/upload")(upload_files)
    app.post("/files/abort")(abort_upload)
    app.delete("/files/{record_id}")(delete_file)
    app.get("/files/{record_id}/preview")(get_file_preview)
    app.put("/mime-types")(update_mime_types)

    logging.info("FastAPI application created and configured successfully")
    logging.info(
        f"Configuration: maximum_size={config.maximum_size}, mime_types={len(config.mime_types)}, "
        f"upload_url={'set' if config.upload_url else 'unset'}"
    )

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    # Run the application
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
