"""Preview rendering for admitted files."""

from .previews import ImagePreview, PreviewLoader

__all__ = [
    "ImagePreview",
    "PreviewLoader",
]
