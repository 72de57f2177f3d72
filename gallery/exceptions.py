"""
Gallery Exceptions

Error kinds raised by the services and the sync engine. Remote failures are
wrapped into these after being logged, so callers only deal with one family.
"""

from typing import Optional


class GalleryError(Exception):
    """Base class for every error raised by the gallery package."""


class RemoteStoreError(GalleryError):
    """A row insert, update, delete or select was rejected by the store."""


class ObjectStoreError(GalleryError):
    """An object upload or removal failed."""


class JobApiError(GalleryError):
    """The external generation API answered with a non-2xx status or was unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CategoryValidationError(GalleryError):
    """A category name was rejected before any remote call was made."""


class IngestionError(GalleryError):
    """A batch upload was aborted."""


class PromotionError(GalleryError):
    """A generated video could not be saved to the gallery."""


class SubmissionError(GalleryError):
    """A generation job could not be submitted."""
