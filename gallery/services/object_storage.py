"""
Object Storage Service

Binary object store backed by a Google Cloud Storage bucket. The storage SDK
is blocking, so every network call is handed to a worker thread to keep the
event loop free.
"""

import asyncio
import logging
from traceback import format_exc
from typing import Optional, Sequence
from urllib.parse import quote, unquote, urlparse

from google.cloud import storage

from gallery.exceptions import ObjectStoreError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

PUBLIC_HOST = "storage.googleapis.com"


class ObjectStorageService:
    """Upload, resolve and remove objects in one bucket."""

    def __init__(self, bucket_name: str):
        self.bucket_name = bucket_name
        self._bucket: Optional[storage.Bucket] = None

    @property
    def bucket(self) -> storage.Bucket:
        """Get or create the bucket handle."""
        if self._bucket is None:
            self._bucket = storage.Client().bucket(self.bucket_name)
        return self._bucket

    async def upload(
        self, path: str, data: bytes, content_type: str = "video/mp4"
    ) -> None:
        """Store bytes under a path, overwriting nothing the caller did not name."""
        try:
            blob = self.bucket.blob(path)
            await asyncio.to_thread(
                blob.upload_from_string, data, content_type=content_type
            )
            logger.info(f"Uploaded {len(data)} bytes to {path}")
        except Exception as e:
            logger.error(f"Failed to upload {path}: {str(e)}\n{format_exc()}")
            raise ObjectStoreError(f"Failed to upload {path}: {e}") from e

    def public_url(self, path: str) -> str:
        """Public URL of an object; does not check the object exists."""
        return f"https://{PUBLIC_HOST}/{self.bucket_name}/{quote(path, safe='/~')}"

    def path_from_public_url(self, url: str) -> Optional[str]:
        """Recover the object path from a URL produced by public_url."""
        parsed = urlparse(url)
        prefix = f"/{self.bucket_name}/"
        if parsed.netloc != PUBLIC_HOST or not parsed.path.startswith(prefix):
            return None
        return unquote(parsed.path[len(prefix) :]) or None

    async def remove(self, paths: Sequence[str]) -> None:
        """Delete several objects in one call. Missing objects are ignored."""
        paths = [path for path in paths if path]
        if not paths:
            return

        try:
            blobs = [self.bucket.blob(path) for path in paths]
            await asyncio.to_thread(
                self.bucket.delete_blobs, blobs, on_error=lambda blob: None
            )
            logger.info(f"Removed {len(paths)} object(s) from {self.bucket_name}")
        except Exception as e:
            logger.error(f"Failed to remove objects {paths}: {str(e)}\n{format_exc()}")
            raise ObjectStoreError(f"Failed to remove objects: {e}") from e
