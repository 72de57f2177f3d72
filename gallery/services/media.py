import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from moviepy import VideoFileClip

from gallery.models import Resolution

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def format_file_size(num_bytes: int) -> str:
    """Display size in megabytes, e.g. '12.34 MB'."""
    return f"{num_bytes / 1024 / 1024:.2f} MB"


def _probe_path(path: Union[str, Path]) -> Resolution:
    clip = VideoFileClip(str(path), audio=False)
    try:
        width, height = clip.size
        return Resolution(width=int(width), height=int(height))
    finally:
        clip.close()


def _probe_bytes(data: bytes, suffix: str) -> Resolution:
    # moviepy reads from disk, so the bytes go through a temporary file
    fd, temp_path = tempfile.mkstemp(suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        return _probe_path(temp_path)
    finally:
        os.remove(temp_path)


async def probe_file_resolution(path: Union[str, Path]) -> Resolution:
    """Pixel dimensions of a video file on disk."""
    resolution = await asyncio.to_thread(_probe_path, path)
    logger.debug(f"Probed {path}: {resolution.width}x{resolution.height}")
    return resolution


async def probe_resolution(data: bytes, suffix: str = ".mp4") -> Resolution:
    """Pixel dimensions of an in-memory video."""
    return await asyncio.to_thread(_probe_bytes, data, suffix)


async def read_file(path: Union[str, Path]) -> bytes:
    return await asyncio.to_thread(Path(path).read_bytes)
