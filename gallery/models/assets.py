"""
Asset Data Models

This module contains the video asset model backing the `videos` collection.
"""

from typing import List, Optional

from pydantic import Field

from gallery.models.shared import FirestoreBaseModel, Resolution

# Fields that an edit may never touch
IMMUTABLE_ASSET_FIELDS = {"id", "created_at", "file_path", "video_url"}


class Asset(FirestoreBaseModel):
    """Video asset document model for the videos collection."""

    file_path: str = Field(..., description="Object path inside the storage bucket")
    video_url: str = Field(..., description="Public URL of the stored object")
    thumbnail_url: Optional[str] = Field(None, description="Optional preview image")
    actor_name: str = Field(..., description="Actor shown in the video")
    movement_type: str = Field(..., description="Movement performed")
    performance_actor: str = Field(..., description="Person who performed the capture")
    take_number: int = Field(..., ge=1, description="Take number of the capture")
    tags: List[str] = Field(default_factory=list, description="Free-form tags")
    resolution: Resolution = Field(..., description="Video dimensions")
    file_size: str = Field(..., description="Human readable file size")
    is_favorite: bool = Field(False, description="Whether the user starred this asset")

    def editable_fields(self) -> dict:
        """Fields sent to the store on update."""
        return self.model_dump(exclude=IMMUTABLE_ASSET_FIELDS)
