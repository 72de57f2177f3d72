"""
Shared Data Models

This module contains the base class for every Firestore document model and the
small embedded models that more than one collection uses.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def new_document_id() -> str:
    """Client-side document id, shared by the optimistic copy and the stored row."""
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FirestoreBaseModel(BaseModel):
    """Base model for all Firestore documents with common configuration."""

    model_config = ConfigDict(
        # Allow population by field name or alias
        populate_by_name=True,
        # Validate assignments
        validate_assignment=True,
    )

    id: str = Field(default_factory=new_document_id, description="Document ID")
    created_at: datetime = Field(
        default_factory=utcnow, description="Record creation timestamp"
    )

    def to_document(self) -> Dict[str, Any]:
        """Serialize to the dict stored in Firestore (the id lives in the reference)."""
        data = self.model_dump(exclude={"id"})
        return {
            key: value.value if isinstance(value, Enum) else value
            for key, value in data.items()
        }


# Embedded Models
class Resolution(BaseModel):
    """Pixel dimensions of a video, embedded in assets."""

    width: int = Field(..., ge=0, description="Frame width in pixels")
    height: int = Field(..., ge=0, description="Frame height in pixels")
