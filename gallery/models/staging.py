"""
Staging Models

Client-local models describing files staged for upload. None of these are ever
persisted; a batch lives only as long as the upload session that built it.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from gallery.models.shared import Resolution, new_document_id


class StagedFile(BaseModel):
    """A local file chosen for upload."""

    id: str = Field(default_factory=new_document_id, description="Local staging id")
    path: Path = Field(..., description="Location of the file on disk")
    filename: Optional[str] = Field(None, description="Name used in the storage path")
    resolution: Optional[Resolution] = Field(
        None, description="Measured dimensions, probed at upload time when missing"
    )

    @property
    def display_name(self) -> str:
        return self.filename or self.path.name


class StagedSourceFile(StagedFile):
    """The performance capture a batch is built around."""

    actor_name: str = Field("", description="Unused for sources; the performer is the actor")
    movement_type: str = Field(..., description="Movement performed")
    performance_actor: str = Field(..., description="Person who performed the capture")
    take_number: int = Field(1, ge=1, description="Take number")
    tags: str = Field("", description="Comma separated tags")

    def tag_list(self) -> List[str]:
        return [tag.strip() for tag in self.tags.split(",") if tag.strip()]


class StagedResultFile(StagedFile):
    """A rendering derived from the batch source, sharing its metadata."""

    actor_name: str = Field(..., description="Actor shown in the rendering")


class PerformanceBatch(BaseModel):
    """One source capture plus the result files rendered from it."""

    id: str = Field(default_factory=new_document_id, description="Local batch id")
    source_file: StagedSourceFile
    result_files: List[StagedResultFile] = Field(default_factory=list)
