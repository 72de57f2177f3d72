"""
Task Data Models

This module contains the generation task model, its status state machine and
the response shapes of the external generation API.
"""

from enum import Enum
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, Field

from gallery.models.shared import FirestoreBaseModel


class TaskStatus(str, Enum):
    """Generation task status enumeration."""

    UPLOADING = "UPLOADING"  # Local only, before the external job exists
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    ARCHIVED = "ARCHIVED"  # Reachable only by deletion

    @property
    def is_active(self) -> bool:
        """Whether the external job may still change state."""
        return self in (TaskStatus.PENDING, TaskStatus.RUNNING)

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.SUCCEEDED, TaskStatus.FAILED, TaskStatus.ARCHIVED)

    def can_transition_to(self, new_status: "TaskStatus") -> bool:
        return new_status in TASK_TRANSITIONS[self]


TASK_TRANSITIONS = {
    TaskStatus.UPLOADING: {TaskStatus.PENDING, TaskStatus.FAILED},
    TaskStatus.PENDING: {TaskStatus.RUNNING, TaskStatus.SUCCEEDED, TaskStatus.FAILED},
    TaskStatus.RUNNING: {TaskStatus.SUCCEEDED, TaskStatus.FAILED},
    TaskStatus.SUCCEEDED: set(),
    TaskStatus.FAILED: set(),
    TaskStatus.ARCHIVED: set(),
}

# External statuses that have no counterpart of their own
EXTERNAL_STATUS_ALIASES = {
    "THROTTLED": TaskStatus.PENDING,
    "CANCELLED": TaskStatus.FAILED,
}


def parse_external_status(raw: str) -> Optional[TaskStatus]:
    """Map a status reported by the job API onto TaskStatus, or None if unknown."""
    normalized = (raw or "").strip().upper()
    if normalized in EXTERNAL_STATUS_ALIASES:
        return EXTERNAL_STATUS_ALIASES[normalized]
    try:
        status = TaskStatus(normalized)
    except ValueError:
        return None
    # Never produced by the external service
    if status in (TaskStatus.UPLOADING, TaskStatus.ARCHIVED):
        return None
    return status


class InitialMetadata(BaseModel):
    """Metadata the promoted asset will carry, captured at submission time."""

    performance_actor: str = Field(..., description="Performer of the reference video")
    movement_type: str = Field(..., description="Movement performed")
    take_number: int = Field(1, ge=1, description="Take number")
    tags: List[str] = Field(default_factory=list, description="Tags for the asset")
    character_asset_name: str = Field(..., description="Character input file name")
    reference_video_name: str = Field(..., description="Reference input file name")


class GenerationTask(FirestoreBaseModel):
    """Generation task document model for the generation_tasks collection."""

    user_id: str = Field(..., description="Owner of the task")
    runway_task_id: Optional[str] = Field(
        None, description="External job id, set once the job is accepted"
    )
    status: TaskStatus = Field(TaskStatus.UPLOADING, description="Task status")
    initial_metadata: InitialMetadata = Field(..., description="Intended asset metadata")
    input_reference_video_url: Optional[str] = Field(
        None, description="Temporary URL of the reference video"
    )
    input_character_url: Optional[str] = Field(
        None, description="Temporary URL of the character input"
    )
    output_video_url: Optional[str] = Field(None, description="Set only on success")
    error_message: Optional[str] = Field(None, description="Set only on failure")


# External job API responses
class JobSubmission(BaseModel):
    id: str


class JobStatusReport(BaseModel):
    """Status of one external job as reported by the generation API."""

    status: str
    output: Optional[Any] = None
    error: Optional[str] = Field(
        None, validation_alias=AliasChoices("error", "failure")
    )

    @property
    def output_url(self) -> Optional[str]:
        """First output URL, whether reported as a string, {uri} or a list of them."""
        output = self.output
        if isinstance(output, list):
            output = output[0] if output else None
        if isinstance(output, dict):
            output = output.get("uri") or output.get("url")
        return output if isinstance(output, str) and output else None
