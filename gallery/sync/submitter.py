import asyncio
import logging
import mimetypes
from pathlib import Path
from typing import List, Optional, Union

from gallery.exceptions import SubmissionError
from gallery.models import GenerationTask, InitialMetadata, TaskStatus
from gallery.services.media import read_file
from gallery.sync.engine import SyncEngine
from gallery.sync.uploads import storage_path

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_MODEL = "act_two"
DEFAULT_RATIO = "1280:720"


def _media_type(path: Path) -> str:
    content_type = mimetypes.guess_type(path.name)[0] or ""
    return "image" if content_type.startswith("image/") else "video"


class GenerationSubmitter:
    """Creates generation tasks and hands their inputs to the external job API."""

    def __init__(self, engine: SyncEngine):
        self.engine = engine

    async def _upload_input(self, user_id: str, path: Path) -> str:
        gateway = self.engine.gateway
        data = await read_file(path)
        object_path = storage_path(f"{user_id}/generation-inputs", path.name)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        await gateway.upload_object(object_path, data, content_type=content_type)
        return gateway.public_url(object_path)

    async def submit(
        self,
        user_id: str,
        character_path: Union[str, Path],
        reference_path: Union[str, Path],
        performance_actor: str,
        movement_type: str,
        take_number: int = 1,
        tags: Optional[List[str]] = None,
        ratio: str = DEFAULT_RATIO,
        model: str = DEFAULT_MODEL,
    ) -> GenerationTask:
        """
        Submit a character performance job.

        The task row is created as UPLOADING before anything leaves the machine,
        so the user sees it immediately. Once the external API accepts the job
        the task moves to PENDING with the external job id.

        Returns:
            The submitted task as currently held in the local state

        Raises:
            SubmissionError: If the task could not be created, the job was rejected or
                its id could not be recorded; in the latter cases the task is marked FAILED
        """
        character_path = Path(character_path)
        reference_path = Path(reference_path)

        task = GenerationTask(
            user_id=user_id,
            status=TaskStatus.UPLOADING,
            initial_metadata=InitialMetadata(
                performance_actor=performance_actor,
                movement_type=movement_type,
                take_number=take_number,
                tags=tags or [],
                character_asset_name=character_path.name,
                reference_video_name=reference_path.name,
            ),
        )
        if not await self.engine.create_task(task):
            raise SubmissionError("Failed to create the generation task")

        try:
            character_url, reference_url = await asyncio.gather(
                self._upload_input(user_id, character_path),
                self._upload_input(user_id, reference_path),
            )
            recorded = await self.engine.update_task(
                task.id,
                input_character_url=character_url,
                input_reference_video_url=reference_url,
            )
            if not recorded:
                raise SubmissionError("Failed to record the uploaded inputs")

            submission = await self.engine.gateway.submit_job(
                {
                    "character": {"type": _media_type(character_path), "uri": character_url},
                    "reference": {"type": "video", "uri": reference_url},
                    "ratio": ratio,
                    "model": model,
                }
            )
        except Exception as e:
            logger.error(f"Failed to submit generation task {task.id}: {str(e)}")
            await self.engine.update_task(
                task.id, status=TaskStatus.FAILED, error_message=str(e)
            )
            raise SubmissionError(f"Failed to submit generation task: {e}") from e

        recorded = await self.engine.update_task(
            task.id, runway_task_id=submission.id, status=TaskStatus.PENDING
        )
        if not recorded:
            # An unrecorded job is never polled
            logger.error(f"Failed to record job {submission.id} for task {task.id}")
            await self.engine.cancel_external(submission.id)
            await self.engine.update_task(
                task.id,
                status=TaskStatus.FAILED,
                error_message=f"Failed to record external job {submission.id}",
            )
            raise SubmissionError(f"Failed to record external job {submission.id}")

        logger.info(f"Submitted generation task {task.id} as job {submission.id}")
        return self.engine.store.get_task(task.id) or task
