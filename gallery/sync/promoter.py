"""
Gallery Promoter

Saves the output of a finished generation task as a permanent asset, then
retires the task and its temporary inputs.
"""

import logging
from traceback import format_exc
from typing import List

from gallery.exceptions import PromotionError
from gallery.models import Asset, GenerationTask, TaskStatus
from gallery.services.media import format_file_size, probe_resolution
from gallery.sync.engine import SyncEngine
from gallery.sync.uploads import storage_path

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class GalleryPromoter:
    """Promotes succeeded generation tasks into the asset collection."""

    def __init__(self, engine: SyncEngine):
        self.engine = engine

    async def promote(
        self, task: GenerationTask, actor_name: str, tags: List[str]
    ) -> Asset:
        """
        Save a succeeded task's output to the gallery.

        Any failure before the asset row exists leaves the task untouched so the
        user can retry. Failures while retiring the task are only logged.

        Args:
            task: A task in SUCCEEDED state with an output URL
            actor_name: Final actor name for the asset
            tags: Final tag list for the asset

        Returns:
            The new asset

        Raises:
            PromotionError: If the output could not be fetched, measured, stored or recorded
        """
        task = self.engine.store.get_task(task.id) or task
        if TaskStatus(task.status) != TaskStatus.SUCCEEDED or not task.output_video_url:
            raise PromotionError(f"Task {task.id} has no finished output to save")

        gateway = self.engine.gateway
        metadata = task.initial_metadata
        filename = f"{metadata.performance_actor}_{metadata.movement_type}_{actor_name}.mp4"

        try:
            data = await gateway.download(task.output_video_url)
            resolution = await probe_resolution(data)
            path = storage_path(task.user_id, filename)
            await gateway.upload_object(path, data, content_type="video/mp4")
        except Exception as e:
            logger.error(
                f"Error saving generated asset to gallery: {str(e)}\n{format_exc()}"
            )
            raise PromotionError(f"Failed to save output of task {task.id}: {e}") from e

        asset = Asset(
            file_path=path,
            video_url=gateway.public_url(path),
            actor_name=actor_name,
            movement_type=metadata.movement_type,
            performance_actor=metadata.performance_actor,
            take_number=metadata.take_number,
            tags=tags,
            resolution=resolution,
            file_size=format_file_size(len(data)),
            is_favorite=False,
        )
        if not await self.engine.add_asset(asset):
            raise PromotionError(f"Failed to record the asset for task {task.id}")

        # The asset is saved; from here on failures leave orphans behind
        if not await self.engine.delete_task(task.id):
            logger.error(f"Generation task {task.id} could not be removed after promotion")

        await self.engine.reload()
        logger.info(f"Promoted task {task.id} to asset {asset.id}")
        return asset
