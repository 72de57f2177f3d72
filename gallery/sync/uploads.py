"""
Upload Orchestrator

Turns staged performance batches into stored objects and asset rows:
categories first, then every file uploaded concurrently, then one batch insert
of the asset rows.
"""

import asyncio
import logging
import mimetypes
from typing import List
from uuid import uuid4

from pydantic import BaseModel, Field

from gallery.exceptions import IngestionError
from gallery.models import (
    Asset,
    Category,
    PerformanceBatch,
    StagedFile,
    StagedSourceFile,
)
from gallery.services.media import format_file_size, probe_file_resolution, read_file
from gallery.sync.engine import SyncEngine
from gallery.sync.reconciler import CategoryReconciler

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def storage_path(user_id: str, filename: str) -> str:
    """Unique object path scoped to the user."""
    return f"{user_id}/{uuid4()}-{filename}"


class PlannedUpload(BaseModel):
    staged: StagedFile
    source: StagedSourceFile
    actor_name: str
    path: str


class IngestionReport(BaseModel):
    """Outcome of one ingestion."""

    assets: List[Asset] = Field(default_factory=list, description="Inserted asset rows")
    categories: List[Category] = Field(
        default_factory=list, description="Category rows created for the batch"
    )
    failed_files: List[str] = Field(
        default_factory=list, description="Staged files that could not be uploaded"
    )


class UploadOrchestrator:
    """Uploads performance batches and records them as assets."""

    def __init__(self, engine: SyncEngine, reconciler: CategoryReconciler):
        self.engine = engine
        self.reconciler = reconciler

    @property
    def gateway(self):
        return self.engine.gateway

    @staticmethod
    def plan(user_id: str, batches: List[PerformanceBatch]) -> List[PlannedUpload]:
        """One upload per staged file, the source first within each batch."""
        planned = []
        for batch in batches:
            source = batch.source_file
            # The source capture shows the performer themselves
            planned.append(
                PlannedUpload(
                    staged=source,
                    source=source,
                    actor_name=source.performance_actor,
                    path=storage_path(user_id, source.display_name),
                )
            )
            for result in batch.result_files:
                planned.append(
                    PlannedUpload(
                        staged=result,
                        source=source,
                        actor_name=result.actor_name,
                        path=storage_path(user_id, result.display_name),
                    )
                )
        return planned

    async def _upload(self, upload: PlannedUpload) -> Asset:
        staged = upload.staged
        data = await read_file(staged.path)
        resolution = staged.resolution or await probe_file_resolution(staged.path)
        content_type = mimetypes.guess_type(staged.display_name)[0] or "video/mp4"

        await self.gateway.upload_object(upload.path, data, content_type=content_type)

        source = upload.source
        return Asset(
            file_path=upload.path,
            video_url=self.gateway.public_url(upload.path),
            actor_name=upload.actor_name,
            movement_type=source.movement_type,
            performance_actor=source.performance_actor,
            take_number=source.take_number,
            tags=source.tag_list(),
            resolution=resolution,
            file_size=format_file_size(len(data)),
            is_favorite=False,
        )

    async def ingest(
        self, user_id: str, batches: List[PerformanceBatch]
    ) -> IngestionReport:
        """
        Upload every staged file in the batches and insert their asset rows.

        Args:
            user_id: Owner of the uploads, used to scope storage paths
            batches: Staged performance batches

        Returns:
            IngestionReport listing inserted assets, created categories and failed files

        Raises:
            IngestionError: If categories could not be created, no file uploaded,
                or the asset insert was rejected
        """
        if not batches:
            return IngestionReport()

        pairs = [pair for batch in batches for pair in self.reconciler.pairs_for_batch(batch)]
        new_categories = self.reconciler.reconcile(pairs)
        if not await self.engine.add_categories(new_categories):
            raise IngestionError("Failed to create categories; no files were uploaded")

        planned = self.plan(user_id, batches)
        outcomes = await asyncio.gather(
            *(self._upload(upload) for upload in planned), return_exceptions=True
        )

        assets: List[Asset] = []
        failed_files: List[str] = []
        for upload, outcome in zip(planned, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(
                    f"Failed to upload {upload.staged.display_name}: {str(outcome)}"
                )
                failed_files.append(upload.staged.display_name)
            else:
                assets.append(outcome)

        if not assets:
            raise IngestionError(f"All {len(planned)} file upload(s) failed")

        if not await self.engine.add_assets(assets):
            # Neither the categories created above nor the uploaded objects are cleaned up
            logger.warning(
                f"Asset insert failed after creating {len(new_categories)} category(ies)"
            )
            raise IngestionError("Failed to record uploaded assets")

        await self.engine.reload()
        logger.info(
            f"Ingested {len(assets)} asset(s) for {user_id}, {len(failed_files)} failed"
        )
        return IngestionReport(
            assets=assets, categories=new_categories, failed_files=failed_files
        )

