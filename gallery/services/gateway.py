"""
Remote Gateway

Typed operations against the three backing services: the Firestore row store,
the Cloud Storage object store and the external generation API. Everything in
gallery.sync reaches the outside world through this class.
"""

from typing import Any, Dict, List, Optional, Sequence

from config import FIRESTORE_DATABASE, GCLOUD_STB_VIDEOS_NAME, JOBS_PROXY_URL

from gallery.models import (
    CATEGORIES_COLLECTION,
    GENERATION_TASKS_COLLECTION,
    VIDEOS_COLLECTION,
    Asset,
    Category,
    GenerationTask,
    JobStatusReport,
    JobSubmission,
)
from gallery.services.firestore_service import FirestoreService, get_firestore_service
from gallery.services.jobs_client import JobsClient
from gallery.services.object_storage import ObjectStorageService


class RemoteGateway:
    """Facade over the row store, object store and job API."""

    def __init__(
        self,
        rows: FirestoreService,
        objects: ObjectStorageService,
        jobs: JobsClient,
    ):
        self.rows = rows
        self.objects = objects
        self.jobs = jobs

    @classmethod
    def from_config(cls) -> "RemoteGateway":
        """Build a gateway from the values in config.py."""
        return cls(
            rows=get_firestore_service(FIRESTORE_DATABASE),
            objects=ObjectStorageService(GCLOUD_STB_VIDEOS_NAME),
            jobs=JobsClient(JOBS_PROXY_URL),
        )

    async def aclose(self) -> None:
        await self.jobs.aclose()

    # Assets
    async def fetch_assets(self) -> List[Asset]:
        return await self.rows.select_all(
            VIDEOS_COLLECTION, order_by="created_at", descending=True
        )

    async def insert_assets(self, assets: Sequence[Asset]) -> None:
        await self.rows.insert(VIDEOS_COLLECTION, assets)

    async def update_asset(self, asset_id: str, fields: Dict[str, Any]) -> None:
        await self.rows.update_by_id(VIDEOS_COLLECTION, asset_id, fields)

    async def update_assets_where(self, field: str, old_value: str, new_value: str) -> int:
        """Rewrite one field on every asset currently holding old_value."""
        return await self.rows.update_where(
            VIDEOS_COLLECTION, field, old_value, {field: new_value}
        )

    async def delete_assets(self, asset_ids: Sequence[str]) -> None:
        await self.rows.delete_by_ids(VIDEOS_COLLECTION, asset_ids)

    # Categories
    async def fetch_categories(self) -> List[Category]:
        return await self.rows.select_all(CATEGORIES_COLLECTION, order_by="name")

    async def insert_categories(self, categories: Sequence[Category]) -> None:
        await self.rows.insert(CATEGORIES_COLLECTION, categories)

    async def update_category(self, category_id: str, fields: Dict[str, Any]) -> None:
        await self.rows.update_by_id(CATEGORIES_COLLECTION, category_id, fields)

    async def delete_category(self, category_id: str) -> None:
        await self.rows.delete_by_id(CATEGORIES_COLLECTION, category_id)

    # Generation tasks
    async def fetch_tasks(self) -> List[GenerationTask]:
        return await self.rows.select_all(
            GENERATION_TASKS_COLLECTION, order_by="created_at", descending=True
        )

    async def insert_task(self, task: GenerationTask) -> None:
        await self.rows.insert(GENERATION_TASKS_COLLECTION, [task])

    async def update_task(self, task_id: str, fields: Dict[str, Any]) -> None:
        await self.rows.update_by_id(GENERATION_TASKS_COLLECTION, task_id, fields)

    async def delete_task(self, task_id: str) -> None:
        await self.rows.delete_by_id(GENERATION_TASKS_COLLECTION, task_id)

    # Objects
    async def upload_object(
        self, path: str, data: bytes, content_type: str = "video/mp4"
    ) -> None:
        await self.objects.upload(path, data, content_type=content_type)

    def public_url(self, path: str) -> str:
        return self.objects.public_url(path)

    def path_from_public_url(self, url: str) -> Optional[str]:
        return self.objects.path_from_public_url(url)

    async def remove_objects(self, paths: Sequence[str]) -> None:
        await self.objects.remove(paths)

    # External jobs
    async def submit_job(self, payload: Dict[str, Any]) -> JobSubmission:
        return await self.jobs.submit_job(payload)

    async def get_job(self, job_id: str) -> JobStatusReport:
        return await self.jobs.get_job(job_id)

    async def cancel_job(self, job_id: str) -> bool:
        return await self.jobs.cancel_job(job_id)

    async def download(self, url: str) -> bytes:
        return await self.jobs.download(url)
