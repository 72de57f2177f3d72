from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Set

import pytest

from gallery.exceptions import JobApiError, ObjectStoreError, RemoteStoreError
from gallery.models import (
    Asset,
    Category,
    CategoryType,
    GenerationTask,
    InitialMetadata,
    JobStatusReport,
    JobSubmission,
    Resolution,
    TaskStatus,
)
from gallery.services.object_storage import ObjectStorageService
from gallery.sync import CategoryReconciler, LocalStateStore, SyncEngine

BUCKET = "test-bucket"
BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeGateway:
    """In-memory stand-in for RemoteGateway that records every call."""

    def __init__(self):
        self.assets: Dict[str, Asset] = {}
        self.categories: Dict[str, Category] = {}
        self.tasks: Dict[str, GenerationTask] = {}
        self.objects: Dict[str, bytes] = {}
        self.jobs: Dict[str, Any] = {}
        self.cancel_results: Dict[str, Any] = {}
        self.downloads: Dict[str, bytes] = {}
        self.calls: List[tuple] = []
        self.fail: Set[str] = set()
        self.fail_uploads: Set[str] = set()
        self.next_job_id = "job-1"
        self._storage = ObjectStorageService(BUCKET)

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail:
            raise RemoteStoreError(f"{name} rejected")

    def calls_to(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]

    async def aclose(self) -> None:
        pass

    # Assets
    async def fetch_assets(self) -> List[Asset]:
        self._record("fetch_assets")
        return list(self.assets.values())

    async def insert_assets(self, assets: Sequence[Asset]) -> None:
        self._record("insert_assets", list(assets))
        for asset in assets:
            self.assets[asset.id] = asset

    async def update_asset(self, asset_id: str, fields: Dict[str, Any]) -> None:
        self._record("update_asset", asset_id, fields)
        self.assets[asset_id] = Asset.model_validate(
            {**self.assets[asset_id].model_dump(), **fields}
        )

    async def update_assets_where(self, field: str, old_value: str, new_value: str) -> int:
        self._record("update_assets_where", field, old_value, new_value)
        matches = [a for a in self.assets.values() if getattr(a, field) == old_value]
        for asset in matches:
            self.assets[asset.id] = asset.model_copy(update={field: new_value})
        return len(matches)

    async def delete_assets(self, asset_ids: Sequence[str]) -> None:
        self._record("delete_assets", list(asset_ids))
        for asset_id in asset_ids:
            self.assets.pop(asset_id, None)

    # Categories
    async def fetch_categories(self) -> List[Category]:
        self._record("fetch_categories")
        return list(self.categories.values())

    async def insert_categories(self, categories: Sequence[Category]) -> None:
        self._record("insert_categories", list(categories))
        for category in categories:
            self.categories[category.id] = category

    async def update_category(self, category_id: str, fields: Dict[str, Any]) -> None:
        self._record("update_category", category_id, fields)
        self.categories[category_id] = Category.model_validate(
            {**self.categories[category_id].model_dump(), **fields}
        )

    async def delete_category(self, category_id: str) -> None:
        self._record("delete_category", category_id)
        self.categories.pop(category_id, None)

    # Generation tasks
    async def fetch_tasks(self) -> List[GenerationTask]:
        self._record("fetch_tasks")
        return list(self.tasks.values())

    async def insert_task(self, task: GenerationTask) -> None:
        self._record("insert_task", task)
        self.tasks[task.id] = task

    async def update_task(self, task_id: str, fields: Dict[str, Any]) -> None:
        self._record("update_task", task_id, fields)
        self.tasks[task_id] = GenerationTask.model_validate(
            {**self.tasks[task_id].model_dump(), **fields}
        )

    async def delete_task(self, task_id: str) -> None:
        self._record("delete_task", task_id)
        self.tasks.pop(task_id, None)

    # Objects
    async def upload_object(
        self, path: str, data: bytes, content_type: str = "video/mp4"
    ) -> None:
        self.calls.append(("upload_object", path))
        if "upload_object" in self.fail or any(
            marker in path for marker in self.fail_uploads
        ):
            raise ObjectStoreError(f"Failed to upload {path}")
        self.objects[path] = data

    def public_url(self, path: str) -> str:
        return self._storage.public_url(path)

    def path_from_public_url(self, url: str) -> Optional[str]:
        return self._storage.path_from_public_url(url)

    async def remove_objects(self, paths: Sequence[str]) -> None:
        self._record("remove_objects", list(paths))
        for path in paths:
            self.objects.pop(path, None)

    # External jobs
    async def submit_job(self, payload: Dict[str, Any]) -> JobSubmission:
        self.calls.append(("submit_job", payload))
        if "submit_job" in self.fail:
            raise JobApiError("Job submission rejected: bad input", status_code=400)
        return JobSubmission(id=self.next_job_id)

    async def get_job(self, job_id: str) -> JobStatusReport:
        self.calls.append(("get_job", job_id))
        report = self.jobs[job_id]
        if isinstance(report, Exception):
            raise report
        return JobStatusReport.model_validate(report)

    async def cancel_job(self, job_id: str) -> bool:
        self.calls.append(("cancel_job", job_id))
        result = self.cancel_results.get(job_id, True)
        if isinstance(result, Exception):
            raise result
        return result

    async def download(self, url: str) -> bytes:
        self.calls.append(("download", url))
        if "download" in self.fail:
            raise JobApiError(f"Failed to download {url}", status_code=404)
        return self.downloads[url]


def make_asset(index: int = 0, **overrides) -> Asset:
    data = dict(
        id=f"asset-{index}",
        created_at=BASE_TIME + timedelta(minutes=index),
        file_path=f"user-1/file-{index}.mp4",
        video_url=f"https://storage.googleapis.com/{BUCKET}/user-1/file-{index}.mp4",
        actor_name="Alex",
        movement_type="Walk",
        performance_actor="Alex",
        take_number=1,
        tags=["a"],
        resolution=Resolution(width=1920, height=1080),
        file_size="1.00 MB",
        is_favorite=False,
    )
    data.update(overrides)
    return Asset(**data)


def make_category(kind: CategoryType, name: str, **overrides) -> Category:
    return Category(id=f"{kind.value}-{name}", type=kind, name=name, **overrides)


def make_task(index: int = 0, **overrides) -> GenerationTask:
    data = dict(
        id=f"task-{index}",
        created_at=BASE_TIME + timedelta(minutes=index),
        user_id="user-1",
        runway_task_id=f"job-{index}",
        status=TaskStatus.PENDING,
        initial_metadata=InitialMetadata(
            performance_actor="Alex",
            movement_type="Walk",
            take_number=2,
            tags=["gen"],
            character_asset_name="hero.png",
            reference_video_name="walk.mp4",
        ),
        input_character_url=f"https://storage.googleapis.com/{BUCKET}/user-1/inputs/char-{index}.png",
        input_reference_video_url=f"https://storage.googleapis.com/{BUCKET}/user-1/inputs/ref-{index}.mp4",
    )
    data.update(overrides)
    return GenerationTask(**data)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def store() -> LocalStateStore:
    return LocalStateStore()


@pytest.fixture
def engine(store, gateway) -> SyncEngine:
    return SyncEngine(store, gateway)


@pytest.fixture
def reconciler(store) -> CategoryReconciler:
    return CategoryReconciler(store)
