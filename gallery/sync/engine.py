"""
Sync Engine

Every change to the local collections goes through SyncEngine.mutate: the
optimistic update is applied to the store synchronously, then the remote call
is awaited. When the remote call fails, nothing is rolled back piecemeal; the
engine reloads all three collections from the remote store instead, which also
discards any other optimistic change still in flight.
"""

import asyncio
import logging
from enum import Enum
from traceback import format_exc
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from gallery.exceptions import CategoryValidationError
from gallery.models import (
    IMMUTABLE_ASSET_FIELDS,
    UNCATEGORIZED,
    Asset,
    Category,
    CategoryType,
    GenerationTask,
    TaskStatus,
)
from gallery.services.gateway import RemoteGateway
from gallery.sync.state_store import LocalStateStore

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

OptimisticUpdate = Callable[[LocalStateStore], None]
RemoteCall = Callable[[], Awaitable[Any]]


def _to_remote(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Field values as Firestore stores them."""
    remote = {}
    for key, value in fields.items():
        if isinstance(value, Enum):
            value = value.value
        elif hasattr(value, "model_dump"):
            value = value.model_dump()
        remote[key] = value
    return remote


class SyncEngine:
    """Applies mutations optimistically and keeps the store converged with the remote."""

    def __init__(self, store: LocalStateStore, gateway: RemoteGateway):
        self.store = store
        self.gateway = gateway

    async def reload(self) -> bool:
        """
        Replace all three collections with the remote contents.

        Returns:
            True if the reload succeeded. On failure the store is emptied.
        """
        try:
            assets, categories, tasks = await asyncio.gather(
                self.gateway.fetch_assets(),
                self.gateway.fetch_categories(),
                self.gateway.fetch_tasks(),
            )
        except Exception as e:
            logger.error(f"Failed to reload collections: {str(e)}\n{format_exc()}")
            self.store.clear()
            return False

        self.store.replace_all(assets, categories, tasks)
        return True

    async def mutate(
        self,
        op: str,
        optimistic_update: Optional[OptimisticUpdate],
        remote_call: RemoteCall,
    ) -> bool:
        """
        Apply a change locally, commit it remotely, and resynchronize on failure.

        Args:
            op: Name of the operation, used in log messages
            optimistic_update: Applied to the store before the remote call is issued
            remote_call: Coroutine factory performing the remote commit

        Returns:
            True if the remote commit succeeded
        """
        if optimistic_update is not None:
            optimistic_update(self.store)

        try:
            await remote_call()
        except Exception as e:
            logger.error(f"{op} failed, reloading state: {str(e)}\n{format_exc()}")
            await self.reload()
            return False

        logger.info(f"{op} committed")
        return True

    # Assets
    async def add_asset(self, asset: Asset) -> bool:
        return await self.add_assets([asset])

    async def add_assets(self, assets: List[Asset]) -> bool:
        if not assets:
            return True
        return await self.mutate(
            f"add {len(assets)} asset(s)",
            lambda store: store.put_assets(assets),
            lambda: self.gateway.insert_assets(assets),
        )

    async def delete_asset(self, asset_id: str) -> bool:
        return await self.delete_assets([asset_id])

    async def delete_assets(self, asset_ids: Iterable[str]) -> bool:
        """Delete asset rows, then their backing objects in one removal call."""
        asset_ids = list(dict.fromkeys(asset_ids))
        paths = [
            asset.file_path
            for asset in (self.store.get_asset(asset_id) for asset_id in asset_ids)
            if asset is not None and asset.file_path
        ]

        async def remote() -> None:
            await self.gateway.delete_assets(asset_ids)
            if paths:
                try:
                    await self.gateway.remove_objects(paths)
                except Exception as e:
                    # The rows are gone; a leftover object is not worth a reload
                    logger.error(f"Error deleting files from storage: {str(e)}")

        return await self.mutate(
            f"delete {len(asset_ids)} asset(s)",
            lambda store: store.remove_assets(asset_ids),
            remote,
        )

    async def update_asset(self, asset: Asset) -> bool:
        """Save edited metadata. The id, timestamps and storage location never change."""
        current = self.store.get_asset(asset.id)
        if current is None:
            logger.warning(f"Asset {asset.id} is not in the local state")
            return False

        updated = asset.model_copy(
            update={field: getattr(current, field) for field in IMMUTABLE_ASSET_FIELDS}
        )
        return await self.mutate(
            f"update asset {asset.id}",
            lambda store: store.put_assets([updated]),
            lambda: self.gateway.update_asset(asset.id, updated.editable_fields()),
        )

    async def toggle_favorite(self, asset_id: str) -> bool:
        asset = self.store.get_asset(asset_id)
        if asset is None:
            return False

        is_favorite = not asset.is_favorite
        return await self.mutate(
            f"toggle favorite on {asset_id}",
            lambda store: store.put_assets(
                [asset.model_copy(update={"is_favorite": is_favorite})]
            ),
            lambda: self.gateway.update_asset(asset_id, {"is_favorite": is_favorite}),
        )

    # Categories
    @staticmethod
    def _clean_name(name: Optional[str]) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise CategoryValidationError("Category name cannot be empty")
        return cleaned

    async def add_category(self, kind: CategoryType, name: str) -> bool:
        name = self._clean_name(name)
        if name in self.store.category_names(kind):
            raise CategoryValidationError(
                f'"{name}" already exists in {CategoryType(kind).value}'
            )
        return await self.add_categories([Category(type=kind, name=name)])

    async def add_categories(self, categories: List[Category]) -> bool:
        if not categories:
            return True
        return await self.mutate(
            f"add {len(categories)} category(ies)",
            lambda store: store.put_categories(categories),
            lambda: self.gateway.insert_categories(categories),
        )

    async def rename_category(self, category: Category, new_name: str) -> bool:
        """Rename a category and every asset field that referenced the old name."""
        new_name = self._clean_name(new_name)
        if new_name == category.name:
            return True

        conflict = any(
            other.type == category.type
            and other.id != category.id
            and other.name.lower() == new_name.lower()
            for other in self.store.categories
        )
        if conflict:
            raise CategoryValidationError(
                f'Cannot rename to "{new_name}" as it already exists in this category.'
            )

        field = CategoryType(category.type).asset_field

        def optimistic(store: LocalStateStore) -> None:
            store.put_categories([category.model_copy(update={"name": new_name})])
            store.rewrite_asset_field(field, category.name, new_name)

        async def remote() -> None:
            await self.gateway.update_category(category.id, {"name": new_name})
            await self.gateway.update_assets_where(field, category.name, new_name)

        committed = await self.mutate(
            f"rename category {category.name!r} to {new_name!r}", optimistic, remote
        )
        if committed:
            await self.reload()
        return committed

    async def delete_category(self, category: Category) -> bool:
        """Delete a category; assets that used it fall back to Uncategorized."""
        field = CategoryType(category.type).asset_field

        def optimistic(store: LocalStateStore) -> None:
            store.remove_category(category.id)
            store.rewrite_asset_field(field, category.name, UNCATEGORIZED)

        async def remote() -> None:
            await self.gateway.delete_category(category.id)
            await self.gateway.update_assets_where(field, category.name, UNCATEGORIZED)

        committed = await self.mutate(
            f"delete category {category.name!r}", optimistic, remote
        )
        if committed:
            await self.reload()
        return committed

    # Generation tasks
    async def create_task(self, task: GenerationTask) -> bool:
        return await self.mutate(
            f"create generation task {task.id}",
            lambda store: store.put_task(task),
            lambda: self.gateway.insert_task(task),
        )

    async def update_task(self, task_id: str, **fields: Any) -> bool:
        task = self.store.get_task(task_id)
        if task is None:
            logger.warning(f"Generation task {task_id} is not in the local state")
            return False

        return await self.mutate(
            f"update generation task {task_id}",
            lambda store: store.put_task(task.model_copy(update=fields)),
            lambda: self.gateway.update_task(task_id, _to_remote(fields)),
        )

    async def cancel_external(self, job_id: str) -> None:
        """Best-effort cancellation of an external job; never raises."""
        try:
            cancelled = await self.gateway.cancel_job(job_id)
            if not cancelled:
                logger.info(f"External job {job_id} had already settled")
        except Exception as e:
            logger.warning(f"Failed to cancel external job {job_id}: {e}")

    async def delete_task(self, task_id: str) -> bool:
        """
        Remove a generation task.

        The task disappears locally at once. An external job that may still be
        running is cancelled alongside the row delete, and its outcome never
        affects the result. The temporary input objects are removed afterwards.
        """
        task = self.store.get_task(task_id)
        if task is None:
            return False

        status = TaskStatus(task.status)
        should_cancel = bool(task.runway_task_id) and status.is_active

        async def remote() -> None:
            if should_cancel:
                await asyncio.gather(
                    self.cancel_external(task.runway_task_id),
                    self.gateway.delete_task(task_id),
                )
            else:
                await self.gateway.delete_task(task_id)

        committed = await self.mutate(
            f"delete generation task {task_id}",
            lambda store: store.remove_task(task_id),
            remote,
        )
        if not committed:
            return False

        input_paths = [
            self.gateway.path_from_public_url(url)
            for url in (task.input_character_url, task.input_reference_video_url)
            if url
        ]
        input_paths = [path for path in input_paths if path]
        if input_paths:
            try:
                await self.gateway.remove_objects(input_paths)
            except Exception as e:
                logger.error(
                    f"Failed to remove inputs of task {task_id}: {str(e)}\n{format_exc()}"
                )
        return True
