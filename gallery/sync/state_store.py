"""
Local State Store

In-memory mirror of the three remote collections. The view layer reads the
ordered lists and subscribes to change notifications; only SyncEngine writes.
"""

import logging
from datetime import datetime, timezone
from traceback import format_exc
from typing import Callable, Dict, Iterable, List, Optional, Set

from gallery.models import Asset, Category, CategoryType, GenerationTask

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

Listener = Callable[["LocalStateStore"], None]


def _created_at_key(record) -> datetime:
    created_at = record.created_at
    # Rows written by older clients may carry naive timestamps
    if created_at.tzinfo is None:
        return created_at.replace(tzinfo=timezone.utc)
    return created_at


class LocalStateStore:
    """Holds assets, categories and generation tasks plus their ordered views."""

    def __init__(self):
        self._assets: Dict[str, Asset] = {}
        self._categories: Dict[str, Category] = {}
        self._tasks: Dict[str, GenerationTask] = {}
        self._listeners: List[Listener] = []

        self.assets: List[Asset] = []
        self.categories: List[Category] = []
        self.tasks: List[GenerationTask] = []

    # Subscriptions
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self) -> None:
        # Materialized views, rebuilt after every mutation
        self.assets = sorted(self._assets.values(), key=_created_at_key, reverse=True)
        self.categories = sorted(
            self._categories.values(), key=lambda c: (c.name.lower(), c.name)
        )
        self.tasks = sorted(self._tasks.values(), key=_created_at_key, reverse=True)

        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(f"State listener failed: {str(e)}\n{format_exc()}")

    # Reads
    def get_asset(self, asset_id: str) -> Optional[Asset]:
        return self._assets.get(asset_id)

    def get_category(self, category_id: str) -> Optional[Category]:
        return self._categories.get(category_id)

    def get_task(self, task_id: str) -> Optional[GenerationTask]:
        return self._tasks.get(task_id)

    def category_names(self, kind: CategoryType) -> Set[str]:
        return {c.name for c in self._categories.values() if c.type == kind}

    # Writes, called by SyncEngine only
    def replace_all(
        self,
        assets: Iterable[Asset],
        categories: Iterable[Category],
        tasks: Iterable[GenerationTask],
    ) -> None:
        self._assets = {a.id: a for a in assets}
        self._categories = {c.id: c for c in categories}
        self._tasks = {t.id: t for t in tasks}
        self._commit()

    def clear(self) -> None:
        self.replace_all([], [], [])

    def put_assets(self, assets: Iterable[Asset]) -> None:
        for asset in assets:
            self._assets[asset.id] = asset
        self._commit()

    def remove_assets(self, asset_ids: Iterable[str]) -> None:
        for asset_id in asset_ids:
            self._assets.pop(asset_id, None)
        self._commit()

    def rewrite_asset_field(self, field: str, old_value: str, new_value: str) -> None:
        """Set field to new_value on every asset where it equals old_value."""
        for asset_id, asset in list(self._assets.items()):
            if getattr(asset, field) == old_value:
                self._assets[asset_id] = asset.model_copy(update={field: new_value})
        self._commit()

    def put_categories(self, categories: Iterable[Category]) -> None:
        for category in categories:
            self._categories[category.id] = category
        self._commit()

    def remove_category(self, category_id: str) -> None:
        self._categories.pop(category_id, None)
        self._commit()

    def put_task(self, task: GenerationTask) -> None:
        self._tasks[task.id] = task
        self._commit()

    def remove_task(self, task_id: str) -> None:
        self._tasks.pop(task_id, None)
        self._commit()
