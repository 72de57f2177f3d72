import logging
from typing import Dict, Iterable, List, Set, Tuple

from gallery.models import Category, CategoryType, PerformanceBatch
from gallery.sync.state_store import LocalStateStore

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

CategoryPair = Tuple[CategoryType, str]


class CategoryReconciler:
    """Works out which category rows a batch of new asset metadata needs created."""

    def __init__(self, store: LocalStateStore):
        self.store = store

    @staticmethod
    def pairs_for_batch(batch: PerformanceBatch) -> List[CategoryPair]:
        """
        Category (kind, name) pairs implied by one performance batch.

        A performer is registered both as a performance actor and as an actor,
        since whoever performs a capture is also a browsable actor.
        """
        source = batch.source_file
        pairs = [
            (CategoryType.PERFORMANCE_ACTORS, source.performance_actor),
            (CategoryType.MOVEMENTS, source.movement_type),
            (CategoryType.ACTORS, source.performance_actor),
        ]
        pairs.extend((CategoryType.ACTORS, result.actor_name) for result in batch.result_files)
        return pairs

    def reconcile(self, pairs: Iterable[CategoryPair]) -> List[Category]:
        """
        New category rows to insert, deduplicated against the store and the batch.

        Args:
            pairs: (kind, name) pairs requested by the incoming metadata

        Returns:
            One unsaved Category per pair that does not exist yet, in first-seen order
        """
        existing: Dict[CategoryType, Set[str]] = {
            kind: self.store.category_names(kind) for kind in CategoryType
        }
        new_categories: Dict[str, Category] = {}

        for kind, name in pairs:
            kind = CategoryType(kind)
            if not name or name in existing[kind]:
                continue
            key = f"{kind.value}/{name}"
            if key not in new_categories:
                new_categories[key] = Category(type=kind, name=name)

        if new_categories:
            logger.info(f"Reconciled {len(new_categories)} new category(ies)")
        return list(new_categories.values())
