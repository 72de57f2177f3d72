"""
Firestore Service Layer

This module provides a service layer for the row-oriented persistent store.
It uses the Firebase Admin SDK's async Firestore client and provides the
handful of collection operations the sync engine needs: ordered selects,
single and batched inserts, updates by id or by matching field, and deletes.
"""

import logging
from traceback import format_exc
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type, TypeVar

from firebase_admin import firestore_async, get_app, initialize_app
from google.cloud.firestore import AsyncClient, Query
from google.cloud.firestore_v1.base_query import FieldFilter

from gallery.exceptions import RemoteStoreError
from gallery.models import COLLECTION_MODELS, FirestoreBaseModel

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Type variable for generic model operations
T = TypeVar("T", bound=FirestoreBaseModel)

# Firestore rejects batched writes with more operations than this
MAX_BATCH_SIZE = 500


def _chunks(items: Sequence[Any], size: int = MAX_BATCH_SIZE) -> Iterable[Sequence[Any]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class FirestoreService:
    """
    Service class for Firestore operations with type safety and Pydantic integration.

    Every failure is logged and re-raised as RemoteStoreError.
    """

    def __init__(self, database_name: str = "(default)"):
        """
        Initialize the Firestore service.

        Args:
            database_name: Name of the Firestore database to connect to
        """
        self.database_name = database_name
        self._client: Optional[AsyncClient] = None

    @property
    def client(self) -> AsyncClient:
        """Get or create the async Firestore client."""
        if self._client is None:
            # Initialize Firebase Admin SDK if not already initialized
            try:
                app = initialize_app()
            except ValueError:
                # App already exists, get it
                app = get_app()

            self._client = firestore_async.client(app, database_id=self.database_name)

        return self._client

    def _model_for(
        self, collection_name: str, model_class: Optional[Type[T]]
    ) -> Type[FirestoreBaseModel]:
        if model_class is not None:
            return model_class
        return COLLECTION_MODELS[collection_name]

    async def select_all(
        self,
        collection_name: str,
        order_by: str,
        descending: bool = False,
        model_class: Optional[Type[T]] = None,
    ) -> List[T]:
        """
        Read every document of a collection, ordered by one field.

        Args:
            collection_name: Name of the collection to read
            order_by: Field to order by
            descending: Whether to order from highest to lowest
            model_class: Optional Pydantic model class, inferred from the collection otherwise

        Returns:
            List of documents as model instances
        """
        model = self._model_for(collection_name, model_class)
        direction = Query.DESCENDING if descending else Query.ASCENDING

        try:
            query = self.client.collection(collection_name).order_by(
                order_by, direction=direction
            )

            results = []
            async for doc in query.stream():
                data = doc.to_dict()
                data["id"] = doc.id  # Add document ID to data
                results.append(model(**data))

            return results

        except Exception as e:
            logger.error(
                f"Failed to select from {collection_name}: {str(e)}\n{format_exc()}"
            )
            raise RemoteStoreError(f"Failed to select from {collection_name}: {e}") from e

    async def insert(self, collection_name: str, documents: Sequence[T]) -> None:
        """
        Insert one or more documents, keyed by their own ids.

        Args:
            collection_name: Name of the collection
            documents: Models to store
        """
        if not documents:
            return

        try:
            collection = self.client.collection(collection_name)
            for chunk in _chunks(documents):
                batch = self.client.batch()
                for document in chunk:
                    batch.set(collection.document(document.id), document.to_document())
                await batch.commit()

            logger.info(f"Inserted {len(documents)} document(s) into {collection_name}")

        except Exception as e:
            logger.error(
                f"Failed to insert into {collection_name}: {str(e)}\n{format_exc()}"
            )
            raise RemoteStoreError(f"Failed to insert into {collection_name}: {e}") from e

    async def update_by_id(
        self, collection_name: str, document_id: str, update_data: Dict[str, Any]
    ) -> None:
        """
        Update fields of a single document.

        Args:
            collection_name: Name of the collection
            document_id: ID of the document to update
            update_data: Fields to overwrite
        """
        try:
            doc_ref = self.client.collection(collection_name).document(document_id)
            await doc_ref.update(update_data)

            logger.info(f"Updated document {document_id} in {collection_name}")

        except Exception as e:
            logger.error(
                f"Failed to update document {document_id} in {collection_name}: {str(e)}\n{format_exc()}"
            )
            raise RemoteStoreError(
                f"Failed to update document {document_id} in {collection_name}: {e}"
            ) from e

    async def update_where(
        self,
        collection_name: str,
        field: str,
        value: Any,
        update_data: Dict[str, Any],
    ) -> int:
        """
        Update every document whose field equals a value.

        Args:
            collection_name: Name of the collection
            field: Field to match on
            value: Value the field must equal
            update_data: Fields to overwrite on each match

        Returns:
            Number of documents updated
        """
        try:
            query = self.client.collection(collection_name).where(
                filter=FieldFilter(field, "==", value)
            )
            refs = [doc.reference async for doc in query.stream()]

            for chunk in _chunks(refs):
                batch = self.client.batch()
                for ref in chunk:
                    batch.update(ref, update_data)
                await batch.commit()

            logger.info(
                f"Updated {len(refs)} document(s) in {collection_name} where {field} == {value!r}"
            )
            return len(refs)

        except Exception as e:
            logger.error(
                f"Failed to update {collection_name} where {field} == {value!r}: {str(e)}\n{format_exc()}"
            )
            raise RemoteStoreError(
                f"Failed to update {collection_name} where {field} == {value!r}: {e}"
            ) from e

    async def delete_by_id(self, collection_name: str, document_id: str) -> None:
        """Delete a single document."""
        await self.delete_by_ids(collection_name, [document_id])

    async def delete_by_ids(
        self, collection_name: str, document_ids: Sequence[str]
    ) -> None:
        """
        Delete a list of documents in batched writes.

        Args:
            collection_name: Name of the collection
            document_ids: IDs of the documents to delete
        """
        if not document_ids:
            return

        try:
            collection = self.client.collection(collection_name)
            for chunk in _chunks(list(document_ids)):
                batch = self.client.batch()
                for document_id in chunk:
                    batch.delete(collection.document(document_id))
                await batch.commit()

            logger.info(f"Deleted {len(document_ids)} document(s) from {collection_name}")

        except Exception as e:
            logger.error(
                f"Failed to delete from {collection_name}: {str(e)}\n{format_exc()}"
            )
            raise RemoteStoreError(f"Failed to delete from {collection_name}: {e}") from e


# Global service instance
_firestore_service = None


def get_firestore_service(database_name: str = "(default)") -> FirestoreService:
    """
    Get a singleton Firestore service instance.

    Args:
        database_name: Name of the Firestore database

    Returns:
        FirestoreService instance
    """
    global _firestore_service
    if _firestore_service is None:
        _firestore_service = FirestoreService(database_name)
    return _firestore_service
