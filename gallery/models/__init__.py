"""
Models Package

This package contains the data models organized by domain:
- assets.py: Video asset model
- categories.py: Category model and kinds
- tasks.py: Generation task model, status state machine and job API responses
- staging.py: Client-local upload staging models
- shared.py: Common base model and embedded models
"""

# Import all models for easy access
from gallery.models.assets import IMMUTABLE_ASSET_FIELDS, Asset
from gallery.models.categories import (
    CATEGORY_ASSET_FIELDS,
    UNCATEGORIZED,
    Category,
    CategoryType,
)
from gallery.models.shared import (
    FirestoreBaseModel,
    Resolution,
    new_document_id,
    utcnow,
)
from gallery.models.staging import (
    PerformanceBatch,
    StagedFile,
    StagedResultFile,
    StagedSourceFile,
)
from gallery.models.tasks import (
    GenerationTask,
    InitialMetadata,
    JobStatusReport,
    JobSubmission,
    TaskStatus,
    parse_external_status,
)

# Collection model mappings for Firestore operations
VIDEOS_COLLECTION = "videos"
CATEGORIES_COLLECTION = "categories"
GENERATION_TASKS_COLLECTION = "generation_tasks"

COLLECTION_MODELS = {
    VIDEOS_COLLECTION: Asset,
    CATEGORIES_COLLECTION: Category,
    GENERATION_TASKS_COLLECTION: GenerationTask,
}

__all__ = [
    # Base models
    "FirestoreBaseModel",
    "Resolution",
    "new_document_id",
    "utcnow",
    # Asset models
    "Asset",
    "IMMUTABLE_ASSET_FIELDS",
    # Category models
    "Category",
    "CategoryType",
    "CATEGORY_ASSET_FIELDS",
    "UNCATEGORIZED",
    # Task models
    "GenerationTask",
    "InitialMetadata",
    "JobStatusReport",
    "JobSubmission",
    "TaskStatus",
    "parse_external_status",
    # Staging models
    "PerformanceBatch",
    "StagedFile",
    "StagedResultFile",
    "StagedSourceFile",
    # Collection mappings
    "VIDEOS_COLLECTION",
    "CATEGORIES_COLLECTION",
    "GENERATION_TASKS_COLLECTION",
    "COLLECTION_MODELS",
]
