"""
Category Data Models

This module contains the category model and the mapping from category kinds
to the asset field each kind tags.
"""

from enum import Enum

from pydantic import Field

from gallery.models.shared import FirestoreBaseModel

# Written to asset fields whose category was deleted
UNCATEGORIZED = "Uncategorized"


class CategoryType(str, Enum):
    """Category kind enumeration."""

    ACTORS = "actors"
    MOVEMENTS = "movements"
    PERFORMANCE_ACTORS = "performanceActors"

    @property
    def asset_field(self) -> str:
        """Name of the asset field holding a category of this kind."""
        return CATEGORY_ASSET_FIELDS[self]


CATEGORY_ASSET_FIELDS = {
    CategoryType.ACTORS: "actor_name",
    CategoryType.MOVEMENTS: "movement_type",
    CategoryType.PERFORMANCE_ACTORS: "performance_actor",
}


class Category(FirestoreBaseModel):
    """Category document model for the categories collection."""

    type: CategoryType = Field(..., description="Category kind")
    name: str = Field(..., min_length=1, description="Category name")
