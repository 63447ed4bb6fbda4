"""
Pydantic models for the category/subcategory catalog.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator


class Subcategory(BaseModel):
    """A subcategory entry inside a category."""
    id: str
    name: str

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v):
        return str(v) if v is not None else v


class Category(BaseModel):
    """A top-level category with its subcategories."""
    id: str
    name: str
    subcategories: List[Subcategory] = Field(default_factory=list)

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v):
        # Integer primary keys are addressed as strings by the form
        return str(v) if v is not None else v


class CategoryCatalog:
    """Read-only lookup over the categories loaded for one draft session."""

    def __init__(self, categories: Optional[List[Category]] = None):
        self._categories: Dict[str, Category] = {c.id: c for c in categories or []}

    def __len__(self) -> int:
        return len(self._categories)

    @property
    def categories(self) -> List[Category]:
        return list(self._categories.values())

    def get(self, category_id: Optional[str]) -> Optional[Category]:
        if not category_id:
            return None
        return self._categories.get(category_id)

    def resolve_category_id(self, value: Optional[Any]) -> Optional[str]:
        """Stored products carry the category name; the form selects by id."""
        if value in (None, ""):
            return None
        value = str(value)
        if value in self._categories:
            return value
        for category in self._categories.values():
            if category.name == value:
                return category.id
        return None

    def resolve_subcategory_id(self, category_id: Optional[str], value: Optional[Any]) -> Optional[str]:
        for sub in self.subcategories_of(category_id):
            if value not in (None, "") and str(value) in (sub.id, sub.name):
                return sub.id
        return None

    def subcategories_of(self, category_id: Optional[str]) -> List[Subcategory]:
        category = self.get(category_id)
        return list(category.subcategories) if category else []

    def category_name(self, category_id: Optional[str]) -> str:
        category = self.get(category_id)
        return category.name if category else ""

    def subcategory_name(self, category_id: Optional[str], subcategory_id: Optional[str]) -> str:
        for sub in self.subcategories_of(category_id):
            if sub.id == subcategory_id:
                return sub.name
        return ""
