"""
In-memory draft of a supplier product while its form is open.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from models.catalog_model import Subcategory
from models.image_item import ImageCollection, ImageItem

FieldValue = Union[str, int, float, None]

# Scalar fields an operator edits directly
SCALAR_FIELDS: Tuple[str, ...] = (
    "name",
    "description",
    "original_price",
    "discount_price",
    "stock",
    "brand",
)

# Reserved ValidationResult key for the aggregate image-readiness error
IMAGES_KEY = "images"


@dataclass
class SizeChartEntry:
    label: str = ""
    stock: FieldValue = None


@dataclass(frozen=True)
class CategorySelection:
    """
    Category, subcategory and the subcategory choices offered for it.

    Replaced as one value so the subcategory can never be stale against
    the selected category.
    """
    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None
    subcategory_choices: Tuple[Subcategory, ...] = ()

    def choice_ids(self) -> List[str]:
        return [sub.id for sub in self.subcategory_choices]


@dataclass
class Draft:
    product_id: Optional[str] = None
    name: FieldValue = ""
    description: FieldValue = ""
    original_price: FieldValue = ""
    discount_price: FieldValue = ""
    stock: FieldValue = ""
    brand: FieldValue = ""
    selection: CategorySelection = field(default_factory=CategorySelection)
    colors: List[str] = field(default_factory=list)
    size_chart: List[SizeChartEntry] = field(default_factory=list)
    items: ImageCollection = field(default_factory=ImageCollection)
    # Read-only review state of an existing product
    review_status: Optional[str] = None
    admin_remarks: str = ""

    @property
    def is_new(self) -> bool:
        return self.product_id is None

    @property
    def category(self) -> Optional[str]:
        return self.selection.category_id

    @property
    def subcategory(self) -> Optional[str]:
        return self.selection.subcategory_id

    def scalar_values(self) -> Dict[str, FieldValue]:
        values = {name: getattr(self, name) for name in SCALAR_FIELDS}
        values["category"] = self.category
        values["subcategory"] = self.subcategory
        return values

    @classmethod
    def from_record(
        cls,
        product_id: str,
        record: Dict[str, Any],
        selection: CategorySelection,
        items: Optional[List[ImageItem]] = None,
    ) -> "Draft":
        """Build an edit draft from a stored product row (camelCase keys)."""
        return cls(
            product_id=product_id,
            name=record.get("name", ""),
            description=record.get("description", ""),
            original_price=record.get("originalPrice", ""),
            discount_price=record.get("discountPrice", ""),
            stock=record.get("stock", ""),
            brand=record.get("brand", ""),
            selection=selection,
            colors=list(record.get("colors") or []),
            size_chart=[
                SizeChartEntry(label=row.get("label", ""), stock=row.get("stock"))
                for row in record.get("sizeChart") or []
            ],
            items=ImageCollection(items or []),
            review_status=record.get("status"),
            admin_remarks=record.get("adminRemarks") or "",
        )


class ValidationResult:
    """Field name to error message; empty means the draft is valid."""

    def __init__(self, errors: Optional[Dict[str, str]] = None):
        self._errors: Dict[str, str] = dict(errors or {})

    def __len__(self) -> int:
        return len(self._errors)

    def __contains__(self, key: object) -> bool:
        return key in self._errors

    def __getitem__(self, key: str) -> str:
        return self._errors[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._errors)

    def __repr__(self) -> str:
        return f"ValidationResult({self._errors!r})"

    @property
    def is_valid(self) -> bool:
        return not self._errors

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._errors.get(key, default)

    def add(self, key: str, message: str) -> None:
        self._errors[key] = message

    def discard(self, key: str) -> None:
        self._errors.pop(key, None)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._errors)
