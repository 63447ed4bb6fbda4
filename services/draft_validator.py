"""
Field and image-readiness validation for product drafts.
"""

from typing import Optional

from core.logging import LoggerMixin
from models.draft import Draft, FieldValue, IMAGES_KEY, ValidationResult
from models.image_item import ImageStatus

REQUIRED_FIELDS = (
    "name",
    "description",
    "original_price",
    "discount_price",
    "category",
    "brand",
    "stock",
)

NUMERIC_FIELDS = ("original_price", "discount_price", "stock")

REQUIRED_MESSAGE = "Required"
NOT_A_NUMBER_MESSAGE = "Must be a number"
NOT_A_WHOLE_NUMBER_MESSAGE = "Must be a whole number"
DISCOUNT_ABOVE_ORIGINAL_MESSAGE = "Discounted price must be ≤ original price"
NO_IMAGES_MESSAGE = "At least one image is required"


def is_blank(value: FieldValue) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def parse_number(value: FieldValue) -> Optional[float]:
    """Numeric value of a form field, None when blank or not a number."""
    if is_blank(value) or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class DraftValidator(LoggerMixin):
    """Evaluates every rule and reports all problems at once."""

    def validate(self, draft: Draft) -> ValidationResult:
        result = ValidationResult()
        values = draft.scalar_values()

        for field_name in REQUIRED_FIELDS:
            if is_blank(values[field_name]):
                result.add(field_name, REQUIRED_MESSAGE)

        for field_name in NUMERIC_FIELDS:
            value = values[field_name]
            if not is_blank(value) and parse_number(value) is None:
                result.add(field_name, NOT_A_NUMBER_MESSAGE)

        stock = parse_number(draft.stock)
        if stock is not None and not stock.is_integer():
            result.add("stock", NOT_A_WHOLE_NUMBER_MESSAGE)

        original = parse_number(draft.original_price)
        discount = parse_number(draft.discount_price)
        if original is not None and discount is not None and discount > original:
            result.add("discount_price", DISCOUNT_ABOVE_ORIGINAL_MESSAGE)

        if draft.items.count(ImageStatus.UPLOADED) == 0:
            result.add(IMAGES_KEY, NO_IMAGES_MESSAGE)

        if not result.is_valid:
            self.logger.info(f"Draft {draft.product_id or 'new'} has {len(result)} validation error(s)")
        return result
