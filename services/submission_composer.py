"""
Turns a validated draft into a product payload and hands it to the product service.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from core.config import get_settings
from core.exceptions import (
    IncompleteUploadException,
    SkyCartException,
    SubmissionException,
    ValidationException,
)
from core.logging import LoggerMixin
from models.catalog_model import CategoryCatalog
from models.draft import Draft, FieldValue
from models.image_item import IN_FLIGHT
from models.product_model import ProductPayload, SizeChartRow
from services.draft_validator import DraftValidator, parse_number
from services.product_service import ProductService


def calc_discount_percent(original_price: Optional[float], discount_price: Optional[float]) -> int:
    """
    Whole-number discount, rounded half up.

    Returns 0 when the original price is missing or not positive, or when
    the discount price is not below it.
    """
    if not original_price or original_price <= 0:
        return 0
    if discount_price is None or discount_price >= original_price:
        return 0
    return int(math.floor((original_price - discount_price) / original_price * 100 + 0.5))


def _text(value: FieldValue) -> str:
    return "" if value is None else str(value).strip()


@dataclass
class SubmissionResult:
    product: Dict[str, Any]
    created: bool
    message: str
    redirect_to: str


class SubmissionComposer(LoggerMixin):
    """Builds the outgoing payload and dispatches create or update."""

    def __init__(self, products: ProductService, validator: Optional[DraftValidator] = None):
        self.products = products
        self.validator = validator or DraftValidator()

    def ensure_uploads_settled(self, draft: Draft) -> None:
        """
        Raises:
            IncompleteUploadException: while any image is pending or uploading
        """
        in_flight = sum(1 for item in draft.items if item.status in IN_FLIGHT)
        if in_flight:
            raise IncompleteUploadException(in_flight)

    def compose(self, draft: Draft, catalog: CategoryCatalog) -> ProductPayload:
        original = parse_number(draft.original_price)
        discount = parse_number(draft.discount_price)
        stock = parse_number(draft.stock)

        return ProductPayload(
            name=_text(draft.name),
            description=_text(draft.description),
            original_price=original or 0.0,
            discount_price=discount or 0.0,
            discount_percent=calc_discount_percent(original, discount),
            category=catalog.category_name(draft.category),
            subcategory=catalog.subcategory_name(draft.category, draft.subcategory),
            brand=_text(draft.brand),
            stock=int(stock or 0),
            colors=list(draft.colors),
            size_chart=[SizeChartRow(label=row.label, stock=row.stock) for row in draft.size_chart],
            images=draft.items.remote_identities(),
        )

    async def submit(self, draft: Draft, catalog: CategoryCatalog) -> SubmissionResult:
        """
        Validate, compose and dispatch the draft.

        Raises:
            ValidationException: with every field error when the draft is invalid
            IncompleteUploadException: while uploads are still running
            SubmissionException: when the product service rejects the payload
        """
        errors = self.validator.validate(draft)
        if not errors.is_valid:
            raise ValidationException("Please fix the highlighted fields", errors=errors.as_dict())

        self.ensure_uploads_settled(draft)
        payload = self.compose(draft, catalog)

        try:
            if draft.is_new:
                product = await self.products.create(payload)
            else:
                product = await self.products.update(draft.product_id, payload)
        except SkyCartException as e:
            self.logger.error(f"Product service rejected draft {draft.product_id or 'new'}: {e.message}")
            raise SubmissionException(e.message, details={"cause": e.error_code}) from e
        except Exception as e:
            self.logger.error(f"Product service call failed for draft {draft.product_id or 'new'}: {e}", exc_info=True)
            raise SubmissionException(details={"cause": type(e).__name__}) from e

        settings = get_settings()
        if draft.is_new:
            message = "Product submitted for approval!"
        else:
            message = "Product updated!"
        self.logger.info(f"{message} ({len(payload.images)} image(s))")
        return SubmissionResult(
            product=product,
            created=draft.is_new,
            message=message,
            redirect_to=settings.products_redirect_path,
        )
