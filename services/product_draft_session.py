"""
Product draft session: the form-side owner of one draft.

The session holds the draft, its preview handles, its upload queue and the
notifications the operator has not seen yet. Use it as an async context
manager (or call ``close()``) so every outstanding preview is released
when the form goes away, including while uploads are still running.
"""

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from core.config import Settings, get_settings
from core.exceptions import (
    DraftClosedException,
    ImageLimitExceededException,
    IncompleteUploadException,
    ResourceNotFoundException,
    SkyCartException,
    SubmissionException,
    ValidationException,
)
from core.logging import LoggerMixin
from models.catalog_model import CategoryCatalog
from models.draft import (
    CategorySelection,
    Draft,
    FieldValue,
    IMAGES_KEY,
    SCALAR_FIELDS,
    SizeChartEntry,
    ValidationResult,
)
from models.image_item import ImageItem, RawFile
from services.catalog_service import CatalogService
from services.draft_validator import DraftValidator
from services.notification_service import NotificationCenter
from services.object_store_gateway import ObjectStoreGateway
from services.preview_manager import PreviewResourceManager
from services.product_service import ProductService
from services.submission_composer import SubmissionComposer, SubmissionResult
from services.upload_orchestrator import UploadOrchestrator


class SubmissionState(str, Enum):
    SUBMITTED = "submitted"
    INVALID = "invalid"
    UPLOADS_IN_PROGRESS = "uploads_in_progress"
    FAILED = "failed"
    BUSY = "busy"


@dataclass
class SubmissionOutcome:
    state: SubmissionState
    message: str
    errors: Dict[str, str] = field(default_factory=dict)
    result: Optional[SubmissionResult] = None

    @property
    def accepted(self) -> bool:
        return self.state is SubmissionState.SUBMITTED


class ProductDraftSession(LoggerMixin):
    """Editable product draft with its image upload pipeline."""

    def __init__(
        self,
        gateway: ObjectStoreGateway,
        catalog_service: CatalogService,
        product_service: ProductService,
        settings: Optional[Settings] = None,
        session_id: Optional[str] = None,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.settings = settings or get_settings()
        self.draft = Draft()
        self.catalog = CategoryCatalog()
        self.previews = PreviewResourceManager()
        self.notifications = NotificationCenter()
        self.validator = DraftValidator()
        self.composer = SubmissionComposer(product_service, self.validator)
        self.errors = ValidationResult()
        self._gateway = gateway
        self._catalog_service = catalog_service
        self._product_service = product_service
        self._orchestrator: Optional[UploadOrchestrator] = None
        self._listeners: List[Callable[[ImageItem], None]] = []
        self._closed = False
        self._submitting = False

    async def __aenter__(self) -> "ProductDraftSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def submitting(self) -> bool:
        return self._submitting

    @property
    def orchestrator(self) -> UploadOrchestrator:
        if self._orchestrator is None:
            self._orchestrator = UploadOrchestrator(
                self.draft,
                self._gateway,
                self.notifications,
                previews=self.previews,
                release_preview_on_upload=self.settings.release_preview_on_upload,
            )
            self._orchestrator.subscribe(self._emit)
        return self._orchestrator

    @property
    def max_images(self) -> int:
        return self.settings.max_product_images

    def subscribe(self, listener: Callable[[ImageItem], None]) -> None:
        """Observe every status change written by the upload queue."""
        self._listeners.append(listener)

    def _emit(self, item: ImageItem) -> None:
        for listener in self._listeners:
            listener(item)

    def _ensure_open(self) -> None:
        if self._closed:
            raise DraftClosedException(self.session_id)

    # Loading

    async def open(self, product_id: Optional[str] = None) -> "ProductDraftSession":
        """
        Load the catalog and, for an edit, the stored product.

        Raises:
            ExternalServiceException: if the catalog cannot be read
            ResourceNotFoundException: if ``product_id`` does not exist
        """
        self._ensure_open()
        try:
            self.catalog = await self._catalog_service.list_categories()
            if product_id:
                record = await self._product_service.get(product_id)
                self._hydrate(product_id, record)
        except SkyCartException:
            self.notifications.error("Failed loading product" if product_id else "Failed loading categories")
            raise
        return self

    def _hydrate(self, product_id: str, record: Dict[str, Any]) -> None:
        if len(self.draft.items):
            raise ValueError("Cannot hydrate a draft that already has images")

        category_id = self.catalog.resolve_category_id(record.get("category"))
        selection = CategorySelection(
            category_id=category_id,
            subcategory_id=self.catalog.resolve_subcategory_id(category_id, record.get("subcategory")),
            subcategory_choices=tuple(self.catalog.subcategories_of(category_id)),
        )
        urls = [url for url in record.get("images") or [] if url]
        if len(urls) > self.max_images:
            self.logger.warning(
                f"Product {product_id} has {len(urls)} stored images; keeping the first {self.max_images}"
            )
            self.notifications.warning(f"Only the first {self.max_images} images were kept")
            urls = urls[:self.max_images]
        images = [ImageItem.hydrated(url) for url in urls]
        self.draft = Draft.from_record(product_id, record, selection, images)
        self._orchestrator = None
        self.logger.info(f"Hydrated draft {self.session_id} from product {product_id} with {len(images)} image(s)")

    # Scalar fields

    def set_field(self, name: str, value: FieldValue) -> None:
        self._ensure_open()
        if name not in SCALAR_FIELDS:
            raise ValidationException(f"Unknown field '{name}'", errors={name: "Unknown field"})
        setattr(self.draft, name, value)
        self.errors.discard(name)

    def update_fields(self, values: Dict[str, FieldValue]) -> None:
        unknown = [name for name in values if name not in SCALAR_FIELDS]
        if unknown:
            raise ValidationException(
                f"Unknown field(s): {', '.join(unknown)}",
                errors={name: "Unknown field" for name in unknown}
            )
        for name, value in values.items():
            self.set_field(name, value)

    def select_category(self, category_id: Optional[str]) -> CategorySelection:
        """Select a category; the subcategory is cleared and its choices reloaded in the same step."""
        self._ensure_open()
        category_id = category_id or None
        self.draft.selection = CategorySelection(
            category_id=category_id,
            subcategory_id=None,
            subcategory_choices=tuple(self.catalog.subcategories_of(category_id)),
        )
        self.errors.discard("category")
        return self.draft.selection

    def select_subcategory(self, subcategory_id: Optional[str]) -> CategorySelection:
        self._ensure_open()
        selection = self.draft.selection
        if subcategory_id and subcategory_id not in selection.choice_ids():
            raise ValidationException(
                "Subcategory does not belong to the selected category",
                errors={"subcategory": "Invalid subcategory"}
            )
        self.draft.selection = replace(selection, subcategory_id=subcategory_id or None)
        self.errors.discard("subcategory")
        return self.draft.selection

    def add_color(self, color: str) -> List[str]:
        self._ensure_open()
        color = (color or "").strip()
        if color:
            self.draft.colors = [*self.draft.colors, color]
        return self.draft.colors

    def remove_color(self, index: int) -> List[str]:
        self._ensure_open()
        if not 0 <= index < len(self.draft.colors):
            raise ResourceNotFoundException("Color", str(index))
        self.draft.colors = [c for i, c in enumerate(self.draft.colors) if i != index]
        return self.draft.colors

    def add_size_row(self, label: str = "", stock: FieldValue = 0) -> List[SizeChartEntry]:
        self._ensure_open()
        self.draft.size_chart = [*self.draft.size_chart, SizeChartEntry(label=label, stock=stock)]
        return self.draft.size_chart

    def update_size_row(self, index: int, label: Optional[str] = None, stock: FieldValue = None) -> SizeChartEntry:
        self._ensure_open()
        if not 0 <= index < len(self.draft.size_chart):
            raise ResourceNotFoundException("Size chart row", str(index))
        row = self.draft.size_chart[index]
        updated = SizeChartEntry(
            label=row.label if label is None else label,
            stock=row.stock if stock is None else stock,
        )
        self.draft.size_chart = [updated if i == index else r for i, r in enumerate(self.draft.size_chart)]
        return updated

    def remove_size_row(self, index: int) -> List[SizeChartEntry]:
        self._ensure_open()
        if not 0 <= index < len(self.draft.size_chart):
            raise ResourceNotFoundException("Size chart row", str(index))
        self.draft.size_chart = [r for i, r in enumerate(self.draft.size_chart) if i != index]
        return self.draft.size_chart

    # Images

    def select_files(self, files: Iterable[RawFile]) -> List[ImageItem]:
        """
        Admit a batch of selected files and queue them for upload.

        Must be called from inside the running event loop.

        Raises:
            ImageLimitExceededException: if the batch would exceed the image cap;
                nothing from the batch is admitted
        """
        self._ensure_open()
        batch = list(files)
        if not batch:
            return []

        current = len(self.draft.items)
        if current + len(batch) > self.max_images:
            self.notifications.error(f"Maximum {self.max_images} images allowed")
            raise ImageLimitExceededException(self.max_images, current, len(batch))

        admitted = []
        for file in batch:
            item = ImageItem.pending(self.previews.acquire(file), file)
            admitted.append(self.draft.items.append(item))

        self.errors.discard(IMAGES_KEY)
        self.orchestrator.enqueue(item.local_id for item in admitted)
        return admitted

    def remove_image(self, local_id: str) -> ImageItem:
        """
        Drop an image whatever its status and release its preview.

        An upload already in flight for it is left to finish; its result is ignored.
        """
        self._ensure_open()
        item = self.draft.items.remove(local_id)
        self.previews.release(item.preview)
        self.logger.info(f"Removed image {local_id} ({item.status.value}) from draft {self.session_id}")
        return item

    async def wait_for_uploads(self) -> None:
        if self._orchestrator is not None:
            await self._orchestrator.drain()

    # Validation and submission

    def validate(self) -> ValidationResult:
        self.errors = self.validator.validate(self.draft)
        return self.errors

    async def submit(self) -> SubmissionOutcome:
        """
        Submit the draft. Every refusal is reported as an outcome plus a
        notification; the draft and its images are left as they were.
        """
        self._ensure_open()
        if self._submitting:
            return SubmissionOutcome(SubmissionState.BUSY, "A submission is already running")

        self._submitting = True
        try:
            result = await self.composer.submit(self.draft, self.catalog)
        except ValidationException as e:
            self.errors = ValidationResult(e.errors)
            return SubmissionOutcome(SubmissionState.INVALID, e.message, errors=e.errors)
        except IncompleteUploadException as e:
            self.notifications.error(e.message)
            return SubmissionOutcome(SubmissionState.UPLOADS_IN_PROGRESS, e.message)
        except SubmissionException as e:
            self.notifications.error(e.message)
            return SubmissionOutcome(SubmissionState.FAILED, e.message)
        finally:
            self._submitting = False

        self.errors = ValidationResult()
        self.notifications.success(result.message)
        return SubmissionOutcome(SubmissionState.SUBMITTED, result.message, result=result)

    # Teardown

    async def close(self) -> None:
        """Stop the upload queue and release every outstanding preview."""
        if self._closed:
            return
        self._closed = True
        if self._orchestrator is not None:
            await self._orchestrator.close()
        released = self.previews.release_all()
        self.logger.info(f"Closed draft {self.session_id}; released {released} preview(s)")
