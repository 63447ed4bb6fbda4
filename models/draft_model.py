"""
Pydantic request/response models for the product draft API.
"""

from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field

from models.catalog_model import Subcategory

FormValue = Optional[Union[int, float, str]]


class DraftCreateRequest(BaseModel):
    """Open a blank draft, or an edit draft when product_id is given."""
    product_id: Optional[str] = None


class DraftFieldsUpdateRequest(BaseModel):
    """Partial update of the scalar form fields; only sent fields change."""
    name: FormValue = None
    description: FormValue = None
    original_price: FormValue = None
    discount_price: FormValue = None
    stock: FormValue = None
    brand: FormValue = None


class CategorySelectRequest(BaseModel):
    category_id: Optional[str] = None


class SubcategorySelectRequest(BaseModel):
    subcategory_id: Optional[str] = None


class ColorRequest(BaseModel):
    color: str


class SizeRowRequest(BaseModel):
    label: Optional[str] = None
    stock: FormValue = None


class NotificationData(BaseModel):
    level: str
    message: str


class ImageItemData(BaseModel):
    local_id: str
    status: str
    preview_url: str
    remote_identity: Optional[str] = None
    filename: Optional[str] = None


class CategorySelectionData(BaseModel):
    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None
    subcategory_choices: List[Subcategory] = Field(default_factory=list)


class SizeChartRowData(BaseModel):
    label: str = ""
    stock: FormValue = None


class DraftResponse(BaseModel):
    draft_id: str
    product_id: Optional[str] = None
    fields: Dict[str, FormValue]
    selection: CategorySelectionData
    colors: List[str] = Field(default_factory=list)
    size_chart: List[SizeChartRowData] = Field(default_factory=list)
    images: List[ImageItemData] = Field(default_factory=list)
    max_images: int
    uploads_in_progress: bool = False
    errors: Dict[str, str] = Field(default_factory=dict)
    review_status: Optional[str] = None
    admin_remarks: str = ""
    notifications: List[NotificationData] = Field(default_factory=list)


class ValidationResponse(BaseModel):
    valid: bool
    errors: Dict[str, str] = Field(default_factory=dict)
    notifications: List[NotificationData] = Field(default_factory=list)


class SubmissionResponse(BaseModel):
    state: str
    message: str
    product: Optional[Dict[str, Any]] = None
    redirect_to: Optional[str] = None
    errors: Dict[str, str] = Field(default_factory=dict)
    notifications: List[NotificationData] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str
    message: str
    details: Optional[dict] = None
