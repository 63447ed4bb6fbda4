"""
Pydantic models for the payload sent to the product service.
"""

from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class SizeChartRow(BaseModel):
    label: str = ""
    stock: Optional[Union[int, float, str]] = None


class ProductPayload(BaseModel):
    """Supplier product as stored by the product service."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    original_price: float = Field(alias="originalPrice")
    discount_price: float = Field(alias="discountPrice")
    discount_percent: int = Field(default=0, alias="discountPercent")
    category: str
    subcategory: str
    brand: str
    stock: int
    colors: List[str] = Field(default_factory=list)
    size_chart: List[SizeChartRow] = Field(default_factory=list, alias="sizeChart")
    images: List[str] = Field(default_factory=list)

    def to_document(self) -> dict:
        """Serialize with the camelCase keys the store expects."""
        return self.model_dump(by_alias=True)
