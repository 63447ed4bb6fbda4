"""
Supplier product persistence backed by the Supabase products table.
"""

from typing import Any, Dict, Optional
from supabase import Client

from core.config import get_settings
from core.exceptions import DatabaseException, ResourceNotFoundException
from models.product_model import ProductPayload
from services.base import BaseService

# New supplier products wait for admin approval
PENDING_REVIEW = "pending"


class ProductService(BaseService):
    """Create, update and fetch supplier products."""

    def __init__(self, client: Optional[Client] = None):
        super().__init__(client)
        self.table = get_settings().products_table

    def _get(self, product_id: str) -> list:
        return self.db.table(self.table).select("*").eq("id", product_id).execute().data or []

    def _insert(self, document: Dict[str, Any]) -> list:
        return self.db.table(self.table).insert(document).execute().data or []

    def _update(self, product_id: str, document: Dict[str, Any]) -> list:
        return self.db.table(self.table).update(document).eq("id", product_id).execute().data or []

    async def get(self, product_id: str) -> Dict[str, Any]:
        """
        Fetch one product row.

        Raises:
            ResourceNotFoundException: if no product has this id
            DatabaseException: if the query fails
        """
        try:
            rows = await self.run_sync(self._get, product_id)
        except Exception as e:
            self.logger.error(f"Failed to load product {product_id}: {e}")
            raise DatabaseException(f"Failed loading product: {e}", operation="get_product") from e

        if not rows:
            raise ResourceNotFoundException("Product", product_id)
        return rows[0]

    async def create(self, payload: ProductPayload) -> Dict[str, Any]:
        document = {**payload.to_document(), "status": PENDING_REVIEW}
        try:
            rows = await self.run_sync(self._insert, document)
        except Exception as e:
            self.logger.error(f"Failed to create product '{payload.name}': {e}")
            raise DatabaseException(f"Failed to create product: {e}", operation="create_product") from e

        if not rows:
            raise DatabaseException("Failed to create product", operation="create_product")
        self.logger.info(f"Product created with ID: {rows[0].get('id')}")
        return rows[0]

    async def update(self, product_id: str, payload: ProductPayload) -> Dict[str, Any]:
        try:
            rows = await self.run_sync(self._update, product_id, payload.to_document())
        except Exception as e:
            self.logger.error(f"Failed to update product {product_id}: {e}")
            raise DatabaseException(f"Failed to update product: {e}", operation="update_product") from e

        if not rows:
            raise ResourceNotFoundException("Product", product_id)
        self.logger.info(f"Product updated: {product_id}")
        return rows[0]
