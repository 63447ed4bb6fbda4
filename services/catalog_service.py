"""
Category catalog lookups backed by the Supabase categories table.
"""

from typing import Optional
from supabase import Client

from core.config import get_settings
from core.exceptions import ExternalServiceException
from models.catalog_model import Category, CategoryCatalog
from services.base import BaseService


class CatalogService(BaseService):
    """Reads categories and their subcategories."""

    def __init__(self, client: Optional[Client] = None):
        super().__init__(client)
        self.table = get_settings().categories_table

    def _fetch(self) -> list:
        result = self.db.table(self.table).select("id, name, subcategories").order("name").execute()
        return result.data or []

    async def list_categories(self) -> CategoryCatalog:
        """
        Load the whole catalog.

        Raises:
            ExternalServiceException: if the categories cannot be read
        """
        try:
            rows = await self.run_sync(self._fetch)
        except Exception as e:
            self.logger.error(f"Failed to load categories: {e}")
            raise ExternalServiceException("Catalog", "Failed loading categories") from e

        catalog = CategoryCatalog([Category.model_validate(row) for row in rows])
        self.logger.info(f"Loaded {len(catalog)} categories")
        return catalog
