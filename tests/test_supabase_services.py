import asyncio
from unittest.mock import MagicMock

import pytest

from core.exceptions import DatabaseException, ExternalServiceException, ResourceNotFoundException
from models.product_model import ProductPayload
from services.catalog_service import CatalogService
from services.product_service import ProductService


def _payload():
    return ProductPayload(
        name="Linen Shirt",
        description="Breathable",
        original_price=100,
        discount_price=90,
        discount_percent=10,
        category="Apparel",
        subcategory="Shirts",
        brand="Sky",
        stock=4,
        images=["https://cdn.test/products/1.png"],
    )


@pytest.mark.unit
class TestCatalogService:
    def setup_method(self):
        self.client = MagicMock()
        self.query = self.client.table.return_value.select.return_value.order.return_value
        self.service = CatalogService(client=self.client)

    def test_builds_catalog_with_string_ids(self):
        self.query.execute.return_value.data = [
            {"id": 1, "name": "Apparel", "subcategories": [{"id": 11, "name": "Shirts"}]},
            {"id": 2, "name": "Electronics", "subcategories": []},
        ]

        catalog = asyncio.run(self.service.list_categories())

        assert len(catalog) == 2
        assert catalog.category_name("1") == "Apparel"
        assert catalog.subcategory_name("1", "11") == "Shirts"
        assert catalog.resolve_category_id("Electronics") == "2"
        assert catalog.subcategories_of("2") == []

    def test_failure_is_reported_as_catalog_error(self):
        self.query.execute.side_effect = RuntimeError("timeout")

        with pytest.raises(ExternalServiceException) as exc_info:
            asyncio.run(self.service.list_categories())
        assert exc_info.value.message == "Catalog service error: Failed loading categories"


@pytest.mark.unit
class TestProductService:
    def setup_method(self):
        self.client = MagicMock()
        self.table = self.client.table.return_value
        self.service = ProductService(client=self.client)

    def test_create_marks_product_pending(self):
        self.table.insert.return_value.execute.return_value.data = [{"id": "p-1"}]

        row = asyncio.run(self.service.create(_payload()))

        document = self.table.insert.call_args[0][0]
        assert row == {"id": "p-1"}
        assert document["status"] == "pending"
        assert document["originalPrice"] == 100.0
        assert document["discountPercent"] == 10

    def test_update_does_not_touch_review_status(self):
        chain = self.table.update.return_value.eq.return_value
        chain.execute.return_value.data = [{"id": "prod-7"}]

        asyncio.run(self.service.update("prod-7", _payload()))

        document = self.table.update.call_args[0][0]
        assert "status" not in document
        self.table.update.return_value.eq.assert_called_with("id", "prod-7")

    def test_update_of_missing_product(self):
        self.table.update.return_value.eq.return_value.execute.return_value.data = []

        with pytest.raises(ResourceNotFoundException):
            asyncio.run(self.service.update("missing", _payload()))

    def test_get_missing_product(self):
        self.table.select.return_value.eq.return_value.execute.return_value.data = []

        with pytest.raises(ResourceNotFoundException):
            asyncio.run(self.service.get("missing"))

    def test_insert_failure_is_database_error(self):
        self.table.insert.return_value.execute.side_effect = RuntimeError("connection reset")

        with pytest.raises(DatabaseException):
            asyncio.run(self.service.create(_payload()))
