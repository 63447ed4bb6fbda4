import pytest

from tests.fakes import FakeCatalogService, FakeProductService, STORED_PRODUCT, make_settings


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def catalog_service():
    return FakeCatalogService()


@pytest.fixture
def product_service():
    return FakeProductService(records={STORED_PRODUCT["id"]: dict(STORED_PRODUCT)})
