"""
Tests for adapter loading and catalog validation.
"""

import pytest
from django.core.exceptions import ImproperlyConfigured

from ledgerman.adapters import get_catalog_validator, get_supplier_directory
from ledgerman.adapters.noop import NoopCatalogValidator
from ledgerman.exceptions import NotFoundError
from ledgerman.models import MovementType, StockLocator, StockRecord
from ledgerman.protocols import CatalogValidationResult
from ledgerman.services import StockMovements


class KnownProductsValidator:
    """Catalog with one product (P-1) and one warehouse (WH-1)."""

    def validate_product(self, product_id, variant_id=''):
        if product_id == 'P-1':
            return CatalogValidationResult(valid=True)
        return CatalogValidationResult(valid=False, message=f'{product_id} is not in the catalog')

    def validate_warehouse(self, warehouse_id):
        if warehouse_id == 'WH-1':
            return CatalogValidationResult(valid=True)
        return CatalogValidationResult(valid=False, error_code='WAREHOUSE_NOT_FOUND')


class NotAValidator:
    pass


VALIDATOR_PATH = 'ledgerman.tests.test_adapters.KnownProductsValidator'


class TestLoader:

    def test_not_configured(self, settings):
        settings.LEDGERMAN = {}

        with pytest.raises(ImproperlyConfigured):
            get_catalog_validator()

    def test_bad_path(self, settings):
        settings.LEDGERMAN = {'CATALOG_VALIDATOR': 'nowhere.Validator'}

        with pytest.raises(ImproperlyConfigured):
            get_catalog_validator()

    def test_wrong_protocol(self, settings):
        settings.LEDGERMAN = {'CATALOG_VALIDATOR': 'ledgerman.tests.test_adapters.NotAValidator'}

        with pytest.raises(ImproperlyConfigured):
            get_catalog_validator()

    def test_cached_per_path(self, settings):
        settings.LEDGERMAN = {'CATALOG_VALIDATOR': 'ledgerman.adapters.noop.NoopCatalogValidator'}

        first = get_catalog_validator()

        assert isinstance(first, NoopCatalogValidator)
        assert get_catalog_validator() is first

    def test_supplier_directory_optional(self, settings):
        settings.LEDGERMAN = {}

        assert get_supplier_directory() is None


@pytest.mark.django_db
class TestCatalogValidation:

    @pytest.fixture(autouse=True)
    def _validate(self, settings):
        settings.LEDGERMAN = {'VALIDATE_REFERENCES': True, 'CATALOG_VALIDATOR': VALIDATOR_PATH}

    def test_known_locator_accepted(self):
        StockMovements.apply(StockLocator('P-1', 'WH-1'), MovementType.RECEIPT, 1, 'Delivery')

        assert StockRecord.objects.count() == 1

    def test_unknown_product(self):
        with pytest.raises(NotFoundError) as exc:
            StockMovements.apply(StockLocator('P-9', 'WH-1'), MovementType.RECEIPT, 1, 'Delivery')

        assert exc.value.code == 'PRODUCT_NOT_FOUND'
        assert 'P-9' in exc.value.message
        assert not StockRecord.objects.exists()

    def test_unknown_warehouse(self):
        with pytest.raises(NotFoundError) as exc:
            StockMovements.apply(StockLocator('P-1', 'WH-9'), MovementType.RECEIPT, 1, 'Delivery')

        assert exc.value.code == 'WAREHOUSE_NOT_FOUND'

    def test_existing_record_not_revalidated(self, settings):
        settings.LEDGERMAN = {}
        StockMovements.apply(StockLocator('P-9', 'WH-1'), MovementType.RECEIPT, 1, 'Legacy')
        settings.LEDGERMAN = {'VALIDATE_REFERENCES': True, 'CATALOG_VALIDATOR': VALIDATOR_PATH}

        StockMovements.apply(StockLocator('P-9', 'WH-1'), MovementType.RECEIPT, 1, 'Delivery')

        assert StockRecord.objects.get().quantity == 2
