"""
Noop adapters — stand-ins for development and testing.

Usage in settings.py:
    LEDGERMAN = {
        "CATALOG_VALIDATOR": "ledgerman.adapters.noop.NoopCatalogValidator",
        "SUPPLIER_DIRECTORY": "ledgerman.adapters.noop.NoopSupplierDirectory",
    }

WARNING: Do NOT use NoopCatalogValidator in production. It accepts any
product, variant and warehouse id, including nonexistent ones.
"""

from __future__ import annotations

from ledgerman.protocols.catalog import CatalogValidationResult
from ledgerman.protocols.suppliers import SupplierInfo


class NoopCatalogValidator:
    """
    No-operation catalog validator.

    Every product and warehouse is valid. Implements the ``CatalogValidator``
    protocol without any external dependencies.
    """

    def validate_product(self, product_id: str, variant_id: str = "") -> CatalogValidationResult:
        return CatalogValidationResult(valid=True)

    def validate_warehouse(self, warehouse_id: str) -> CatalogValidationResult:
        return CatalogValidationResult(valid=True)


class NoopSupplierDirectory:
    """
    Supplier directory that knows no suppliers.

    Reorder suggestions then fall back to ReorderRule.preferred_supplier.
    """

    def preferred_supplier(
        self,
        company_id: str,
        product_id: str,
        variant_id: str = "",
    ) -> SupplierInfo | None:
        return None
