"""
Catalog Validation Protocol — Interface for product/warehouse existence checks.

Ledgerman defines this protocol, the catalog (or any master-data system)
implements it. It is consulted once, before a stock record is created for a
locator that has never held stock.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class CatalogValidationResult:
    """Result of a catalog lookup."""

    valid: bool
    message: str | None = None
    error_code: str | None = None  # "PRODUCT_NOT_FOUND", "WAREHOUSE_NOT_FOUND", ...


@runtime_checkable
class CatalogValidator(Protocol):
    """
    Protocol for reference validation.

    Implementations answer whether a product (and variant) exists and whether
    stock may be held at a warehouse.
    """

    def validate_product(self, product_id: str, variant_id: str = "") -> CatalogValidationResult:
        """
        Check that a product, and the variant when given, exist.

        Args:
            product_id: External product id
            variant_id: External variant id, '' for none

        Returns:
            CatalogValidationResult
        """
        ...

    def validate_warehouse(self, warehouse_id: str) -> CatalogValidationResult:
        """
        Check that a warehouse exists and accepts stock.

        Args:
            warehouse_id: External warehouse id

        Returns:
            CatalogValidationResult
        """
        ...
