"""
Supplier Directory Protocol — preferred supplier lookup for reorder suggestions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class SupplierInfo:
    """Supplier chosen for replenishing a product."""

    supplier_id: str
    name: str = ""
    lead_time_days: int | None = None


@runtime_checkable
class SupplierDirectory(Protocol):
    """Protocol for resolving the preferred supplier of a product."""

    def preferred_supplier(
        self,
        company_id: str,
        product_id: str,
        variant_id: str = "",
    ) -> SupplierInfo | None:
        """
        Return the supplier to reorder from, or None when unknown.

        Args:
            company_id: Tenant the reorder rule belongs to
            product_id: External product id
            variant_id: External variant id, '' for none
        """
        ...
