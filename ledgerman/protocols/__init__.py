"""
Ledgerman Protocols.

Defines interfaces for external system integration.
"""

from ledgerman.protocols.catalog import (
    CatalogValidationResult,
    CatalogValidator,
)
from ledgerman.protocols.suppliers import (
    SupplierDirectory,
    SupplierInfo,
)

__all__ = [
    "CatalogValidationResult",
    "CatalogValidator",
    "SupplierDirectory",
    "SupplierInfo",
]
