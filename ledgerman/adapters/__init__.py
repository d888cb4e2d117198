"""
Ledgerman Adapters.

Implementations of protocols for external systems.
"""

from ledgerman.adapters.loader import (
    get_catalog_validator,
    get_supplier_directory,
    reset_adapters,
)
from ledgerman.adapters.noop import NoopCatalogValidator, NoopSupplierDirectory

__all__ = [
    "NoopCatalogValidator",
    "NoopSupplierDirectory",
    "get_catalog_validator",
    "get_supplier_directory",
    "reset_adapters",
]
