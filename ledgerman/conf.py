"""
Ledgerman configuration.

Usage in settings.py:
    LEDGERMAN = {
        "RESERVATION_TTL_MINUTES": 30,
        "EXPIRED_BATCH_SIZE": 200,
        "CONFLICT_RETRIES": 3,
        "VALIDATE_REFERENCES": True,
        "CATALOG_VALIDATOR": "catalog.adapters.LedgerCatalogValidator",
        "SUPPLIER_DIRECTORY": "suppliers.adapters.PreferredSupplierDirectory",
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class LedgermanSettings:
    """Ledgerman configuration settings."""

    # Default reservation TTL in minutes (0 = no expiration)
    RESERVATION_TTL_MINUTES: int = 0

    # Batch size for the expiry sweep
    EXPIRED_BATCH_SIZE: int = 200

    # Attempts before a version conflict is surfaced to the caller
    CONFLICT_RETRIES: int = 3

    # Ask the catalog validator before creating a new stock record
    VALIDATE_REFERENCES: bool = False

    # Catalog validation backend (dotted path)
    CATALOG_VALIDATOR: str = ""

    # Preferred supplier lookup for reorder suggestions (dotted path)
    SUPPLIER_DIRECTORY: str = ""

    # Book QC-failed goods onto a QUARANTINE record instead of dropping them
    QUARANTINE_REJECTED_GOODS: bool = False

    # Movement history pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100


def get_ledgerman_settings() -> LedgermanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "LEDGERMAN", {})
    return LedgermanSettings(**{
        k: v for k, v in user_settings.items()
        if k in LedgermanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_ledgerman_settings(), name)


ledgerman_settings = _LazySettings()
