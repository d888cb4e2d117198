"""
Adapter loader — resolves the configured catalog validator and supplier directory.

Usage:
    from ledgerman.adapters import get_catalog_validator

    validator = get_catalog_validator()
    result = validator.validate_product("P-1")

Settings:
    LEDGERMAN = {
        "CATALOG_VALIDATOR": "catalog.adapters.LedgerCatalogValidator",
        "SUPPLIER_DIRECTORY": "suppliers.adapters.PreferredSupplierDirectory",
    }

Instances are cached per dotted path, so changing the setting (for example
with override_settings) picks up the new adapter on the next call.
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from ledgerman.conf import ledgerman_settings
from ledgerman.protocols.catalog import CatalogValidator
from ledgerman.protocols.suppliers import SupplierDirectory

logger = logging.getLogger(__name__)


# Cached adapter instances, keyed by dotted path
_lock = threading.Lock()
_instances: dict[str, object] = {}


def _load(setting_name: str, protocol: type, example: str):
    path = getattr(ledgerman_settings, setting_name)

    if not path:
        raise ImproperlyConfigured(
            f"LEDGERMAN['{setting_name}'] must be configured. "
            f"Example: '{example}'"
        )

    instance = _instances.get(path)
    if instance is None:
        with _lock:
            instance = _instances.get(path)
            if instance is None:  # double-checked
                try:
                    adapter_class = import_string(path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import {setting_name} '{path}': {e}"
                    ) from e

                instance = adapter_class()
                if not isinstance(instance, protocol):
                    raise ImproperlyConfigured(
                        f"'{path}' does not implement {protocol.__name__}"
                    )
                _instances[path] = instance
                logger.debug("Loaded %s: %s", setting_name, path)

    return instance


def get_catalog_validator() -> CatalogValidator:
    """
    Return the configured catalog validator.

    Raises:
        ImproperlyConfigured: If CATALOG_VALIDATOR is not configured or import fails
    """
    return _load(
        "CATALOG_VALIDATOR",
        CatalogValidator,
        "ledgerman.adapters.noop.NoopCatalogValidator",
    )


def get_supplier_directory() -> SupplierDirectory | None:
    """
    Return the configured supplier directory, or None when none is configured.

    Raises:
        ImproperlyConfigured: If SUPPLIER_DIRECTORY is set but cannot be imported
    """
    if not ledgerman_settings.SUPPLIER_DIRECTORY:
        return None
    return _load(
        "SUPPLIER_DIRECTORY",
        SupplierDirectory,
        "ledgerman.adapters.noop.NoopSupplierDirectory",
    )


def reset_adapters() -> None:
    """Drop cached adapter instances. Useful for testing."""
    with _lock:
        _instances.clear()
