"""
Django Ledgerman — Inventory ledger and reservation engine.

Usage:
    from ledgerman import ledger, LedgerError, StockLocator, MovementType

    ledger.apply_movement(StockLocator("P-1", "WH-1"), MovementType.RECEIPT, 10, "Initial count")
    ledger.reserve(record.pk, 4, "order", "O-1001")
    ledger.available("P-1")  # 6
"""

_LAZY = {
    'ledger': ('ledgerman.service', 'Ledger'),
    'Ledger': ('ledgerman.service', 'Ledger'),
    'LedgerResult': ('ledgerman.results', 'LedgerResult'),
    'LedgerError': ('ledgerman.exceptions', 'LedgerError'),
    'StockRecord': ('ledgerman.models.stock_record', 'StockRecord'),
    'StockLocator': ('ledgerman.models.stock_record', 'StockLocator'),
    'Movement': ('ledgerman.models.movement', 'Movement'),
    'Reservation': ('ledgerman.models.reservation', 'Reservation'),
    'MovementType': ('ledgerman.models.enums', 'MovementType'),
    'ReservationStatus': ('ledgerman.models.enums', 'ReservationStatus'),
    'ReservedFor': ('ledgerman.models.enums', 'ReservedFor'),
    'StockStatus': ('ledgerman.models.enums', 'StockStatus'),
    'OrderReference': ('ledgerman.references', 'OrderReference'),
    'TransferReference': ('ledgerman.references', 'TransferReference'),
    'PurchaseOrderReference': ('ledgerman.references', 'PurchaseOrderReference'),
}


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name in _LAZY:
        from importlib import import_module
        module_path, attr = _LAZY[name]
        return getattr(import_module(module_path), attr)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = list(_LAZY)

__version__ = '0.1.0'
