"""
Exceptions for Ledgerman.

Every error is a LedgerError with a structured code for programmatic
handling. Subclasses group the codes by what the caller can do about them.
"""

from typing import Any


class LedgerError(Exception):
    """
    Structured exception for ledger operations.

    Usage:
        try:
            StockReservations.reserve(record.pk, 10, ReservedFor.ORDER, "O-1")
        except InsufficientAvailableStockError as e:
            print(f"Only {e.available} available")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    default_code = 'LEDGER_ERROR'

    _default_messages = {
        'LEDGER_ERROR': 'Inventory ledger error',
        'STOCK_RECORD_NOT_FOUND': 'Stock record not found',
        'RESERVATION_NOT_FOUND': 'Reservation not found',
        'PURCHASE_ORDER_NOT_FOUND': 'Purchase order not found',
        'PURCHASE_ORDER_ITEM_NOT_FOUND': 'Purchase order item not found',
        'RECEIPT_ITEM_NOT_FOUND': 'Goods receipt item not found',
        'PRODUCT_NOT_FOUND': 'Product not found',
        'VARIANT_NOT_FOUND': 'Product variant not found',
        'WAREHOUSE_NOT_FOUND': 'Warehouse not found',
        'INSUFFICIENT_STOCK': 'Insufficient stock for this movement',
        'INSUFFICIENT_AVAILABLE': 'Not enough available stock to reserve',
        'OVER_RESERVED': 'Reserved quantity would exceed on-hand quantity',
        'NEGATIVE_QUANTITY': 'Quantity cannot be negative',
        'RECORD_NOT_EMPTY': 'Stock record still holds stock or reservations',
        'CONCURRENT_MODIFICATION': 'Concurrent modification detected',
        'INVALID_QUANTITY': 'Invalid quantity (must be a positive integer)',
        'REASON_REQUIRED': 'Reason is required',
        'INVALID_STATUS': 'Invalid status for this operation',
        'INVALID_OUTCOME': 'Invalid release outcome',
        'SAME_WAREHOUSE': 'Source and destination warehouses cannot be the same',
        'INVALID_REFERENCE': 'Invalid movement reference',
        'INVALID_MOVEMENT_TYPE': 'Unknown movement type',
        'INVALID_RESERVED_FOR': 'Unknown reservation purpose',
        'INVALID_RECEIPT_LINE': 'Malformed goods receipt line',
        'INVALID_SORT': 'Unknown sort field',
    }

    def __init__(self, code: str | None = None, message: str | None = None, **data):
        self.code = code or self.default_code
        self.message = message or self._default_messages.get(self.code, self.code)
        self.data = data
        super().__init__(self.message)

    @property
    def available(self) -> int:
        """Shortcut for data['available']."""
        return self.data.get('available', 0)

    @property
    def requested(self) -> int:
        """Shortcut for data['requested']."""
        return self.data.get('requested', 0)

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: v if isinstance(v, (int, float, bool, type(None))) else str(v)
                for k, v in self.data.items()
            }
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code!r}, {self.data!r})"


class NotFoundError(LedgerError):
    """Referenced record, reservation or purchase order item does not exist."""

    default_code = 'STOCK_RECORD_NOT_FOUND'


class InsufficientStockError(LedgerError):
    """Outbound movement would drive on-hand quantity negative."""

    default_code = 'INSUFFICIENT_STOCK'


class InsufficientAvailableStockError(LedgerError):
    """Reservation request exceeds quantity minus reserved quantity."""

    default_code = 'INSUFFICIENT_AVAILABLE'


class InvariantViolationError(LedgerError):
    """Operation would break 0 <= reserved_quantity <= quantity."""

    default_code = 'OVER_RESERVED'


class ConcurrencyConflictError(LedgerError):
    """Version compare-and-set lost against a concurrent writer."""

    default_code = 'CONCURRENT_MODIFICATION'


class LedgerValidationError(LedgerError):
    """Malformed request: bad quantity, missing reason, wrong status."""

    default_code = 'INVALID_QUANTITY'
