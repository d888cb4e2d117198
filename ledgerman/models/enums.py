"""
Enums for Ledgerman models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class StockStatus(models.TextChoices):
    """
    Condition of the stock held by a record.

    Only AVAILABLE stock can be reserved. QUARANTINE, DAMAGED and EXPIRED
    records are tracked physically but never count towards availability.
    """
    AVAILABLE = 'available', _('Available')
    RESERVED = 'reserved', _('Reserved')
    QUARANTINE = 'quarantine', _('Quarantine')
    DAMAGED = 'damaged', _('Damaged')
    EXPIRED = 'expired', _('Expired')


class MovementType(models.TextChoices):
    """
    Kind of quantity change.

    Inbound types add to on-hand, outbound types subtract. ADJUSTMENT is an
    absolute set: the ledger stores the signed delta that was applied.
    """
    RECEIPT = 'receipt', _('Receipt')
    SHIPMENT = 'shipment', _('Shipment')
    ADJUSTMENT = 'adjustment', _('Adjustment')
    TRANSFER_OUT = 'transfer_out', _('Transfer out')
    TRANSFER_IN = 'transfer_in', _('Transfer in')
    RETURN = 'return', _('Return')
    DAMAGE = 'damage', _('Damage')

    @property
    def is_inbound(self) -> bool:
        return self in INBOUND_TYPES

    @property
    def is_outbound(self) -> bool:
        return self in OUTBOUND_TYPES


INBOUND_TYPES = frozenset({
    MovementType.RECEIPT, MovementType.TRANSFER_IN, MovementType.RETURN,
})
OUTBOUND_TYPES = frozenset({
    MovementType.SHIPMENT, MovementType.TRANSFER_OUT, MovementType.DAMAGE,
})


class ReferenceType(models.TextChoices):
    """What a movement points back to."""
    ORDER = 'order', _('Order')
    TRANSFER = 'transfer', _('Transfer')
    PURCHASE_ORDER = 'purchase_order', _('Purchase order')


class ReservedFor(models.TextChoices):
    """Why stock is being held."""
    ORDER = 'order', _('Order')
    TRANSFER = 'transfer', _('Transfer')
    OTHER = 'other', _('Other')


class ReservationStatus(models.TextChoices):
    """Reservation lifecycle status."""
    ACTIVE = 'active', _('Active')           # Holding stock
    FULFILLED = 'fulfilled', _('Fulfilled')  # Shipped, on-hand decremented
    CANCELLED = 'cancelled', _('Cancelled')  # Order cancelled or sweep expired it
    EXPIRED = 'expired', _('Expired')        # Legacy terminal state


class PurchaseOrderStatus(models.TextChoices):
    """Purchase order states relevant to receiving."""
    DRAFT = 'draft', _('Draft')
    APPROVED = 'approved', _('Approved')
    SENT = 'sent', _('Sent')
    PARTIALLY_RECEIVED = 'partially_received', _('Partially received')
    RECEIVED = 'received', _('Received')
    CANCELLED = 'cancelled', _('Cancelled')
    CLOSED = 'closed', _('Closed')


class PurchaseOrderItemStatus(models.TextChoices):
    """Receiving progress of one purchase order line."""
    PENDING = 'pending', _('Pending')
    PARTIALLY_RECEIVED = 'partially_received', _('Partially received')
    RECEIVED = 'received', _('Received')


class QcStatus(models.TextChoices):
    """Quality-control verdict for a received line."""
    PASSED = 'passed', _('Passed')
    FAILED = 'failed', _('Failed')
    PENDING = 'pending', _('Pending')


class ReceiptOutcome(models.TextChoices):
    """What happened to one goods receipt line."""
    APPLIED = 'applied', _('Applied')          # Booked into available stock
    REJECTED = 'rejected', _('Rejected')       # QC failed, not booked
    PENDING_QC = 'pending_qc', _('Pending QC') # Awaiting inspection
    FAILED = 'failed', _('Failed')             # Line could not be processed


class AlertType(models.TextChoices):
    """Kind of stock alert."""
    LOW_STOCK = 'low_stock', _('Low stock')
    OUT_OF_STOCK = 'out_of_stock', _('Out of stock')
    OVERSTOCK = 'overstock', _('Overstock')
    EXPIRING = 'expiring', _('Expiring')


class AlertSeverity(models.TextChoices):
    MEDIUM = 'medium', _('Medium')
    HIGH = 'high', _('High')
    CRITICAL = 'critical', _('Critical')
