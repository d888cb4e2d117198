"""
Ledgerman Models.

Core models for the inventory ledger:
- StockRecord: On-hand and reserved quantity at a locator
- Movement: Immutable ledger of changes
- Reservation: Stock held for in-flight orders
- PurchaseOrder / GoodsReceipt: Receiving against supplier orders
- ReorderRule: Low-stock and reorder thresholds
"""

from ledgerman.models.enums import (
    INBOUND_TYPES,
    AlertSeverity,
    AlertType,
    OUTBOUND_TYPES,
    MovementType,
    PurchaseOrderItemStatus,
    PurchaseOrderStatus,
    QcStatus,
    ReceiptOutcome,
    ReferenceType,
    ReservationStatus,
    ReservedFor,
    StockStatus,
)
from ledgerman.models.movement import Movement
from ledgerman.models.purchasing import (
    GoodsReceipt,
    GoodsReceiptItem,
    PurchaseOrder,
    PurchaseOrderItem,
)
from ledgerman.models.reorder_rule import ReorderRule
from ledgerman.models.reservation import Reservation
from ledgerman.models.stock_record import StockLocator, StockRecord

__all__ = [
    'INBOUND_TYPES',
    'AlertSeverity',
    'AlertType',
    'OUTBOUND_TYPES',
    'MovementType',
    'PurchaseOrderItemStatus',
    'PurchaseOrderStatus',
    'QcStatus',
    'ReceiptOutcome',
    'ReferenceType',
    'ReservationStatus',
    'ReservedFor',
    'StockStatus',
    'StockLocator',
    'StockRecord',
    'Movement',
    'Reservation',
    'PurchaseOrder',
    'PurchaseOrderItem',
    'GoodsReceipt',
    'GoodsReceiptItem',
    'ReorderRule',
]
