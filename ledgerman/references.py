"""
Movement references — what a stock movement points back to.

A reference is one of a closed set of frozen dataclasses. Each maps onto the
(reference_type, reference_id) column pair of Movement; anything outside the
set is rejected before it reaches the database.

Usage:
    StockMovements.apply(record.pk, MovementType.SHIPMENT, 3, "Order shipped",
                         reference=OrderReference("O-1001"))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union

from ledgerman.exceptions import LedgerValidationError
from ledgerman.models.enums import ReferenceType


@dataclass(frozen=True)
class OrderReference:
    """Sales order that caused the movement."""

    order_id: str
    reference_type: ClassVar[str] = ReferenceType.ORDER

    @property
    def reference_id(self) -> str:
        return self.order_id


@dataclass(frozen=True)
class TransferReference:
    """Warehouse-to-warehouse transfer."""

    transfer_id: str
    reference_type: ClassVar[str] = ReferenceType.TRANSFER

    @property
    def reference_id(self) -> str:
        return self.transfer_id


@dataclass(frozen=True)
class PurchaseOrderReference:
    """Purchase order whose goods were received."""

    purchase_order_id: str
    reference_type: ClassVar[str] = ReferenceType.PURCHASE_ORDER

    @property
    def reference_id(self) -> str:
        return self.purchase_order_id


Reference = Union[OrderReference, TransferReference, PurchaseOrderReference]

_BY_TYPE = {
    ReferenceType.ORDER: OrderReference,
    ReferenceType.TRANSFER: TransferReference,
    ReferenceType.PURCHASE_ORDER: PurchaseOrderReference,
}


def reference_fields(reference: Reference | None) -> dict[str, str]:
    """Column values for a reference (empty strings when there is none)."""
    if reference is None:
        return {'reference_type': '', 'reference_id': ''}

    if not isinstance(reference, tuple(_BY_TYPE.values())):
        raise LedgerValidationError('INVALID_REFERENCE', reference=repr(reference))

    reference_id = str(reference.reference_id or '')
    if not reference_id:
        raise LedgerValidationError('INVALID_REFERENCE', reference=repr(reference))

    return {
        'reference_type': str(reference.reference_type),
        'reference_id': reference_id,
    }


def reference_from_fields(reference_type: str, reference_id: str) -> Reference | None:
    """Rebuild the reference object stored on a movement."""
    if not reference_type:
        return None
    return _BY_TYPE[ReferenceType(reference_type)](reference_id)
