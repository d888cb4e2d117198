"""
Ledger Service — The single public interface for all inventory operations.

Usage:
    from ledgerman import ledger, StockLocator, MovementType, ReservedFor

    ledger.apply_movement(StockLocator("P-1", "WH-1"), MovementType.RECEIPT, 10, "Initial count")
    result = ledger.reserve(record.pk, 4, ReservedFor.ORDER, "O-1001")
    ledger.available("P-1")  # 6

State-changing methods return a LedgerResult: ok/value on success,
ok=False/error when a LedgerError was raised. Anything that is not a
LedgerError (database errors, programming errors) propagates unchanged.
Queries return plain values and raise.
"""

import logging

from ledgerman.exceptions import LedgerError
from ledgerman.models.enums import ReservationStatus
from ledgerman.results import LedgerResult
from ledgerman.services.movements import StockMovements
from ledgerman.services.queries import StockQueries
from ledgerman.services.receiving import GoodsReceiving
from ledgerman.services.reorder import ReorderAnalyzer
from ledgerman.services.reservations import StockReservations

logger = logging.getLogger('ledgerman')


def _run(operation, *args, **kwargs) -> LedgerResult:
    try:
        return LedgerResult.success(operation(*args, **kwargs))
    except LedgerError as exc:
        logger.info(
            "ledger.operation.rejected",
            extra={"operation": operation.__name__, "code": exc.code},
        )
        return LedgerResult.failure(exc)


class Ledger:
    """
    Single interface for all inventory operations.

    IMPORTANT: All state-changing methods run under transaction.atomic()
    with the stock record row locked and a version compare-and-set.
    See the service classes for details.
    """

    # ══════════════════════════════════════════════════════════════
    # CORE: QUERIES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def available(cls, product_id, variant_id='', warehouse_id=None) -> int:
        """Reservable quantity (on-hand minus reserved) of AVAILABLE stock."""
        return StockQueries.available(product_id, variant_id, warehouse_id)

    @classmethod
    def on_hand(cls, product_id, variant_id='', warehouse_id=None) -> int:
        return StockQueries.on_hand(product_id, variant_id, warehouse_id)

    @classmethod
    def get_record(cls, stock_record_id):
        return StockQueries.get_record(stock_record_id)

    @classmethod
    def find_record(cls, locator, status=None):
        return StockQueries.find_record(locator, status)

    @classmethod
    def list_records(cls, **filters):
        return StockQueries.list_records(**filters)

    @classmethod
    def list_movements(cls, **filters):
        """Paginated movement history. See StockQueries.list_movements()."""
        return StockQueries.list_movements(**filters)

    @classmethod
    def replay(cls, stock_record_id) -> int:
        return StockQueries.replay(stock_record_id)

    @classmethod
    def check_integrity(cls, record):
        return StockQueries.check_integrity(record)

    # ══════════════════════════════════════════════════════════════
    # CORE: MOVEMENTS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def apply_movement(cls, target, movement_type, quantity, reason,
                       reference=None, **options) -> LedgerResult:
        """
        Apply a movement. value = Movement.

        Args:
            target: Stock record pk or StockLocator
            movement_type: MovementType
            quantity: Magnitude (absolute target for ADJUSTMENT)
            reason: Required
            reference: OrderReference | TransferReference | PurchaseOrderReference
        """
        return _run(
            StockMovements.apply, target, movement_type, quantity, reason,
            reference, **options,
        )

    @classmethod
    def adjust_stock(cls, stock_record_id, new_quantity, reason, approved_by='',
                     allow_over_reservation=False) -> LedgerResult:
        """Absolute set. value = Movement, or None when nothing changed."""
        return _run(
            StockMovements.adjust, stock_record_id, new_quantity, reason,
            approved_by=approved_by,
            allow_over_reservation=allow_over_reservation,
        )

    @classmethod
    def transfer(cls, stock_record_id, to_warehouse_id, quantity, reason,
                 created_by='') -> LedgerResult:
        """value = (out_movement, in_movement)."""
        return _run(
            StockMovements.transfer, stock_record_id, to_warehouse_id, quantity,
            reason, created_by=created_by,
        )

    @classmethod
    def retire_record(cls, stock_record_id, retired_by='') -> LedgerResult:
        return _run(StockMovements.retire, stock_record_id, retired_by=retired_by)

    # ══════════════════════════════════════════════════════════════
    # CORE: RESERVATIONS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def reserve(cls, stock_record_id, quantity, reserved_for, reference_id,
                expires_at=None, created_by='') -> LedgerResult:
        """
        Hold stock for an order or transfer. value = Reservation.

        Failure codes: INSUFFICIENT_AVAILABLE (error.available, error.requested),
        STOCK_RECORD_NOT_FOUND, INVALID_QUANTITY.
        """
        return _run(
            StockReservations.reserve, stock_record_id, quantity, reserved_for,
            reference_id, expires_at=expires_at, created_by=created_by,
        )

    @classmethod
    def release(cls, reservation_id, outcome, released_by='', reason='') -> LedgerResult:
        """
        End a reservation as CANCELLED or FULFILLED. value = Reservation.

        Idempotent: a reservation that is no longer ACTIVE comes back unchanged.
        """
        return _run(
            StockReservations.release, reservation_id, outcome,
            released_by=released_by, reason=reason,
        )

    @classmethod
    def release_for_reference(cls, reserved_for, reference_id, outcome,
                              released_by='', reason='') -> LedgerResult:
        """
        Release every ACTIVE reservation of one order or transfer.
        value = list of released Reservations.
        """
        return _run(
            StockReservations.release_for_reference, reserved_for, reference_id, outcome,
            released_by=released_by, reason=reason,
        )

    @classmethod
    def fulfill(cls, reservation_id, released_by='', reason='') -> LedgerResult:
        """Shortcut for release(..., FULFILLED)."""
        return cls.release(reservation_id, ReservationStatus.FULFILLED, released_by, reason)

    @classmethod
    def cancel(cls, reservation_id, released_by='', reason='') -> LedgerResult:
        """Shortcut for release(..., CANCELLED)."""
        return cls.release(reservation_id, ReservationStatus.CANCELLED, released_by, reason)

    @classmethod
    def expire_overdue(cls, now=None) -> int:
        """
        Cancel overdue reservations. Returns how many were released.

        Meant for schedulers: errors propagate instead of being wrapped.
        """
        return StockReservations.expire_overdue(now)

    # ══════════════════════════════════════════════════════════════
    # RECEIVING
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def receive_goods(cls, purchase_order_id, warehouse_id, lines, received_by='',
                      notes='', qc_notes='') -> LedgerResult:
        """
        Book a delivery. value = GoodsReceipt.

        The result is ok even when some lines failed: per-line outcomes are
        on value.items. ok=False only for PURCHASE_ORDER_NOT_FOUND and
        INVALID_STATUS, which reject the whole delivery.
        """
        return _run(
            GoodsReceiving.receive, purchase_order_id, warehouse_id, lines,
            received_by=received_by, notes=notes, qc_notes=qc_notes,
        )

    @classmethod
    def complete_inspection(cls, receipt_item_id, qc_status, inspected_by='') -> LedgerResult:
        return _run(
            GoodsReceiving.complete_inspection, receipt_item_id, qc_status,
            inspected_by=inspected_by,
        )

    # ══════════════════════════════════════════════════════════════
    # REORDER
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def get_low_stock_alerts(cls, company_id):
        return ReorderAnalyzer.get_low_stock_alerts(company_id)

    @classmethod
    def get_overstock_alerts(cls, company_id):
        return ReorderAnalyzer.get_overstock_alerts(company_id)

    @classmethod
    def get_expiry_alerts(cls, company_id=None, within_days=30):
        return ReorderAnalyzer.get_expiry_alerts(company_id, within_days=within_days)

    @classmethod
    def get_reorder_suggestions(cls, company_id, directory=None):
        return ReorderAnalyzer.get_reorder_suggestions(company_id, directory)
