"""
Goods receiving — books purchase order deliveries into stock.

Each receipt line is processed in its own transaction.atomic(). A line that
fails is stored on the receipt with outcome FAILED and its error code; the
other lines are unaffected.
"""

import logging
from dataclasses import dataclass
from datetime import date

from django.db import IntegrityError, transaction
from django.utils import timezone

from ledgerman.conf import ledgerman_settings
from ledgerman.exceptions import LedgerError, LedgerValidationError, NotFoundError
from ledgerman.models.enums import MovementType, QcStatus, ReceiptOutcome, StockStatus
from ledgerman.models.purchasing import (
    GoodsReceipt,
    GoodsReceiptItem,
    PurchaseOrder,
    PurchaseOrderItem,
)
from ledgerman.models.stock_record import StockLocator
from ledgerman.references import PurchaseOrderReference
from ledgerman.services.movements import StockMovements, validate_positive_quantity

logger = logging.getLogger('ledgerman')

RECEIPT_NUMBER_ATTEMPTS = 5


@dataclass(frozen=True)
class ReceiptLine:
    """One counted line of a delivery."""

    purchase_order_item_id: int
    received_qty: int
    qc_status: str = QcStatus.PASSED
    expected_qty: int | None = None
    lot_number: str = ''
    batch_number: str = ''
    expiry_date: date | None = None


def _coerce_line(line) -> ReceiptLine:
    if isinstance(line, ReceiptLine):
        return line
    try:
        return ReceiptLine(**line)
    except TypeError as e:
        raise LedgerValidationError('INVALID_RECEIPT_LINE', line=repr(line), detail=str(e)) from e


def _is_count(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def next_receipt_number(year=None) -> str:
    """GR-<year>-<NNN>, sequential per year."""
    year = year or timezone.now().year
    prefix = f"GR-{year}-"
    numbers = GoodsReceipt.objects.filter(
        receipt_number__startswith=prefix,
    ).values_list('receipt_number', flat=True)
    last = max(
        (int(n[len(prefix):]) for n in numbers if n[len(prefix):].isdigit()),
        default=0,
    )
    return f"{prefix}{last + 1:03d}"


class GoodsReceiving:
    """Receiving against purchase orders."""

    @classmethod
    def receive(cls, purchase_order_id, warehouse_id, lines,
                received_by='', notes='', qc_notes=''):
        """
        Record a delivery against a purchase order.

        Args:
            purchase_order_id: PurchaseOrder pk
            warehouse_id: Where the goods arrive ('' = the order's warehouse)
            lines: ReceiptLine instances (or dicts with the same keys)

        Returns:
            GoodsReceipt. Per-line results are receipt.items, one
            GoodsReceiptItem per submitted line, in order.

        Raises:
            NotFoundError('PURCHASE_ORDER_NOT_FOUND')
            LedgerValidationError('INVALID_STATUS'): DRAFT, CANCELLED or CLOSED order

        Line outcomes:
            QC PASSED  -> RECEIPT movement into AVAILABLE stock, APPLIED
            QC FAILED  -> nothing available, REJECTED (optionally QUARANTINE)
            QC PENDING -> nothing booked, PENDING_QC until complete_inspection()
            any error  -> FAILED, error_code/error_message set
        """
        try:
            purchase_order = PurchaseOrder.objects.get(pk=purchase_order_id)
        except PurchaseOrder.DoesNotExist:
            raise NotFoundError(
                'PURCHASE_ORDER_NOT_FOUND', purchase_order_id=purchase_order_id,
            ) from None

        if not purchase_order.is_receivable:
            raise LedgerValidationError(
                'INVALID_STATUS',
                purchase_order_id=purchase_order.pk,
                status=purchase_order.status,
            )

        lines = [_coerce_line(line) for line in lines]
        warehouse_id = warehouse_id or purchase_order.warehouse_id

        receipt = cls._create_receipt(purchase_order, warehouse_id, received_by, notes, qc_notes)

        for line in lines:
            cls._receive_line(receipt, purchase_order, line, received_by)

        cls._refresh_order(purchase_order.pk)
        counts = receipt.outcome_counts()
        logger.info(
            "ledger.receipt.completed",
            extra={
                "receipt_number": receipt.receipt_number,
                "purchase_order_id": purchase_order.pk,
                "lines": len(lines),
                **counts,
            },
        )
        return receipt

    @classmethod
    def complete_inspection(cls, receipt_item_id, qc_status, inspected_by=''):
        """
        Resolve a PENDING_QC line as PASSED or FAILED.

        Raises:
            NotFoundError('RECEIPT_ITEM_NOT_FOUND')
            LedgerValidationError('INVALID_STATUS'): line is not pending, or
                qc_status is not PASSED/FAILED
        """
        try:
            qc_status = QcStatus(qc_status)
        except ValueError:
            qc_status = None
        if qc_status not in (QcStatus.PASSED, QcStatus.FAILED):
            raise LedgerValidationError('INVALID_STATUS', qc_status=qc_status)

        with transaction.atomic():
            try:
                item = GoodsReceiptItem.objects.select_for_update().get(pk=receipt_item_id)
            except GoodsReceiptItem.DoesNotExist:
                raise NotFoundError('RECEIPT_ITEM_NOT_FOUND', receipt_item_id=receipt_item_id) from None

            if item.outcome != ReceiptOutcome.PENDING_QC:
                raise LedgerValidationError(
                    'INVALID_STATUS', receipt_item_id=item.pk, outcome=item.outcome,
                )

            receipt = item.goods_receipt
            purchase_order = receipt.purchase_order
            po_item = PurchaseOrderItem.objects.select_for_update().get(pk=item.purchase_order_item_id)

            item.qc_status = qc_status
            if qc_status == QcStatus.PASSED:
                cls._accept(item, receipt, purchase_order, po_item, inspected_by)
            else:
                cls._reject(item, receipt, purchase_order, po_item, inspected_by)

            po_item.status = po_item.derive_status()
            po_item.save(update_fields=['received_qty', 'rejected_qty', 'remaining_qty', 'status'])
            item.save()

        cls._refresh_order(purchase_order.pk)
        logger.info(
            "ledger.receipt.inspected",
            extra={
                "receipt_item_id": item.pk,
                "qc_status": str(qc_status),
                "outcome": item.outcome,
                "inspected_by": inspected_by,
            },
        )
        return item

    # ══════════════════════════════════════════════════════════════
    # INTERNAL
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _create_receipt(cls, purchase_order, warehouse_id, received_by, notes, qc_notes):
        for attempt in range(1, RECEIPT_NUMBER_ATTEMPTS + 1):
            try:
                with transaction.atomic():
                    return GoodsReceipt.objects.create(
                        receipt_number=next_receipt_number(),
                        purchase_order=purchase_order,
                        warehouse_id=warehouse_id,
                        received_by=received_by,
                        notes=notes,
                        qc_notes=qc_notes,
                    )
            except IntegrityError:
                if attempt == RECEIPT_NUMBER_ATTEMPTS:
                    raise
                logger.info("ledger.receipt.number_taken", extra={"attempt": attempt})

    @classmethod
    def _receive_line(cls, receipt, purchase_order, line, received_by):
        po_item = purchase_order.items.filter(pk=line.purchase_order_item_id).first()

        try:
            with transaction.atomic():
                item = cls._book_line(receipt, purchase_order, po_item, line, received_by)
        except LedgerError as exc:
            item = GoodsReceiptItem.objects.create(
                goods_receipt=receipt,
                purchase_order_item=po_item,
                product_id=po_item.product_id if po_item else '',
                variant_id=po_item.variant_id if po_item else '',
                expected_qty=line.expected_qty if _is_count(line.expected_qty) else 0,
                qc_status=line.qc_status if line.qc_status in QcStatus.values else QcStatus.PENDING,
                lot_number=line.lot_number or '',
                batch_number=line.batch_number or '',
                expiry_date=line.expiry_date,
                outcome=ReceiptOutcome.FAILED,
                error_code=exc.code,
                error_message=str(exc.message)[:255],
            )
            logger.warning(
                "ledger.receipt.line_failed",
                extra={
                    "receipt_number": receipt.receipt_number,
                    "purchase_order_item_id": line.purchase_order_item_id,
                    "code": exc.code,
                },
            )
            return item

        logger.info(
            "ledger.receipt.line",
            extra={
                "receipt_number": receipt.receipt_number,
                "purchase_order_item_id": po_item.pk,
                "qty": item.received_qty,
                "outcome": item.outcome,
            },
        )
        return item

    @classmethod
    def _book_line(cls, receipt, purchase_order, po_item, line, received_by):
        validate_positive_quantity(line.received_qty)
        if line.expected_qty is not None and not _is_count(line.expected_qty):
            raise LedgerValidationError('INVALID_QUANTITY', expected_qty=line.expected_qty)
        try:
            qc_status = QcStatus(line.qc_status)
        except ValueError:
            raise LedgerValidationError('INVALID_STATUS', qc_status=line.qc_status) from None

        if po_item is None:
            raise NotFoundError(
                'PURCHASE_ORDER_ITEM_NOT_FOUND',
                purchase_order_item_id=line.purchase_order_item_id,
            )
        po_item = PurchaseOrderItem.objects.select_for_update().get(pk=po_item.pk)

        item = GoodsReceiptItem(
            goods_receipt=receipt,
            purchase_order_item=po_item,
            product_id=po_item.product_id,
            variant_id=po_item.variant_id,
            expected_qty=(
                line.expected_qty if line.expected_qty is not None
                else max(po_item.remaining_qty, 0)
            ),
            received_qty=line.received_qty,
            qc_status=qc_status,
            lot_number=line.lot_number or '',
            batch_number=line.batch_number or '',
            expiry_date=line.expiry_date,
        )
        po_item.received_qty += line.received_qty
        po_item.remaining_qty -= line.received_qty

        if qc_status == QcStatus.PASSED:
            cls._accept(item, receipt, purchase_order, po_item, received_by)
        elif qc_status == QcStatus.FAILED:
            cls._reject(item, receipt, purchase_order, po_item, received_by)
        else:
            item.outcome = ReceiptOutcome.PENDING_QC

        po_item.status = po_item.derive_status()
        po_item.save(update_fields=['received_qty', 'rejected_qty', 'remaining_qty', 'status'])
        item.save()
        return item

    @classmethod
    def _locator(cls, item, receipt):
        return StockLocator(
            product_id=item.product_id,
            warehouse_id=receipt.warehouse_id,
            variant_id=item.variant_id,
            lot_number=item.lot_number,
        )

    @classmethod
    def _accept(cls, item, receipt, purchase_order, po_item, user):
        movement = StockMovements.apply(
            cls._locator(item, receipt),
            MovementType.RECEIPT,
            item.received_qty,
            f"Goods receipt {receipt.receipt_number}",
            PurchaseOrderReference(str(purchase_order.pk)),
            unit_cost=po_item.unit_cost,
            created_by=user,
            record_defaults={
                'batch_number': item.batch_number,
                'expiry_date': item.expiry_date,
            },
        )
        item.accepted_qty = item.received_qty
        item.stock_record_id = movement.stock_record_id
        item.movement = movement
        item.outcome = ReceiptOutcome.APPLIED

    @classmethod
    def _reject(cls, item, receipt, purchase_order, po_item, user):
        item.rejected_qty = item.received_qty
        item.outcome = ReceiptOutcome.REJECTED
        po_item.rejected_qty += item.received_qty

        if ledgerman_settings.QUARANTINE_REJECTED_GOODS:
            movement = StockMovements.apply(
                cls._locator(item, receipt),
                MovementType.RECEIPT,
                item.received_qty,
                f"Goods receipt {receipt.receipt_number} (QC failed)",
                PurchaseOrderReference(str(purchase_order.pk)),
                unit_cost=po_item.unit_cost,
                created_by=user,
                status=StockStatus.QUARANTINE,
                record_defaults={
                    'batch_number': item.batch_number,
                    'expiry_date': item.expiry_date,
                },
            )
            item.stock_record_id = movement.stock_record_id
            item.movement = movement

    @classmethod
    def _refresh_order(cls, purchase_order_id):
        with transaction.atomic():
            purchase_order = PurchaseOrder.objects.select_for_update().get(pk=purchase_order_id)
            purchase_order.refresh_status()
