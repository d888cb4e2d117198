"""
Stock movements — state-changing operations (apply, adjust, transfer, retire).

Every quantity change goes through _apply_locked(), which runs with the stock
record row already locked and writes the record and its Movement together.
"""

import logging
import uuid

from django.db import transaction
from django.utils import timezone

from ledgerman.adapters.loader import get_catalog_validator
from ledgerman.concurrency import retry_on_conflict
from ledgerman.conf import ledgerman_settings
from ledgerman.exceptions import (
    InsufficientStockError,
    InvariantViolationError,
    LedgerValidationError,
    NotFoundError,
)
from ledgerman.models.enums import MovementType, StockStatus
from ledgerman.models.movement import Movement
from ledgerman.models.stock_record import StockLocator, StockRecord
from ledgerman.references import TransferReference, reference_fields

logger = logging.getLogger('ledgerman')


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_positive_quantity(quantity) -> None:
    if not _is_int(quantity) or quantity <= 0:
        raise LedgerValidationError('INVALID_QUANTITY', requested=quantity)


def validate_reason(reason) -> None:
    if not reason or not str(reason).strip():
        raise LedgerValidationError('REASON_REQUIRED')


def _coerce_type(movement_type) -> MovementType:
    try:
        return MovementType(movement_type)
    except ValueError:
        raise LedgerValidationError('INVALID_MOVEMENT_TYPE', type=movement_type) from None


def lock_record(stock_record_id) -> StockRecord:
    """select_for_update() a record. Must run inside transaction.atomic()."""
    try:
        return StockRecord.objects.locked(stock_record_id)
    except StockRecord.DoesNotExist:
        raise NotFoundError('STOCK_RECORD_NOT_FOUND', stock_record_id=stock_record_id) from None


def _validate_catalog(locator: StockLocator) -> None:
    """Ask the catalog whether a never-seen locator may hold stock."""
    if not ledgerman_settings.VALIDATE_REFERENCES:
        return

    validator = get_catalog_validator()

    result = validator.validate_product(locator.product_id, locator.variant_id)
    if not result.valid:
        raise NotFoundError(
            result.error_code or 'PRODUCT_NOT_FOUND',
            message=result.message,
            product_id=locator.product_id,
            variant_id=locator.variant_id,
        )

    result = validator.validate_warehouse(locator.warehouse_id)
    if not result.valid:
        raise NotFoundError(
            result.error_code or 'WAREHOUSE_NOT_FOUND',
            message=result.message,
            warehouse_id=locator.warehouse_id,
        )


def ensure_record(locator: StockLocator, status=StockStatus.AVAILABLE, defaults=None) -> int:
    """
    Return the pk of the record at locator/status, creating an empty one if needed.

    Catalog validation runs before creation and outside any row lock.
    """
    existing = (
        StockRecord.objects.at_locator(locator)
        .filter(status=status)
        .values_list('pk', flat=True)
        .first()
    )
    if existing is not None:
        return existing

    _validate_catalog(locator)

    record, created = StockRecord.objects.get_or_create(
        status=status,
        **locator.as_filter(),
        defaults=defaults or {},
    )
    if created:
        logger.info(
            "ledger.record.created",
            extra={
                "stock_record_id": record.pk,
                "product_id": locator.product_id,
                "variant_id": locator.variant_id,
                "warehouse_id": locator.warehouse_id,
                "lot_number": locator.lot_number,
                "status": str(status),
            },
        )
    return record.pk


class StockMovements:
    """State-changing stock movement methods."""

    @classmethod
    @retry_on_conflict
    def apply(cls, target, movement_type, quantity, reason, reference=None, *,
              unit_cost=None, created_by='', approved_by='', occurred_at=None,
              status=StockStatus.AVAILABLE, record_defaults=None, metadata=None):
        """
        Apply one movement to a stock record.

        Args:
            target: Stock record pk, or a StockLocator. A locator with no
                record yet is created (empty) for inbound types only.
            movement_type: MovementType (or its value)
            quantity: Positive magnitude for delta types, the new absolute
                on-hand quantity for ADJUSTMENT
            reason: Required free text
            reference: OrderReference | TransferReference | PurchaseOrderReference
            status: Record status to look up/create when target is a locator
            record_defaults: Extra fields (lot data, location) for a new record

        Returns:
            The created Movement. None for an ADJUSTMENT that changes nothing.

        Raises:
            NotFoundError: record missing (and not creatable)
            InsufficientStockError: on-hand would go negative
            InvariantViolationError: on-hand would drop below reserved
            LedgerValidationError: bad quantity, type, reason or reference

        Concurrency:
            - Runs under transaction.atomic()
            - select_for_update() on the record, then version compare-and-set
            - Retried on ConcurrencyConflictError
        """
        movement_type = _coerce_type(movement_type)
        validate_reason(reason)
        if movement_type == MovementType.ADJUSTMENT:
            cls._validate_target_quantity(quantity)
        else:
            validate_positive_quantity(quantity)
        ref = reference_fields(reference)

        if isinstance(target, StockLocator):
            if movement_type.is_inbound:
                stock_record_id = ensure_record(target, status, record_defaults)
            else:
                stock_record_id = (
                    StockRecord.objects.at_locator(target)
                    .filter(status=status)
                    .values_list('pk', flat=True)
                    .first()
                )
                if stock_record_id is None:
                    raise NotFoundError('STOCK_RECORD_NOT_FOUND', **target.as_filter())
        else:
            stock_record_id = target

        with transaction.atomic():
            record = lock_record(stock_record_id)
            return cls._apply_locked(
                record, movement_type, quantity, reason, ref,
                unit_cost=unit_cost,
                created_by=created_by,
                approved_by=approved_by,
                occurred_at=occurred_at,
                metadata=metadata,
            )

    @classmethod
    @retry_on_conflict
    def adjust(cls, stock_record_id, new_quantity, reason, approved_by='',
               allow_over_reservation=False, created_by=''):
        """
        Set on-hand quantity to an absolute value (cycle count, correction).

        Returns:
            ADJUSTMENT Movement carrying the applied delta, or None if the
            quantity is already new_quantity.

        Raises:
            InvariantViolationError('NEGATIVE_QUANTITY'): new_quantity < 0
            InvariantViolationError('OVER_RESERVED'): new_quantity below the
                reserved quantity and allow_over_reservation is False

        With allow_over_reservation=True the newest ACTIVE reservations are
        cancelled until the reserved quantity fits, in the same transaction.
        """
        validate_reason(reason)
        cls._validate_target_quantity(new_quantity)

        with transaction.atomic():
            record = lock_record(stock_record_id)

            if new_quantity == record.quantity:
                return None

            if new_quantity < record.reserved_quantity:
                if not allow_over_reservation:
                    raise InvariantViolationError(
                        'OVER_RESERVED',
                        stock_record_id=record.pk,
                        requested=new_quantity,
                        reserved=record.reserved_quantity,
                    )
                from ledgerman.services.reservations import StockReservations
                StockReservations.cancel_newest(
                    record,
                    record.reserved_quantity - new_quantity,
                    released_by=approved_by or created_by,
                )

            return cls._apply_locked(
                record, MovementType.ADJUSTMENT, new_quantity, reason,
                reference_fields(None),
                approved_by=approved_by,
                created_by=created_by,
            )

    @classmethod
    @retry_on_conflict
    def transfer(cls, stock_record_id, to_warehouse_id, quantity, reason, created_by=''):
        """
        Move stock between warehouses.

        TRANSFER_OUT on the source, TRANSFER_IN on the record with the same
        product/variant/lot/status at to_warehouse_id (created if missing).

        Returns:
            (out_movement, in_movement), sharing one TransferReference

        Concurrency:
            - Both rows locked in primary-key order
        """
        validate_positive_quantity(quantity)
        validate_reason(reason)

        try:
            source = StockRecord.objects.get(pk=stock_record_id)
        except StockRecord.DoesNotExist:
            raise NotFoundError('STOCK_RECORD_NOT_FOUND', stock_record_id=stock_record_id) from None

        if source.warehouse_id == to_warehouse_id:
            raise LedgerValidationError('SAME_WAREHOUSE', warehouse_id=to_warehouse_id)

        destination = StockLocator(
            product_id=source.product_id,
            warehouse_id=to_warehouse_id,
            variant_id=source.variant_id,
            lot_number=source.lot_number,
        )
        destination_id = ensure_record(destination, source.status, {
            'batch_number': source.batch_number,
            'expiry_date': source.expiry_date,
        })
        ref = reference_fields(TransferReference(uuid.uuid4().hex))

        with transaction.atomic():
            records = {
                r.pk: r for r in StockRecord.objects.select_for_update()
                .filter(pk__in=[source.pk, destination_id])
                .order_by('pk')
            }
            if source.pk not in records:
                raise NotFoundError('STOCK_RECORD_NOT_FOUND', stock_record_id=source.pk)

            out_movement = cls._apply_locked(
                records[source.pk], MovementType.TRANSFER_OUT, quantity, reason, ref,
                created_by=created_by,
            )
            in_movement = cls._apply_locked(
                records[destination_id], MovementType.TRANSFER_IN, quantity, reason, ref,
                unit_cost=records[source.pk].last_cost,
                created_by=created_by,
            )

        logger.info(
            "ledger.transfer.completed",
            extra={
                "from_stock_record_id": source.pk,
                "to_stock_record_id": destination_id,
                "qty": quantity,
                "transfer_id": ref['reference_id'],
            },
        )
        return out_movement, in_movement

    @classmethod
    @retry_on_conflict
    def retire(cls, stock_record_id, retired_by=''):
        """
        Soft-retire an empty record. Retired records cannot be reserved.

        Raises:
            InvariantViolationError('RECORD_NOT_EMPTY'): quantity or reserved > 0
        """
        with transaction.atomic():
            record = lock_record(stock_record_id)

            if record.is_retired:
                return record

            if record.quantity or record.reserved_quantity:
                raise InvariantViolationError(
                    'RECORD_NOT_EMPTY',
                    stock_record_id=record.pk,
                    quantity=record.quantity,
                    reserved=record.reserved_quantity,
                )

            record.compare_and_set(is_retired=True, retired_at=timezone.now())
            logger.info(
                "ledger.record.retired",
                extra={"stock_record_id": record.pk, "retired_by": retired_by},
            )
            return record

    # ══════════════════════════════════════════════════════════════
    # INTERNAL
    # ══════════════════════════════════════════════════════════════

    @staticmethod
    def _validate_target_quantity(quantity) -> None:
        if not _is_int(quantity):
            raise LedgerValidationError('INVALID_QUANTITY', requested=quantity)
        if quantity < 0:
            raise InvariantViolationError('NEGATIVE_QUANTITY', requested=quantity)

    @classmethod
    def _apply_locked(cls, record, movement_type, quantity, reason, ref, *,
                      unit_cost=None, created_by='', approved_by='',
                      occurred_at=None, metadata=None, release_reserved=0):
        """
        Write record and Movement. Caller holds the row lock on record.

        release_reserved lowers reserved_quantity in the same write (used by
        reservation fulfilment).
        """
        before = record.quantity
        if movement_type == MovementType.ADJUSTMENT:
            delta = quantity - before
            if delta == 0:
                return None
        elif movement_type.is_outbound:
            delta = -quantity
        else:
            delta = quantity
        after = before + delta
        reserved_after = record.reserved_quantity - release_reserved

        if after < 0:
            raise InsufficientStockError(
                stock_record_id=record.pk,
                available=before,
                requested=quantity,
            )
        if after < reserved_after:
            raise InvariantViolationError(
                'OVER_RESERVED',
                stock_record_id=record.pk,
                requested=quantity,
                quantity_after=after,
                reserved=reserved_after,
            )

        now = timezone.now()
        changes = {'quantity': after, 'last_movement_at': now}
        if release_reserved:
            changes['reserved_quantity'] = reserved_after
        if delta > 0:
            if unit_cost is not None:
                changes['last_cost'] = unit_cost
            if record.is_retired:
                changes['is_retired'] = False
                changes['retired_at'] = None
        record.compare_and_set(**changes)

        movement = Movement.objects.create(
            stock_record=record,
            type=movement_type,
            quantity=delta,
            quantity_before=before,
            quantity_after=after,
            reason=reason,
            unit_cost=unit_cost,
            approved_by=approved_by,
            created_by=created_by,
            occurred_at=occurred_at or now,
            metadata=metadata or {},
            **ref,
        )
        logger.info(
            "ledger.movement.applied",
            extra={
                "stock_record_id": record.pk,
                "movement_id": movement.pk,
                "type": str(movement_type),
                "delta": delta,
                "quantity_after": after,
                "reason": reason,
                **ref,
            },
        )
        return movement
