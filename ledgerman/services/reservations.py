"""
Stock reservations — reservation lifecycle (reserve, release, expire).

Lock order is always stock record first, then reservation. Status is
re-checked after both locks are held, so the first committer of competing
releases wins and the others become no-ops.
"""

import logging
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from ledgerman.concurrency import retry_on_conflict
from ledgerman.conf import ledgerman_settings
from ledgerman.exceptions import (
    ConcurrencyConflictError,
    InsufficientAvailableStockError,
    LedgerValidationError,
    NotFoundError,
)
from ledgerman.models.enums import MovementType, ReservationStatus, ReservedFor
from ledgerman.models.reservation import Reservation
from ledgerman.references import OrderReference, TransferReference, reference_fields
from ledgerman.services.movements import StockMovements, lock_record, validate_positive_quantity

logger = logging.getLogger('ledgerman')

RELEASE_OUTCOMES = frozenset({ReservationStatus.CANCELLED, ReservationStatus.FULFILLED})


def _shipment_reference(reservation):
    if reservation.reserved_for == ReservedFor.ORDER:
        return OrderReference(reservation.reference_id)
    if reservation.reserved_for == ReservedFor.TRANSFER:
        return TransferReference(reservation.reference_id)
    return None


class StockReservations:
    """Reservation lifecycle methods."""

    @classmethod
    @retry_on_conflict
    def reserve(cls, stock_record_id, quantity, reserved_for, reference_id,
                expires_at=None, created_by='', metadata=None):
        """
        Hold quantity of a stock record for an order or transfer.

        Returns:
            The ACTIVE Reservation

        Raises:
            InsufficientAvailableStockError: reservable quantity < quantity
                (e.available / e.requested carry the numbers)
            NotFoundError: stock record missing

        Concurrency:
            - select_for_update() on the stock record
            - reserved_quantity written by version compare-and-set
            - No movement is written
        """
        validate_positive_quantity(quantity)
        try:
            reserved_for = ReservedFor(reserved_for)
        except ValueError:
            raise LedgerValidationError('INVALID_RESERVED_FOR', reserved_for=reserved_for) from None
        if not reference_id:
            raise LedgerValidationError('INVALID_REFERENCE', reference_id=reference_id)

        if expires_at is None and ledgerman_settings.RESERVATION_TTL_MINUTES > 0:
            expires_at = timezone.now() + timedelta(
                minutes=ledgerman_settings.RESERVATION_TTL_MINUTES
            )

        with transaction.atomic():
            record = lock_record(stock_record_id)

            available = record.reservable_quantity
            if available < quantity:
                raise InsufficientAvailableStockError(
                    stock_record_id=record.pk,
                    available=available,
                    requested=quantity,
                )

            record.compare_and_set(reserved_quantity=record.reserved_quantity + quantity)
            reservation = Reservation.objects.create(
                stock_record=record,
                quantity=quantity,
                reserved_for=reserved_for,
                reference_id=str(reference_id),
                expires_at=expires_at,
                created_by=created_by,
                metadata=metadata or {},
            )
            logger.info(
                "ledger.reservation.created",
                extra={
                    "reservation_id": reservation.pk,
                    "stock_record_id": record.pk,
                    "qty": quantity,
                    "reserved_for": str(reserved_for),
                    "reference_id": reservation.reference_id,
                    "expires_at": expires_at.isoformat() if expires_at else None,
                },
            )
            return reservation

    @classmethod
    @retry_on_conflict
    def release(cls, reservation_id, outcome, released_by='', reason=''):
        """
        End an ACTIVE reservation.

        Transitions:
            ACTIVE -> CANCELLED: reserved quantity returned, no movement
            ACTIVE -> FULFILLED: reserved quantity consumed by a SHIPMENT movement

        Releasing a reservation that is no longer ACTIVE returns it unchanged.

        Raises:
            NotFoundError('RESERVATION_NOT_FOUND')
            LedgerValidationError('INVALID_OUTCOME')
        """
        try:
            outcome = ReservationStatus(outcome)
        except ValueError:
            outcome = None
        if outcome not in RELEASE_OUTCOMES:
            raise LedgerValidationError('INVALID_OUTCOME', reservation_id=reservation_id)

        stock_record_id = (
            Reservation.objects.filter(pk=reservation_id)
            .values_list('stock_record_id', flat=True)
            .first()
        )
        if stock_record_id is None:
            raise NotFoundError('RESERVATION_NOT_FOUND', reservation_id=reservation_id)

        with transaction.atomic():
            record = lock_record(stock_record_id)
            reservation = Reservation.objects.select_for_update().get(pk=reservation_id)

            if not reservation.is_active:
                logger.debug(
                    "ledger.reservation.release_skipped",
                    extra={"reservation_id": reservation.pk, "status": reservation.status},
                )
                return reservation

            cls._release_locked(record, reservation, outcome, released_by, reason)
            return reservation

    @classmethod
    def release_for_reference(cls, reserved_for, reference_id, outcome,
                              released_by='', reason='') -> list:
        """
        Release every ACTIVE reservation held for one order or transfer.

        Each reservation goes through release(), so each locks its own
        stock record in its own transaction.

        Returns:
            Reservations that were ACTIVE when read, in creation order
        """
        if outcome not in RELEASE_OUTCOMES:
            raise LedgerValidationError('INVALID_OUTCOME', reference_id=reference_id)

        reservation_ids = list(
            Reservation.objects.for_reference(reserved_for, reference_id)
            .active()
            .order_by('created_at', 'pk')
            .values_list('pk', flat=True)
        )
        released = [
            cls.release(reservation_id, outcome, released_by=released_by, reason=reason)
            for reservation_id in reservation_ids
        ]
        if released:
            logger.info(
                "ledger.reservations.released_for_reference",
                extra={
                    "reserved_for": reserved_for,
                    "reference_id": reference_id,
                    "count": len(released),
                },
            )
        return released

    @classmethod
    def expire_overdue(cls, now=None) -> int:
        """
        Cancel every ACTIVE reservation whose expires_at has passed.

        Returns:
            Number of reservations actually released

        Concurrency:
            - Candidates read in pk-ordered batches of EXPIRED_BATCH_SIZE
            - Each one released in its own transaction through the locked
              release path, so a concurrent fulfilment wins cleanly
            - Safe for multiple instances
        """
        now = now or timezone.now()
        batch_size = ledgerman_settings.EXPIRED_BATCH_SIZE
        total = 0
        last_pk = 0

        while True:
            batch = list(
                Reservation.objects.overdue(now)
                .filter(pk__gt=last_pk)
                .order_by('pk')
                .values_list('pk', 'stock_record_id')[:batch_size]
            )
            if not batch:
                break

            for reservation_id, stock_record_id in batch:
                last_pk = reservation_id
                try:
                    if cls._expire_one(reservation_id, stock_record_id, now):
                        total += 1
                except ConcurrencyConflictError:
                    logger.warning(
                        "ledger.reservation.expire_skipped",
                        extra={"reservation_id": reservation_id},
                    )

        if total:
            logger.info(
                "ledger.reservations.expired",
                extra={"released": total},
            )
        return total

    @classmethod
    def cancel_newest(cls, record, quantity, released_by=''):
        """
        Cancel newest ACTIVE reservations of a locked record until at least
        quantity has been returned. Caller holds the record row lock.

        Returns:
            List of cancelled reservations
        """
        cancelled = []
        remaining = quantity
        candidates = (
            Reservation.objects.select_for_update()
            .filter(stock_record=record, status=ReservationStatus.ACTIVE)
            .order_by('-created_at', '-pk')
        )
        for reservation in candidates:
            if remaining <= 0:
                break
            cls._release_locked(
                record, reservation, ReservationStatus.CANCELLED,
                released_by, 'over-reservation',
            )
            remaining -= reservation.quantity
            cancelled.append(reservation)
        return cancelled

    # ══════════════════════════════════════════════════════════════
    # INTERNAL
    # ══════════════════════════════════════════════════════════════

    @classmethod
    @retry_on_conflict
    def _expire_one(cls, reservation_id, stock_record_id, now) -> bool:
        with transaction.atomic():
            record = lock_record(stock_record_id)
            reservation = Reservation.objects.select_for_update().get(pk=reservation_id)

            if not reservation.is_active or reservation.expires_at is None:
                return False
            if reservation.expires_at >= now:
                return False

            cls._release_locked(
                record, reservation, ReservationStatus.CANCELLED, 'system', 'expired',
            )
            return True

    @classmethod
    def _release_locked(cls, record, reservation, outcome, released_by, reason):
        """Apply a transition. Caller holds locks on record and reservation."""
        movement = None
        if outcome == ReservationStatus.FULFILLED:
            movement = StockMovements._apply_locked(
                record,
                MovementType.SHIPMENT,
                reservation.quantity,
                reason or f"Reservation {reservation.pk} fulfilled",
                reference_fields(_shipment_reference(reservation)),
                created_by=released_by,
                release_reserved=reservation.quantity,
            )
        else:
            record.compare_and_set(
                reserved_quantity=record.reserved_quantity - reservation.quantity,
            )

        reservation.status = outcome
        reservation.released_at = timezone.now()
        reservation.released_by = released_by or ''
        reservation.release_reason = reason or ''
        reservation.movement = movement
        reservation.save(update_fields=[
            'status', 'released_at', 'released_by', 'release_reason', 'movement',
        ])

        logger.info(
            "ledger.reservation.released",
            extra={
                "reservation_id": reservation.pk,
                "stock_record_id": record.pk,
                "outcome": str(outcome),
                "qty": reservation.quantity,
                "reason": reason,
            },
        )
        return movement
