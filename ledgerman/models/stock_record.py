"""
StockRecord model — current quantity at a (product, variant, warehouse, lot).
"""

import logging
from dataclasses import dataclass

from django.db import models, transaction
from django.db.models import F, Q, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from ledgerman.models.enums import StockStatus

logger = logging.getLogger('ledgerman')


@dataclass(frozen=True)
class StockLocator:
    """Natural key of a stock record."""

    product_id: str
    warehouse_id: str
    variant_id: str = ''
    lot_number: str = ''

    def as_filter(self) -> dict[str, str]:
        return {
            'product_id': self.product_id,
            'variant_id': self.variant_id or '',
            'warehouse_id': self.warehouse_id,
            'lot_number': self.lot_number or '',
        }


class StockRecordQuerySet(models.QuerySet):
    """QuerySet with helper methods for StockRecord queries."""

    def for_product(self, product_id, variant_id=None):
        """Filter records for a product (and optionally one variant)."""
        qs = self.filter(product_id=product_id)
        if variant_id is not None:
            qs = qs.filter(variant_id=variant_id)
        return qs

    def at_locator(self, locator: StockLocator):
        """Filter by natural key (any status)."""
        return self.filter(**locator.as_filter())

    def sellable(self):
        """AVAILABLE, non-retired records. Only these can be reserved."""
        return self.filter(status=StockStatus.AVAILABLE, is_retired=False)

    def locked(self, pk):
        """Fetch one record with a row lock. Must run inside transaction.atomic()."""
        return self.select_for_update().get(pk=pk)

    def total_quantity(self) -> int:
        return self.aggregate(
            t=Coalesce(Sum('quantity'), 0, output_field=models.IntegerField())
        )['t']

    def total_available(self) -> int:
        return self.aggregate(
            t=Coalesce(
                Sum(F('quantity') - F('reserved_quantity')), 0,
                output_field=models.IntegerField(),
            )
        )['t']


class StockRecord(models.Model):
    """
    On-hand quantity of a product at a warehouse location.

    Coordinates:
    - product_id / variant_id: WHAT (external catalog ids)
    - warehouse_id + zone/aisle/shelf/bin: WHERE
    - lot_number / batch_number / expiry_date: WHICH lot

    quantity and reserved_quantity are the current-state projection of the
    Movement ledger and the ACTIVE reservations. They are only written by
    StockMovements and StockReservations, always through compare_and_set().
    Available quantity is derived, never stored.
    """

    product_id = models.CharField(
        max_length=64,
        db_index=True,
        verbose_name=_('Product ID'),
    )
    variant_id = models.CharField(
        max_length=64,
        blank=True,
        default='',
        verbose_name=_('Variant ID'),
    )
    warehouse_id = models.CharField(
        max_length=64,
        db_index=True,
        verbose_name=_('Warehouse ID'),
    )

    # Location inside the warehouse
    zone = models.CharField(max_length=32, blank=True, default='', verbose_name=_('Zone'))
    aisle = models.CharField(max_length=32, blank=True, default='', verbose_name=_('Aisle'))
    shelf = models.CharField(max_length=32, blank=True, default='', verbose_name=_('Shelf'))
    bin = models.CharField(max_length=32, blank=True, default='', verbose_name=_('Bin'))

    # Lot traceability
    lot_number = models.CharField(
        max_length=64,
        blank=True,
        default='',
        verbose_name=_('Lot'),
    )
    batch_number = models.CharField(
        max_length=64,
        blank=True,
        default='',
        verbose_name=_('Batch'),
    )
    expiry_date = models.DateField(
        null=True,
        blank=True,
        db_index=True,
        verbose_name=_('Expiry date'),
    )

    status = models.CharField(
        max_length=20,
        choices=StockStatus.choices,
        default=StockStatus.AVAILABLE,
        db_index=True,
        verbose_name=_('Status'),
    )

    quantity = models.PositiveIntegerField(
        default=0,
        verbose_name=_('On hand'),
    )
    reserved_quantity = models.PositiveIntegerField(
        default=0,
        verbose_name=_('Reserved'),
    )
    version = models.PositiveIntegerField(
        default=0,
        editable=False,
        help_text=_('Incremented on every quantity write.'),
    )

    last_cost = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        null=True,
        blank=True,
        verbose_name=_('Last cost'),
    )
    last_movement_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Last movement'))

    is_retired = models.BooleanField(default=False, verbose_name=_('Retired'))
    retired_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Retired at'))

    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StockRecordQuerySet.as_manager()

    class Meta:
        verbose_name = _('Stock record')
        verbose_name_plural = _('Stock records')
        constraints = [
            models.UniqueConstraint(
                fields=['product_id', 'variant_id', 'warehouse_id', 'lot_number', 'status'],
                name='unique_stock_record_locator',
            ),
            models.CheckConstraint(
                condition=Q(reserved_quantity__lte=F('quantity')),
                name='stock_record_reserved_lte_quantity',
            ),
        ]
        indexes = [
            models.Index(fields=['product_id', 'variant_id'], name='ledger_record_product_idx'),
            models.Index(fields=['warehouse_id', 'status'], name='ledger_record_wh_status_idx'),
        ]

    # ══════════════════════════════════════════════════════════════
    # PROPERTIES
    # ══════════════════════════════════════════════════════════════

    @property
    def available_quantity(self) -> int:
        """On hand minus reserved."""
        return self.quantity - self.reserved_quantity

    @property
    def reservable_quantity(self) -> int:
        """What a new reservation may take. Zero unless AVAILABLE and not retired."""
        if self.status != StockStatus.AVAILABLE or self.is_retired:
            return 0
        return self.available_quantity

    @property
    def locator(self) -> StockLocator:
        return StockLocator(
            product_id=self.product_id,
            warehouse_id=self.warehouse_id,
            variant_id=self.variant_id,
            lot_number=self.lot_number,
        )

    # ══════════════════════════════════════════════════════════════
    # METHODS
    # ══════════════════════════════════════════════════════════════

    def compare_and_set(self, **changes) -> None:
        """
        Write changes only if nobody else wrote since this instance was read.

        Raises:
            ConcurrencyConflictError: version moved underneath us
        """
        from ledgerman.exceptions import ConcurrencyConflictError

        now = timezone.now()
        updated = type(self).objects.filter(pk=self.pk, version=self.version).update(
            version=F('version') + 1,
            updated_at=now,
            **changes,
        )
        if not updated:
            raise ConcurrencyConflictError(stock_record_id=self.pk, version=self.version)

        for field, value in changes.items():
            setattr(self, field, value)
        self.version += 1
        self.updated_at = now

    def replay(self) -> int:
        """Sum of all movement deltas, in ledger order."""
        return self.movements.aggregate(
            t=Coalesce(Sum('quantity'), 0, output_field=models.IntegerField())
        )['t']

    def recalculate(self) -> int:
        """
        Recalculate quantity from the Movement ledger.

        Use for:
        - Integrity audit
        - Correction after detected inconsistency

        The row is locked and re-read before the replay, and the write goes
        through compare_and_set(), so movements committed meanwhile are kept.

        Returns:
            New calculated quantity

        Raises:
            InvariantViolationError('OVER_RESERVED'): ledger total is below
                the reserved quantity; reservations must be resolved first
        """
        from ledgerman.exceptions import InvariantViolationError

        with transaction.atomic():
            locked = type(self).objects.locked(self.pk)
            total = locked.replay()

            if total != locked.quantity:
                if total < locked.reserved_quantity:
                    raise InvariantViolationError(
                        'OVER_RESERVED',
                        stock_record_id=locked.pk,
                        quantity_after=total,
                        reserved=locked.reserved_quantity,
                    )

                old = locked.quantity
                locked.compare_and_set(quantity=total)

                logger.warning(
                    "ledger.record.recalculated",
                    extra={
                        "stock_record_id": locked.pk,
                        "old_quantity": old,
                        "new_quantity": total,
                        "diff": total - old,
                    },
                )

        self.refresh_from_db()
        return total

    def delete(self, *args, **kwargs):
        """Refuse hard deletes once the ledger references the record."""
        if self.pk and self.movements.exists():
            raise ValueError(
                "Stock records with movements cannot be deleted. "
                "Retire the record instead."
            )
        return super().delete(*args, **kwargs)

    def __str__(self) -> str:
        variant = f"/{self.variant_id}" if self.variant_id else ""
        lot = f" lot {self.lot_number}" if self.lot_number else ""
        return f"{self.product_id}{variant} @ {self.warehouse_id}{lot}: {self.quantity}"
