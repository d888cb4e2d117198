"""
Movement model — Immutable ledger of quantity changes.
"""

from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from ledgerman.models.enums import MovementType, ReferenceType


class MovementQuerySet(models.QuerySet):
    """Filters used by movement history and audits."""

    def for_record(self, stock_record):
        return self.filter(stock_record=stock_record)

    def of_type(self, movement_type):
        return self.filter(type=movement_type)

    def between(self, date_from=None, date_to=None):
        qs = self
        if date_from is not None:
            qs = qs.filter(occurred_at__gte=date_from)
        if date_to is not None:
            qs = qs.filter(occurred_at__lte=date_to)
        return qs

    def in_ledger_order(self):
        return self.order_by('occurred_at', 'pk')


class Movement(models.Model):
    """
    Immutable record of a quantity change.

    Rules:
    - NEVER update() or delete()
    - Corrections are new Movements (compensating delta)
    - quantity_after == quantity_before + quantity, for every type

    quantity is the signed delta actually applied. For ADJUSTMENT the caller
    supplies the new absolute quantity and the delta is derived from it.
    """

    stock_record = models.ForeignKey(
        'ledgerman.StockRecord',
        on_delete=models.PROTECT,
        related_name='movements',
        verbose_name=_('Stock record'),
    )

    type = models.CharField(
        max_length=20,
        choices=MovementType.choices,
        db_index=True,
        verbose_name=_('Type'),
    )
    quantity = models.IntegerField(
        verbose_name=_('Delta'),
        help_text=_('Positive = in, negative = out'),
    )
    quantity_before = models.PositiveIntegerField(verbose_name=_('Before'))
    quantity_after = models.PositiveIntegerField(verbose_name=_('After'))

    reason = models.CharField(
        max_length=255,
        verbose_name=_('Reason'),
        help_text=_('Required. E.g. "Goods receipt GR-2026-004", "Cycle count"'),
    )

    # External reference (order, transfer, purchase order)
    reference_type = models.CharField(
        max_length=20,
        choices=ReferenceType.choices,
        blank=True,
        default='',
        verbose_name=_('Reference type'),
    )
    reference_id = models.CharField(
        max_length=64,
        blank=True,
        default='',
        verbose_name=_('Reference ID'),
    )

    unit_cost = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        null=True,
        blank=True,
        verbose_name=_('Unit cost'),
    )
    approved_by = models.CharField(max_length=64, blank=True, default='', verbose_name=_('Approved by'))
    created_by = models.CharField(max_length=64, blank=True, default='', verbose_name=_('Created by'))
    occurred_at = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Occurred at'))
    metadata = models.JSONField(default=dict, blank=True, verbose_name=_('Metadata'))

    objects = MovementQuerySet.as_manager()

    class Meta:
        verbose_name = _('Movement')
        verbose_name_plural = _('Movements')
        ordering = ['occurred_at', 'pk']
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity_after=F('quantity_before') + F('quantity')),
                name='movement_after_equals_before_plus_delta',
            ),
            models.CheckConstraint(
                condition=(
                    Q(reference_type='', reference_id='')
                    | (~Q(reference_type='') & ~Q(reference_id=''))
                ),
                name='movement_reference_pair',
            ),
        ]
        indexes = [
            models.Index(fields=['stock_record', 'occurred_at'], name='ledger_move_record_time_idx'),
            models.Index(fields=['reference_type', 'reference_id'], name='ledger_move_reference_idx'),
        ]

    @property
    def reference(self):
        """Typed reference object (OrderReference, TransferReference, ...)."""
        from ledgerman.references import reference_from_fields
        return reference_from_fields(self.reference_type, self.reference_id)

    def save(self, *args, **kwargs):
        """Insert only."""
        if self.pk:
            raise ValueError(
                "Movements are immutable. "
                "To correct one, record a compensating movement."
            )

        if not self.reason:
            raise ValueError("Reason is required")

        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Movements are immutable."""
        raise ValueError(
            "Movements are immutable. "
            "To reverse one, record a compensating movement."
        )

    def __str__(self) -> str:
        sign = '+' if self.quantity > 0 else ''
        return f"{self.get_type_display()} {sign}{self.quantity} | {self.reason}"
