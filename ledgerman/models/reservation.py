"""
Reservation model — Stock held for an in-flight order or transfer.
"""

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from ledgerman.models.enums import ReservationStatus, ReservedFor


class ReservationQuerySet(models.QuerySet):

    def active(self):
        return self.filter(status=ReservationStatus.ACTIVE)

    def overdue(self, now=None):
        """ACTIVE reservations whose expires_at has passed."""
        now = now or timezone.now()
        return self.active().filter(expires_at__isnull=False, expires_at__lt=now)

    def for_reference(self, reserved_for, reference_id):
        return self.filter(reserved_for=reserved_for, reference_id=reference_id)


class Reservation(models.Model):
    """
    Quantity of a stock record held for an order, transfer or other purpose.

    LIFECYCLE:

        ACTIVE ──release(FULFILLED)──► FULFILLED   (SHIPMENT movement)
           │
           └────release(CANCELLED)──► CANCELLED   (no movement)

    While ACTIVE, quantity is counted in StockRecord.reserved_quantity.
    Leaving ACTIVE always subtracts it again in the same transaction.
    """

    stock_record = models.ForeignKey(
        'ledgerman.StockRecord',
        on_delete=models.PROTECT,
        related_name='reservations',
        verbose_name=_('Stock record'),
    )
    quantity = models.PositiveIntegerField(verbose_name=_('Quantity'))

    reserved_for = models.CharField(
        max_length=20,
        choices=ReservedFor.choices,
        default=ReservedFor.ORDER,
        verbose_name=_('Reserved for'),
    )
    reference_id = models.CharField(
        max_length=64,
        db_index=True,
        verbose_name=_('Reference ID'),
        help_text=_('Order or transfer id this stock is held for'),
    )

    status = models.CharField(
        max_length=20,
        choices=ReservationStatus.choices,
        default=ReservationStatus.ACTIVE,
        db_index=True,
        verbose_name=_('Status'),
    )
    expires_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        verbose_name=_('Expires at'),
        help_text=_('Released automatically by the expiry sweep after this time'),
    )

    created_by = models.CharField(max_length=64, blank=True, default='')
    created_at = models.DateTimeField(default=timezone.now)
    released_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Released at'))
    released_by = models.CharField(max_length=64, blank=True, default='')
    release_reason = models.CharField(max_length=255, blank=True, default='')

    movement = models.ForeignKey(
        'ledgerman.Movement',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Shipment movement'),
    )
    metadata = models.JSONField(default=dict, blank=True)

    objects = ReservationQuerySet.as_manager()

    class Meta:
        verbose_name = _('Reservation')
        verbose_name_plural = _('Reservations')
        ordering = ['-created_at', '-pk']
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name='reservation_quantity_positive',
            ),
        ]
        indexes = [
            models.Index(fields=['status', 'expires_at'], name='ledger_resv_status_exp_idx'),
            models.Index(fields=['stock_record', 'status'], name='ledger_resv_record_status_idx'),
        ]

    @property
    def is_active(self) -> bool:
        return self.status == ReservationStatus.ACTIVE

    @property
    def is_overdue(self) -> bool:
        if not self.is_active or self.expires_at is None:
            return False
        return timezone.now() > self.expires_at

    def __str__(self) -> str:
        return (
            f"{self.quantity}x for {self.get_reserved_for_display()} "
            f"{self.reference_id} [{self.get_status_display()}]"
        )
