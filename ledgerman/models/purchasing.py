"""
Purchasing models — purchase orders and the goods receipts booked against them.

Only the receiving side of purchasing lives here. Purchase orders are created
and approved elsewhere; ledgerman reads their lines and writes back received,
rejected and remaining quantities.
"""

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from ledgerman.models.enums import (
    PurchaseOrderItemStatus,
    PurchaseOrderStatus,
    QcStatus,
    ReceiptOutcome,
)


class PurchaseOrder(models.Model):
    """Supplier order awaiting (or undergoing) receipt."""

    RECEIVABLE_STATUSES = frozenset({
        PurchaseOrderStatus.APPROVED,
        PurchaseOrderStatus.SENT,
        PurchaseOrderStatus.PARTIALLY_RECEIVED,
        PurchaseOrderStatus.RECEIVED,
    })

    number = models.CharField(max_length=32, unique=True, verbose_name=_('Number'))
    company_id = models.CharField(max_length=64, db_index=True, verbose_name=_('Company ID'))
    supplier_id = models.CharField(max_length=64, verbose_name=_('Supplier ID'))
    warehouse_id = models.CharField(max_length=64, verbose_name=_('Warehouse ID'))
    status = models.CharField(
        max_length=20,
        choices=PurchaseOrderStatus.choices,
        default=PurchaseOrderStatus.DRAFT,
        db_index=True,
        verbose_name=_('Status'),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Purchase order')
        verbose_name_plural = _('Purchase orders')
        ordering = ['-created_at']

    @property
    def is_receivable(self) -> bool:
        return self.status in self.RECEIVABLE_STATUSES

    def refresh_status(self) -> str:
        """
        Derive status from item progress and persist it.

        RECEIVED when every item has nothing remaining, PARTIALLY_RECEIVED
        once any item received goods. Otherwise unchanged.
        """
        items = list(self.items.all())
        if items and all(item.remaining_qty <= 0 for item in items):
            status = PurchaseOrderStatus.RECEIVED
        elif any(item.received_qty > 0 for item in items):
            status = PurchaseOrderStatus.PARTIALLY_RECEIVED
        else:
            return self.status

        if status != self.status:
            self.status = status
            self.save(update_fields=['status', 'updated_at'])
        return self.status

    def __str__(self) -> str:
        return f"{self.number} ({self.get_status_display()})"


class PurchaseOrderItem(models.Model):
    """
    One ordered line.

    remaining_qty shrinks by everything counted in, whatever the QC verdict.
    rejected_qty records the part of received_qty that failed QC.
    """

    purchase_order = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.CASCADE,
        related_name='items',
    )
    product_id = models.CharField(max_length=64, verbose_name=_('Product ID'))
    variant_id = models.CharField(max_length=64, blank=True, default='', verbose_name=_('Variant ID'))

    ordered_qty = models.PositiveIntegerField(verbose_name=_('Ordered'))
    received_qty = models.PositiveIntegerField(default=0, verbose_name=_('Received'))
    rejected_qty = models.PositiveIntegerField(default=0, verbose_name=_('Rejected'))
    remaining_qty = models.IntegerField(null=True, blank=True, verbose_name=_('Remaining'))

    unit_cost = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        null=True,
        blank=True,
        verbose_name=_('Unit cost'),
    )
    status = models.CharField(
        max_length=20,
        choices=PurchaseOrderItemStatus.choices,
        default=PurchaseOrderItemStatus.PENDING,
        verbose_name=_('Status'),
    )

    class Meta:
        verbose_name = _('Purchase order item')
        verbose_name_plural = _('Purchase order items')
        ordering = ['pk']

    def save(self, *args, **kwargs):
        if self.remaining_qty is None:
            self.remaining_qty = self.ordered_qty
        super().save(*args, **kwargs)

    def derive_status(self) -> str:
        if self.remaining_qty <= 0:
            return PurchaseOrderItemStatus.RECEIVED
        if self.received_qty > 0:
            return PurchaseOrderItemStatus.PARTIALLY_RECEIVED
        return PurchaseOrderItemStatus.PENDING

    def __str__(self) -> str:
        return f"{self.product_id}: {self.received_qty}/{self.ordered_qty}"


class GoodsReceipt(models.Model):
    """A delivery counted in against a purchase order."""

    receipt_number = models.CharField(max_length=32, unique=True, verbose_name=_('Receipt number'))
    purchase_order = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.PROTECT,
        related_name='receipts',
    )
    warehouse_id = models.CharField(max_length=64, verbose_name=_('Warehouse ID'))
    received_by = models.CharField(max_length=64, blank=True, default='')
    notes = models.TextField(blank=True, default='')
    qc_notes = models.TextField(blank=True, default='', verbose_name=_('QC notes'))
    received_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        verbose_name = _('Goods receipt')
        verbose_name_plural = _('Goods receipts')
        ordering = ['-received_at', '-pk']

    def outcome_counts(self) -> dict[str, int]:
        counts = {outcome.value: 0 for outcome in ReceiptOutcome}
        for outcome in self.items.values_list('outcome', flat=True):
            counts[outcome] += 1
        return counts

    def __str__(self) -> str:
        return self.receipt_number


class GoodsReceiptItem(models.Model):
    """Per-line receiving report: what arrived, what QC said, what was booked."""

    goods_receipt = models.ForeignKey(
        GoodsReceipt,
        on_delete=models.CASCADE,
        related_name='items',
    )
    purchase_order_item = models.ForeignKey(
        PurchaseOrderItem,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='receipt_items',
    )
    product_id = models.CharField(max_length=64, blank=True, default='')
    variant_id = models.CharField(max_length=64, blank=True, default='')

    expected_qty = models.PositiveIntegerField(default=0)
    received_qty = models.PositiveIntegerField(default=0)
    accepted_qty = models.PositiveIntegerField(default=0)
    rejected_qty = models.PositiveIntegerField(default=0)
    qc_status = models.CharField(
        max_length=20,
        choices=QcStatus.choices,
        default=QcStatus.PASSED,
        verbose_name=_('QC status'),
    )

    lot_number = models.CharField(max_length=64, blank=True, default='')
    batch_number = models.CharField(max_length=64, blank=True, default='')
    expiry_date = models.DateField(null=True, blank=True)

    outcome = models.CharField(
        max_length=20,
        choices=ReceiptOutcome.choices,
        verbose_name=_('Outcome'),
    )
    stock_record = models.ForeignKey(
        'ledgerman.StockRecord',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='+',
    )
    movement = models.ForeignKey(
        'ledgerman.Movement',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='+',
    )
    error_code = models.CharField(max_length=64, blank=True, default='')
    error_message = models.CharField(max_length=255, blank=True, default='')

    class Meta:
        verbose_name = _('Goods receipt item')
        verbose_name_plural = _('Goods receipt items')
        ordering = ['pk']
        constraints = [
            models.CheckConstraint(
                condition=Q(accepted_qty__lte=models.F('received_qty')),
                name='receipt_item_accepted_lte_received',
            ),
        ]

    @property
    def ok(self) -> bool:
        return self.outcome != ReceiptOutcome.FAILED

    def __str__(self) -> str:
        return f"{self.product_id} x{self.received_qty} [{self.get_outcome_display()}]"
