"""
Ledgerman Admin.

Provides read-only views for production debugging:
- StockRecord: read-only (locator, on hand, reserved, available)
- Movement: read-only audit trail
- Reservation: read-only with "cancel" action
- PurchaseOrder / GoodsReceipt: receiving status
- ReorderRule: editable thresholds
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from ledgerman.models import (
    GoodsReceipt,
    GoodsReceiptItem,
    Movement,
    PurchaseOrder,
    PurchaseOrderItem,
    ReorderRule,
    Reservation,
    ReservationStatus,
    StockRecord,
)

logger = logging.getLogger(__name__)


class ReadOnlyAdminMixin:
    """Rows only change through the Ledger service."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =========================================================================
# STOCK RECORD ADMIN (read-only)
# =========================================================================

@admin.register(StockRecord)
class StockRecordAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """StockRecord admin — read-only. Quantities only change via the Ledger service."""

    list_display = ['product_id', 'variant_id', 'warehouse_id', 'lot_number', 'status',
                    'quantity', 'reserved_quantity', 'available_display', 'is_retired']
    list_filter = ['status', 'warehouse_id', 'is_retired']
    search_fields = ['product_id', 'variant_id', 'lot_number', 'batch_number']
    readonly_fields = ['product_id', 'variant_id', 'warehouse_id', 'zone', 'aisle', 'shelf',
                       'bin', 'lot_number', 'batch_number', 'expiry_date', 'status',
                       'quantity', 'reserved_quantity', 'version', 'last_cost',
                       'last_movement_at', 'is_retired', 'retired_at', 'metadata',
                       'created_at', 'updated_at']

    @admin.display(description=_('Available'))
    def available_display(self, obj):
        return obj.available_quantity


# =========================================================================
# MOVEMENT ADMIN (read-only audit trail)
# =========================================================================

@admin.register(Movement)
class MovementAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Movement admin — read-only. Immutable audit trail."""

    list_display = ['occurred_at', 'stock_record', 'type', 'quantity',
                    'quantity_before', 'quantity_after', 'reason', 'created_by']
    list_filter = ['type', 'reference_type', 'occurred_at']
    search_fields = ['reason', 'reference_id', 'stock_record__product_id']
    readonly_fields = ['stock_record', 'type', 'quantity', 'quantity_before', 'quantity_after',
                       'reason', 'reference_type', 'reference_id', 'unit_cost',
                       'approved_by', 'created_by', 'occurred_at', 'metadata']
    date_hierarchy = 'occurred_at'
    list_select_related = ['stock_record']


# =========================================================================
# RESERVATION ADMIN (read-only with cancel action)
# =========================================================================

@admin.register(Reservation)
class ReservationAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """Reservation admin — read-only with cancel action."""

    list_display = ['id', 'stock_record', 'quantity', 'reserved_for', 'reference_id',
                    'status', 'expires_at', 'overdue', 'created_at']
    list_filter = ['status', 'reserved_for']
    search_fields = ['reference_id', 'stock_record__product_id']
    readonly_fields = ['stock_record', 'quantity', 'reserved_for', 'reference_id', 'status',
                       'expires_at', 'created_by', 'created_at', 'released_at',
                       'released_by', 'release_reason', 'movement', 'metadata']
    list_select_related = ['stock_record']
    actions = ['cancel_reservations']

    @admin.display(boolean=True, description=_('Overdue'))
    def overdue(self, obj):
        return obj.is_overdue

    @admin.action(description=_('Cancel selected reservations'))
    def cancel_reservations(self, request, queryset):
        from ledgerman import ledger

        count = 0
        for reservation in queryset.filter(status=ReservationStatus.ACTIVE):
            result = ledger.cancel(
                reservation.pk,
                released_by=request.user.get_username(),
                reason='Cancelled via admin',
            )
            if result.ok:
                count += 1
            else:
                logger.warning(
                    "cancel_reservations: failed to cancel %s: %s",
                    reservation.pk, result.code,
                )

        self.message_user(request, _('{count} reservation(s) cancelled.').format(count=count))


# =========================================================================
# PURCHASING ADMIN
# =========================================================================

class PurchaseOrderItemInline(admin.TabularInline):
    model = PurchaseOrderItem
    extra = 0
    readonly_fields = ['received_qty', 'rejected_qty', 'remaining_qty', 'status']


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    """PurchaseOrder admin — receiving progress."""

    list_display = ['number', 'company_id', 'supplier_id', 'warehouse_id', 'status', 'created_at']
    list_filter = ['status']
    search_fields = ['number', 'supplier_id']
    inlines = [PurchaseOrderItemInline]


class GoodsReceiptItemInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = GoodsReceiptItem
    extra = 0
    fields = ['product_id', 'variant_id', 'expected_qty', 'received_qty', 'accepted_qty',
              'rejected_qty', 'qc_status', 'lot_number', 'outcome', 'error_code']
    readonly_fields = fields


@admin.register(GoodsReceipt)
class GoodsReceiptAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    """GoodsReceipt admin — read-only receiving report."""

    list_display = ['receipt_number', 'purchase_order', 'warehouse_id', 'received_by', 'received_at']
    search_fields = ['receipt_number', 'purchase_order__number']
    readonly_fields = ['receipt_number', 'purchase_order', 'warehouse_id', 'received_by',
                       'notes', 'qc_notes', 'received_at']
    inlines = [GoodsReceiptItemInline]


# =========================================================================
# REORDER RULE ADMIN
# =========================================================================

@admin.register(ReorderRule)
class ReorderRuleAdmin(admin.ModelAdmin):
    """ReorderRule admin — configurable replenishment thresholds."""

    list_display = ['product_id', 'variant_id', 'product_name', 'company_id', 'min_stock',
                    'reorder_point', 'reorder_quantity', 'max_stock', 'is_active']
    list_filter = ['is_active', 'company_id']
    search_fields = ['product_id', 'product_name', 'sku']
    readonly_fields = ['created_at', 'updated_at']
