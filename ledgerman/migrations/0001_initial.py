"""
Initial migration for Ledgerman models.
"""

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create Ledgerman models: StockRecord, Movement, Reservation, purchasing, ReorderRule."""

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='StockRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_id', models.CharField(db_index=True, max_length=64, verbose_name='Product ID')),
                ('variant_id', models.CharField(blank=True, default='', max_length=64, verbose_name='Variant ID')),
                ('warehouse_id', models.CharField(db_index=True, max_length=64, verbose_name='Warehouse ID')),
                ('zone', models.CharField(blank=True, default='', max_length=32, verbose_name='Zone')),
                ('aisle', models.CharField(blank=True, default='', max_length=32, verbose_name='Aisle')),
                ('shelf', models.CharField(blank=True, default='', max_length=32, verbose_name='Shelf')),
                ('bin', models.CharField(blank=True, default='', max_length=32, verbose_name='Bin')),
                ('lot_number', models.CharField(blank=True, default='', max_length=64, verbose_name='Lot')),
                ('batch_number', models.CharField(blank=True, default='', max_length=64, verbose_name='Batch')),
                ('expiry_date', models.DateField(blank=True, db_index=True, null=True, verbose_name='Expiry date')),
                ('status', models.CharField(choices=[('available', 'Available'), ('reserved', 'Reserved'), ('quarantine', 'Quarantine'), ('damaged', 'Damaged'), ('expired', 'Expired')], db_index=True, default='available', max_length=20, verbose_name='Status')),
                ('quantity', models.PositiveIntegerField(default=0, verbose_name='On hand')),
                ('reserved_quantity', models.PositiveIntegerField(default=0, verbose_name='Reserved')),
                ('version', models.PositiveIntegerField(default=0, editable=False, help_text='Incremented on every quantity write.')),
                ('last_cost', models.DecimalField(blank=True, decimal_places=4, max_digits=12, null=True, verbose_name='Last cost')),
                ('last_movement_at', models.DateTimeField(blank=True, null=True, verbose_name='Last movement')),
                ('is_retired', models.BooleanField(default=False, verbose_name='Retired')),
                ('retired_at', models.DateTimeField(blank=True, null=True, verbose_name='Retired at')),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Stock record',
                'verbose_name_plural': 'Stock records',
                'indexes': [
                    models.Index(fields=['product_id', 'variant_id'], name='ledger_record_product_idx'),
                    models.Index(fields=['warehouse_id', 'status'], name='ledger_record_wh_status_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('product_id', 'variant_id', 'warehouse_id', 'lot_number', 'status'), name='unique_stock_record_locator'),
                    models.CheckConstraint(condition=models.Q(('reserved_quantity__lte', models.F('quantity'))), name='stock_record_reserved_lte_quantity'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Movement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(choices=[('receipt', 'Receipt'), ('shipment', 'Shipment'), ('adjustment', 'Adjustment'), ('transfer_out', 'Transfer out'), ('transfer_in', 'Transfer in'), ('return', 'Return'), ('damage', 'Damage')], db_index=True, max_length=20, verbose_name='Type')),
                ('quantity', models.IntegerField(help_text='Positive = in, negative = out', verbose_name='Delta')),
                ('quantity_before', models.PositiveIntegerField(verbose_name='Before')),
                ('quantity_after', models.PositiveIntegerField(verbose_name='After')),
                ('reason', models.CharField(help_text='Required. E.g. "Goods receipt GR-2026-004", "Cycle count"', max_length=255, verbose_name='Reason')),
                ('reference_type', models.CharField(blank=True, choices=[('order', 'Order'), ('transfer', 'Transfer'), ('purchase_order', 'Purchase order')], default='', max_length=20, verbose_name='Reference type')),
                ('reference_id', models.CharField(blank=True, default='', max_length=64, verbose_name='Reference ID')),
                ('unit_cost', models.DecimalField(blank=True, decimal_places=4, max_digits=12, null=True, verbose_name='Unit cost')),
                ('approved_by', models.CharField(blank=True, default='', max_length=64, verbose_name='Approved by')),
                ('created_by', models.CharField(blank=True, default='', max_length=64, verbose_name='Created by')),
                ('occurred_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Occurred at')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadata')),
                ('stock_record', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='ledgerman.stockrecord', verbose_name='Stock record')),
            ],
            options={
                'verbose_name': 'Movement',
                'verbose_name_plural': 'Movements',
                'ordering': ['occurred_at', 'pk'],
                'indexes': [
                    models.Index(fields=['stock_record', 'occurred_at'], name='ledger_move_record_time_idx'),
                    models.Index(fields=['reference_type', 'reference_id'], name='ledger_move_reference_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity_after', models.F('quantity_before') + models.F('quantity'))), name='movement_after_equals_before_plus_delta'),
                    models.CheckConstraint(condition=models.Q(models.Q(('reference_id', ''), ('reference_type', '')), models.Q(models.Q(('reference_type', ''), _negated=True), models.Q(('reference_id', ''), _negated=True)), _connector='OR'), name='movement_reference_pair'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Reservation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.PositiveIntegerField(verbose_name='Quantity')),
                ('reserved_for', models.CharField(choices=[('order', 'Order'), ('transfer', 'Transfer'), ('other', 'Other')], default='order', max_length=20, verbose_name='Reserved for')),
                ('reference_id', models.CharField(db_index=True, help_text='Order or transfer id this stock is held for', max_length=64, verbose_name='Reference ID')),
                ('status', models.CharField(choices=[('active', 'Active'), ('fulfilled', 'Fulfilled'), ('cancelled', 'Cancelled'), ('expired', 'Expired')], db_index=True, default='active', max_length=20, verbose_name='Status')),
                ('expires_at', models.DateTimeField(blank=True, db_index=True, help_text='Released automatically by the expiry sweep after this time', null=True, verbose_name='Expires at')),
                ('created_by', models.CharField(blank=True, default='', max_length=64)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('released_at', models.DateTimeField(blank=True, null=True, verbose_name='Released at')),
                ('released_by', models.CharField(blank=True, default='', max_length=64)),
                ('release_reason', models.CharField(blank=True, default='', max_length=255)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('movement', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='ledgerman.movement', verbose_name='Shipment movement')),
                ('stock_record', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='reservations', to='ledgerman.stockrecord', verbose_name='Stock record')),
            ],
            options={
                'verbose_name': 'Reservation',
                'verbose_name_plural': 'Reservations',
                'ordering': ['-created_at', '-pk'],
                'indexes': [
                    models.Index(fields=['status', 'expires_at'], name='ledger_resv_status_exp_idx'),
                    models.Index(fields=['stock_record', 'status'], name='ledger_resv_record_status_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity__gt', 0)), name='reservation_quantity_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PurchaseOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('number', models.CharField(max_length=32, unique=True, verbose_name='Number')),
                ('company_id', models.CharField(db_index=True, max_length=64, verbose_name='Company ID')),
                ('supplier_id', models.CharField(max_length=64, verbose_name='Supplier ID')),
                ('warehouse_id', models.CharField(max_length=64, verbose_name='Warehouse ID')),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('approved', 'Approved'), ('sent', 'Sent'), ('partially_received', 'Partially received'), ('received', 'Received'), ('cancelled', 'Cancelled'), ('closed', 'Closed')], db_index=True, default='draft', max_length=20, verbose_name='Status')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Purchase order',
                'verbose_name_plural': 'Purchase orders',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='PurchaseOrderItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_id', models.CharField(max_length=64, verbose_name='Product ID')),
                ('variant_id', models.CharField(blank=True, default='', max_length=64, verbose_name='Variant ID')),
                ('ordered_qty', models.PositiveIntegerField(verbose_name='Ordered')),
                ('received_qty', models.PositiveIntegerField(default=0, verbose_name='Received')),
                ('rejected_qty', models.PositiveIntegerField(default=0, verbose_name='Rejected')),
                ('remaining_qty', models.IntegerField(blank=True, null=True, verbose_name='Remaining')),
                ('unit_cost', models.DecimalField(blank=True, decimal_places=4, max_digits=12, null=True, verbose_name='Unit cost')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('partially_received', 'Partially received'), ('received', 'Received')], default='pending', max_length=20, verbose_name='Status')),
                ('purchase_order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='ledgerman.purchaseorder')),
            ],
            options={
                'verbose_name': 'Purchase order item',
                'verbose_name_plural': 'Purchase order items',
                'ordering': ['pk'],
            },
        ),
        migrations.CreateModel(
            name='GoodsReceipt',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('receipt_number', models.CharField(max_length=32, unique=True, verbose_name='Receipt number')),
                ('warehouse_id', models.CharField(max_length=64, verbose_name='Warehouse ID')),
                ('received_by', models.CharField(blank=True, default='', max_length=64)),
                ('notes', models.TextField(blank=True, default='')),
                ('qc_notes', models.TextField(blank=True, default='', verbose_name='QC notes')),
                ('received_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('purchase_order', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='receipts', to='ledgerman.purchaseorder')),
            ],
            options={
                'verbose_name': 'Goods receipt',
                'verbose_name_plural': 'Goods receipts',
                'ordering': ['-received_at', '-pk'],
            },
        ),
        migrations.CreateModel(
            name='GoodsReceiptItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('product_id', models.CharField(blank=True, default='', max_length=64)),
                ('variant_id', models.CharField(blank=True, default='', max_length=64)),
                ('expected_qty', models.PositiveIntegerField(default=0)),
                ('received_qty', models.PositiveIntegerField(default=0)),
                ('accepted_qty', models.PositiveIntegerField(default=0)),
                ('rejected_qty', models.PositiveIntegerField(default=0)),
                ('qc_status', models.CharField(choices=[('passed', 'Passed'), ('failed', 'Failed'), ('pending', 'Pending')], default='passed', max_length=20, verbose_name='QC status')),
                ('lot_number', models.CharField(blank=True, default='', max_length=64)),
                ('batch_number', models.CharField(blank=True, default='', max_length=64)),
                ('expiry_date', models.DateField(blank=True, null=True)),
                ('outcome', models.CharField(choices=[('applied', 'Applied'), ('rejected', 'Rejected'), ('pending_qc', 'Pending QC'), ('failed', 'Failed')], max_length=20, verbose_name='Outcome')),
                ('error_code', models.CharField(blank=True, default='', max_length=64)),
                ('error_message', models.CharField(blank=True, default='', max_length=255)),
                ('goods_receipt', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='ledgerman.goodsreceipt')),
                ('movement', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='ledgerman.movement')),
                ('purchase_order_item', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='receipt_items', to='ledgerman.purchaseorderitem')),
                ('stock_record', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='+', to='ledgerman.stockrecord')),
            ],
            options={
                'verbose_name': 'Goods receipt item',
                'verbose_name_plural': 'Goods receipt items',
                'ordering': ['pk'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('accepted_qty__lte', models.F('received_qty'))), name='receipt_item_accepted_lte_received'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ReorderRule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('company_id', models.CharField(db_index=True, max_length=64, verbose_name='Company ID')),
                ('product_id', models.CharField(max_length=64, verbose_name='Product ID')),
                ('variant_id', models.CharField(blank=True, default='', max_length=64, verbose_name='Variant ID')),
                ('product_name', models.CharField(blank=True, default='', max_length=255)),
                ('sku', models.CharField(blank=True, default='', max_length=64, verbose_name='SKU')),
                ('min_stock', models.PositiveIntegerField(blank=True, null=True, verbose_name='Minimum stock')),
                ('reorder_point', models.PositiveIntegerField(blank=True, help_text='Reorder when on-hand drops to or below this value', null=True, verbose_name='Reorder point')),
                ('reorder_quantity', models.PositiveIntegerField(blank=True, null=True, verbose_name='Reorder quantity')),
                ('cost_price', models.DecimalField(blank=True, decimal_places=4, max_digits=12, null=True, verbose_name='Cost price')),
                ('preferred_supplier', models.CharField(blank=True, default='', max_length=64, verbose_name='Preferred supplier')),
                ('is_active', models.BooleanField(default=True, verbose_name='Active')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Reorder rule',
                'verbose_name_plural': 'Reorder rules',
                'indexes': [
                    models.Index(fields=['company_id', 'is_active'], name='ledger_rule_company_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('company_id', 'product_id', 'variant_id'), name='unique_reorder_rule_per_product'),
                ],
            },
        ),
    ]
