"""
Pytest fixtures for Ledgerman tests.
"""

from decimal import Decimal

import pytest

from ledgerman.adapters import reset_adapters
from ledgerman.models import (
    MovementType,
    PurchaseOrder,
    PurchaseOrderItem,
    PurchaseOrderStatus,
    ReorderRule,
    StockLocator,
)
from ledgerman.services import StockMovements


@pytest.fixture(autouse=True)
def _fresh_adapters():
    """Adapters are cached per dotted path; start every test clean."""
    reset_adapters()
    yield
    reset_adapters()


@pytest.fixture
def locator():
    """Locator of product P-1 in warehouse WH-1."""
    return StockLocator(product_id='P-1', warehouse_id='WH-1')


@pytest.fixture
def make_record(db):
    """Factory: stock record holding `quantity`, created through a RECEIPT."""

    def _make(quantity, product_id='P-1', warehouse_id='WH-1', variant_id='', lot_number=''):
        target = StockLocator(
            product_id=product_id,
            warehouse_id=warehouse_id,
            variant_id=variant_id,
            lot_number=lot_number,
        )
        movement = StockMovements.apply(target, MovementType.RECEIPT, quantity, 'Initial count')
        record = movement.stock_record
        record.refresh_from_db()
        return record

    return _make


@pytest.fixture
def record(make_record):
    """Stock record with 10 on hand, nothing reserved."""
    return make_record(10)


@pytest.fixture
def purchase_order(db):
    """Approved purchase order for 20 x P-1 and 5 x P-2 at WH-1."""
    order = PurchaseOrder.objects.create(
        number='PO-2026-001',
        company_id='acme',
        supplier_id='SUP-1',
        warehouse_id='WH-1',
        status=PurchaseOrderStatus.APPROVED,
    )
    PurchaseOrderItem.objects.create(
        purchase_order=order, product_id='P-1', ordered_qty=20, unit_cost=Decimal('2.5000'),
    )
    PurchaseOrderItem.objects.create(
        purchase_order=order, product_id='P-2', ordered_qty=5, unit_cost=Decimal('7.0000'),
    )
    return order


@pytest.fixture
def po_items(purchase_order):
    """(P-1 item, P-2 item) of the purchase order."""
    first, second = purchase_order.items.order_by('pk')
    return first, second


@pytest.fixture
def rule(db):
    """Reorder rule for P-1: alert at 10, reorder 50 at 2.40 each."""
    return ReorderRule.objects.create(
        company_id='acme',
        product_id='P-1',
        product_name='Blue widget',
        sku='BW-1',
        min_stock=4,
        reorder_point=10,
        reorder_quantity=50,
        cost_price=Decimal('2.40'),
        preferred_supplier='SUP-1',
    )
