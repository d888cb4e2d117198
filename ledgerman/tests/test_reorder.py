"""
Tests for ReorderAnalyzer: stock alerts and reorder suggestions.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from ledgerman.models import (
    AlertSeverity,
    AlertType,
    MovementType,
    ReorderRule,
    StockLocator,
    StockRecord,
    StockStatus,
)
from ledgerman.protocols import SupplierInfo
from ledgerman.services import ReorderAnalyzer, StockMovements


pytestmark = pytest.mark.django_db


class StaticSupplierDirectory:
    """Directory that always answers with the same supplier."""

    def preferred_supplier(self, company_id, product_id, variant_id=''):
        return SupplierInfo(supplier_id='SUP-DIR', name='Directory Supplies', lead_time_days=3)


@pytest.fixture
def stock(make_record):
    """Factory: record at exactly `quantity`, including zero."""

    def _stock(quantity, **kwargs):
        record = make_record(quantity or 1, **kwargs)
        if quantity == 0:
            StockMovements.apply(record.pk, MovementType.SHIPMENT, 1, 'Sold')
            record.refresh_from_db()
        return record

    return _stock


class TestLowStockAlerts:

    def test_at_threshold_alerts(self, rule, stock):
        record = stock(10)

        alerts = ReorderAnalyzer.get_low_stock_alerts('acme')

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.stock_record_id == record.pk
        assert alert.type == AlertType.LOW_STOCK
        assert alert.severity == AlertSeverity.MEDIUM
        assert alert.product_name == 'Blue widget'
        assert 'running low' in alert.message

    def test_above_threshold_no_alert(self, rule, stock):
        stock(11)

        assert ReorderAnalyzer.get_low_stock_alerts('acme') == []

    def test_high_severity_at_half_min_stock(self, rule, stock):
        stock(2)

        alert = ReorderAnalyzer.get_low_stock_alerts('acme')[0]

        assert alert.severity == AlertSeverity.HIGH

    def test_out_of_stock_is_critical(self, rule, stock):
        stock(0)

        alert = ReorderAnalyzer.get_low_stock_alerts('acme')[0]

        assert alert.type == AlertType.OUT_OF_STOCK
        assert alert.severity == AlertSeverity.CRITICAL
        assert 'out of stock' in alert.message

    def test_min_stock_only(self, stock):
        ReorderRule.objects.create(company_id='acme', product_id='P-1', min_stock=6)
        stock(6)

        alert = ReorderAnalyzer.get_low_stock_alerts('acme')[0]

        assert alert.reorder_point is None
        assert alert.min_stock == 6

    def test_rule_without_thresholds_ignored(self, stock):
        ReorderRule.objects.create(company_id='acme', product_id='P-1')
        stock(0)

        assert ReorderAnalyzer.get_low_stock_alerts('acme') == []

    def test_inactive_rule_and_other_company_ignored(self, rule, stock):
        stock(1)

        assert ReorderAnalyzer.get_low_stock_alerts('globex') == []
        rule.is_active = False
        rule.save()
        assert ReorderAnalyzer.get_low_stock_alerts('acme') == []

    def test_one_alert_per_warehouse_sorted_by_quantity(self, rule, stock):
        stock(8, warehouse_id='WH-1')
        stock(3, warehouse_id='WH-2')

        alerts = ReorderAnalyzer.get_low_stock_alerts('acme')

        assert [a.warehouse_id for a in alerts] == ['WH-2', 'WH-1']

    def test_quarantine_stock_ignored(self, rule):
        StockMovements.apply(
            StockLocator('P-1', 'WH-1'), MovementType.RECEIPT, 1, 'QC hold',
            status=StockStatus.QUARANTINE,
        )

        assert ReorderAnalyzer.get_low_stock_alerts('acme') == []

    def test_product_rule_covers_variants(self, rule, stock):
        stock(2, variant_id='RED')

        alert = ReorderAnalyzer.get_low_stock_alerts('acme')[0]

        assert alert.variant_id == 'RED'

    def test_variant_rule_wins_over_product_rule(self, rule, stock):
        ReorderRule.objects.create(company_id='acme', product_id='P-1', variant_id='RED', reorder_point=1)
        stock(2, variant_id='RED')

        assert ReorderAnalyzer.get_low_stock_alerts('acme') == []


class TestOverstockAlerts:

    def test_above_max_stock_alerts(self, rule, stock):
        rule.max_stock = 30
        rule.save()
        record = stock(45)

        alerts = ReorderAnalyzer.get_overstock_alerts('acme')

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.stock_record_id == record.pk
        assert alert.type == AlertType.OVERSTOCK
        assert alert.severity == AlertSeverity.MEDIUM
        assert alert.max_stock == 30
        assert alert.message == 'Blue widget is overstocked in WH-1 (45 vs max 30)'

    def test_at_max_stock_no_alert(self, rule, stock):
        rule.max_stock = 30
        rule.save()
        stock(30)

        assert ReorderAnalyzer.get_overstock_alerts('acme') == []

    def test_rule_without_max_stock_ignored(self, rule, stock):
        stock(500)

        assert ReorderAnalyzer.get_overstock_alerts('acme') == []

    def test_sorted_by_quantity_descending(self, rule, stock):
        rule.max_stock = 20
        rule.save()
        stock(25, warehouse_id='WH-1')
        stock(60, warehouse_id='WH-2')
        stock(15, warehouse_id='WH-3')

        alerts = ReorderAnalyzer.get_overstock_alerts('acme')

        assert [a.warehouse_id for a in alerts] == ['WH-2', 'WH-1']


class TestExpiryAlerts:

    @pytest.fixture
    def today(self):
        return date(2026, 3, 1)

    @pytest.fixture
    def expiring(self, make_record):
        """Factory: lot record expiring on the given date."""

        def _expiring(quantity, expiry_date, lot_number='L-1', **kwargs):
            record = make_record(quantity, lot_number=lot_number, **kwargs)
            StockRecord.objects.filter(pk=record.pk).update(expiry_date=expiry_date)
            record.refresh_from_db()
            return record

        return _expiring

    @pytest.mark.parametrize('days, severity', [
        (0, AlertSeverity.CRITICAL),
        (7, AlertSeverity.CRITICAL),
        (8, AlertSeverity.HIGH),
        (14, AlertSeverity.HIGH),
        (15, AlertSeverity.MEDIUM),
        (30, AlertSeverity.MEDIUM),
    ])
    def test_severity_by_days_left(self, rule, expiring, today, days, severity):
        expiring(5, today + timedelta(days=days))

        alerts = ReorderAnalyzer.get_expiry_alerts('acme', today=today)

        assert len(alerts) == 1
        assert alerts[0].type == AlertType.EXPIRING
        assert alerts[0].days_to_expiry == days
        assert alerts[0].severity == severity

    def test_outside_window_ignored(self, rule, expiring, today):
        expiring(5, today + timedelta(days=31), lot_number='L-LATE')
        expiring(5, today - timedelta(days=1), lot_number='L-GONE')

        assert ReorderAnalyzer.get_expiry_alerts('acme', today=today) == []

    def test_window_is_configurable(self, rule, expiring, today):
        expiring(5, today + timedelta(days=45))

        assert ReorderAnalyzer.get_expiry_alerts('acme', within_days=30, today=today) == []
        assert len(ReorderAnalyzer.get_expiry_alerts('acme', within_days=60, today=today)) == 1

    def test_message_and_names_from_rule(self, rule, expiring, today):
        expiring(5, today + timedelta(days=10))

        alert = ReorderAnalyzer.get_expiry_alerts('acme', today=today)[0]

        assert alert.product_name == 'Blue widget'
        assert alert.expiry_date == today + timedelta(days=10)
        assert alert.message == 'Blue widget in WH-1 expires in 10 days'

    def test_empty_and_expired_records_skipped(self, rule, expiring, today):
        empty = expiring(1, today + timedelta(days=3), lot_number='L-EMPTY')
        StockMovements.apply(empty.pk, MovementType.SHIPMENT, 1, 'Sold')
        marked = expiring(4, today + timedelta(days=3), lot_number='L-MARKED')
        StockRecord.objects.filter(pk=marked.pk).update(status=StockStatus.EXPIRED)

        assert ReorderAnalyzer.get_expiry_alerts('acme', today=today) == []

    def test_company_scope(self, rule, expiring, today):
        expiring(5, today + timedelta(days=3), product_id='P-OTHER')

        assert ReorderAnalyzer.get_expiry_alerts('acme', today=today) == []
        assert ReorderAnalyzer.get_expiry_alerts('globex', today=today) == []

        alerts = ReorderAnalyzer.get_expiry_alerts(today=today)
        assert [a.product_id for a in alerts] == ['P-OTHER']
        assert alerts[0].message == 'P-OTHER in WH-1 expires in 3 days'

    def test_sorted_soonest_first(self, expiring, today):
        expiring(5, today + timedelta(days=20), lot_number='L-A')
        expiring(5, today + timedelta(days=2), lot_number='L-B')

        alerts = ReorderAnalyzer.get_expiry_alerts(today=today)

        assert [a.days_to_expiry for a in alerts] == [2, 20]


class TestReorderSuggestions:

    def test_suggestion_uses_total_across_warehouses(self, rule, stock):
        stock(4, warehouse_id='WH-1')
        stock(5, warehouse_id='WH-2')

        suggestions = ReorderAnalyzer.get_reorder_suggestions('acme')

        assert len(suggestions) == 1
        suggestion = suggestions[0]
        assert suggestion.current_stock == 9
        assert suggestion.suggested_qty == 50
        assert suggestion.estimated_cost == Decimal('120.00')
        assert suggestion.supplier_id == 'SUP-1'

    def test_no_suggestion_above_reorder_point(self, rule, stock):
        stock(6, warehouse_id='WH-1')
        stock(5, warehouse_id='WH-2')

        assert ReorderAnalyzer.get_reorder_suggestions('acme') == []

    def test_product_with_no_stock_at_all(self, rule):
        suggestion = ReorderAnalyzer.get_reorder_suggestions('acme')[0]

        assert suggestion.current_stock == 0

    def test_suggested_qty_at_least_reorder_point(self, stock):
        ReorderRule.objects.create(
            company_id='acme', product_id='P-1', reorder_point=30, reorder_quantity=12,
        )
        stock(1)

        assert ReorderAnalyzer.get_reorder_suggestions('acme')[0].suggested_qty == 30

    def test_unknown_cost_estimates_zero(self, stock):
        ReorderRule.objects.create(company_id='acme', product_id='P-1', reorder_point=5)
        stock(1)

        suggestion = ReorderAnalyzer.get_reorder_suggestions('acme')[0]

        assert suggestion.cost_price is None
        assert suggestion.estimated_cost == Decimal('0')

    def test_rule_without_reorder_point_never_suggests(self, stock):
        ReorderRule.objects.create(company_id='acme', product_id='P-1', min_stock=5)
        stock(0)

        assert ReorderAnalyzer.get_reorder_suggestions('acme') == []

    def test_directory_argument_overrides_rule_supplier(self, rule):
        suggestion = ReorderAnalyzer.get_reorder_suggestions(
            'acme', directory=StaticSupplierDirectory(),
        )[0]

        assert suggestion.supplier_id == 'SUP-DIR'
        assert suggestion.supplier_name == 'Directory Supplies'

    def test_configured_directory(self, rule, settings):
        settings.LEDGERMAN = {
            'SUPPLIER_DIRECTORY': 'ledgerman.tests.test_reorder.StaticSupplierDirectory',
        }

        assert ReorderAnalyzer.get_reorder_suggestions('acme')[0].supplier_id == 'SUP-DIR'

    def test_directory_without_answer_falls_back_to_rule(self, rule, settings):
        settings.LEDGERMAN = {
            'SUPPLIER_DIRECTORY': 'ledgerman.adapters.noop.NoopSupplierDirectory',
        }

        assert ReorderAnalyzer.get_reorder_suggestions('acme')[0].supplier_id == 'SUP-1'
