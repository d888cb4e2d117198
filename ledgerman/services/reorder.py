"""
Reorder analysis: stock alerts and replenishment suggestions.

Usage:
    from ledgerman.services.reorder import ReorderAnalyzer

    # Run periodically (celery beat, cron) or on demand from a dashboard
    alerts = ReorderAnalyzer.get_low_stock_alerts("acme")
    expiring = ReorderAnalyzer.get_expiry_alerts("acme", within_days=30)
    suggestions = ReorderAnalyzer.get_reorder_suggestions("acme")

Read-only: nothing here writes or locks.

A rule with variant_id='' is product level. It covers every variant of the
product that has no variant-specific rule of its own.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from django.utils import timezone

from ledgerman.adapters.loader import get_supplier_directory
from ledgerman.models.enums import AlertSeverity, AlertType, StockStatus
from ledgerman.models.reorder_rule import ReorderRule
from ledgerman.models.stock_record import StockRecord

logger = logging.getLogger('ledgerman')


@dataclass(frozen=True)
class StockAlert:
    stock_record_id: int
    product_id: str
    variant_id: str
    warehouse_id: str
    product_name: str
    sku: str
    type: str
    severity: str
    quantity: int
    available_quantity: int
    min_stock: int | None = None
    reorder_point: int | None = None
    max_stock: int | None = None
    expiry_date: date | None = None
    days_to_expiry: int | None = None

    @property
    def message(self) -> str:
        label = self.product_name or self.product_id
        if self.type == AlertType.OUT_OF_STOCK:
            return f"{label} is out of stock in {self.warehouse_id}"
        if self.type == AlertType.OVERSTOCK:
            return f"{label} is overstocked in {self.warehouse_id} ({self.quantity} vs max {self.max_stock})"
        if self.type == AlertType.EXPIRING:
            return f"{label} in {self.warehouse_id} expires in {self.days_to_expiry} days"
        return f"{label} is running low in {self.warehouse_id} ({self.quantity} remaining)"


@dataclass(frozen=True)
class ReorderSuggestion:
    product_id: str
    variant_id: str
    product_name: str
    sku: str
    current_stock: int
    reorder_point: int
    reorder_quantity: int | None
    suggested_qty: int
    cost_price: Decimal | None
    estimated_cost: Decimal
    supplier_id: str
    supplier_name: str = ''


def _severity(quantity: int, threshold: int) -> str:
    if quantity == 0:
        return AlertSeverity.CRITICAL
    if quantity <= threshold * 0.5:
        return AlertSeverity.HIGH
    return AlertSeverity.MEDIUM


def _expiry_severity(days: int) -> str:
    if days <= 7:
        return AlertSeverity.CRITICAL
    if days <= 14:
        return AlertSeverity.HIGH
    return AlertSeverity.MEDIUM


def _rules_by_key(company_id) -> dict[tuple[str, str], ReorderRule]:
    rules = ReorderRule.objects.for_company(company_id).active()
    return {(rule.product_id, rule.variant_id): rule for rule in rules}


def _rule_for(rules, product_id, variant_id):
    return rules.get((product_id, variant_id)) or rules.get((product_id, ''))


def _alert(record, rule, alert_type, severity, **extra) -> StockAlert:
    return StockAlert(
        stock_record_id=record.pk,
        product_id=record.product_id,
        variant_id=record.variant_id,
        warehouse_id=record.warehouse_id,
        product_name=rule.product_name if rule else '',
        sku=rule.sku if rule else '',
        type=alert_type,
        severity=severity,
        quantity=record.quantity,
        available_quantity=record.available_quantity,
        **extra,
    )


class ReorderAnalyzer:
    """Read-only replenishment signals."""

    @classmethod
    def get_low_stock_alerts(cls, company_id) -> list[StockAlert]:
        """
        AVAILABLE stock records at or below their rule's threshold.

        The threshold is the larger of reorder_point and min_stock (whichever
        are set). Rules with neither are ignored.

        Severity:
            CRITICAL  quantity == 0
            HIGH      quantity <= half of min_stock (reorder_point if unset)
            MEDIUM    otherwise

        Returns:
            Alerts sorted by quantity ascending
        """
        rules = _rules_by_key(company_id)
        if not rules:
            return []

        product_ids = {product_id for product_id, _ in rules}
        records = StockRecord.objects.sellable().filter(product_id__in=product_ids)

        alerts = []
        for record in records:
            rule = _rule_for(rules, record.product_id, record.variant_id)
            if rule is None:
                continue

            thresholds = [t for t in (rule.reorder_point, rule.min_stock) if t is not None]
            if not thresholds or record.quantity > max(thresholds):
                continue

            severity_base = rule.min_stock if rule.min_stock is not None else rule.reorder_point
            alerts.append(_alert(
                record, rule,
                AlertType.OUT_OF_STOCK if record.quantity == 0 else AlertType.LOW_STOCK,
                _severity(record.quantity, severity_base),
                min_stock=rule.min_stock,
                reorder_point=rule.reorder_point,
            ))

        alerts.sort(key=lambda a: (a.quantity, a.product_id, a.warehouse_id))
        if alerts:
            logger.info(
                "ledger.reorder.alerts",
                extra={"company_id": company_id, "count": len(alerts)},
            )
        return alerts

    @classmethod
    def get_overstock_alerts(cls, company_id) -> list[StockAlert]:
        """
        AVAILABLE stock records holding more than their rule's max_stock.

        Always MEDIUM severity. Sorted by quantity descending.
        """
        rules = _rules_by_key(company_id)
        rules = {key: rule for key, rule in rules.items() if rule.max_stock is not None}
        if not rules:
            return []

        product_ids = {product_id for product_id, _ in rules}
        records = StockRecord.objects.sellable().filter(product_id__in=product_ids)

        alerts = []
        for record in records:
            rule = _rule_for(rules, record.product_id, record.variant_id)
            if rule is None or record.quantity <= rule.max_stock:
                continue
            alerts.append(_alert(
                record, rule, AlertType.OVERSTOCK, AlertSeverity.MEDIUM,
                max_stock=rule.max_stock,
            ))

        alerts.sort(key=lambda a: (-a.quantity, a.product_id, a.warehouse_id))
        return alerts

    @classmethod
    def get_expiry_alerts(cls, company_id=None, within_days=30, today=None) -> list[StockAlert]:
        """
        Non-empty records whose expiry_date falls within the next within_days.

        Args:
            company_id: Limit to products the company has active rules for
                (names and SKUs are taken from those rules). None = all records.
            within_days: Look-ahead window, inclusive
            today: Reference date (default: local date)

        Severity:
            CRITICAL  7 days or less
            HIGH      14 days or less
            MEDIUM    otherwise

        Records already marked EXPIRED or retired are skipped. Sorted by
        days to expiry ascending.
        """
        today = today or timezone.localdate()
        records = (
            StockRecord.objects
            .filter(
                is_retired=False,
                quantity__gt=0,
                expiry_date__gte=today,
                expiry_date__lte=today + timedelta(days=within_days),
            )
            .exclude(status=StockStatus.EXPIRED)
        )

        rules = {}
        if company_id is not None:
            rules = _rules_by_key(company_id)
            if not rules:
                return []
            records = records.filter(product_id__in={product_id for product_id, _ in rules})

        alerts = []
        for record in records:
            rule = _rule_for(rules, record.product_id, record.variant_id)
            if company_id is not None and rule is None:
                continue
            days = (record.expiry_date - today).days
            alerts.append(_alert(
                record, rule, AlertType.EXPIRING, _expiry_severity(days),
                expiry_date=record.expiry_date,
                days_to_expiry=days,
            ))

        alerts.sort(key=lambda a: (a.days_to_expiry, a.product_id, a.warehouse_id))
        if alerts:
            logger.info(
                "ledger.expiry.alerts",
                extra={"company_id": company_id, "count": len(alerts)},
            )
        return alerts

    @classmethod
    def get_reorder_suggestions(cls, company_id, directory=None) -> list[ReorderSuggestion]:
        """
        Products whose total on-hand (all warehouses) is at or below reorder_point.

        suggested_qty = max(reorder_quantity or 0, reorder_point)
        estimated_cost = suggested_qty x cost_price (0 when cost is unknown)

        Args:
            company_id: Tenant whose rules are evaluated
            directory: SupplierDirectory to resolve preferred suppliers.
                Defaults to LEDGERMAN['SUPPLIER_DIRECTORY']; falls back to
                ReorderRule.preferred_supplier.
        """
        rules = _rules_by_key(company_id)
        rules = {key: rule for key, rule in rules.items() if rule.reorder_point is not None}
        if not rules:
            return []

        if directory is None:
            directory = get_supplier_directory()

        product_ids = {product_id for product_id, _ in rules}
        totals: dict[tuple[str, str], int] = {key: 0 for key in rules}
        records = (
            StockRecord.objects.sellable()
            .filter(product_id__in=product_ids)
            .values_list('product_id', 'variant_id', 'quantity')
        )
        for product_id, variant_id, quantity in records:
            rule = _rule_for(rules, product_id, variant_id)
            if rule is not None:
                totals[(rule.product_id, rule.variant_id)] += quantity

        suggestions = []
        for key, rule in rules.items():
            current = totals[key]
            if current > rule.reorder_point:
                continue

            suggested = max(rule.reorder_quantity or 0, rule.reorder_point)
            estimated = (
                rule.cost_price * suggested if rule.cost_price is not None
                else Decimal('0')
            )

            supplier_id, supplier_name = rule.preferred_supplier, ''
            if directory is not None:
                info = directory.preferred_supplier(company_id, rule.product_id, rule.variant_id)
                if info is not None:
                    supplier_id, supplier_name = info.supplier_id, info.name

            suggestions.append(ReorderSuggestion(
                product_id=rule.product_id,
                variant_id=rule.variant_id,
                product_name=rule.product_name,
                sku=rule.sku,
                current_stock=current,
                reorder_point=rule.reorder_point,
                reorder_quantity=rule.reorder_quantity,
                suggested_qty=suggested,
                cost_price=rule.cost_price,
                estimated_cost=estimated,
                supplier_id=supplier_id,
                supplier_name=supplier_name,
            ))

        suggestions.sort(key=lambda s: (s.current_stock, s.product_id, s.variant_id))
        return suggestions
