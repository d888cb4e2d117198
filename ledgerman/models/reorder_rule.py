"""
ReorderRule model — replenishment thresholds per product.

Usage:
    ReorderRule.objects.create(
        company_id="acme", product_id="P-1",
        min_stock=5, reorder_point=10, reorder_quantity=50,
        cost_price=Decimal("2.40"),
    )

    from ledgerman.services.reorder import ReorderAnalyzer
    alerts = ReorderAnalyzer.get_low_stock_alerts("acme")
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class ReorderRuleQuerySet(models.QuerySet):

    def active(self):
        return self.filter(is_active=True)

    def for_company(self, company_id):
        return self.filter(company_id=company_id)


class ReorderRule(models.Model):
    """
    Low-stock and reorder thresholds for a product (optionally one variant).

    Every threshold is optional:
    - no reorder_point: never suggested for reorder
    - neither reorder_point nor min_stock: no low-stock alert
    - no max_stock: no overstock alert
    """

    company_id = models.CharField(max_length=64, db_index=True, verbose_name=_('Company ID'))
    product_id = models.CharField(max_length=64, verbose_name=_('Product ID'))
    variant_id = models.CharField(max_length=64, blank=True, default='', verbose_name=_('Variant ID'))

    product_name = models.CharField(max_length=255, blank=True, default='')
    sku = models.CharField(max_length=64, blank=True, default='', verbose_name=_('SKU'))

    # Thresholds
    min_stock = models.PositiveIntegerField(
        null=True,
        blank=True,
        verbose_name=_('Minimum stock'),
    )
    reorder_point = models.PositiveIntegerField(
        null=True,
        blank=True,
        verbose_name=_('Reorder point'),
        help_text=_('Reorder when on-hand drops to or below this value'),
    )
    reorder_quantity = models.PositiveIntegerField(
        null=True,
        blank=True,
        verbose_name=_('Reorder quantity'),
    )
    max_stock = models.PositiveIntegerField(
        null=True,
        blank=True,
        verbose_name=_('Maximum stock'),
        help_text=_('Overstock alert when a warehouse holds more than this'),
    )

    cost_price = models.DecimalField(
        max_digits=12,
        decimal_places=4,
        null=True,
        blank=True,
        verbose_name=_('Cost price'),
    )
    preferred_supplier = models.CharField(
        max_length=64,
        blank=True,
        default='',
        verbose_name=_('Preferred supplier'),
    )

    is_active = models.BooleanField(default=True, verbose_name=_('Active'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ReorderRuleQuerySet.as_manager()

    class Meta:
        verbose_name = _('Reorder rule')
        verbose_name_plural = _('Reorder rules')
        constraints = [
            models.UniqueConstraint(
                fields=['company_id', 'product_id', 'variant_id'],
                name='unique_reorder_rule_per_product',
            ),
        ]
        indexes = [
            models.Index(fields=['company_id', 'is_active'], name='ledger_rule_company_idx'),
        ]

    def __str__(self) -> str:
        label = self.product_name or self.product_id
        return f"{label}: reorder at {self.reorder_point}"
