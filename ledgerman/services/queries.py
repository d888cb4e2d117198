"""
Stock queries — read-only operations.

All methods are classmethods and use no locking.
"""

from dataclasses import dataclass, field

from django.core.paginator import Paginator
from django.db import models
from django.db.models import Sum
from django.db.models.functions import Coalesce

from ledgerman.conf import ledgerman_settings
from ledgerman.exceptions import LedgerValidationError, NotFoundError
from ledgerman.models.enums import MovementType, ReservationStatus, StockStatus
from ledgerman.models.movement import Movement
from ledgerman.models.reservation import Reservation
from ledgerman.models.stock_record import StockLocator, StockRecord

MOVEMENT_SORT_FIELDS = {
    'occurred_at': 'occurred_at',
    'quantity': 'quantity',
    'type': 'type',
}


@dataclass(frozen=True)
class MovementPage:
    """One page of movement history."""

    items: list
    page: int
    limit: int
    total: int
    pages: int

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


@dataclass
class IntegrityReport:
    """Ledger replay and reservation conservation for one stock record."""

    stock_record_id: int
    quantity: int
    ledger_quantity: int
    reserved_quantity: int
    active_reserved: int
    problems: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems


class StockQueries:
    """Read-only stock query methods."""

    @classmethod
    def get_record(cls, stock_record_id) -> StockRecord:
        """
        Raises:
            NotFoundError('STOCK_RECORD_NOT_FOUND')
        """
        try:
            return StockRecord.objects.get(pk=stock_record_id)
        except StockRecord.DoesNotExist:
            raise NotFoundError('STOCK_RECORD_NOT_FOUND', stock_record_id=stock_record_id) from None

    @classmethod
    def find_record(cls, locator: StockLocator, status=None) -> StockRecord | None:
        """Record at a locator (AVAILABLE unless status is given)."""
        return StockRecord.objects.at_locator(locator).filter(
            status=status or StockStatus.AVAILABLE,
        ).first()

    @classmethod
    def available(cls, product_id, variant_id='', warehouse_id=None) -> int:
        """
        Reservable quantity for a product.

        available = sum(quantity - reserved_quantity) over AVAILABLE,
        non-retired records

        Args:
            product_id: External product id
            variant_id: Variant id ('' = the product without variant)
            warehouse_id: Specific warehouse (None = all)
        """
        qs = StockRecord.objects.sellable().for_product(product_id, variant_id)
        if warehouse_id is not None:
            qs = qs.filter(warehouse_id=warehouse_id)
        return qs.total_available()

    @classmethod
    def on_hand(cls, product_id, variant_id='', warehouse_id=None) -> int:
        """On-hand quantity of AVAILABLE, non-retired records."""
        qs = StockRecord.objects.sellable().for_product(product_id, variant_id)
        if warehouse_id is not None:
            qs = qs.filter(warehouse_id=warehouse_id)
        return qs.total_quantity()

    @classmethod
    def list_records(cls, product_id=None, warehouse_id=None, status=None,
                     include_empty=False, include_retired=False):
        """List stock records with filters."""
        qs = StockRecord.objects.all()

        if product_id is not None:
            qs = qs.filter(product_id=product_id)

        if warehouse_id is not None:
            qs = qs.filter(warehouse_id=warehouse_id)

        if status is not None:
            qs = qs.filter(status=status)

        if not include_empty:
            qs = qs.filter(quantity__gt=0)

        if not include_retired:
            qs = qs.filter(is_retired=False)

        return qs.order_by('product_id', 'variant_id', 'warehouse_id', 'lot_number')

    @classmethod
    def active_reservations(cls, stock_record_id):
        return Reservation.objects.active().filter(stock_record_id=stock_record_id)

    @classmethod
    def list_movements(cls, stock_record_id=None, product_id=None, warehouse_id=None,
                       type=None, date_from=None, date_to=None, page=1, limit=None,
                       sort='occurred_at', descending=True) -> MovementPage:
        """
        Paginated movement history.

        Args:
            sort: 'occurred_at', 'quantity' or 'type'
            limit: Page size (default DEFAULT_PAGE_SIZE, capped at MAX_PAGE_SIZE)
            page: 1-based; out-of-range pages return the last page

        Raises:
            LedgerValidationError: unknown sort field or movement type
        """
        if sort not in MOVEMENT_SORT_FIELDS:
            raise LedgerValidationError('INVALID_SORT', message=f"Unknown sort field: {sort}", sort=sort)

        qs = Movement.objects.select_related('stock_record')

        if stock_record_id is not None:
            qs = qs.filter(stock_record_id=stock_record_id)
        if product_id is not None:
            qs = qs.filter(stock_record__product_id=product_id)
        if warehouse_id is not None:
            qs = qs.filter(stock_record__warehouse_id=warehouse_id)
        if type is not None:
            try:
                qs = qs.of_type(MovementType(type))
            except ValueError:
                raise LedgerValidationError('INVALID_MOVEMENT_TYPE', type=type) from None
        qs = qs.between(date_from, date_to)

        prefix = '-' if descending else ''
        qs = qs.order_by(f"{prefix}{MOVEMENT_SORT_FIELDS[sort]}", f"{prefix}pk")

        limit = limit or ledgerman_settings.DEFAULT_PAGE_SIZE
        limit = max(1, min(int(limit), ledgerman_settings.MAX_PAGE_SIZE))

        paginator = Paginator(qs, limit)
        page_obj = paginator.get_page(page)
        return MovementPage(
            items=list(page_obj.object_list),
            page=page_obj.number,
            limit=limit,
            total=paginator.count,
            pages=paginator.num_pages,
        )

    @classmethod
    def replay(cls, stock_record_id) -> int:
        """On-hand quantity reconstructed from the movement ledger."""
        return cls.get_record(stock_record_id).replay()

    @classmethod
    def check_integrity(cls, record: StockRecord) -> IntegrityReport:
        """
        Compare a record against its ledger and its reservations.

        Checks:
        - replay of movements == quantity
        - sum of ACTIVE reservations == reserved_quantity
        - 0 <= reserved_quantity <= quantity
        """
        ledger_quantity = record.replay()
        active_reserved = record.reservations.filter(
            status=ReservationStatus.ACTIVE,
        ).aggregate(
            t=Coalesce(Sum('quantity'), 0, output_field=models.IntegerField())
        )['t']

        report = IntegrityReport(
            stock_record_id=record.pk,
            quantity=record.quantity,
            ledger_quantity=ledger_quantity,
            reserved_quantity=record.reserved_quantity,
            active_reserved=active_reserved,
        )
        if ledger_quantity != record.quantity:
            report.problems.append(
                f"ledger replays to {ledger_quantity}, record holds {record.quantity}"
            )
        if active_reserved != record.reserved_quantity:
            report.problems.append(
                f"active reservations total {active_reserved}, "
                f"record reserves {record.reserved_quantity}"
            )
        if record.reserved_quantity > record.quantity:
            report.problems.append(
                f"reserved {record.reserved_quantity} exceeds on-hand {record.quantity}"
            )
        return report
