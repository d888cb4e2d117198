"""
Tests for management commands.
"""

from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError
from django.utils import timezone

from ledgerman.models import ReservationStatus, ReservedFor, StockRecord
from ledgerman.services import StockReservations


pytestmark = pytest.mark.django_db


@pytest.fixture
def overdue(record):
    return StockReservations.reserve(
        record.pk, 3, ReservedFor.ORDER, 'O-1',
        expires_at=timezone.now() - timedelta(minutes=1),
    )


class TestExpireReservations:

    def test_releases_overdue(self, overdue):
        out = StringIO()

        call_command('expire_reservations', stdout=out)

        overdue.refresh_from_db()
        assert overdue.status == ReservationStatus.CANCELLED
        assert '1 reservation(s) released' in out.getvalue()

    def test_dry_run_changes_nothing(self, overdue):
        out = StringIO()

        call_command('expire_reservations', '--dry-run', stdout=out)

        overdue.refresh_from_db()
        assert overdue.status == ReservationStatus.ACTIVE
        assert '1 reservation(s) would be released' in out.getvalue()


class TestVerifyLedger:

    def test_clean(self, record):
        out = StringIO()

        call_command('verify_ledger', stdout=out)

        assert '1 stock record(s) checked, 0 with problems' in out.getvalue()

    def test_drift_fails_without_fix(self, record):
        StockRecord.objects.filter(pk=record.pk).update(quantity=99)

        with pytest.raises(CommandError):
            call_command('verify_ledger', stdout=StringIO())

    def test_fix_recalculates(self, record):
        StockRecord.objects.filter(pk=record.pk).update(quantity=99)
        out = StringIO()

        call_command('verify_ledger', '--fix', stdout=out)

        record.refresh_from_db()
        assert record.quantity == 10
        assert 'recalculated to 10' in out.getvalue()

    def test_fix_reports_records_it_cannot_repair(self, record):
        StockRecord.objects.filter(pk=record.pk).update(quantity=12, reserved_quantity=12)
        out = StringIO()

        with pytest.raises(CommandError, match='could not be recalculated'):
            call_command('verify_ledger', '--fix', stdout=out)

        assert 'not recalculated' in out.getvalue()
        record.refresh_from_db()
        assert record.quantity == 12

    def test_product_filter(self, make_record):
        make_record(1, product_id='P-1')
        drifted = make_record(1, product_id='P-2')
        StockRecord.objects.filter(pk=drifted.pk).update(quantity=5)

        call_command('verify_ledger', '--product', 'P-1', stdout=StringIO())
