"""
Tests for version compare-and-set and conflict retries.
"""

import importlib
import threading

import pytest
from django.db import connection

from ledgerman.concurrency import retry_on_conflict
from ledgerman.exceptions import ConcurrencyConflictError, InsufficientAvailableStockError
from ledgerman.models import Reservation, ReservedFor, StockRecord
from ledgerman.services import StockReservations


class TestCompareAndSet:

    @pytest.mark.django_db
    def test_stale_instance_loses(self, record):
        first = StockRecord.objects.get(pk=record.pk)
        second = StockRecord.objects.get(pk=record.pk)

        first.compare_and_set(reserved_quantity=1)

        with pytest.raises(ConcurrencyConflictError) as exc:
            second.compare_and_set(reserved_quantity=2)

        assert exc.value.code == 'CONCURRENT_MODIFICATION'
        record.refresh_from_db()
        assert record.reserved_quantity == 1

    @pytest.mark.django_db
    def test_version_advances(self, record):
        version = record.version

        record.compare_and_set(reserved_quantity=1)

        assert record.version == version + 1
        record.refresh_from_db()
        assert record.version == version + 1


class TestRetryOnConflict:

    def flaky(self, failures):
        calls = []

        @retry_on_conflict
        def operation():
            calls.append(1)
            if len(calls) <= failures:
                raise ConcurrencyConflictError(stock_record_id=1, version=len(calls))
            return 'done'

        return operation, calls

    def test_retries_until_success(self, settings):
        settings.LEDGERMAN = {'CONFLICT_RETRIES': 3}
        operation, calls = self.flaky(failures=2)

        assert operation() == 'done'
        assert len(calls) == 3

    def test_gives_up_after_configured_attempts(self, settings):
        settings.LEDGERMAN = {'CONFLICT_RETRIES': 2}
        operation, calls = self.flaky(failures=5)

        with pytest.raises(ConcurrencyConflictError):
            operation()
        assert len(calls) == 2

    def test_other_errors_not_retried(self):
        calls = []

        @retry_on_conflict
        def operation():
            calls.append(1)
            raise InsufficientAvailableStockError()

        with pytest.raises(InsufficientAvailableStockError):
            operation()
        assert len(calls) == 1


@pytest.mark.skipif(
    connection.vendor != 'postgresql',
    reason='Needs a database with row-level locking',
)
@pytest.mark.django_db(transaction=True)
class TestConcurrentReservations:
    """
    Real threads racing on one row.

    SQLite has no SELECT ... FOR UPDATE, so these only run on PostgreSQL.
    CI must run the suite once with POSTGRES_DB set (see tests/settings.py)
    or this class never executes.
    """

    def test_no_oversell(self, make_record):
        """Ten parallel reservations of 1 against 5 on hand: exactly 5 win."""
        record = make_record(5)
        outcomes = []
        lock = threading.Lock()

        def worker(n):
            try:
                StockReservations.reserve(record.pk, 1, ReservedFor.ORDER, f'O-{n}')
                result = 'ok'
            except (InsufficientAvailableStockError, ConcurrencyConflictError):
                result = 'rejected'
            finally:
                connection.close()
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        record.refresh_from_db()
        assert outcomes.count('ok') == 5
        assert record.reserved_quantity == 5
        assert Reservation.objects.active().count() == 5


class TestDatabaseSelection:

    def test_postgres_selected_from_environment(self, monkeypatch):
        from ledgerman.tests import settings as test_settings

        monkeypatch.setenv('POSTGRES_DB', 'ledgerman')
        monkeypatch.setenv('POSTGRES_HOST', 'db')
        try:
            database = importlib.reload(test_settings).DATABASES['default']
        finally:
            monkeypatch.delenv('POSTGRES_DB')
            importlib.reload(test_settings)

        assert database['ENGINE'] == 'django.db.backends.postgresql'
        assert database['NAME'] == 'ledgerman'
        assert database['HOST'] == 'db'
