"""
Tests for StockMovements.adjust().
"""

import pytest

from ledgerman.exceptions import InvariantViolationError, LedgerValidationError
from ledgerman.models import MovementType
from ledgerman.services import StockMovements


pytestmark = pytest.mark.django_db


class TestAdjust:

    def test_adjust_up(self, record):
        movement = StockMovements.adjust(record.pk, 14, 'Cycle count', approved_by='manager')

        record.refresh_from_db()
        assert record.quantity == 14
        assert movement.type == MovementType.ADJUSTMENT
        assert movement.quantity == 4
        assert movement.quantity_before == 10
        assert movement.quantity_after == 14
        assert movement.approved_by == 'manager'

    def test_adjust_down_to_zero(self, record):
        movement = StockMovements.adjust(record.pk, 0, 'Shrinkage')

        record.refresh_from_db()
        assert record.quantity == 0
        assert movement.quantity == -10

    def test_same_quantity_returns_none(self, record):
        assert StockMovements.adjust(record.pk, 10, 'Cycle count') is None

        record.refresh_from_db()
        assert record.movements.count() == 1

    def test_negative_target_rejected(self, record):
        with pytest.raises(InvariantViolationError) as exc:
            StockMovements.adjust(record.pk, -1, 'Cycle count')

        assert exc.value.code == 'NEGATIVE_QUANTITY'

    @pytest.mark.parametrize('value', [2.5, '7', None])
    def test_non_integer_target_rejected(self, record, value):
        with pytest.raises(LedgerValidationError) as exc:
            StockMovements.adjust(record.pk, value, 'Cycle count')

        assert exc.value.code == 'INVALID_QUANTITY'

    def test_reason_required(self, record):
        with pytest.raises(LedgerValidationError) as exc:
            StockMovements.adjust(record.pk, 3, '')

        assert exc.value.code == 'REASON_REQUIRED'

    def test_replay_after_adjustments(self, record):
        StockMovements.adjust(record.pk, 3, 'Count')
        StockMovements.adjust(record.pk, 25, 'Found a pallet')

        record.refresh_from_db()
        assert record.replay() == record.quantity == 25
