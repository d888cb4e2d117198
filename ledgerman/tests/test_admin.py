"""
Tests for the Django admin integration.
"""

import pytest
from django.urls import reverse

from ledgerman.models import ReservationStatus, ReservedFor
from ledgerman.services import StockReservations


pytestmark = pytest.mark.django_db


class TestAdminPages:

    @pytest.mark.parametrize('model', [
        'stockrecord', 'movement', 'reservation', 'purchaseorder', 'goodsreceipt', 'reorderrule',
    ])
    def test_changelist_renders(self, admin_client, record, model):
        response = admin_client.get(reverse(f'admin:ledgerman_{model}_changelist'))

        assert response.status_code == 200

    def test_movements_cannot_be_added(self, admin_client):
        response = admin_client.get(reverse('admin:ledgerman_movement_add'))

        assert response.status_code == 403


class TestCancelAction:

    def test_cancel_selected(self, admin_client, record):
        reservation = StockReservations.reserve(record.pk, 2, ReservedFor.ORDER, 'O-1')

        response = admin_client.post(
            reverse('admin:ledgerman_reservation_changelist'),
            {'action': 'cancel_reservations', '_selected_action': [reservation.pk]},
            follow=True,
        )

        assert response.status_code == 200
        reservation.refresh_from_db()
        record.refresh_from_db()
        assert reservation.status == ReservationStatus.CANCELLED
        assert reservation.released_by == 'admin'
        assert record.reserved_quantity == 0
