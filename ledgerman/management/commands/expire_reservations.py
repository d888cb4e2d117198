"""
Management command to cancel overdue reservations.

Usage:
    python manage.py expire_reservations
    python manage.py expire_reservations --dry-run
"""

from django.core.management.base import BaseCommand

from ledgerman import ledger
from ledgerman.models import Reservation


class Command(BaseCommand):
    """Expire overdue reservations command."""

    help = 'Cancels ACTIVE reservations whose expiry time has passed'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show how many would be released without releasing them'
        )

    def handle(self, *args, **options):
        if options['dry_run']:
            overdue = Reservation.objects.overdue().count()
            self.stdout.write(f'{overdue} reservation(s) would be released')
        else:
            count = ledger.expire_overdue()
            self.stdout.write(
                self.style.SUCCESS(f'{count} reservation(s) released')
            )
