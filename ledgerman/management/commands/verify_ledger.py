"""
Management command to verify stock records against the movement ledger.

Usage:
    python manage.py verify_ledger
    python manage.py verify_ledger --fix
    python manage.py verify_ledger --product P-1
"""

from django.core.management.base import BaseCommand, CommandError

from ledgerman import ledger
from ledgerman.exceptions import InvariantViolationError
from ledgerman.models import StockRecord


class Command(BaseCommand):
    """Ledger integrity audit command."""

    help = 'Replays the movement ledger and checks reservation totals for every stock record'

    def add_arguments(self, parser):
        parser.add_argument(
            '--fix',
            action='store_true',
            help='Recalculate quantities that drifted from the ledger'
        )
        parser.add_argument(
            '--product',
            help='Only check records of this product id'
        )

    def handle(self, *args, **options):
        records = StockRecord.objects.order_by('pk')
        if options['product']:
            records = records.filter(product_id=options['product'])

        checked = 0
        broken = 0
        unfixable = 0
        for record in records.iterator():
            checked += 1
            report = ledger.check_integrity(record)
            if report.ok:
                continue

            broken += 1
            for problem in report.problems:
                self.stdout.write(self.style.WARNING(f'#{record.pk} {record}: {problem}'))

            if options['fix'] and report.ledger_quantity != report.quantity:
                try:
                    new_quantity = record.recalculate()
                except InvariantViolationError as e:
                    unfixable += 1
                    self.stdout.write(self.style.ERROR(
                        f'#{record.pk} not recalculated: ledger holds {report.ledger_quantity}, '
                        f'{e.data.get("reserved")} reserved ({e.code})'
                    ))
                    continue
                self.stdout.write(f'#{record.pk} quantity recalculated to {new_quantity}')

        if broken and not options['fix']:
            raise CommandError(f'{broken} of {checked} stock record(s) failed verification')
        if unfixable:
            raise CommandError(f'{unfixable} stock record(s) could not be recalculated')

        self.stdout.write(
            self.style.SUCCESS(f'{checked} stock record(s) checked, {broken} with problems')
        )
