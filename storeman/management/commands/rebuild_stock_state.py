"""
Management command to rebuild balances and FIFO valuation from the ledger.

Usage:
    python manage.py rebuild_stock_state
    python manage.py rebuild_stock_state --nac-code "GT 12345"
    python manage.py rebuild_stock_state --dry-run
"""

from django.core.management.base import BaseCommand
from django.db import transaction

from storeman.models import StockItem
from storeman.valuation import rebuild_item_state


class Command(BaseCommand):
    """Rebuild stock state command."""

    help = 'Recalculates balances from the ledger and replays FIFO valuation'

    def add_arguments(self, parser):
        parser.add_argument(
            '--nac-code',
            action='append',
            dest='nac_codes',
            default=[],
            help='Only rebuild this NAC code (repeatable)'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report balance drift without writing anything'
        )

    def handle(self, *args, **options):
        items = StockItem.objects.all()
        if options['nac_codes']:
            items = items.filter(nac_code__in=options['nac_codes'])

        if options['dry_run']:
            drifted = 0
            for item in items.iterator():
                ledger = item.ledger_balance()
                if ledger != item.current_balance:
                    drifted += 1
                    self.stdout.write(f'{item.nac_code}: cached {item.current_balance}, ledger {ledger}')
            self.stdout.write(f'{drifted} item(s) with balance drift')
            return

        count = 0
        for item in items.iterator():
            with transaction.atomic():
                item = StockItem.objects.select_for_update().get(pk=item.pk)
                item.recalculate()
                rebuild_item_state(item)
            count += 1

        self.stdout.write(
            self.style.SUCCESS(f'{count} item(s) rebuilt')
        )
