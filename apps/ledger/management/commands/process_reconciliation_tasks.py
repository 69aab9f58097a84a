"""
Drain the ledger reconciliation queue.

Usage:
    python manage.py process_reconciliation_tasks
    python manage.py process_reconciliation_tasks --limit 100
"""

from django.core.management.base import BaseCommand

from apps.ledger.services import process_reconciliation_tasks


class Command(BaseCommand):
    help = 'Apply or recompute ledger writes that failed earlier'

    def add_arguments(self, parser):
        parser.add_argument('--limit', type=int, help='Process at most this many tasks')

    def handle(self, *args, **options):
        summary = process_reconciliation_tasks(limit=options.get('limit'))

        for error in summary.errors:
            self.stdout.write(self.style.ERROR(f'  - {error}'))

        message = (
            f'Resolved {summary.resolved}, retrying {summary.retried}, failed {summary.failed}'
        )
        if summary.errors:
            self.stdout.write(self.style.WARNING(message))
        else:
            self.stdout.write(self.style.SUCCESS(message))
