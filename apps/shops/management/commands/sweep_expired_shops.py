"""
Move shops whose paid window has ended into the renewal holding area.

Meant to be scheduled externally (cron, platform scheduler). Safe to run
repeatedly or concurrently; already-held shops are skipped.

Usage:
    python manage.py sweep_expired_shops
    python manage.py sweep_expired_shops --dry-run
"""

from django.core.management.base import BaseCommand

from apps.shops.services import expiry_stats, sweep_expired


class Command(BaseCommand):
    help = 'Move expired PAID shops to the renewal holding area'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Only report how many shops would be moved',
        )

    def handle(self, *args, **options):
        stats = expiry_stats()

        if options['dry_run']:
            self.stdout.write(f'Expired live shops: {stats.expired_live}')
            self.stdout.write(f'Already in holding: {stats.in_holding}')
            self.stdout.write(f'Expiring within 30 days: {stats.expiring_soon}')
            self.stdout.write(self.style.WARNING('--dry-run mode: No changes made.'))
            return

        if stats.expired_live == 0:
            self.stdout.write(self.style.SUCCESS('No expired shops. All good!'))
            return

        result = sweep_expired()

        for error in result.errors:
            self.stdout.write(self.style.ERROR(f'  - {error.ref}: {error.error}'))

        if result.partial_failure:
            self.stdout.write(self.style.WARNING(
                f'Moved {result.moved_count} shop(s), {len(result.errors)} failed'
            ))
        else:
            self.stdout.write(self.style.SUCCESS(f'Moved {result.moved_count} shop(s) to holding'))
