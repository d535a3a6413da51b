"""
Run the notification scan from the command line.

Usage:
    python manage.py run_notification_scan
    python manage.py run_notification_scan --loop
    python manage.py run_notification_scan --loop --interval 15 --max-ticks 4

Without --loop a single scan runs and its summary is printed. With --loop
the scan repeats on a fixed interval, for hosts that do not run qcluster.
"""
from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand

from apps.notifications.scan import build_scan_job
from apps.notifications.scheduler import Ticker
from apps.notifications.tasks import run_scan


class Command(BaseCommand):
    help = 'Generate due-soon and overdue task notifications'

    def add_arguments(self, parser):
        parser.add_argument(
            '--loop',
            action='store_true',
            help='Keep running the scan on a fixed interval',
        )
        parser.add_argument(
            '--interval',
            type=int,
            default=settings.NOTIFICATION_SCAN_INTERVAL_MINUTES,
            help='Minutes between scans when looping',
        )
        parser.add_argument(
            '--max-ticks',
            type=int,
            default=None,
            help='Stop after this many scans when looping',
        )

    def handle(self, *args, **options):
        if not options['loop']:
            self._run_once()
            return

        ticker = Ticker(timedelta(minutes=options['interval']))
        self.stdout.write(f'Running notification scan every {options["interval"]} minutes')
        for tick in ticker.ticks(limit=options['max_ticks']):
            self.stdout.write(f'Tick at {tick.isoformat()}')
            run_scan()

    def _run_once(self):
        report = build_scan_job().run()
        for result in report.results:
            if result.failed:
                self.stdout.write(self.style.ERROR(f'✗ {result.kind}: {result.error}'))
                continue
            self.stdout.write(
                self.style.SUCCESS(
                    f'✓ {result.kind}: {result.candidates} matched, {result.created} created, '
                    f'{result.skipped} skipped, {result.storage_failures} failed, '
                    f'{result.emails_sent} emailed'
                )
            )
