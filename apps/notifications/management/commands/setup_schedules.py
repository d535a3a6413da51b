"""
Management command to set up Django-Q2 schedules for notification jobs.

This command creates/updates the scheduled task required for:
- Due-soon and overdue notification scans (hourly by default)

Usage:
    python manage.py setup_schedules

The command is idempotent - safe to run multiple times.
An existing schedule is updated if its configuration changes.
"""
from django.conf import settings
from django.core.management.base import BaseCommand
from django_q.models import Schedule

SCAN_SCHEDULE_NAME = 'Notification Scan'
SCAN_FUNC = 'apps.notifications.tasks.run_scan'


class Command(BaseCommand):
    help = 'Set up Django-Q2 schedules for notification jobs'

    def handle(self, *args, **options):
        self.stdout.write('\nSetting up Django-Q2 schedules...\n')

        interval = settings.NOTIFICATION_SCAN_INTERVAL_MINUTES

        # Checks for tasks due within the lookahead window and tasks past due
        schedule, created = Schedule.objects.update_or_create(
            name=SCAN_SCHEDULE_NAME,
            defaults={
                'func': SCAN_FUNC,
                'schedule_type': Schedule.MINUTES,
                'minutes': interval,
                'repeats': -1,  # Run forever
            }
        )
        if created:
            self.stdout.write(
                self.style.SUCCESS(f'✓ Created schedule: {SCAN_SCHEDULE_NAME} (every {interval} min)')
            )
        else:
            self.stdout.write(
                self.style.WARNING(f'↻ Updated schedule: {SCAN_SCHEDULE_NAME} (every {interval} min)')
            )

        self.stdout.write('')
        self.stdout.write('Schedule Summary:')
        self.stdout.write(f'  • {SCAN_SCHEDULE_NAME}  → Runs every {interval} minutes')
        self.stdout.write('')
        self.stdout.write(
            self.style.NOTICE(
                'Note: Ensure Django-Q cluster is running: python manage.py qcluster'
            )
        )
        self.stdout.write('')
