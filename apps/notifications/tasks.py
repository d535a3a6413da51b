"""
Scheduled tasks for notifications app.

Background jobs for:
- Due-soon and overdue task notifications (hourly)

Registered with Django-Q2 by the setup_schedules management command.
"""

import logging
import uuid

from django.conf import settings
from django.core.cache import cache

from .scan import build_scan_job

logger = logging.getLogger(__name__)

SCAN_LOCK_KEY = 'notifications:scan:lock'


def release_scan_lock(token):
    """Delete the scan lock only while it is still held by `token`."""
    if cache.get(SCAN_LOCK_KEY) == token:
        cache.delete(SCAN_LOCK_KEY)
    else:
        logger.warning('Notification scan lock expired before the scan finished')


def run_scan():
    """
    Scheduled job to run hourly.
    Creates due-soon and overdue notifications and emails them when mail is configured.

    Ticks do not overlap: a tick that starts while another one still holds
    the lock is skipped. Each tick releases only its own lock, so a scan that
    outlives the lock timeout never frees a later tick's lock. Nothing is
    raised to the scheduler.
    """
    lock_timeout = settings.NOTIFICATION_SCAN_INTERVAL_MINUTES * 60
    token = uuid.uuid4().hex
    if not cache.add(SCAN_LOCK_KEY, token, timeout=lock_timeout):
        logger.warning('Notification scan already running, skipping this tick')
        return

    logger.info('🔔 Running notification checks...')
    try:
        report = build_scan_job().run()
        failed = [result.kind for result in report.results if result.failed]
        logger.info(
            f'Notification scan finished: {report.created} created'
            + (f', incomplete: {", ".join(failed)}' if failed else '')
        )
    except Exception:
        # The scheduler must keep scheduling future ticks
        logger.exception('Unexpected error during notification scan')
    finally:
        release_scan_lock(token)
