"""
Notification scan job.

One tick runs two independent sub-scans:
- due soon: open tasks due within the lookahead window
- overdue: open tasks whose due date has passed

For every matching task the job checks the dedup policy, writes the
notification to the ledger and only then attempts the alert email. The
order matters: a failed or interrupted email can lose the alert, never the
in-app notification.

Failures stay where they happen:
- QueryError, or any unexpected exception, stops the affected sub-scan;
  the other one still runs
- StorageError skips one task, the loop continues
- a failed email is logged and counted, the notification stays
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from django.conf import settings
from django.utils import timezone

from .exceptions import QueryError, StorageError
from .models import Notification
from .policy import DedupPolicy
from .repositories import NotificationLedger, TaskCandidate, TaskRepository
from .services import build_dispatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubScan:
    """What differs between the due-soon and overdue scans."""

    kind: str
    title: str
    message_template: str
    query: Callable[[datetime], List[TaskCandidate]]

    def message_for(self, candidate: TaskCandidate) -> str:
        return self.message_template.format(title=candidate.title)


@dataclass
class SubScanResult:
    kind: str
    candidates: int = 0
    created: int = 0
    skipped: int = 0
    storage_failures: int = 0
    emails_sent: int = 0
    email_failures: int = 0
    error: Optional[str] = None

    @property
    def failed(self):
        return self.error is not None


@dataclass
class ScanReport:
    started_at: datetime
    results: List[SubScanResult] = field(default_factory=list)

    @property
    def created(self):
        return sum(result.created for result in self.results)

    def result_for(self, kind):
        for result in self.results:
            if result.kind == kind:
                return result
        return None


class NotificationScanJob:
    """
    Generate due-soon and overdue notifications for one point in time.

    Collaborators are injected so the job can run against in-memory fakes.
    `dispatcher` is None when outbound mail is disabled; no send is then
    attempted at all.
    """

    def __init__(self, repository, ledger, policy, dispatcher=None, clock=timezone.now):
        self.repository = repository
        self.ledger = ledger
        self.policy = policy
        self.dispatcher = dispatcher
        self.clock = clock
        self.sub_scans = [
            SubScan(
                kind=Notification.Kind.TASK_DUE_SOON,
                title='Task Due Soon',
                message_template='Your task "{title}" is due in less than 24 hours',
                query=repository.query_due_soon,
            ),
            SubScan(
                kind=Notification.Kind.TASK_OVERDUE,
                title='Task Overdue',
                message_template='Your task "{title}" is overdue',
                query=repository.query_overdue,
            ),
        ]

    def run(self, now=None) -> ScanReport:
        """Run both sub-scans for `now` (defaults to the clock). Never raises."""
        now = now or self.clock()
        report = ScanReport(started_at=now)
        for sub_scan in self.sub_scans:
            report.results.append(self.run_sub_scan(sub_scan, now))
        return report

    def run_sub_scan(self, sub_scan: SubScan, now: datetime) -> SubScanResult:
        result = SubScanResult(kind=sub_scan.kind)
        try:
            candidates = sub_scan.query(now)
            result.candidates = len(candidates)
            for candidate in candidates:
                self._handle_candidate(sub_scan, candidate, now, result)
        except QueryError as e:
            result.error = str(e)
            logger.error(f'Error checking {sub_scan.kind} tasks: {e}')
            return result
        except Exception as e:
            # Contained here so the remaining sub-scans still run this tick
            result.error = f'{e.__class__.__name__}: {e}'
            logger.exception(f'Unexpected error checking {sub_scan.kind} tasks')
            return result

        if result.created > 0:
            logger.info(
                f'Created {result.created} "{sub_scan.kind}" notifications '
                f'({result.skipped} skipped, {result.storage_failures} failed, '
                f'{result.emails_sent} emails sent, {result.email_failures} email failures)'
            )
        return result

    def _handle_candidate(self, sub_scan, candidate, now, result):
        if self.policy.is_recent(candidate.user_id, candidate.task_id, sub_scan.kind, now):
            result.skipped += 1
            return

        try:
            notification_id = self.ledger.append(
                candidate.user_id,
                sub_scan.kind,
                sub_scan.title,
                sub_scan.message_for(candidate),
                candidate.task_id,
                created_at=now,
            )
        except StorageError as e:
            result.storage_failures += 1
            logger.error(f'Skipping task {candidate.task_id}: {e}')
            return

        result.created += 1
        logger.debug(
            f'Notification {notification_id} ({sub_scan.kind}) created for task {candidate.task_id}'
        )

        if self.dispatcher is None:
            return

        dispatch = self.dispatcher.send(
            sub_scan.kind,
            to_email=candidate.user_email,
            first_name=candidate.user_first_name,
            title=candidate.title,
            due_date=candidate.due_date,
            priority=candidate.priority,
            description=candidate.description,
        )
        if dispatch.sent:
            result.emails_sent += 1
        else:
            result.email_failures += 1
            logger.warning(
                f'Notification {notification_id} kept without email for task '
                f'{candidate.task_id}: {dispatch.error}'
            )


def build_scan_job():
    """Wire the job to the ORM-backed repository and ledger and the configured mail."""
    ledger = NotificationLedger()
    return NotificationScanJob(
        repository=TaskRepository(
            lookahead=timedelta(hours=settings.NOTIFICATION_LOOKAHEAD_HOURS),
        ),
        ledger=ledger,
        policy=DedupPolicy(
            ledger,
            window=timedelta(hours=settings.NOTIFICATION_DEDUP_WINDOW_HOURS),
        ),
        dispatcher=build_dispatcher(),
    )
