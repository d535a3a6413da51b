"""
Data access for the notification scan.

- TaskRepository: open tasks in the due-soon / overdue windows, joined with
  the owner's contact details
- NotificationLedger: dedup lookups and inserts of notification records

Both translate django.db.Error (DatabaseError and InterfaceError alike) into
the scan's own error types so the job can decide how far a failure reaches.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from django.db import Error as DjangoDBError, transaction

from apps.tasks.models import Task
from .exceptions import QueryError, StorageError
from .models import Notification


@dataclass(frozen=True)
class TaskCandidate:
    """A task matched by a scan, with what alerting needs about its owner."""

    task_id: int
    user_id: int
    title: str
    description: str
    due_date: datetime
    priority: str
    user_email: str
    user_first_name: str

    @classmethod
    def from_task(cls, task: Task) -> 'TaskCandidate':
        return cls(
            task_id=task.pk,
            user_id=task.user_id,
            title=task.title,
            description=task.description,
            due_date=task.due_date,
            priority=task.priority,
            user_email=task.user.email,
            user_first_name=task.user.get_short_name(),
        )


class TaskRepository:
    """Read-only access to tasks that qualify for a notification."""

    def __init__(self, lookahead: timedelta = timedelta(hours=24)):
        self.lookahead = lookahead

    def query_due_soon(self, now: datetime) -> List[TaskCandidate]:
        """Open tasks due in (now, now + lookahead]."""
        return self._fetch('due soon', Task.objects.due_soon, now, self.lookahead)

    def query_overdue(self, now: datetime) -> List[TaskCandidate]:
        """Open tasks with a due date before now."""
        return self._fetch('overdue', Task.objects.overdue, now)

    def _fetch(self, label: str, build_queryset, *args) -> List[TaskCandidate]:
        # Evaluate here so a failing query never yields a partial list to the caller
        try:
            queryset = build_queryset(*args)
            tasks = list(queryset.select_related('user').order_by('due_date', 'pk'))
        except DjangoDBError as e:
            raise QueryError(f'Failed to query {label} tasks: {e}') from e
        return [TaskCandidate.from_task(task) for task in tasks]


class NotificationLedger:
    """Append-only store of generated notifications."""

    def has_recent(self, user_id: int, task_id: int, kind: str, since: datetime) -> bool:
        """True if a `kind` notification for the task was created strictly after `since`."""
        try:
            return Notification.objects.filter(
                user_id=user_id,
                related_id=task_id,
                type=kind,
                created_at__gt=since,
            ).exists()
        except DjangoDBError as e:
            raise QueryError(
                f'Failed to look up {kind} notifications for task {task_id}: {e}'
            ) from e

    def append(
        self,
        user_id: int,
        kind: str,
        title: str,
        message: str,
        related_id: Optional[int],
        created_at: Optional[datetime] = None,
    ) -> int:
        """Insert one notification and return its id."""
        fields = {
            'user_id': user_id,
            'type': kind,
            'title': title,
            'message': message,
            'related_id': related_id,
        }
        if created_at is not None:
            fields['created_at'] = created_at
        try:
            # Own savepoint so a rejected row leaves any surrounding transaction usable
            with transaction.atomic():
                notification = Notification.objects.create(**fields)
        except DjangoDBError as e:
            raise StorageError(
                f'Failed to store {kind} notification for user {user_id}: {e}'
            ) from e
        return notification.pk
