"""
Task management models.

Models:
- Task: A user's to-do item with priority, status and an optional due date
"""

from datetime import timedelta

from django.db import models
from django.conf import settings
from django.utils import timezone


class TaskQuerySet(models.QuerySet):
    """Due-date windows used by the notification scan."""

    def open(self):
        """Tasks that are not completed."""
        return self.exclude(status=Task.Status.COMPLETED)

    def due_soon(self, now, lookahead=timedelta(hours=24)):
        """Open tasks due in (now, now + lookahead]."""
        return self.open().filter(
            due_date__isnull=False,
            due_date__gt=now,
            due_date__lte=now + lookahead,
        )

    def overdue(self, now):
        """Open tasks whose due date has passed."""
        return self.open().filter(
            due_date__isnull=False,
            due_date__lt=now,
        )


class Task(models.Model):
    """
    Main Task model.

    Status workflow: todo → in_progress → completed
    Only non-completed tasks with a due date take part in notification scans.
    """

    class Status(models.TextChoices):
        TODO = 'todo', 'To Do'
        IN_PROGRESS = 'in_progress', 'In Progress'
        COMPLETED = 'completed', 'Completed'

    class Priority(models.TextChoices):
        LOW = 'low', 'Low'
        MEDIUM = 'medium', 'Medium'
        HIGH = 'high', 'High'

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='tasks',
        help_text='Owner of this task'
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)

    status = models.CharField(
        max_length=15,
        choices=Status.choices,
        default=Status.TODO,
        db_index=True,
    )
    priority = models.CharField(
        max_length=10,
        choices=Priority.choices,
        default=Priority.MEDIUM,
        db_index=True,
    )

    due_date = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text='Date and time when the task is due'
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TaskQuerySet.as_manager()

    class Meta:
        verbose_name = 'task'
        verbose_name_plural = 'tasks'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'user'], name='task_status_user_idx'),
            models.Index(fields=['due_date', 'status'], name='task_due_status_idx'),
        ]

    def __str__(self):
        return self.title

    # ==========================================================================
    # Status Properties
    # ==========================================================================

    @property
    def is_completed(self):
        return self.status == self.Status.COMPLETED

    @property
    def is_overdue(self):
        """Check if task is past its due date and not completed."""
        return self.is_overdue_at(timezone.now())

    def is_overdue_at(self, now):
        if not self.due_date or self.is_completed:
            return False
        return self.due_date < now

    def is_due_soon(self, now=None, lookahead=timedelta(hours=24)):
        """Check if task falls due within the lookahead window after now."""
        if not self.due_date or self.is_completed:
            return False
        now = now or timezone.now()
        return now < self.due_date <= now + lookahead
