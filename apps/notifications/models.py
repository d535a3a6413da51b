"""
Notification models.

A Notification is both the user's in-app inbox entry and the record the
notification scan consults to avoid notifying twice within the dedup window.
Content is fixed at creation; only the read flag changes afterwards.
"""

from django.db import models
from django.conf import settings
from django.utils import timezone


class NotificationQuerySet(models.QuerySet):

    def for_user(self, user):
        return self.filter(user=user)

    def unread(self):
        return self.filter(is_read=False)

    def mark_all_read(self):
        """Mark every unread notification in the queryset read. Returns the row count."""
        return self.unread().update(is_read=True)


class Notification(models.Model):
    """A single notification addressed to one user."""

    class Kind(models.TextChoices):
        TASK_DUE_SOON = 'task_due_soon', 'Task Due Soon'
        TASK_OVERDUE = 'task_overdue', 'Task Overdue'
        EVENT_REMINDER = 'event_reminder', 'Event Reminder'

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications',
    )
    type = models.CharField(
        max_length=50,
        choices=Kind.choices,
        db_index=True,
    )
    title = models.CharField(max_length=255)
    message = models.TextField()
    related_id = models.BigIntegerField(
        null=True,
        blank=True,
        help_text='Id of the related entity (the task for task_* kinds)'
    )
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    objects = NotificationQuerySet.as_manager()

    class Meta:
        verbose_name = 'notification'
        verbose_name_plural = 'notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'is_read'], name='notification_user_read_idx'),
            models.Index(
                fields=['user', 'related_id', 'type', 'created_at'],
                name='notification_dedup_idx',
            ),
        ]

    def __str__(self):
        return f"{self.title} → {self.user_id}"

    def mark_read(self):
        if not self.is_read:
            self.is_read = True
            self.save(update_fields=['is_read'])

    def to_dict(self):
        return {
            'id': self.pk,
            'user_id': self.user_id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'related_id': self.related_id,
            'is_read': self.is_read,
            'created_at': self.created_at.isoformat(),
        }
