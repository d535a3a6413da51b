"""
Shared builders for database-backed tests.
"""

from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.tasks.models import Task

User = get_user_model()


def make_user(email='ada@example.com', first_name='Ada', last_name='Lovelace', **extra):
    return User.objects.create_user(
        email=email,
        password='testpass123',
        first_name=first_name,
        last_name=last_name,
        **extra,
    )


def make_task(user, title='Write report', due_in=None, status=Task.Status.TODO, **extra):
    """Create a task due `due_in` (a timedelta) from `extra['now']` or the current time."""
    now = extra.pop('now', None) or timezone.now()
    return Task.objects.create(
        user=user,
        title=title,
        status=status,
        due_date=now + due_in if due_in is not None else None,
        **extra,
    )
