"""
Deduplication policy for generated notifications.
"""

from datetime import datetime, timedelta


class DedupPolicy:
    """
    Decide whether a task needs a new notification of a given kind.

    A previous notification is recent when it was created inside the
    half-open window (now - window, now]. One created exactly `window` ago
    no longer counts, so the task is notified again.
    """

    def __init__(self, ledger, window: timedelta = timedelta(hours=24)):
        self.ledger = ledger
        self.window = window

    def is_recent(self, user_id: int, task_id: int, kind: str, now: datetime) -> bool:
        return self.ledger.has_recent(user_id, task_id, kind, since=now - self.window)

    def should_notify(self, user_id: int, task_id: int, kind: str, now: datetime) -> bool:
        return not self.is_recent(user_id, task_id, kind, now)
