"""
Errors raised inside the notification scan.

None of these reach the scheduler: the scan job catches each one where it
happens, logs it and carries on with whatever work is still independent.
"""


class NotificationError(Exception):
    """Base class for notification scan failures."""


class QueryError(NotificationError):
    """A task or ledger read failed; the affected sub-scan stops for this tick."""


class StorageError(NotificationError):
    """Writing a notification failed; only that task is affected."""


class TransportError(NotificationError):
    """Sending an alert email failed. The stored notification is kept."""
