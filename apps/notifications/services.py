"""
Service layer for notifications app.

Email alerts for generated notifications. Sending is best effort: the
notification row already exists when an alert is attempted, so a failed
send is logged and reported, never raised.
"""

import logging
import smtplib
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from django.conf import settings
from django.core.mail import EmailMultiAlternatives, get_connection
from django.template.loader import render_to_string

from .exceptions import TransportError
from .models import Notification

logger = logging.getLogger(__name__)


ALERT_SUBJECTS = {
    Notification.Kind.TASK_DUE_SOON: 'Task Due Soon - Task Manager',
    Notification.Kind.TASK_OVERDUE: 'Task Overdue - Task Manager',
}

ALERT_TEMPLATES = {
    Notification.Kind.TASK_DUE_SOON: 'notifications/emails/task_due_soon',
    Notification.Kind.TASK_OVERDUE: 'notifications/emails/task_overdue',
}


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of one alert email. `error` is set when `sent` is False."""

    sent: bool
    error: Optional[str] = None


def mail_is_configured():
    """Alerts are only attempted when SMTP credentials are present."""
    return bool(settings.EMAIL_HOST_USER and settings.EMAIL_HOST_PASSWORD)


def send_notification_email(to_email, subject, template_name, context,
                            connection=None, from_email=None):
    """
    Generic email sending function with HTML/text templates.

    Args:
        to_email: Recipient email address
        subject: Email subject
        template_name: Base template name (without extension)
        context: Template context dict
        connection: Mail backend connection (defaults to a new one)
        from_email: Sender email (defaults to DEFAULT_FROM_EMAIL)

    Raises:
        TransportError: If the mail backend fails to deliver the message
    """
    html_content = render_to_string(f'{template_name}.html', context)
    text_content = render_to_string(f'{template_name}.txt', context)

    email = EmailMultiAlternatives(
        subject=subject,
        body=text_content,
        from_email=from_email or settings.DEFAULT_FROM_EMAIL,
        to=[to_email],
        connection=connection,
    )
    email.attach_alternative(html_content, 'text/html')
    try:
        email.send()
    except (smtplib.SMTPException, OSError) as e:
        raise TransportError(f'Failed to send "{subject}" to {to_email}: {e}') from e


class AlertDispatcher:
    """
    Compose and send task alert emails.

    Each send opens its own connection with a bounded timeout so a slow
    mail server cannot hold up the scan.
    """

    def __init__(self, timeout=None, from_email=None, frontend_url=None,
                 connection_factory=get_connection):
        self.timeout = timeout if timeout is not None else settings.NOTIFICATION_EMAIL_TIMEOUT
        self.from_email = from_email or settings.DEFAULT_FROM_EMAIL
        self.frontend_url = frontend_url or settings.FRONTEND_URL
        self.connection_factory = connection_factory

    def send(self, kind: str, to_email: str, first_name: str, title: str,
             due_date: datetime, priority: str, description: str = '') -> DispatchResult:
        """Send one alert; always returns a DispatchResult."""
        context = {
            'first_name': first_name,
            'title': title,
            'due_date': due_date,
            'priority': priority,
            'description': description,
            'frontend_url': self.frontend_url,
        }
        try:
            connection = self.connection_factory(timeout=self.timeout)
            send_notification_email(
                to_email,
                ALERT_SUBJECTS[kind],
                ALERT_TEMPLATES[kind],
                context,
                connection=connection,
                from_email=self.from_email,
            )
        except Exception as e:
            # Log the error but don't raise - the notification is already stored
            logger.error(f'Failed to send {kind} email to {to_email}: {e}')
            return DispatchResult(sent=False, error=str(e))
        return DispatchResult(sent=True)


def build_dispatcher():
    """Return an AlertDispatcher, or None when outbound mail is not configured."""
    if not mail_is_configured():
        return None
    return AlertDispatcher()
