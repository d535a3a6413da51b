"""
End-to-end scan runs: database-backed repository and ledger, Django mail.
"""

from datetime import timedelta
from unittest import mock

from django.core import mail
from django.db import IntegrityError, InterfaceError
from django.test import TestCase, override_settings
from django.utils import timezone

from apps.notifications.models import Notification
from apps.notifications.scan import build_scan_job
from apps.notifications.services import AlertDispatcher
from apps.tasks.models import Task

from .fakes import failing_connection
from .helpers import make_task, make_user

MAIL_ON = {'EMAIL_HOST_USER': 'planner-bot', 'EMAIL_HOST_PASSWORD': 'secret'}


class ScanFlowTestCase(TestCase):

    def setUp(self):
        self.now = timezone.now().replace(microsecond=0)
        self.user = make_user()


class MailDisabledFlowTests(ScanFlowTestCase):

    def test_due_soon_task_gets_notification_without_email(self):
        task = make_task(self.user, 'Write report', due_in=timedelta(hours=1), now=self.now)

        report = build_scan_job().run(now=self.now)

        notification = Notification.objects.get()
        self.assertEqual(notification.user, self.user)
        self.assertEqual(notification.type, Notification.Kind.TASK_DUE_SOON)
        self.assertEqual(notification.title, 'Task Due Soon')
        self.assertEqual(notification.message, 'Your task "Write report" is due in less than 24 hours')
        self.assertEqual(notification.related_id, task.pk)
        self.assertFalse(notification.is_read)
        self.assertEqual(report.created, 1)
        self.assertEqual(mail.outbox, [])

    def test_rescan_within_window_is_idempotent(self):
        make_task(self.user, due_in=timedelta(hours=1), now=self.now)
        make_task(self.user, 'Late', due_in=timedelta(hours=-3), now=self.now)
        job = build_scan_job()

        job.run(now=self.now)
        job.run(now=self.now + timedelta(minutes=10))
        job.run(now=self.now + timedelta(minutes=50))

        self.assertEqual(Notification.objects.count(), 2)

    def test_overdue_task_renotified_daily_until_completed(self):
        task = make_task(self.user, 'Pay rent', due_in=timedelta(days=-1), now=self.now)
        job = build_scan_job()

        job.run(now=self.now)
        job.run(now=self.now + timedelta(hours=24))
        self.assertEqual(Notification.objects.filter(type=Notification.Kind.TASK_OVERDUE).count(), 2)

        task.status = Task.Status.COMPLETED
        task.save()
        job.run(now=self.now + timedelta(hours=48))
        self.assertEqual(Notification.objects.count(), 2)

    def test_storage_failure_for_one_task_keeps_the_others(self):
        first = make_task(self.user, 'First', due_in=timedelta(hours=1), now=self.now)
        second = make_task(self.user, 'Second', due_in=timedelta(hours=2), now=self.now)
        create = Notification.objects.create

        def reject_first(**fields):
            if fields['related_id'] == first.pk:
                raise IntegrityError('constraint failed')
            return create(**fields)

        with mock.patch.object(Notification.objects, 'create', side_effect=reject_first):
            with self.assertLogs('apps.notifications.scan', level='ERROR'):
                report = build_scan_job().run(now=self.now)

        self.assertEqual(report.result_for(Notification.Kind.TASK_DUE_SOON).storage_failures, 1)
        self.assertEqual(
            list(Notification.objects.values_list('related_id', flat=True)),
            [second.pk],
        )


    def test_lost_connection_in_due_soon_scan_does_not_block_overdue_scan(self):
        make_task(self.user, 'Soon', due_in=timedelta(hours=1), now=self.now)
        late = make_task(self.user, 'Late', due_in=timedelta(hours=-1), now=self.now)

        with mock.patch.object(
            Task.objects, 'due_soon', side_effect=InterfaceError('connection already closed'),
        ):
            with self.assertLogs('apps.notifications.scan', level='ERROR'):
                report = build_scan_job().run(now=self.now)

        self.assertTrue(report.result_for(Notification.Kind.TASK_DUE_SOON).failed)
        self.assertFalse(report.result_for(Notification.Kind.TASK_OVERDUE).failed)
        self.assertEqual(
            list(Notification.objects.values_list('related_id', 'type')),
            [(late.pk, Notification.Kind.TASK_OVERDUE)],
        )


@override_settings(**MAIL_ON)
class MailEnabledFlowTests(ScanFlowTestCase):

    def test_alert_email_sent_after_notification(self):
        make_task(
            self.user, 'Write report', due_in=timedelta(hours=2), now=self.now,
            priority=Task.Priority.HIGH, description='Quarterly numbers',
        )

        report = build_scan_job().run(now=self.now)

        self.assertEqual(report.result_for(Notification.Kind.TASK_DUE_SOON).emails_sent, 1)
        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.subject, 'Task Due Soon - Task Manager')
        self.assertEqual(message.to, ['ada@example.com'])
        self.assertIn('Hello Ada,', message.body)
        self.assertIn('Write report', message.body)
        self.assertIn('Priority: High', message.body)
        self.assertIn('Quarterly numbers', message.body)
        html, mimetype = message.alternatives[0]
        self.assertEqual(mimetype, 'text/html')
        self.assertIn('<h3>Write report</h3>', html)

    def test_overdue_email_subject(self):
        make_task(self.user, 'Pay rent', due_in=timedelta(hours=-2), now=self.now)

        build_scan_job().run(now=self.now)

        self.assertEqual([m.subject for m in mail.outbox], ['Task Overdue - Task Manager'])
        self.assertIn('Your task is now overdue', mail.outbox[0].body)

    def test_deduplicated_task_is_not_emailed_again(self):
        make_task(self.user, due_in=timedelta(hours=2), now=self.now)
        job = build_scan_job()

        job.run(now=self.now)
        job.run(now=self.now + timedelta(minutes=30))

        self.assertEqual(len(mail.outbox), 1)

    def test_failed_send_keeps_notification(self):
        make_task(self.user, due_in=timedelta(hours=2), now=self.now)
        job = build_scan_job()
        job.dispatcher = AlertDispatcher(connection_factory=failing_connection)

        with self.assertLogs('apps.notifications', level='WARNING') as logs:
            report = job.run(now=self.now)

        result = report.result_for(Notification.Kind.TASK_DUE_SOON)
        self.assertEqual(result.created, 1)
        self.assertEqual(result.email_failures, 1)
        self.assertEqual(Notification.objects.count(), 1)
        self.assertTrue(any('Connection unexpectedly closed' in line for line in logs.output))
