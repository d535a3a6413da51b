"""
TaskRepository and NotificationLedger against the database.
"""

from datetime import timedelta
from unittest import mock

from django.db import DatabaseError, InterfaceError
from django.test import TestCase
from django.utils import timezone

from apps.notifications.exceptions import QueryError, StorageError
from apps.notifications.models import Notification
from apps.notifications.policy import DedupPolicy
from apps.notifications.repositories import NotificationLedger, TaskRepository
from apps.tasks.models import Task

from .helpers import make_task, make_user


class TaskRepositoryTests(TestCase):

    def setUp(self):
        self.now = timezone.now().replace(microsecond=0)
        self.user = make_user()
        self.repository = TaskRepository()

    def ids(self, candidates):
        return [candidate.task_id for candidate in candidates]

    def test_due_soon_upper_bound_is_inclusive(self):
        edge = make_task(self.user, 'Edge', due_in=timedelta(hours=24), now=self.now)
        beyond = make_task(self.user, 'Beyond', due_in=timedelta(hours=24, seconds=1), now=self.now)

        found = self.ids(self.repository.query_due_soon(self.now))

        self.assertIn(edge.pk, found)
        self.assertNotIn(beyond.pk, found)

    def test_task_due_exactly_now_is_in_neither_window(self):
        task = make_task(self.user, due_in=timedelta(0), now=self.now)

        self.assertNotIn(task.pk, self.ids(self.repository.query_due_soon(self.now)))
        self.assertNotIn(task.pk, self.ids(self.repository.query_overdue(self.now)))

    def test_windows_are_disjoint(self):
        for hours in (-30, -1, 1, 23, 24, 25):
            make_task(self.user, f'T{hours}', due_in=timedelta(hours=hours), now=self.now)

        due_soon = set(self.ids(self.repository.query_due_soon(self.now)))
        overdue = set(self.ids(self.repository.query_overdue(self.now)))

        self.assertEqual(len(due_soon), 3)
        self.assertEqual(len(overdue), 2)
        self.assertFalse(due_soon & overdue)

    def test_completed_and_undated_tasks_are_excluded(self):
        make_task(self.user, 'Done soon', due_in=timedelta(hours=1), status=Task.Status.COMPLETED, now=self.now)
        make_task(self.user, 'Done late', due_in=timedelta(hours=-1), status=Task.Status.COMPLETED, now=self.now)
        make_task(self.user, 'Someday')
        in_progress = make_task(
            self.user, 'Started', due_in=timedelta(hours=-1), status=Task.Status.IN_PROGRESS, now=self.now,
        )

        self.assertEqual(self.repository.query_due_soon(self.now), [])
        self.assertEqual(self.ids(self.repository.query_overdue(self.now)), [in_progress.pk])

    def test_candidates_carry_owner_contact_details(self):
        task = make_task(
            self.user, 'Ship release', due_in=timedelta(hours=3), now=self.now,
            priority=Task.Priority.HIGH, description='Tag and upload',
        )

        candidate, = self.repository.query_due_soon(self.now)

        self.assertEqual(candidate.task_id, task.pk)
        self.assertEqual(candidate.user_id, self.user.pk)
        self.assertEqual(candidate.title, 'Ship release')
        self.assertEqual(candidate.description, 'Tag and upload')
        self.assertEqual(candidate.priority, 'high')
        self.assertEqual(candidate.due_date, self.now + timedelta(hours=3))
        self.assertEqual(candidate.user_email, 'ada@example.com')
        self.assertEqual(candidate.user_first_name, 'Ada')

    def test_first_name_falls_back_to_email_local_part(self):
        user = make_user(email='grace@example.com', first_name='', last_name='')
        make_task(user, due_in=timedelta(hours=-2), now=self.now)

        candidate, = self.repository.query_overdue(self.now)

        self.assertEqual(candidate.user_first_name, 'grace')

    def test_candidates_are_ordered_by_due_date(self):
        later = make_task(self.user, 'Later', due_in=timedelta(hours=5), now=self.now)
        sooner = make_task(self.user, 'Sooner', due_in=timedelta(hours=2), now=self.now)

        self.assertEqual(self.ids(self.repository.query_due_soon(self.now)), [sooner.pk, later.pk])

    def test_custom_lookahead(self):
        task = make_task(self.user, due_in=timedelta(hours=30), now=self.now)
        repository = TaskRepository(lookahead=timedelta(hours=48))

        self.assertEqual(self.ids(repository.query_due_soon(self.now)), [task.pk])

    def test_database_error_becomes_query_error(self):
        with mock.patch.object(Task.objects, 'due_soon', side_effect=DatabaseError('connection lost')):
            with self.assertRaises(QueryError) as ctx:
                self.repository.query_due_soon(self.now)

        self.assertIn('connection lost', str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, DatabaseError)

    def test_closed_connection_becomes_query_error(self):
        with mock.patch.object(Task.objects, 'overdue', side_effect=InterfaceError('connection already closed')):
            with self.assertRaises(QueryError) as ctx:
                self.repository.query_overdue(self.now)

        self.assertIsInstance(ctx.exception.__cause__, InterfaceError)


class NotificationLedgerTests(TestCase):

    def setUp(self):
        self.now = timezone.now().replace(microsecond=0)
        self.user = make_user()
        self.task = make_task(self.user, due_in=timedelta(hours=-1), now=self.now)
        self.ledger = NotificationLedger()

    def append(self, created_at, kind=Notification.Kind.TASK_OVERDUE):
        return self.ledger.append(
            self.user.pk, kind, 'Task Overdue', 'Your task "Write report" is overdue',
            self.task.pk, created_at=created_at,
        )

    def test_append_stores_unread_row(self):
        pk = self.append(self.now)

        notification = Notification.objects.get(pk=pk)
        self.assertEqual(notification.user, self.user)
        self.assertEqual(notification.type, Notification.Kind.TASK_OVERDUE)
        self.assertEqual(notification.related_id, self.task.pk)
        self.assertEqual(notification.created_at, self.now)
        self.assertFalse(notification.is_read)

    def test_append_defaults_created_at_to_now(self):
        before = timezone.now()
        pk = self.ledger.append(self.user.pk, Notification.Kind.TASK_DUE_SOON, 't', 'm', self.task.pk)

        self.assertGreaterEqual(Notification.objects.get(pk=pk).created_at, before)

    def test_has_recent_excludes_the_window_start(self):
        self.append(self.now - timedelta(hours=24))
        since = self.now - timedelta(hours=24)

        self.assertFalse(self.ledger.has_recent(self.user.pk, self.task.pk, Notification.Kind.TASK_OVERDUE, since))

    def test_has_recent_matches_inside_window(self):
        self.append(self.now - timedelta(hours=23, minutes=59))
        since = self.now - timedelta(hours=24)

        self.assertTrue(self.ledger.has_recent(self.user.pk, self.task.pk, Notification.Kind.TASK_OVERDUE, since))

    def test_has_recent_is_scoped_by_kind_and_user(self):
        self.append(self.now, kind=Notification.Kind.TASK_DUE_SOON)
        other = make_user(email='grace@example.com', first_name='Grace')
        since = self.now - timedelta(hours=24)

        self.assertFalse(self.ledger.has_recent(self.user.pk, self.task.pk, Notification.Kind.TASK_OVERDUE, since))
        self.assertFalse(self.ledger.has_recent(other.pk, self.task.pk, Notification.Kind.TASK_DUE_SOON, since))

    def test_read_state_does_not_affect_dedup(self):
        pk = self.append(self.now - timedelta(hours=1))
        Notification.objects.get(pk=pk).mark_read()
        policy = DedupPolicy(self.ledger)

        self.assertFalse(policy.should_notify(self.user.pk, self.task.pk, Notification.Kind.TASK_OVERDUE, self.now))

    def test_policy_notifies_again_once_window_has_passed(self):
        self.append(self.now - timedelta(hours=24))
        policy = DedupPolicy(self.ledger)

        self.assertTrue(policy.should_notify(self.user.pk, self.task.pk, Notification.Kind.TASK_OVERDUE, self.now))

    def test_append_failure_becomes_storage_error(self):
        with mock.patch.object(Notification.objects, 'create', side_effect=DatabaseError('disk full')):
            with self.assertRaises(StorageError):
                self.append(self.now)

        self.assertFalse(Notification.objects.exists())

    def test_lookup_failure_becomes_query_error(self):
        with mock.patch.object(Notification.objects, 'filter', side_effect=DatabaseError('timeout')):
            with self.assertRaises(QueryError):
                self.ledger.has_recent(self.user.pk, self.task.pk, Notification.Kind.TASK_OVERDUE, self.now)

    def test_closed_connection_on_append_becomes_storage_error(self):
        with mock.patch.object(
            Notification.objects, 'create', side_effect=InterfaceError('connection already closed'),
        ):
            with self.assertRaises(StorageError):
                self.append(self.now)
