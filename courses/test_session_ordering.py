from datetime import timedelta
import uuid

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone

from backend.exceptions import NotFoundError, ValidationError
from .models import Course, Session
from .session_ordering import (
    SessionOrdering,
    SessionRangeError,
    create_session,
    delete_session,
    update_session,
)

User = get_user_model()


class SessionOrderingTestCase(TestCase):
    """
    Index-based ordering of a live course's sessions
    """

    def setUp(self):
        self.admin = User.objects.create_user(email='admin@test.com', password='testpass123', role='admin')
        self.course = Course.objects.create(
            title='SAT Verbal', type='live', price=1000, status='published', created_by=self.admin
        )
        self.start = timezone.now() + timedelta(days=1)

    def _add(self, day, title=''):
        session, _ = create_session(self.course, date=self.start + timedelta(days=day), title=title)
        return session

    def test_sessions_are_indexed_by_date(self):
        third = self._add(3, 'Third')
        first = self._add(1, 'First')
        second = self._add(2, 'Second')

        ordering = SessionOrdering.for_course(self.course)
        self.assertEqual([s.id for s in ordering], [first.id, second.id, third.id])
        self.assertEqual([s.order for s in ordering], [0, 1, 2])
        self.assertEqual(ordering.index_of(second.id), 1)
        self.assertEqual(ordering.index_of(str(third.id)), 2)

    def test_slice_by_ids_is_inclusive(self):
        sessions = [self._add(day) for day in range(6)]
        ordering = SessionOrdering.for_course(self.course)

        sliced = ordering.slice_by_ids(sessions[1].id, sessions[4].id)
        self.assertEqual([s.id for s in sliced], [s.id for s in sessions[1:5]])
        self.assertEqual(len(ordering.slice_by_ids(sessions[2].id, sessions[2].id)), 1)

    def test_slice_with_start_after_end_is_a_range_error(self):
        sessions = [self._add(day) for day in range(3)]
        ordering = SessionOrdering.for_course(self.course)

        with self.assertRaises(SessionRangeError):
            ordering.slice_by_ids(sessions[2].id, sessions[0].id)

    def test_unknown_session_is_not_found(self):
        self._add(0)
        ordering = SessionOrdering.for_course(self.course)

        with self.assertRaises(NotFoundError):
            ordering.index_of(uuid.uuid4())
        with self.assertRaises(ValidationError):
            ordering.index_of('not-a-uuid')

    def test_session_of_another_course_is_not_found(self):
        self._add(0)
        other = Course.objects.create(title='SAT Math', type='live', price=500, created_by=self.admin)
        foreign, _ = create_session(other, date=self.start)

        with self.assertRaises(NotFoundError):
            SessionOrdering.for_course(self.course).index_of(foreign.id)

    def test_delete_renumbers_remaining_sessions(self):
        sessions = [self._add(day) for day in range(5)]

        ordering = delete_session(sessions[1])

        self.assertEqual(len(ordering), 4)
        orders = list(Session.objects.filter(course=self.course).order_by('order').values_list('order', flat=True))
        self.assertEqual(orders, [0, 1, 2, 3])
        self.assertEqual(ordering.index_of(sessions[2].id), 1)
        self.assertFalse(Session.objects.filter(id=sessions[1].id).exists())

    def test_moving_a_session_date_reorders(self):
        first = self._add(1)
        second = self._add(2)
        third = self._add(3)

        _, ordering = update_session(first, date=self.start + timedelta(days=10))

        self.assertEqual([s.id for s in ordering], [second.id, third.id, first.id])

    def test_display_title_defaults_to_position(self):
        self._add(0, 'Orientation')
        untitled = self._add(1)

        ordering = SessionOrdering.for_course(self.course)
        self.assertEqual(ordering[1].id, untitled.id)
        self.assertEqual(ordering[1].display_title, 'Session 2')
        self.assertEqual(ordering[0].display_title, 'Orientation')

    def test_finished_course_cannot_have_sessions(self):
        finished = Course.objects.create(title='Recorded SAT', type='finished', price=800, created_by=self.admin)

        with self.assertRaises(ValidationError):
            create_session(finished, date=self.start)

    def test_last_index_of_empty_course(self):
        with self.assertRaises(ValidationError):
            SessionOrdering.for_course(self.course).last_index
