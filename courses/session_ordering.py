"""
Index-based view over a live course's sessions.

A session's position is its zero-based index in the course's ordered
session list. Ranges are always inclusive index ranges; everything
that needs "which sessions between A and B" goes through
``SessionOrdering`` so the rule lives in one place.
"""
import logging
import uuid

from django.db import transaction
from django.db.models import Max, ProtectedError

from backend.exceptions import ConflictError, NotFoundError, ValidationError
from .models import Course, Session

logger = logging.getLogger(__name__)


class SessionRangeError(ValidationError):
    default_detail = 'Start session cannot be after end session'
    default_code = 'invalid_session_range'


def _as_uuid(value, label='Session'):
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(f'{label} ID must be a valid UUID')


class SessionOrdering:
    """
    Immutable, ordered snapshot of a course's sessions.

    Build it with ``SessionOrdering.for_course(course)``; mutations go
    through ``reindex_sessions``/``delete_session`` which hand back a
    fresh snapshot.
    """

    def __init__(self, sessions):
        self._sessions = tuple(sorted(sessions, key=lambda s: (s.order, s.date)))
        self._positions = {s.id: index for index, s in enumerate(self._sessions)}

    @classmethod
    def for_course(cls, course):
        return cls(Session.objects.filter(course=course).order_by('order'))

    def __len__(self):
        return len(self._sessions)

    def __iter__(self):
        return iter(self._sessions)

    def __getitem__(self, index):
        return self._sessions[index]

    @property
    def sessions(self):
        return list(self._sessions)

    @property
    def last_index(self):
        if not self._sessions:
            raise ValidationError('Course has no sessions')
        return len(self._sessions) - 1

    def index_of(self, session_id):
        """Zero-based position of ``session_id``; NotFoundError if it is not in this course."""
        key = _as_uuid(session_id)
        try:
            return self._positions[key]
        except KeyError:
            raise NotFoundError(f'Session {key} not found in this course')

    def slice_by_indices(self, start_index, end_index):
        if start_index < 0 or end_index >= len(self._sessions):
            raise ValidationError('Session index out of range')
        if start_index > end_index:
            raise SessionRangeError()
        return list(self._sessions[start_index:end_index + 1])

    def slice_by_ids(self, start_id, end_id):
        """Inclusive list of sessions from ``start_id`` through ``end_id``."""
        return self.slice_by_indices(self.index_of(start_id), self.index_of(end_id))


def reindex_sessions(course):
    """
    Renumber a course's sessions to 0..n-1 by (date, previous order).

    Must be called inside the transaction that changed the session set.
    Returns the new ``SessionOrdering``.
    """
    sessions = list(
        Session.objects.select_for_update()
        .filter(course=course)
        .order_by('date', 'order', 'created_at')
    )
    if not sessions:
        return SessionOrdering([])

    # Step 1: move everything past the current maximum so the unique
    # (course, order) constraint never sees two sessions on one slot
    offset = (max(s.order for s in sessions) or 0) + len(sessions) + 1
    for index, session in enumerate(sessions):
        session.order = offset + index
    Session.objects.bulk_update(sessions, ['order'])

    # Step 2: final contiguous positions
    for index, session in enumerate(sessions):
        session.order = index
    Session.objects.bulk_update(sessions, ['order'])

    return SessionOrdering(sessions)


def _lock_course(course_id):
    try:
        return Course.objects.select_for_update().get(id=course_id)
    except Course.DoesNotExist:
        raise NotFoundError('Course not found')


def create_session(course, date, title=''):
    """
    Add a session to a live course and re-index the course.
    """
    with transaction.atomic():
        course = _lock_course(course.id)
        if not course.is_live:
            raise ValidationError('Sessions can only be created for live courses')

        top = course.sessions.aggregate(top=Max('order'))['top']
        next_order = 0 if top is None else top + 1
        session = Session.objects.create(course=course, title=title or '', date=date, order=next_order)
        ordering = reindex_sessions(course)
        # Late joiners run to the end of the course, including new sessions
        from student.access_windows import sync_late_join_windows
        sync_late_join_windows(course)

    session.refresh_from_db()
    logger.info("Created session %s for course %s at index %s", session.id, course.id, session.order)
    return session, ordering


def update_session(session, **changes):
    """
    Change a session's title and/or date, re-indexing if the date moved.
    """
    with transaction.atomic():
        course = _lock_course(session.course_id)
        session = Session.objects.select_for_update().get(id=session.id)
        date_changed = 'date' in changes and changes['date'] != session.date
        if 'title' in changes:
            session.title = changes['title'] or ''
        if 'date' in changes:
            session.date = changes['date']
        session.save(update_fields=[field for field in ('title', 'date') if field in changes] + ['updated_at'])
        if date_changed:
            ordering = reindex_sessions(course)
            # Moving a session can invert or overlap existing access windows
            from student.access_windows import sync_late_join_windows, verify_course_windows
            sync_late_join_windows(course)
            verify_course_windows(course, ordering)
        else:
            ordering = SessionOrdering.for_course(course)

    session.refresh_from_db()
    return session, ordering


def delete_session(session):
    """
    Delete a session and renumber the remaining ones in one transaction.
    """
    with transaction.atomic():
        course = _lock_course(session.course_id)
        deleted_id = session.id
        from student.access_windows import sync_late_join_windows
        sync_late_join_windows(course, exclude_session_id=deleted_id)
        try:
            Session.objects.filter(id=deleted_id).delete()
        except ProtectedError:
            raise ConflictError('Session is the boundary of an access window; update or delete that window first')
        ordering = reindex_sessions(course)

    logger.info("Deleted session %s from course %s; %s sessions remain", deleted_id, course.id, len(ordering))
    return ordering


def delete_course(course):
    """
    Delete a course with its sessions, enrollments and access windows.
    Windows pin their boundary sessions, so they are removed first.
    """
    with transaction.atomic():
        course = _lock_course(course.id)
        from student.models import AccessWindow
        windows = AccessWindow.objects.filter(enrollment__course=course).delete()[0]
        course_id = course.id
        course.delete()

    logger.info("Deleted course %s with %s access windows", course_id, windows)
