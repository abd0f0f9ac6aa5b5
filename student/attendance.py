"""
Attendance for live-course sessions.

A session's roster is every approved enrollment whose grant covers it:
full access covers every session, windows only their own range.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.db.models import Count, Q

from backend.exceptions import ValidationError
from courses.session_ordering import SessionOrdering
from .access_windows import accessible_sessions
from .models import Attendance, Enrollment

logger = logging.getLogger(__name__)

ATTENDANCE_STATUSES = ('present', 'absent')


def _session_summary(session, ordering):
    return {
        'id': str(session.id),
        'courseId': str(session.course_id),
        'courseTitle': session.course.title,
        'title': session.display_title,
        'date': session.date.isoformat(),
        'index': ordering.index_of(session.id),
    }


def attendance_rate(present, total):
    """Whole-number percentage of ``present`` out of ``total``, 0 when nobody is expected."""
    if not total:
        return 0
    rate = Decimal(present * 100) / Decimal(total)
    return int(rate.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def session_roster(session, ordering: SessionOrdering = None) -> list:
    """Students whose access covers ``session``, ordered by name."""
    ordering = ordering if ordering is not None else SessionOrdering.for_course(session.course)
    enrollments = (
        Enrollment.objects.filter(course_id=session.course_id, status='approved')
        .select_related('student', 'course')
        .prefetch_related('access_windows')
        .order_by('student__first_name', 'student__last_name', 'student__email')
    )
    roster = []
    for enrollment in enrollments:
        if any(allowed.id == session.id for allowed in accessible_sessions(enrollment, ordering)):
            roster.append(enrollment.student)
    return roster


def mark_attendance(session, records, recorded_by):
    """
    Record present/absent for several students of one session at once.

    ``records`` is ``[{'student_id', 'status'}]``. Every student must be
    on the session's roster; otherwise nothing is written.
    """
    with transaction.atomic():
        roster_ids = {student.id for student in session_roster(session)}
        outside = [record['student_id'] for record in records if record['student_id'] not in roster_ids]
        if outside:
            raise ValidationError(
                'Some students do not have access to this session',
                details={'studentIds': outside},
            )
        for record in records:
            Attendance.objects.update_or_create(
                session=session,
                student_id=record['student_id'],
                defaults={'status': record['status'], 'recorded_by': recorded_by},
            )

    logger.info(
        "Attendance for session %s recorded by %s: %s students",
        session.id, recorded_by.email, len(records),
    )
    return len(records)


def session_attendance(session) -> dict:
    """Roster of ``session`` with each student's mark and summary counts."""
    ordering = SessionOrdering.for_course(session.course)
    roster = session_roster(session, ordering)
    marks = dict(Attendance.objects.filter(session=session).values_list('student_id', 'status'))

    students = [
        {
            'studentId': student.id,
            'email': student.email,
            'fullName': student.get_full_name() or student.email,
            'status': marks.get(student.id),
        }
        for student in roster
    ]
    present = sum(1 for entry in students if entry['status'] == 'present')
    absent = sum(1 for entry in students if entry['status'] == 'absent')

    return {
        'session': _session_summary(session, ordering),
        'students': students,
        'statistics': {
            'totalStudents': len(students),
            'presentCount': present,
            'absentCount': absent,
            'notMarkedCount': len(students) - present - absent,
            'attendanceRate': attendance_rate(present, len(students)),
        },
    }


def course_attendance(course) -> dict:
    """Per-session attendance counts for every session of ``course``."""
    ordering = SessionOrdering.for_course(course)
    counts = {
        row['session_id']: row
        for row in Attendance.objects.filter(session__course=course)
        .values('session_id')
        .annotate(marked=Count('id'), present=Count('id', filter=Q(status='present')))
    }

    sessions = []
    for index, session in enumerate(ordering):
        row = counts.get(session.id, {})
        sessions.append({
            'id': str(session.id),
            'title': session.display_title,
            'date': session.date.isoformat(),
            'index': index,
            'markedCount': row.get('marked', 0),
            'presentCount': row.get('present', 0),
        })

    return {
        'course': {'id': str(course.id), 'title': course.title, 'type': course.type},
        'sessions': sessions,
        'totalSessions': len(ordering),
    }
