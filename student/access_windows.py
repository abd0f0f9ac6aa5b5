"""
Access window engine for live courses.

An enrollment's grant is one of three explicit shapes:

    FullAccess()                       every session, full course price
    PartialAccess(start, end)          an inclusive session range
    LateJoinAccess(start)              from ``start`` through the last session

Only partial and late-join grants are stored (as ``AccessWindow`` rows);
``resolve_grants`` turns "no rows" back into ``FullAccess`` so callers
never have to treat absence as a sentinel.

All indices are zero-based positions from ``SessionOrdering``. Ranges are
inclusive; two ranges conflict unless they are disjoint, so [0, 2] and
[3, 5] do not conflict while [0, 3] and [3, 5] do.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

from django.db import transaction

from backend.exceptions import ConflictError, NotFoundError, ValidationError
from courses.price_calculator import (
    calculate_full_access_price,
    calculate_price_per_session,
    calculate_window_price,
    template_multiplier,
)
from courses.session_ordering import SessionOrdering
from .models import AccessWindow, Enrollment

logger = logging.getLogger(__name__)

# Windows covering more than this share of the course get an advisory warning
FULL_ACCESS_HINT_RATIO = 0.8
FULL_ACCESS_HINT = 'This access window covers most of the course - consider full access instead'

ACCESS_TYPES = ('full', 'partial', 'late_join')


@dataclass(frozen=True)
class FullAccess:
    access_type = 'full'


@dataclass(frozen=True)
class PartialAccess:
    start_session_id: object
    end_session_id: object
    access_type = 'partial'


@dataclass(frozen=True)
class LateJoinAccess:
    start_session_id: object
    access_type = 'late_join'


AccessGrant = Union[FullAccess, PartialAccess, LateJoinAccess]


def parse_grant(access_type, start_session_id=None, end_session_id=None) -> AccessGrant:
    """
    Build a grant from request values. Late joiners always run to the end
    of the course, so any end session sent with ``late_join`` is ignored.
    """
    if access_type == 'full':
        return FullAccess()
    if access_type == 'partial':
        if not start_session_id or not end_session_id:
            raise ValidationError('Partial access requires both startSessionId and endSessionId')
        return PartialAccess(start_session_id, end_session_id)
    if access_type == 'late_join':
        if not start_session_id:
            raise ValidationError('Late join access requires startSessionId')
        return LateJoinAccess(start_session_id)
    raise ValidationError(
        f"Unknown access type '{access_type}'",
        details={'allowed': list(ACCESS_TYPES)},
    )


# ===== CONFLICT DETECTION =====

def ranges_overlap(first: Tuple[int, int], second: Tuple[int, int]) -> bool:
    return first[0] <= second[1] and first[1] >= second[0]


def has_conflict(candidate: Tuple[int, int], existing: Sequence[Tuple[int, int]]) -> bool:
    """
    True if ``candidate`` overlaps any of ``existing``. Callers pass only
    the ranges of one enrollment; windows of different enrollments never
    conflict.
    """
    return any(ranges_overlap(candidate, other) for other in existing)


def find_conflicts(candidate: Tuple[int, int], existing: Sequence[Tuple[int, int]]) -> List[int]:
    """Positions in ``existing`` that overlap ``candidate``."""
    return [position for position, other in enumerate(existing) if ranges_overlap(candidate, other)]


# ===== CALCULATION =====

@dataclass
class AccessWindowQuote:
    """Derived view of a grant against a course's current sessions."""
    access_type: str
    start_index: int
    end_index: int
    sessions: list
    total_sessions: int
    price_per_session: Optional[int]
    calculated_price: Optional[object]
    template: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def session_count(self):
        return self.end_index - self.start_index + 1

    @property
    def index_range(self):
        return (self.start_index, self.end_index)

    def as_dict(self):
        start = self.sessions[0] if self.sessions else None
        end = self.sessions[-1] if self.sessions else None
        calculated_price = self.calculated_price
        if calculated_price is not None and not isinstance(calculated_price, int):
            calculated_price = float(calculated_price)
        return {
            'accessType': self.access_type,
            'startSessionId': str(start.id) if start else None,
            'endSessionId': str(end.id) if end else None,
            'startIndex': self.start_index,
            'endIndex': self.end_index,
            'sessionCount': self.session_count,
            'totalSessions': self.total_sessions,
            'accessibleSessions': [
                {
                    'id': str(session.id),
                    'title': session.display_title,
                    'date': session.date.isoformat(),
                    'index': self.start_index + offset,
                }
                for offset, session in enumerate(self.sessions)
            ],
            'pricePerSession': self.price_per_session,
            'calculatedPrice': calculated_price,
            'template': self.template,
            'warnings': list(self.warnings),
        }


class AccessWindowCalculator:
    """
    Resolves grants to session ranges and prices for one course.
    """

    def __init__(self, course, ordering: SessionOrdering = None):
        self.course = course
        self.ordering = ordering if ordering is not None else SessionOrdering.for_course(course)

    def resolve_range(self, grant: AccessGrant) -> Tuple[int, int]:
        if isinstance(grant, FullAccess):
            if not len(self.ordering):
                return (0, -1)
            return (0, self.ordering.last_index)

        if not self.course.is_live:
            raise ValidationError('Finished courses only support full access')
        if not len(self.ordering):
            raise ValidationError('Course has no sessions')

        if isinstance(grant, PartialAccess):
            start_index = self.ordering.index_of(grant.start_session_id)
            end_index = self.ordering.index_of(grant.end_session_id)
            # raises SessionRangeError when start is after end
            self.ordering.slice_by_indices(start_index, end_index)
            return (start_index, end_index)

        if isinstance(grant, LateJoinAccess):
            return (self.ordering.index_of(grant.start_session_id), self.ordering.last_index)

        raise ValidationError('Unsupported access grant')

    def quote(self, grant: AccessGrant, template: str = None) -> AccessWindowQuote:
        """
        Session subset, count and price for ``grant``.

        Late-join grants use the late_join discount unless another
        template is given explicitly.
        """
        start_index, end_index = self.resolve_range(grant)
        total = len(self.ordering)
        sessions = self.ordering.sessions[start_index:end_index + 1] if total else []

        if isinstance(grant, FullAccess):
            if template is not None:
                raise ValidationError('Pricing templates do not apply to full access')
            price = None if self.course.price is None else calculate_full_access_price(self.course.price)
            per_session = None
            if self.course.price is not None and total:
                per_session = calculate_price_per_session(self.course.price, total)
            return AccessWindowQuote(
                access_type='full',
                start_index=start_index,
                end_index=end_index,
                sessions=sessions,
                total_sessions=total,
                price_per_session=per_session,
                calculated_price=price,
            )

        if template is None and isinstance(grant, LateJoinAccess):
            template = 'late_join'
        template_multiplier(template)

        quote = AccessWindowQuote(
            access_type=grant.access_type,
            start_index=start_index,
            end_index=end_index,
            sessions=sessions,
            total_sessions=total,
            price_per_session=None,
            calculated_price=None,
            template=template,
        )

        # An unpriced live course yields an unpriced window, never a zero price
        if self.course.price is not None:
            pricing = calculate_window_price(self.course.price, total, quote.session_count, template)
            quote.price_per_session = pricing['price_per_session']
            quote.calculated_price = pricing['calculated_price']

        if quote.session_count / total > FULL_ACCESS_HINT_RATIO:
            quote.warnings.append(FULL_ACCESS_HINT)
            logger.info(
                "Window %s-%s covers %s of %s sessions of course %s",
                start_index, end_index, quote.session_count, total, self.course.id,
            )
        return quote

    def quote_window(self, window: AccessWindow) -> AccessWindowQuote:
        """Derived fields for a stored window."""
        return self.quote(grant_for_window(window), template=window.template)


def grant_for_window(window: AccessWindow) -> AccessGrant:
    if window.access_type == 'late_join':
        return LateJoinAccess(window.start_session_id)
    return PartialAccess(window.start_session_id, window.end_session_id)


def window_range(window: AccessWindow, ordering: SessionOrdering) -> Tuple[int, int]:
    start_index = ordering.index_of(window.start_session_id)
    if window.access_type == 'late_join':
        return (start_index, ordering.last_index)
    return (start_index, ordering.index_of(window.end_session_id))


def resolve_grants(enrollment: Enrollment) -> List[AccessGrant]:
    """
    The enrollment's grants; ``[FullAccess()]`` when nothing narrows it.
    """
    if not enrollment.course.is_live:
        return [FullAccess()]
    windows = list(enrollment.access_windows.all())
    if not windows:
        return [FullAccess()]
    return [grant_for_window(window) for window in windows]


def accessible_sessions(enrollment: Enrollment, ordering: SessionOrdering = None) -> list:
    """
    Sessions the enrollment may open, in course order. Pending or
    rejected enrollments see nothing.
    """
    if not enrollment.is_approved:
        return []
    ordering = ordering if ordering is not None else SessionOrdering.for_course(enrollment.course)
    grants = resolve_grants(enrollment)
    if any(isinstance(grant, FullAccess) for grant in grants):
        return ordering.sessions

    calculator = AccessWindowCalculator(enrollment.course, ordering)
    allowed = set()
    for grant in grants:
        start_index, end_index = calculator.resolve_range(grant)
        allowed.update(range(start_index, end_index + 1))
    return [session for index, session in enumerate(ordering) if index in allowed]


# ===== PERSISTENCE =====

def _lock_enrollment(enrollment_id) -> Enrollment:
    try:
        return Enrollment.objects.select_for_update().select_related('course').get(id=enrollment_id)
    except Enrollment.DoesNotExist:
        raise NotFoundError('Enrollment not found')


def _existing_ranges(enrollment, ordering, exclude_id=None):
    windows = AccessWindow.objects.filter(enrollment=enrollment)
    if exclude_id is not None:
        windows = windows.exclude(id=exclude_id)
    return [window_range(window, ordering) for window in windows]


def _check_conflicts(enrollment, quote, ordering, exclude_id=None):
    existing = _existing_ranges(enrollment, ordering, exclude_id=exclude_id)
    overlapping = find_conflicts(quote.index_range, existing)
    if overlapping:
        raise ConflictError(
            'Access window overlaps with existing window',
            details={'conflictingRanges': [list(existing[position]) for position in overlapping]},
        )


def _store_window(enrollment, grant, quote) -> AccessWindow:
    window = AccessWindow.objects.create(
        enrollment=enrollment,
        start_session=quote.sessions[0],
        end_session=quote.sessions[-1],
        access_type=grant.access_type,
        template=quote.template,
    )
    logger.info(
        "Created %s access window %s for enrollment %s: sessions %s-%s, price %s",
        grant.access_type, window.id, enrollment.id,
        quote.start_index, quote.end_index, quote.calculated_price,
    )
    return window


def _grant_on_locked_enrollment(enrollment, grant, template=None):
    ordering = SessionOrdering.for_course(enrollment.course)
    calculator = AccessWindowCalculator(enrollment.course, ordering)
    quote = calculator.quote(grant, template=template)

    if isinstance(grant, FullAccess):
        if AccessWindow.objects.filter(enrollment=enrollment).exists():
            raise ConflictError('Enrollment has access windows; delete them to grant full access')
        return quote, None

    _check_conflicts(enrollment, quote, ordering)
    return quote, _store_window(enrollment, grant, quote)


def preview_access_window(enrollment, grant, template=None) -> dict:
    """
    Quote a grant for an enrollment without writing anything.
    """
    ordering = SessionOrdering.for_course(enrollment.course)
    quote = AccessWindowCalculator(enrollment.course, ordering).quote(grant, template=template)
    conflicts = []
    if not isinstance(grant, FullAccess):
        existing = _existing_ranges(enrollment, ordering)
        conflicts = [list(existing[position]) for position in find_conflicts(quote.index_range, existing)]
    data = quote.as_dict()
    data['hasConflict'] = bool(conflicts)
    data['conflictingRanges'] = conflicts
    return data


def create_access_window(enrollment, grant: AccessGrant, template: str = None):
    """
    Grant ``enrollment`` access. The enrollment row is locked for the
    conflict check and insert so two concurrent requests cannot both
    create overlapping windows.

    Returns ``(quote, window)``; ``window`` is None for full access.
    """
    with transaction.atomic():
        enrollment = _lock_enrollment(enrollment.id)
        if not enrollment.is_approved:
            raise ValidationError('Access windows can only be created for approved enrollments')
        return _grant_on_locked_enrollment(enrollment, grant, template)


def update_access_window(window: AccessWindow, start_session_id=None, end_session_id=None, template=...):
    """
    Move a window's boundaries and re-run conflict detection and pricing.
    ``template`` is left unchanged unless passed explicitly.
    """
    with transaction.atomic():
        enrollment = _lock_enrollment(window.enrollment_id)
        try:
            window = AccessWindow.objects.select_for_update().get(id=window.id)
        except AccessWindow.DoesNotExist:
            raise NotFoundError('Access window not found')

        new_start = start_session_id or window.start_session_id
        if window.access_type == 'late_join':
            grant = LateJoinAccess(new_start)
        else:
            grant = PartialAccess(new_start, end_session_id or window.end_session_id)
        new_template = window.template if template is ... else template

        ordering = SessionOrdering.for_course(enrollment.course)
        quote = AccessWindowCalculator(enrollment.course, ordering).quote(grant, template=new_template)
        _check_conflicts(enrollment, quote, ordering, exclude_id=window.id)

        window.start_session = quote.sessions[0]
        window.end_session = quote.sessions[-1]
        window.template = quote.template
        window.save(update_fields=['start_session', 'end_session', 'template', 'updated_at'])

    logger.info(
        "Updated access window %s: sessions %s-%s, price %s",
        window.id, quote.start_index, quote.end_index, quote.calculated_price,
    )
    return quote, window


def delete_access_window(window: AccessWindow):
    with transaction.atomic():
        _lock_enrollment(window.enrollment_id)
        deleted = AccessWindow.objects.filter(id=window.id).delete()[0]
    if not deleted:
        raise NotFoundError('Access window not found')
    logger.info("Deleted access window %s of enrollment %s", window.id, window.enrollment_id)


def approve_enrollment(enrollment, grant: AccessGrant, decided_by, template: str = None):
    """
    Approve a pending enrollment and, for narrowed live-course grants,
    create its access window in the same transaction.
    """
    with transaction.atomic():
        enrollment = _lock_enrollment(enrollment.id)
        if enrollment.status != 'pending':
            raise ValidationError(f'Only pending enrollments can be approved (status is {enrollment.status})')
        if not enrollment.course.is_live and not isinstance(grant, FullAccess):
            raise ValidationError('Finished courses only support full access')

        enrollment.mark_decided('approved', decided_by)
        quote, window = _grant_on_locked_enrollment(enrollment, grant, template)

    logger.info("Enrollment %s approved by %s with %s access", enrollment.id, decided_by.email, grant.access_type)
    return enrollment, quote, window


def reject_enrollment(enrollment, decided_by):
    with transaction.atomic():
        enrollment = _lock_enrollment(enrollment.id)
        if enrollment.status != 'pending':
            raise ValidationError(f'Only pending enrollments can be rejected (status is {enrollment.status})')
        enrollment.mark_decided('rejected', decided_by)
    logger.info("Enrollment %s rejected by %s", enrollment.id, decided_by.email)
    return enrollment


# ===== COURSE-LEVEL MAINTENANCE =====

def sync_late_join_windows(course, exclude_session_id=None):
    """
    Point every late-join window of ``course`` at the course's last
    session (ignoring ``exclude_session_id``, which is about to go away).
    """
    sessions = course.sessions.order_by('order')
    if exclude_session_id is not None:
        sessions = sessions.exclude(id=exclude_session_id)
    last = sessions.last()
    if last is None:
        return 0
    return AccessWindow.objects.filter(
        enrollment__course=course,
        access_type='late_join',
    ).exclude(end_session=last).update(end_session=last)


def verify_course_windows(course, ordering: SessionOrdering):
    """
    Re-check every enrollment's windows after the session order changed.
    Raises ConflictError (rolling back the caller's transaction) if a
    window became inverted or two windows of one enrollment now overlap.
    """
    by_enrollment = {}
    for window in AccessWindow.objects.filter(enrollment__course=course):
        start_index, end_index = window_range(window, ordering)
        if start_index > end_index:
            raise ConflictError('Change would put an access window\'s start after its end')
        by_enrollment.setdefault(window.enrollment_id, []).append((start_index, end_index))

    for ranges in by_enrollment.values():
        for position, current in enumerate(ranges):
            if has_conflict(current, ranges[position + 1:]):
                raise ConflictError('Change would make access windows of one enrollment overlap')
