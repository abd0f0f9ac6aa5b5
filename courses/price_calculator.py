"""
Utility functions for calculating access-window prices
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

from backend.exceptions import ValidationError


# Discount multipliers applied to the per-session price of a window
# created from one of the admin templates. Fixed policy, not per course.
TEMPLATE_MULTIPLIERS = {
    'late_join': Decimal('0.85'),
    'sample': Decimal('0.70'),
    'intensive': Decimal('0.90'),
}


def round_half_up(value) -> int:
    """Round to the nearest whole currency unit, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _to_decimal(course_price) -> Decimal:
    if course_price is None:
        raise ValidationError('Course has no price; cannot calculate access window price')
    try:
        price = Decimal(str(course_price))
    except (InvalidOperation, ValueError):
        raise ValidationError('Course price is not a valid number')
    if price < 0:
        raise ValidationError('Course price cannot be negative')
    return price


def template_multiplier(template) -> Decimal:
    if template is None:
        return Decimal('1')
    try:
        return TEMPLATE_MULTIPLIERS[template]
    except KeyError:
        raise ValidationError(
            f"Unknown pricing template '{template}'",
            details={'allowed': sorted(TEMPLATE_MULTIPLIERS)},
        )


def calculate_price_per_session(course_price, total_sessions: int, template: str = None) -> int:
    """
    Per-session price for a course.

    Logic:
    1. round(course_price / total_sessions)
    2. If a template discount applies: round(step 1 * multiplier)

    Example:
        >>> calculate_price_per_session(1000, 8)
        125
        >>> calculate_price_per_session(1000, 8, 'late_join')
        106
    """
    price = _to_decimal(course_price)
    if total_sessions is None or total_sessions <= 0:
        raise ValidationError('Course has no sessions; cannot calculate per-session price')

    per_session = round_half_up(price / Decimal(total_sessions))
    multiplier = template_multiplier(template)
    if multiplier != 1:
        per_session = round_half_up(Decimal(per_session) * multiplier)
    return per_session


def calculate_window_price(course_price, total_sessions: int, session_count: int, template: str = None) -> dict:
    """
    Price of an access window covering ``session_count`` sessions.

    The per-session price is rounded first and then multiplied by the
    count; the result is therefore not guaranteed to add up to the full
    course price.

    Returns:
        dict: {
            'price_per_session': int,
            'session_count': int,
            'calculated_price': int,
            'template': str | None,
        }
    """
    if session_count is None or session_count <= 0:
        raise ValidationError('An access window must cover at least one session')
    if total_sessions is not None and session_count > total_sessions:
        raise ValidationError('Access window cannot cover more sessions than the course has')

    per_session = calculate_price_per_session(course_price, total_sessions, template)
    return {
        'price_per_session': per_session,
        'session_count': session_count,
        'calculated_price': per_session * session_count,
        'template': template,
    }


def calculate_full_access_price(course_price) -> Decimal:
    """Full access costs exactly the course price."""
    return _to_decimal(course_price)
