"""
Preset access windows an admin can pick from when approving an enrollment
on a live course.
"""
from courses.session_ordering import SessionOrdering
from .access_windows import AccessWindowCalculator, FullAccess, LateJoinAccess, PartialAccess


def _template_ranges(total):
    """(template id, name, description, access type, start, end, pricing template)"""
    monthly = min(4, total)
    intensive = min(8, total)
    intensive_start = max(0, total // 2 - intensive // 2)
    intensive_end = min(total - 1, intensive_start + intensive - 1)
    exam = min(3, total)
    sample = min(2, total)
    late_start = int(total * 0.3)

    return [
        ('full_access', 'Full Course Access', 'Complete access to all sessions', 'full', 0, total - 1, None),
        ('monthly_package', 'Monthly Package', 'Perfect for trying out the course',
         'partial', 0, monthly - 1, None),
        ('intensive_package', 'Intensive Package', 'Core curriculum with focused learning',
         'partial', intensive_start, intensive_end, 'intensive'),
        ('exam_prep', 'Exam Preparation', 'Final preparation for exams',
         'partial', total - exam, total - 1, None),
        ('late_join', 'Late Join', 'Join partway through the course',
         'late_join', late_start, total - 1, 'late_join'),
        ('sample_package', 'Sample Package', 'Try before you commit to more',
         'partial', 0, sample - 1, 'sample'),
    ]


def build_templates(course, ordering: SessionOrdering = None):
    """
    Quoted presets for ``course``. Empty for finished courses and for
    live courses without sessions.
    """
    ordering = ordering if ordering is not None else SessionOrdering.for_course(course)
    total = len(ordering)
    if not course.is_live or not total:
        return []

    calculator = AccessWindowCalculator(course, ordering)
    templates = []
    for template_id, name, description, access_type, start, end, pricing in _template_ranges(total):
        if access_type == 'full':
            grant = FullAccess()
        elif access_type == 'late_join':
            grant = LateJoinAccess(ordering[start].id)
        else:
            grant = PartialAccess(ordering[start].id, ordering[end].id)

        quote = calculator.quote(grant, template=pricing)
        entry = quote.as_dict()
        entry.update({'id': template_id, 'name': name, 'description': description})
        # Presets are shown as sessions and price only
        entry.pop('accessibleSessions')
        templates.append(entry)
    return templates
