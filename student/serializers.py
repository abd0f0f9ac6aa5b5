from rest_framework import serializers

from courses.models import Course
from courses.session_ordering import SessionOrdering
from .models import Enrollment, AccessWindow
from .access_windows import ACCESS_TYPES, accessible_sessions, parse_grant, window_range
from .attendance import ATTENDANCE_STATUSES
from courses.price_calculator import TEMPLATE_MULTIPLIERS


class EnrollmentSerializer(serializers.ModelSerializer):
    """
    Enrollment as seen by admins and by the owning student
    """
    studentId = serializers.IntegerField(source='student_id', read_only=True)
    studentEmail = serializers.EmailField(source='student.email', read_only=True)
    studentName = serializers.SerializerMethodField()
    courseId = serializers.UUIDField(source='course_id', read_only=True)
    courseTitle = serializers.CharField(source='course.title', read_only=True)
    courseType = serializers.CharField(source='course.type', read_only=True)
    requestedAt = serializers.DateTimeField(source='requested_at', read_only=True)
    decidedAt = serializers.DateTimeField(source='decided_at', read_only=True)
    accessWindowCount = serializers.SerializerMethodField()

    class Meta:
        model = Enrollment
        fields = [
            'id', 'studentId', 'studentEmail', 'studentName', 'courseId', 'courseTitle',
            'courseType', 'status', 'requestedAt', 'decidedAt', 'accessWindowCount'
        ]

    def get_studentName(self, obj):
        return obj.student.get_full_name() or obj.student.email

    def get_accessWindowCount(self, obj):
        return obj.access_windows.count()


class EnrollmentRequestSerializer(serializers.Serializer):
    """
    Student request to join a course
    """
    courseId = serializers.UUIDField()

    def validate_courseId(self, value):
        try:
            course = Course.objects.get(id=value)
        except Course.DoesNotExist:
            raise serializers.ValidationError("Course not found")
        if course.status != 'published':
            raise serializers.ValidationError("Course is not open for enrollment")
        return value


class AccessGrantSerializer(serializers.Serializer):
    """
    Grant input shared by approve, preview and create-window requests.
    ``accessType`` falls back to ``context['default_access_type']``
    (partial unless given).
    """
    accessType = serializers.ChoiceField(choices=ACCESS_TYPES, required=False)
    startSessionId = serializers.UUIDField(required=False, allow_null=True)
    endSessionId = serializers.UUIDField(required=False, allow_null=True)
    template = serializers.ChoiceField(choices=sorted(TEMPLATE_MULTIPLIERS), required=False, allow_null=True)

    def validate(self, data):
        data['accessType'] = data.get('accessType') or self.context.get('default_access_type', 'partial')
        # parse_grant raises the platform ValidationError for missing ids
        data['grant'] = parse_grant(
            data['accessType'],
            data.get('startSessionId'),
            data.get('endSessionId'),
        )
        return data


class AccessWindowUpdateSerializer(serializers.Serializer):
    startSessionId = serializers.UUIDField(required=False)
    endSessionId = serializers.UUIDField(required=False)
    template = serializers.ChoiceField(choices=sorted(TEMPLATE_MULTIPLIERS), required=False, allow_null=True)

    def validate(self, data):
        if not data:
            raise serializers.ValidationError("At least one field must be provided for update")
        return data


class AccessWindowSerializer(serializers.ModelSerializer):
    """
    Stored window merged with its derived sessions and price.

    Pass the quote in context as ``quotes`` (keyed by window id) to avoid
    recomputing it per window.
    """
    enrollmentId = serializers.UUIDField(source='enrollment_id', read_only=True)
    accessType = serializers.CharField(source='access_type', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = AccessWindow
        fields = ['id', 'enrollmentId', 'accessType', 'createdAt']

    def to_representation(self, instance):
        data = super().to_representation(instance)
        quote = self.context.get('quotes', {}).get(instance.id)
        if quote is not None:
            derived = quote.as_dict()
            derived.pop('accessType')
            data.update(derived)
        return data


# ===== ATTENDANCE =====

class AttendanceRecordSerializer(serializers.Serializer):
    studentId = serializers.IntegerField()
    status = serializers.ChoiceField(choices=ATTENDANCE_STATUSES)


class AttendanceMarkSerializer(serializers.Serializer):
    """
    Bulk attendance for one session: {"records": [{"studentId", "status"}]}
    """
    records = AttendanceRecordSerializer(many=True, allow_empty=False)

    def validate_records(self, value):
        student_ids = [record['studentId'] for record in value]
        if len(set(student_ids)) != len(student_ids):
            raise serializers.ValidationError("Each student can only be marked once per request")
        return [{'student_id': record['studentId'], 'status': record['status']} for record in value]


# ===== STUDENT DASHBOARD =====

def _session_ref(session, index):
    return {
        'id': str(session.id),
        'title': session.display_title,
        'date': session.date.isoformat(),
        'index': index,
    }


class EnrolledCourseSerializer(serializers.ModelSerializer):
    """
    An approved enrollment with the shape of its grant: full access, or
    the windows that narrow it
    """
    enrollmentId = serializers.UUIDField(source='id', read_only=True)
    requestedAt = serializers.DateTimeField(source='requested_at', read_only=True)
    decidedAt = serializers.DateTimeField(source='decided_at', read_only=True)

    class Meta:
        model = Enrollment
        fields = ['enrollmentId', 'status', 'requestedAt', 'decidedAt']

    def to_representation(self, instance):
        data = super().to_representation(instance)
        course = instance.course
        ordering = SessionOrdering.for_course(course)
        windows = list(instance.access_windows.all()) if course.is_live else []

        window_data = []
        for window in sorted(windows, key=lambda w: window_range(w, ordering)):
            start_index, end_index = window_range(window, ordering)
            window_data.append({
                'id': str(window.id),
                'accessType': window.access_type,
                'startSession': _session_ref(ordering[start_index], start_index),
                'endSession': _session_ref(ordering[end_index], end_index),
                'sessionCount': end_index - start_index + 1,
            })

        if not windows:
            access_type = 'full'
        elif all(window.access_type == 'late_join' for window in windows):
            access_type = 'late_join'
        else:
            access_type = 'partial'

        data.update({
            'course': {
                'id': str(course.id),
                'title': course.title,
                'description': course.description,
                'type': course.type,
                'totalSessions': len(ordering),
            },
            'accessType': access_type,
            'accessWindows': window_data,
            'accessibleCount': len(accessible_sessions(instance, ordering)),
        })
        return data
