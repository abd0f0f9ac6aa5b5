from django.db import IntegrityError, transaction
from django.shortcuts import get_object_or_404
from rest_framework import status, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from rest_framework.views import APIView
import logging

from backend.exceptions import AuthorizationError, ConflictError
from assessments.models import Submission
from assessments.serializers import SubmissionResultSerializer
from courses.models import Course, Session
from courses.serializers import SessionSerializer
from courses.session_ordering import SessionOrdering
from users.models import StudentProfile
from users.permissions import IsAdmin, IsStudent
from .models import Enrollment, AccessWindow
from .serializers import (
    EnrollmentSerializer,
    EnrollmentRequestSerializer,
    AccessGrantSerializer,
    AccessWindowSerializer,
    AccessWindowUpdateSerializer,
    AttendanceMarkSerializer,
    EnrolledCourseSerializer,
)
from .access_windows import (
    AccessWindowCalculator,
    accessible_sessions,
    approve_enrollment,
    create_access_window,
    delete_access_window,
    preview_access_window,
    reject_enrollment,
    update_access_window,
)
from .access_templates import build_templates
from .attendance import course_attendance, mark_attendance, session_attendance

logger = logging.getLogger(__name__)


class StudentPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


def _windows_payload(enrollment):
    ordering = SessionOrdering.for_course(enrollment.course)
    calculator = AccessWindowCalculator(enrollment.course, ordering)
    windows = list(enrollment.access_windows.order_by('created_at'))
    quotes = {window.id: calculator.quote_window(window) for window in windows}
    return AccessWindowSerializer(windows, many=True, context={'quotes': quotes}).data


def _grant_response(enrollment, quote, window):
    data = {'enrollment': EnrollmentSerializer(enrollment).data, 'access': quote.as_dict()}
    if window is not None:
        data['accessWindow'] = AccessWindowSerializer(window, context={'quotes': {window.id: quote}}).data
    return data


# ===== STUDENT ENDPOINTS =====

@api_view(['GET', 'POST'])
@permission_classes([permissions.IsAuthenticated, IsStudent])
def student_enrollments(request):
    """
    GET: The student's enrollment requests
    POST: Request to join a course
    """
    if request.method == 'GET':
        enrollments = Enrollment.objects.filter(student=request.user).select_related('course').order_by('-requested_at')
        paginator = StudentPagination()
        page = paginator.paginate_queryset(enrollments, request)
        serializer = EnrollmentSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    serializer = EnrollmentRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    try:
        with transaction.atomic():
            enrollment = Enrollment.objects.create(
                student=request.user,
                course_id=serializer.validated_data['courseId'],
            )
    except IntegrityError:
        raise ConflictError('You have already requested this course')
    logger.info("Student %s requested enrollment %s", request.user.email, enrollment.id)
    return Response(EnrollmentSerializer(enrollment).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated, IsStudent])
def student_course_sessions(request, course_id):
    """
    Sessions of a course the student may open, honouring access windows
    """
    course = get_object_or_404(Course, id=course_id)
    enrollment = Enrollment.objects.filter(student=request.user, course=course).first()
    if enrollment is None or not enrollment.is_approved:
        raise AuthorizationError('You are not enrolled in this course')

    ordering = SessionOrdering.for_course(course)
    sessions = accessible_sessions(enrollment, ordering)
    return Response({
        'course': {'id': str(course.id), 'title': course.title, 'type': course.type},
        'sessions': SessionSerializer(sessions, many=True).data,
        'totalSessions': len(ordering),
        'accessibleCount': len(sessions),
    })


# ===== ADMIN ENDPOINTS =====

class AdminEnrollmentListView(APIView):
    """
    GET: Enrollments, optionally filtered by ?status= and ?course=
    """
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request):
        enrollments = Enrollment.objects.select_related('student', 'course').order_by('-requested_at')
        enrollment_status = request.query_params.get('status')
        if enrollment_status:
            enrollments = enrollments.filter(status=enrollment_status)
        course_id = request.query_params.get('course')
        if course_id:
            enrollments = enrollments.filter(course_id=course_id)

        paginator = StudentPagination()
        page = paginator.paginate_queryset(enrollments, request, view=self)
        serializer = EnrollmentSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)


class ApproveEnrollmentView(APIView):
    """
    POST: Approve a pending enrollment with full, partial or late-join access
    """
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def post(self, request, enrollment_id):
        enrollment = get_object_or_404(Enrollment.objects.select_related('course'), id=enrollment_id)
        # Finished courses are sold whole, so an empty body means full access
        default_access_type = 'partial' if enrollment.course.is_live else 'full'
        serializer = AccessGrantSerializer(data=request.data, context={'default_access_type': default_access_type})
        serializer.is_valid(raise_exception=True)

        enrollment, quote, window = approve_enrollment(
            enrollment,
            serializer.validated_data['grant'],
            decided_by=request.user,
            template=serializer.validated_data.get('template'),
        )
        return Response(_grant_response(enrollment, quote, window))


class RejectEnrollmentView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def post(self, request, enrollment_id):
        enrollment = get_object_or_404(Enrollment, id=enrollment_id)
        enrollment = reject_enrollment(enrollment, decided_by=request.user)
        return Response(EnrollmentSerializer(enrollment).data)


class EnrollmentAccessWindowsView(APIView):
    """
    GET: An enrollment's access windows with derived sessions and prices
    POST: Grant additional access to an approved enrollment
    """
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request, enrollment_id):
        enrollment = get_object_or_404(Enrollment.objects.select_related('course'), id=enrollment_id)
        return Response({
            'enrollment': EnrollmentSerializer(enrollment).data,
            'accessWindows': _windows_payload(enrollment),
            'hasFullAccess': enrollment.is_approved and not enrollment.access_windows.exists(),
        })

    def post(self, request, enrollment_id):
        enrollment = get_object_or_404(Enrollment, id=enrollment_id)
        serializer = AccessGrantSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        quote, window = create_access_window(
            enrollment,
            serializer.validated_data['grant'],
            template=serializer.validated_data.get('template'),
        )
        response_status = status.HTTP_201_CREATED if window is not None else status.HTTP_200_OK
        return Response(_grant_response(enrollment, quote, window), status=response_status)


class AccessWindowPreviewView(APIView):
    """
    POST: Sessions, price and conflicts for a grant without saving it
    """
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def post(self, request, enrollment_id):
        enrollment = get_object_or_404(Enrollment.objects.select_related('course'), id=enrollment_id)
        serializer = AccessGrantSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return Response(preview_access_window(
            enrollment,
            serializer.validated_data['grant'],
            template=serializer.validated_data.get('template'),
        ))


class AccessWindowDetailView(APIView):
    """
    PUT: Move a window's boundaries
    DELETE: Remove a window
    """
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def put(self, request, window_id):
        window = get_object_or_404(AccessWindow, id=window_id)
        serializer = AccessWindowUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        changes = {}
        if 'template' in serializer.validated_data:
            changes['template'] = serializer.validated_data['template']
        quote, window = update_access_window(
            window,
            start_session_id=serializer.validated_data.get('startSessionId'),
            end_session_id=serializer.validated_data.get('endSessionId'),
            **changes
        )
        return Response(AccessWindowSerializer(window, context={'quotes': {window.id: quote}}).data)

    def delete(self, request, window_id):
        window = get_object_or_404(AccessWindow, id=window_id)
        delete_access_window(window)
        return Response(status=status.HTTP_204_NO_CONTENT)


class CourseAccessTemplatesView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request, course_id):
        course = get_object_or_404(Course, id=course_id)
        ordering = SessionOrdering.for_course(course)
        return Response({
            'courseId': str(course.id),
            'totalSessions': len(ordering),
            'templates': build_templates(course, ordering),
        })


class StudentDashboardView(APIView):
    """
    GET: Approved courses with their access shape, pending requests,
    assessment aggregates and the latest submissions
    """
    permission_classes = [permissions.IsAuthenticated, IsStudent]
    recent_activity_limit = 5

    def get(self, request):
        enrollments = list(
            Enrollment.objects.filter(student=request.user)
            .select_related('course')
            .prefetch_related('access_windows')
            .order_by('-requested_at')
        )
        approved = [enrollment for enrollment in enrollments if enrollment.is_approved]
        profile, _ = StudentProfile.objects.get_or_create(user=request.user)

        return Response({
            'student': {
                'firstName': request.user.first_name,
                'lastName': request.user.last_name,
                'email': request.user.email,
            },
            'stats': self._get_statistics(enrollments, approved, profile),
            'enrolledCourses': EnrolledCourseSerializer(approved, many=True).data,
            'recentActivity': self._get_recent_activity(request.user),
        })

    def _get_statistics(self, enrollments, approved, profile):
        average = profile.overall_average_percentage
        return {
            'enrolledCoursesCount': len(approved),
            'pendingRequestsCount': sum(1 for enrollment in enrollments if enrollment.status == 'pending'),
            'totalSubmissions': profile.total_assessments_completed,
            'averagePercentage': float(average) if average is not None else None,
        }

    def _get_recent_activity(self, student):
        submissions = (
            Submission.objects.filter(student=student)
            .select_related('assessment')
            .order_by('-submitted_at')[:self.recent_activity_limit]
        )
        activity = []
        for submission in submissions:
            entry = SubmissionResultSerializer(submission).data
            entry['assessmentTitle'] = submission.assessment.title
            entry['assessmentKind'] = submission.assessment.kind
            activity.append(entry)
        return activity


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated, IsStudent])
def student_enrolled_courses(request):
    """
    The student's approved courses with full access or their windows
    """
    enrollments = (
        Enrollment.objects.filter(student=request.user, status='approved')
        .select_related('course')
        .prefetch_related('access_windows')
        .order_by('-requested_at')
    )
    courses = EnrolledCourseSerializer(enrollments, many=True).data
    return Response({'courses': courses, 'total': len(courses)})


# ===== ATTENDANCE =====

class SessionAttendanceView(APIView):
    """
    GET: Students who may attend the session and their marks
    POST: Mark several students present or absent
    """
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request, session_id):
        session = get_object_or_404(Session.objects.select_related('course'), id=session_id)
        return Response(session_attendance(session))

    def post(self, request, session_id):
        session = get_object_or_404(Session.objects.select_related('course'), id=session_id)
        serializer = AttendanceMarkSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated = mark_attendance(session, serializer.validated_data['records'], recorded_by=request.user)
        return Response({'sessionId': str(session.id), 'recordsUpdated': updated})


class CourseAttendanceView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request, course_id):
        course = get_object_or_404(Course, id=course_id)
        return Response(course_attendance(course))
