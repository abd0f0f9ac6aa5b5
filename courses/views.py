from django.db.models import Count
from django.shortcuts import get_object_or_404
from rest_framework import status, permissions
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.pagination import PageNumberPagination
import logging

from users.permissions import IsAdmin
from .models import Course, Session
from .serializers import (
    CourseSerializer, CourseCreateUpdateSerializer,
    SessionSerializer, SessionCreateUpdateSerializer,
)
from .session_ordering import SessionOrdering, create_session, update_session, delete_session, delete_course

logger = logging.getLogger(__name__)


class CoursesPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class AdminCourseListView(APIView):
    """
    GET: List courses (filterable by ?status= and ?type=)
    POST: Create a course
    """
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request):
        courses = Course.objects.annotate(session_count=Count('sessions'))

        course_status = request.query_params.get('status')
        if course_status:
            courses = courses.filter(status=course_status)
        course_type = request.query_params.get('type')
        if course_type:
            courses = courses.filter(type=course_type)

        paginator = CoursesPagination()
        page = paginator.paginate_queryset(courses, request, view=self)
        serializer = CourseSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def post(self, request):
        serializer = CourseCreateUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        course = serializer.save(created_by=request.user)
        logger.info("Course %s created by %s", course.id, request.user.email)
        return Response(CourseSerializer(course).data, status=status.HTTP_201_CREATED)


class AdminCourseDetailView(APIView):
    """
    GET: Course detail
    PUT/PATCH: Update a course
    DELETE: Delete a course
    """
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request, course_id):
        course = get_object_or_404(Course, id=course_id)
        return Response(CourseSerializer(course).data)

    def put(self, request, course_id):
        return self._update(request, course_id, partial=False)

    def patch(self, request, course_id):
        return self._update(request, course_id, partial=True)

    def _update(self, request, course_id, partial):
        course = get_object_or_404(Course, id=course_id)
        serializer = CourseCreateUpdateSerializer(course, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        course = serializer.save()
        return Response(CourseSerializer(course).data)

    def delete(self, request, course_id):
        course = get_object_or_404(Course, id=course_id)
        delete_course(course)
        logger.info("Course %s deleted by %s", course_id, request.user.email)
        return Response(status=status.HTTP_204_NO_CONTENT)


class CourseSessionsView(APIView):
    """
    GET: All sessions of a course in index order
    POST: Add a session to a live course
    """
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request, course_id):
        course = get_object_or_404(Course, id=course_id)
        ordering = SessionOrdering.for_course(course)
        return Response({
            'course': {'id': str(course.id), 'title': course.title, 'type': course.type},
            'sessions': SessionSerializer(ordering.sessions, many=True).data,
            'totalSessions': len(ordering),
        })

    def post(self, request, course_id):
        course = get_object_or_404(Course, id=course_id)
        serializer = SessionCreateUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        session, _ = create_session(
            course,
            date=serializer.validated_data['date'],
            title=serializer.validated_data.get('title') or '',
        )
        return Response(SessionSerializer(session).data, status=status.HTTP_201_CREATED)


class SessionDetailView(APIView):
    """
    GET/PUT/DELETE a single session. Deleting renumbers the rest.
    """
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request, session_id):
        session = get_object_or_404(Session, id=session_id)
        return Response(SessionSerializer(session).data)

    def put(self, request, session_id):
        session = get_object_or_404(Session, id=session_id)
        serializer = SessionCreateUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        session, _ = update_session(session, **serializer.validated_data)
        return Response(SessionSerializer(session).data)

    def delete(self, request, session_id):
        session = get_object_or_404(Session, id=session_id)
        delete_session(session)
        return Response(status=status.HTTP_204_NO_CONTENT)
