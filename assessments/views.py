from django.db.models import Count, Q, Prefetch
from django.shortcuts import get_object_or_404
from rest_framework import status, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.views import APIView
import logging

from backend.exceptions import DuplicateSubmission, InvalidAnswerShape, NotFoundError
from users.permissions import IsAdmin, IsStudent
from .models import Assessment, Passage, Question, Submission
from .serializers import (
    AssessmentWriteSerializer,
    AssessmentListSerializer,
    AssessmentDetailSerializer,
    StudentAssessmentSerializer,
    SubmissionResultSerializer,
    SubmissionReviewSerializer,
)
from .submission_service import submit_assessment

logger = logging.getLogger(__name__)


class AssessmentsPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


def _with_content():
    """Assessments with passages, questions and choices prefetched in order"""
    return Assessment.objects.prefetch_related(
        Prefetch('passages', queryset=Passage.objects.order_by('order')),
        Prefetch('passages__questions', queryset=Question.objects.order_by('order').prefetch_related('choices')),
    )


# ===== ADMIN ENDPOINTS =====

class AdminAssessmentListView(APIView):
    """
    GET: List assessments (?kind=test|homework, ?search=)
    POST: Create an assessment with its passages, questions and choices
    """
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request):
        assessments = Assessment.objects.annotate(
            question_count=Count('passages__questions', distinct=True),
            submission_count=Count('submissions', distinct=True),
        )
        kind = request.query_params.get('kind')
        if kind:
            assessments = assessments.filter(kind=kind)
        search = request.query_params.get('search')
        if search:
            assessments = assessments.filter(Q(title__icontains=search) | Q(instructions__icontains=search))

        paginator = AssessmentsPagination()
        page = paginator.paginate_queryset(assessments, request, view=self)
        return paginator.get_paginated_response(AssessmentListSerializer(page, many=True).data)

    def post(self, request):
        serializer = AssessmentWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assessment = serializer.save(created_by=request.user)
        logger.info(
            "Assessment %s (%s) created by %s with %s questions",
            assessment.id, assessment.kind, request.user.email, assessment.total_questions,
        )
        assessment = _with_content().get(id=assessment.id)
        return Response(AssessmentDetailSerializer(assessment).data, status=status.HTTP_201_CREATED)


class AdminAssessmentDetailView(APIView):
    """
    GET: Assessment with answer key
    PUT: Replace an assessment (rejected once students have submitted)
    DELETE: Remove an assessment and its submissions
    """
    permission_classes = [permissions.IsAuthenticated, IsAdmin]

    def get(self, request, assessment_id):
        assessment = get_object_or_404(_with_content(), id=assessment_id)
        return Response(AssessmentDetailSerializer(assessment).data)

    def put(self, request, assessment_id):
        assessment = get_object_or_404(Assessment, id=assessment_id)
        serializer = AssessmentWriteSerializer(assessment, data=request.data)
        serializer.is_valid(raise_exception=True)
        assessment = serializer.save()
        logger.info("Assessment %s replaced by %s", assessment.id, request.user.email)
        assessment = _with_content().get(id=assessment.id)
        return Response(AssessmentDetailSerializer(assessment).data)

    def delete(self, request, assessment_id):
        assessment = get_object_or_404(Assessment, id=assessment_id)
        assessment.delete()
        logger.info("Assessment %s deleted by %s", assessment_id, request.user.email)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ===== STUDENT ENDPOINTS =====

@api_view(['GET', 'POST'])
@permission_classes([permissions.IsAuthenticated, IsStudent])
def assessment_attempt(request, assessment_id):
    """
    GET: Whether the student has already submitted
    POST: Start the attempt; returns the questions without the answer key
    """
    assessment = get_object_or_404(_with_content(), id=assessment_id)
    submission = Submission.objects.filter(student=request.user, assessment=assessment).first()

    if request.method == 'GET':
        if submission is None:
            return Response({'status': 'not_started', 'assessmentId': str(assessment.id)})
        return Response({
            'status': 'submitted',
            'assessmentId': str(assessment.id),
            'submission': SubmissionResultSerializer(submission).data,
        })

    if submission is not None:
        raise DuplicateSubmission()
    return Response(StudentAssessmentSerializer(assessment).data)


@api_view(['POST'])
@permission_classes([permissions.IsAuthenticated, IsStudent])
def submit_assessment_view(request, assessment_id):
    """
    Grade and store the student's only submission.

    Body: {"answers": [{"questionId": "...", "choiceId": "..." | null}]}
    """
    assessment = get_object_or_404(Assessment, id=assessment_id)
    if not isinstance(request.data, dict):
        raise InvalidAnswerShape('Request body must be an object with an answers list')
    submission, result = submit_assessment(request.user, assessment, request.data.get('answers'))
    data = result.as_dict()
    data['submissionId'] = str(submission.id)
    data['submittedAt'] = submission.submitted_at
    return Response(data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([permissions.IsAuthenticated, IsStudent])
def submission_review(request, assessment_id):
    """
    Review of the student's submission with correct answers revealed
    """
    assessment = get_object_or_404(Assessment, id=assessment_id)
    submission = Submission.objects.filter(student=request.user, assessment=assessment).first()
    if submission is None:
        raise NotFoundError('No submission found for this assessment')
    return Response(SubmissionReviewSerializer(submission).data)
