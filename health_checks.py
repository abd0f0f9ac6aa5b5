"""
Health check endpoints for monitoring system health
"""
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods
from django.utils import timezone
from django.db import connection, DatabaseError
import logging

from student.models import Enrollment, AccessWindow
from assessments.models import Assessment, Submission

logger = logging.getLogger(__name__)


@require_http_methods(["GET"])
def health_check(request):
    """Basic health check endpoint"""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError as e:
        logger.error("Health check failed: %s", e)
        return JsonResponse({
            'status': 'unhealthy',
            'error': str(e),
            'timestamp': timezone.now().isoformat()
        }, status=503)

    return JsonResponse({
        'status': 'healthy',
        'timestamp': timezone.now().isoformat(),
        'database': 'connected'
    })


@require_http_methods(["GET"])
def platform_health_check(request):
    """Row counts for enrollments, access windows and submissions"""
    try:
        pending = Enrollment.objects.filter(status='pending').count()
        approved = Enrollment.objects.filter(status='approved').count()
        windows = AccessWindow.objects.count()
        assessments = Assessment.objects.count()
        submissions = Submission.objects.count()
    except DatabaseError as e:
        logger.error("Platform health check failed: %s", e)
        return JsonResponse({
            'status': 'unhealthy',
            'error': str(e),
            'timestamp': timezone.now().isoformat()
        }, status=503)

    return JsonResponse({
        'status': 'healthy',
        'timestamp': timezone.now().isoformat(),
        'enrollments': {
            'pending': pending,
            'approved': approved,
            'accessWindows': windows,
        },
        'assessments': {
            'total': assessments,
            'submissions': submissions,
        }
    })
