"""
URL configuration for backend project.

Admin endpoints live under ``api/admin/``, student endpoints under
``api/student/``.
"""
from django.contrib import admin
from django.urls import path, include

from assessments import urls as assessment_urls
from student import urls as student_urls
from health_checks import health_check, platform_health_check

admin_api_patterns = [
    path("", include('courses.urls')),
    path("", include((student_urls.admin_urlpatterns, 'student_admin'))),
    path("", include((assessment_urls.admin_urlpatterns, 'assessments_admin'))),
]

student_api_patterns = [
    path("", include('student.urls')),
    path("", include('assessments.urls')),
]

urlpatterns = [
    path("admin/", admin.site.urls),

    # API endpoints
    path("api/admin/", include(admin_api_patterns)),
    path("api/student/", include(student_api_patterns)),

    # Health check endpoints
    path("health/", health_check, name="health_check"),
    path("health/platform/", platform_health_check, name="platform_health_check"),
]
