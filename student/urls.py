from django.urls import path
from . import views

app_name = 'student'

# Mounted under api/student/
urlpatterns = [
    path('enrollments/', views.student_enrollments, name='student_enrollments'),
    path('dashboard/', views.StudentDashboardView.as_view(), name='student_dashboard'),
    path('courses/', views.student_enrolled_courses, name='student_enrolled_courses'),
    path('courses/<uuid:course_id>/sessions/', views.student_course_sessions, name='student_course_sessions'),
]

# Mounted under api/admin/
admin_urlpatterns = [
    path('enrollments/', views.AdminEnrollmentListView.as_view(), name='admin_enrollments'),
    path('enrollments/<uuid:enrollment_id>/approve/', views.ApproveEnrollmentView.as_view(), name='approve_enrollment'),
    path('enrollments/<uuid:enrollment_id>/reject/', views.RejectEnrollmentView.as_view(), name='reject_enrollment'),
    path('enrollments/<uuid:enrollment_id>/access-windows/', views.EnrollmentAccessWindowsView.as_view(), name='enrollment_access_windows'),
    path('enrollments/<uuid:enrollment_id>/access-windows/preview/', views.AccessWindowPreviewView.as_view(), name='access_window_preview'),
    path('access-windows/<uuid:window_id>/', views.AccessWindowDetailView.as_view(), name='access_window_detail'),
    path('courses/<uuid:course_id>/access-templates/', views.CourseAccessTemplatesView.as_view(), name='course_access_templates'),

    # Attendance
    path('sessions/<uuid:session_id>/attendance/', views.SessionAttendanceView.as_view(), name='session_attendance'),
    path('courses/<uuid:course_id>/attendance/', views.CourseAttendanceView.as_view(), name='course_attendance'),
]
