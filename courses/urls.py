from django.urls import path
from . import views

app_name = 'courses'

urlpatterns = [
    # Course management
    path('courses/', views.AdminCourseListView.as_view(), name='admin_courses'),
    path('courses/<uuid:course_id>/', views.AdminCourseDetailView.as_view(), name='admin_course_detail'),

    # Session management (live courses)
    path('courses/<uuid:course_id>/sessions/', views.CourseSessionsView.as_view(), name='course_sessions'),
    path('sessions/<uuid:session_id>/', views.SessionDetailView.as_view(), name='session_detail'),
]
