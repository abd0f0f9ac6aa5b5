from django.urls import path
from . import views

app_name = 'assessments'

# Mounted under api/student/
urlpatterns = [
    path('assessments/<uuid:assessment_id>/attempt/', views.assessment_attempt, name='assessment_attempt'),
    path('assessments/<uuid:assessment_id>/submit/', views.submit_assessment_view, name='submit_assessment'),
    path('assessments/<uuid:assessment_id>/submission/', views.submission_review, name='submission_review'),
]

# Mounted under api/admin/
admin_urlpatterns = [
    path('assessments/', views.AdminAssessmentListView.as_view(), name='admin_assessments'),
    path('assessments/<uuid:assessment_id>/', views.AdminAssessmentDetailView.as_view(), name='admin_assessment_detail'),
]
