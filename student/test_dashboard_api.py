from datetime import timedelta

from django.contrib.auth import get_user_model
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from assessments.models import Assessment, Choice, Passage, Question
from assessments.submission_service import submit_assessment
from courses.models import Course
from courses.session_ordering import create_session
from .access_windows import LateJoinAccess, PartialAccess, create_access_window
from .models import Enrollment

User = get_user_model()


class StudentDashboardAPITestCase(APITestCase):
    """
    Dashboard and enrolled-course list for a student with one narrowed
    live course, one recorded course and one pending request
    """

    def setUp(self):
        self.admin = User.objects.create_user(email='admin@test.com', password='testpass123', role='admin')
        self.student = User.objects.create_user(
            email='student@test.com', password='testpass123', first_name='Test', last_name='Student', role='student'
        )
        self.live = Course.objects.create(
            title='SAT Live', type='live', price=1000, status='published', created_by=self.admin
        )
        start = timezone.now() + timedelta(days=1)
        self.sessions = [create_session(self.live, date=start + timedelta(days=day))[0] for day in range(8)]
        self.recorded = Course.objects.create(
            title='Recorded SAT', type='finished', price=750, status='published', created_by=self.admin
        )
        upcoming = Course.objects.create(title='SAT Math', type='live', status='published', created_by=self.admin)

        self.live_enrollment = Enrollment.objects.create(student=self.student, course=self.live, status='approved')
        create_access_window(self.live_enrollment, PartialAccess(self.sessions[2].id, self.sessions[5].id))
        Enrollment.objects.create(student=self.student, course=self.recorded, status='approved')
        Enrollment.objects.create(student=self.student, course=upcoming)

        self.client.force_authenticate(user=self.student)

    def _submit_one(self, correct):
        assessment = Assessment.objects.create(title='Quick Test', kind='test', duration=10)
        passage = Passage.objects.create(assessment=assessment, content='Passage', order=0)
        question = Question.objects.create(passage=passage, question_text='Pick B', order=0)
        choices = [
            Choice.objects.create(question=question, choice_text=letter, is_correct=(letter == 'B'), order=i)
            for i, letter in enumerate('ABCD')
        ]
        picked = choices[1] if correct else choices[0]
        submit_assessment(self.student, assessment, [{'questionId': str(question.id), 'choiceId': str(picked.id)}])

    def _by_title(self, courses):
        return {entry['course']['title']: entry for entry in courses}

    def test_enrolled_courses_report_grant_shape(self):
        response = self.client.get(reverse('student:student_enrolled_courses'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 2)
        courses = self._by_title(response.data['courses'])

        live = courses['SAT Live']
        self.assertEqual(live['accessType'], 'partial')
        self.assertEqual(live['accessibleCount'], 4)
        self.assertEqual(live['course']['totalSessions'], 8)
        window = live['accessWindows'][0]
        self.assertEqual(window['startSession']['index'], 2)
        self.assertEqual(window['endSession']['index'], 5)
        self.assertEqual(window['startSession']['title'], 'Session 3')

        recorded = courses['Recorded SAT']
        self.assertEqual(recorded['accessType'], 'full')
        self.assertEqual(recorded['accessWindows'], [])

    def test_late_join_window_runs_to_last_session(self):
        other = Course.objects.create(title='SAT Verbal', type='live', price=800, status='published', created_by=self.admin)
        start = timezone.now() + timedelta(days=1)
        sessions = [create_session(other, date=start + timedelta(days=day))[0] for day in range(5)]
        enrollment = Enrollment.objects.create(student=self.student, course=other, status='approved')
        create_access_window(enrollment, LateJoinAccess(sessions[3].id))

        response = self.client.get(reverse('student:student_enrolled_courses'))

        verbal = self._by_title(response.data['courses'])['SAT Verbal']
        self.assertEqual(verbal['accessType'], 'late_join')
        self.assertEqual(verbal['accessWindows'][0]['endSession']['id'], str(sessions[-1].id))
        self.assertEqual(verbal['accessibleCount'], 2)

    def test_dashboard_stats(self):
        self._submit_one(correct=True)
        self._submit_one(correct=False)

        response = self.client.get(reverse('student:student_dashboard'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['student']['email'], 'student@test.com')
        stats = response.data['stats']
        self.assertEqual(stats['enrolledCoursesCount'], 2)
        self.assertEqual(stats['pendingRequestsCount'], 1)
        self.assertEqual(stats['totalSubmissions'], 2)
        self.assertEqual(stats['averagePercentage'], 50.0)
        self.assertEqual(len(response.data['enrolledCourses']), 2)
        self.assertEqual(len(response.data['recentActivity']), 2)
        self.assertEqual(response.data['recentActivity'][0]['assessmentTitle'], 'Quick Test')

    def test_dashboard_without_submissions(self):
        response = self.client.get(reverse('student:student_dashboard'))

        self.assertEqual(response.data['stats']['totalSubmissions'], 0)
        self.assertIsNone(response.data['stats']['averagePercentage'])
        self.assertEqual(response.data['recentActivity'], [])

    def test_admin_cannot_open_student_dashboard(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.get(reverse('student:student_dashboard'))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
