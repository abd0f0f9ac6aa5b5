from datetime import timedelta

from django.contrib.auth import get_user_model
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from courses.models import Course
from courses.session_ordering import create_session
from .models import AccessWindow, Enrollment

User = get_user_model()


class AccessWindowAPITestCase(APITestCase):
    """
    Admin access-window endpoints on an 8-session course priced at 1000
    """

    def setUp(self):
        self.admin = User.objects.create_user(email='admin@test.com', password='testpass123', role='admin')
        self.student = User.objects.create_user(email='student@test.com', password='testpass123', role='student')
        self.course = Course.objects.create(
            title='SAT Live', type='live', price=1000, status='published', created_by=self.admin
        )
        start = timezone.now() + timedelta(days=1)
        self.sessions = [create_session(self.course, date=start + timedelta(days=day))[0] for day in range(8)]
        self.enrollment = Enrollment.objects.create(student=self.student, course=self.course, status='approved')
        self.windows_url = reverse('student_admin:enrollment_access_windows', args=[self.enrollment.id])
        self.client.force_authenticate(user=self.admin)

    def _window_body(self, first, last):
        return {
            'startSessionId': str(self.sessions[first - 1].id),
            'endSessionId': str(self.sessions[last - 1].id),
        }

    def test_create_window_returns_derived_fields(self):
        response = self.client.post(self.windows_url, self._window_body(3, 6), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        window = response.data['accessWindow']
        self.assertEqual(window['accessType'], 'partial')
        self.assertEqual(window['sessionCount'], 4)
        self.assertEqual(window['pricePerSession'], 125)
        self.assertEqual(window['calculatedPrice'], 500)
        self.assertEqual(len(window['accessibleSessions']), 4)
        self.assertEqual(window['startIndex'], 2)
        self.assertEqual(window['endIndex'], 5)

    def test_overlapping_window_returns_409(self):
        self.client.post(self.windows_url, self._window_body(5, 8), format='json')

        response = self.client.post(self.windows_url, self._window_body(7, 8), format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'conflict')
        self.assertEqual(response.data['details']['conflictingRanges'], [[4, 7]])
        self.assertEqual(AccessWindow.objects.count(), 1)

    def test_reversed_range_returns_400(self):
        response = self.client.post(self.windows_url, self._window_body(6, 3), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_session_range')

    def test_unknown_session_returns_404(self):
        body = self._window_body(1, 2)
        body['endSessionId'] = '00000000-0000-0000-0000-000000000000'

        response = self.client.post(self.windows_url, body, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_missing_end_session_for_partial_returns_400(self):
        response = self.client.post(
            self.windows_url, {'startSessionId': str(self.sessions[0].id)}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_late_join_ignores_requested_end(self):
        body = self._window_body(4, 5)
        body['accessType'] = 'late_join'

        response = self.client.post(self.windows_url, body, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        window = response.data['accessWindow']
        self.assertEqual(window['endSessionId'], str(self.sessions[-1].id))
        self.assertEqual(window['endIndex'], 7)
        self.assertEqual(window['template'], 'late_join')

    def test_large_window_carries_warning(self):
        response = self.client.post(self.windows_url, self._window_body(1, 7), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['access']['warnings']), 1)

    def test_list_windows_with_derived_fields(self):
        self.client.post(self.windows_url, self._window_body(1, 2), format='json')
        self.client.post(self.windows_url, self._window_body(4, 6), format='json')

        response = self.client.get(self.windows_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['hasFullAccess'])
        prices = sorted(w['calculatedPrice'] for w in response.data['accessWindows'])
        self.assertEqual(prices, [250, 375])

    def test_update_window_end(self):
        created = self.client.post(self.windows_url, self._window_body(3, 4), format='json').data['accessWindow']

        response = self.client.put(
            reverse('student_admin:access_window_detail', args=[created['id']]),
            {'endSessionId': str(self.sessions[5].id)},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['sessionCount'], 4)
        self.assertEqual(response.data['calculatedPrice'], 500)

    def test_delete_window(self):
        created = self.client.post(self.windows_url, self._window_body(3, 4), format='json').data['accessWindow']

        response = self.client.delete(reverse('student_admin:access_window_detail', args=[created['id']]))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(AccessWindow.objects.exists())

    def test_preview_does_not_persist(self):
        self.client.post(self.windows_url, self._window_body(5, 8), format='json')

        response = self.client.post(
            reverse('student_admin:access_window_preview', args=[self.enrollment.id]),
            self._window_body(7, 8),
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['hasConflict'])
        self.assertEqual(response.data['calculatedPrice'], 250)
        self.assertEqual(AccessWindow.objects.count(), 1)

    def test_student_cannot_create_windows(self):
        self.client.force_authenticate(user=self.student)

        response = self.client.post(self.windows_url, self._window_body(1, 2), format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_access_templates(self):
        response = self.client.get(reverse('student_admin:course_access_templates', args=[self.course.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['totalSessions'], 8)
        self.assertEqual(
            [t['id'] for t in response.data['templates']],
            ['full_access', 'monthly_package', 'intensive_package', 'exam_prep', 'late_join', 'sample_package'],
        )


class EnrollmentFlowAPITestCase(APITestCase):
    """
    Student requests an enrollment, admin approves with a window, student
    sees only the granted sessions
    """

    def setUp(self):
        self.admin = User.objects.create_user(email='admin@test.com', password='testpass123', role='admin')
        self.student = User.objects.create_user(email='student@test.com', password='testpass123', role='student')
        self.course = Course.objects.create(
            title='SAT Live', type='live', price=1000, status='published', created_by=self.admin
        )
        start = timezone.now() + timedelta(days=1)
        self.sessions = [create_session(self.course, date=start + timedelta(days=day))[0] for day in range(8)]

    def _request_enrollment(self):
        self.client.force_authenticate(user=self.student)
        return self.client.post(reverse('student:student_enrollments'), {'courseId': str(self.course.id)}, format='json')

    def test_request_creates_pending_enrollment(self):
        response = self._request_enrollment()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')

    def test_duplicate_request_conflicts(self):
        self._request_enrollment()

        response = self._request_enrollment()

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_cannot_request_unpublished_course(self):
        self.course.status = 'draft'
        self.course.save()

        response = self._request_enrollment()

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_approved_window_limits_student_sessions(self):
        enrollment_id = self._request_enrollment().data['id']
        sessions_url = reverse('student:student_course_sessions', args=[self.course.id])

        # Pending enrollments cannot see sessions yet
        self.assertEqual(self.client.get(sessions_url).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.admin)
        approve = self.client.post(
            reverse('student_admin:approve_enrollment', args=[enrollment_id]),
            {'startSessionId': str(self.sessions[2].id), 'endSessionId': str(self.sessions[5].id)},
            format='json'
        )
        self.assertEqual(approve.status_code, status.HTTP_200_OK)
        self.assertEqual(approve.data['enrollment']['status'], 'approved')
        self.assertEqual(approve.data['access']['calculatedPrice'], 500)

        self.client.force_authenticate(user=self.student)
        response = self.client.get(sessions_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['accessibleCount'], 4)
        self.assertEqual(response.data['totalSessions'], 8)
        self.assertEqual([s['index'] for s in response.data['sessions']], [2, 3, 4, 5])

    def test_full_access_approval(self):
        enrollment_id = self._request_enrollment().data['id']

        self.client.force_authenticate(user=self.admin)
        approve = self.client.post(
            reverse('student_admin:approve_enrollment', args=[enrollment_id]),
            {'accessType': 'full'},
            format='json'
        )
        self.assertEqual(approve.status_code, status.HTTP_200_OK)
        self.assertNotIn('accessWindow', approve.data)

        self.client.force_authenticate(user=self.student)
        response = self.client.get(reverse('student:student_course_sessions', args=[self.course.id]))
        self.assertEqual(response.data['accessibleCount'], 8)

    def test_finished_course_approval_defaults_to_full_access(self):
        recorded = Course.objects.create(
            title='Recorded SAT', type='finished', price=750, status='published', created_by=self.admin
        )
        enrollment = Enrollment.objects.create(student=self.student, course=recorded)
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(reverse('student_admin:approve_enrollment', args=[enrollment.id]), {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['access']['accessType'], 'full')
        self.assertEqual(response.data['access']['calculatedPrice'], 750.0)

    def test_reject(self):
        enrollment_id = self._request_enrollment().data['id']
        self.client.force_authenticate(user=self.admin)

        response = self.client.post(reverse('student_admin:reject_enrollment', args=[enrollment_id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'rejected')

        listed = self.client.get(reverse('student_admin:admin_enrollments'), {'status': 'rejected'})
        self.assertEqual(listed.data['count'], 1)
