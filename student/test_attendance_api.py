from datetime import timedelta

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from courses.models import Course
from courses.session_ordering import create_session
from .access_windows import PartialAccess, create_access_window
from .attendance import attendance_rate
from .models import Attendance, Enrollment

User = get_user_model()


class AttendanceRateTestCase(SimpleTestCase):

    def test_rounds_half_up(self):
        self.assertEqual(attendance_rate(1, 8), 13)
        self.assertEqual(attendance_rate(2, 3), 67)

    def test_empty_roster(self):
        self.assertEqual(attendance_rate(0, 0), 0)


class SessionAttendanceAPITestCase(APITestCase):
    """
    8-session course: one student with full access, one limited to
    sessions 3-4, one still pending
    """

    def setUp(self):
        self.admin = User.objects.create_user(email='admin@test.com', password='testpass123', role='admin')
        self.full = User.objects.create_user(
            email='amira@test.com', password='testpass123', first_name='Amira', last_name='Full', role='student'
        )
        self.partial = User.objects.create_user(
            email='bassem@test.com', password='testpass123', first_name='Bassem', last_name='Window', role='student'
        )
        self.pending = User.objects.create_user(email='pending@test.com', password='testpass123', role='student')
        self.course = Course.objects.create(
            title='SAT Live', type='live', price=1000, status='published', created_by=self.admin
        )
        start = timezone.now() + timedelta(days=1)
        self.sessions = [create_session(self.course, date=start + timedelta(days=day))[0] for day in range(8)]

        Enrollment.objects.create(student=self.full, course=self.course, status='approved')
        windowed = Enrollment.objects.create(student=self.partial, course=self.course, status='approved')
        create_access_window(windowed, PartialAccess(self.sessions[2].id, self.sessions[3].id))
        Enrollment.objects.create(student=self.pending, course=self.course)

        self.client.force_authenticate(user=self.admin)

    def _url(self, index):
        return reverse('student_admin:session_attendance', args=[self.sessions[index].id])

    def test_roster_only_lists_students_with_access(self):
        inside = self.client.get(self._url(2))
        outside = self.client.get(self._url(0))

        self.assertEqual(inside.status_code, status.HTTP_200_OK)
        self.assertEqual([s['email'] for s in inside.data['students']], ['amira@test.com', 'bassem@test.com'])
        self.assertEqual([s['email'] for s in outside.data['students']], ['amira@test.com'])
        self.assertEqual(inside.data['session']['index'], 2)
        self.assertEqual(inside.data['session']['title'], 'Session 3')

    def test_mark_attendance_and_statistics(self):
        response = self.client.post(
            self._url(2),
            {'records': [
                {'studentId': self.full.id, 'status': 'present'},
                {'studentId': self.partial.id, 'status': 'absent'},
            ]},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['recordsUpdated'], 2)

        stats = self.client.get(self._url(2)).data['statistics']
        self.assertEqual(stats['totalStudents'], 2)
        self.assertEqual(stats['presentCount'], 1)
        self.assertEqual(stats['absentCount'], 1)
        self.assertEqual(stats['notMarkedCount'], 0)
        self.assertEqual(stats['attendanceRate'], 50)

    def test_marking_again_updates_the_record(self):
        body = {'records': [{'studentId': self.full.id, 'status': 'absent'}]}
        self.client.post(self._url(0), body, format='json')
        body['records'][0]['status'] = 'present'

        self.client.post(self._url(0), body, format='json')

        record = Attendance.objects.get(session=self.sessions[0], student=self.full)
        self.assertEqual(record.status, 'present')
        self.assertEqual(record.recorded_by, self.admin)

    def test_student_outside_window_cannot_be_marked(self):
        response = self.client.post(
            self._url(0),
            {'records': [
                {'studentId': self.full.id, 'status': 'present'},
                {'studentId': self.partial.id, 'status': 'present'},
            ]},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['details']['studentIds'], [self.partial.id])
        self.assertFalse(Attendance.objects.exists())

    def test_pending_student_cannot_be_marked(self):
        response = self.client.post(
            self._url(0), {'records': [{'studentId': self.pending.id, 'status': 'present'}]}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_empty_records_rejected(self):
        response = self.client.post(self._url(0), {'records': []}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_status_rejected(self):
        response = self.client.post(
            self._url(0), {'records': [{'studentId': self.full.id, 'status': 'late'}]}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_course_attendance_counts(self):
        self.client.post(
            self._url(2),
            {'records': [
                {'studentId': self.full.id, 'status': 'present'},
                {'studentId': self.partial.id, 'status': 'present'},
            ]},
            format='json'
        )

        response = self.client.get(reverse('student_admin:course_attendance', args=[self.course.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['totalSessions'], 8)
        self.assertEqual(response.data['sessions'][2]['presentCount'], 2)
        self.assertEqual(response.data['sessions'][0]['markedCount'], 0)

    def test_student_cannot_mark_attendance(self):
        self.client.force_authenticate(user=self.full)

        response = self.client.get(self._url(0))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
