from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from .models import Course


class CreateSampleCoursesCommandTestCase(TestCase):

    def test_creates_live_and_recorded_courses(self):
        call_command('create_sample_courses', sessions=4, stdout=StringIO())

        live = Course.objects.get(type='live')
        self.assertEqual(list(live.sessions.order_by('order').values_list('order', flat=True)), [0, 1, 2, 3])
        self.assertTrue(Course.objects.filter(type='finished', price__isnull=False).exists())

    def test_is_idempotent(self):
        call_command('create_sample_courses', stdout=StringIO())
        call_command('create_sample_courses', stdout=StringIO())

        self.assertEqual(Course.objects.count(), 2)
        self.assertEqual(Course.objects.get(type='live').sessions.count(), 8)
