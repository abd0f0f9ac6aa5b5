from django.test import TestCase
from django.urls import reverse


class HealthCheckTestCase(TestCase):

    def test_health(self):
        response = self.client.get(reverse('health_check'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['database'], 'connected')

    def test_platform_health(self):
        response = self.client.get(reverse('platform_health_check'))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['enrollments']['pending'], 0)
        self.assertEqual(response.json()['assessments']['submissions'], 0)
