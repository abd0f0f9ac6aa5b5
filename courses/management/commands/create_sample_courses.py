from datetime import timedelta

from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from django.utils import timezone

from courses.models import Course
from courses.session_ordering import create_session

User = get_user_model()


class Command(BaseCommand):
    help = 'Create sample SAT courses (one live with weekly sessions, one recorded) for testing'

    def add_arguments(self, parser):
        parser.add_argument('--sessions', type=int, default=8, help='Number of weekly sessions for the live course')

    def handle(self, *args, **options):
        self.stdout.write('Creating sample courses...')

        admin, created = User.objects.get_or_create(
            email='admin@example.com',
            defaults={
                'username': 'admin@example.com',
                'first_name': 'Sample',
                'last_name': 'Admin',
                'role': User.Role.ADMIN,
            }
        )
        if created:
            admin.set_unusable_password()
            admin.save()
            self.stdout.write(f'Created admin user: {admin.email}')
        else:
            self.stdout.write(f'Using existing admin: {admin.email}')

        live, created = Course.objects.get_or_create(
            title='SAT Verbal Live Class',
            defaults={
                'description': 'Weekly live reading and writing sessions.',
                'type': 'live',
                'price': 1000,
                'status': 'published',
                'created_by': admin,
            }
        )
        if created:
            first_date = timezone.now().replace(hour=18, minute=0, second=0, microsecond=0) + timedelta(days=7)
            for week in range(options['sessions']):
                create_session(live, date=first_date + timedelta(weeks=week))
            self.stdout.write(f'Created live course: {live.title} ({options["sessions"]} sessions)')
        else:
            self.stdout.write(f'Live course already exists: {live.title}')

        recorded, created = Course.objects.get_or_create(
            title='SAT Math Recorded Course',
            defaults={
                'description': 'Complete recorded math curriculum.',
                'type': 'finished',
                'price': 750,
                'status': 'published',
                'created_by': admin,
            }
        )
        if created:
            self.stdout.write(f'Created recorded course: {recorded.title}')
        else:
            self.stdout.write(f'Recorded course already exists: {recorded.title}')

        self.stdout.write(self.style.SUCCESS('Sample courses ready.'))
