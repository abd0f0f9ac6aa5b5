from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models
from django.db.models import Avg, Count
from django.utils import timezone
from decimal import Decimal, ROUND_HALF_UP


class UserManager(BaseUserManager):
    """
    Manager for the email-keyed User model
    """
    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError('An email address is required')
        email = self.normalize_email(email)
        extra_fields.setdefault('username', email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', User.Role.ADMIN)
        return self._create_user(email, password, **extra_fields)


class User(AbstractUser):
    """
    Platform user. Admins manage courses, sessions, enrollments and
    assessments; students enroll and take assessments.
    """

    class Role(models.TextChoices):
        STUDENT = 'student', 'Student'
        ADMIN = 'admin', 'Admin'

    role = models.CharField(max_length=20, choices=Role.choices, default=Role.STUDENT)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Email is the login identifier
    username = models.CharField(max_length=150, unique=False, blank=True)
    email = models.EmailField(unique=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        db_table = 'users'

    def __str__(self):
        return f"{self.email} ({self.role})"

    @property
    def is_admin(self):
        return self.role == self.Role.ADMIN or self.is_superuser

    @property
    def is_student(self):
        return self.role == self.Role.STUDENT


class StudentProfile(models.Model):
    """
    Extended profile information for students
    """
    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='student_profile'
    )

    phone_number = models.CharField(max_length=20, blank=True)
    school = models.CharField(max_length=200, blank=True)
    grade_level = models.CharField(max_length=20, blank=True, help_text="Current grade level")
    target_score = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Target SAT score"
    )

    # Performance aggregates (denormalized for dashboard queries)
    # Updated by signals whenever a submission is recorded
    total_assessments_completed = models.PositiveIntegerField(
        default=0,
        help_text="Total number of submitted assessments"
    )
    overall_average_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Average percentage across all submitted assessments"
    )
    last_performance_update = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'student_profiles'

    def __str__(self):
        return f"Student Profile: {self.user.get_full_name() or self.user.email}"

    def recalculate_assessment_aggregates(self):
        """
        Recalculate submission count and average percentage from the
        student's submissions.
        """
        stats = self.user.assessment_submissions.aggregate(
            total=Count('id'),
            average=Avg('percentage'),
        )
        self.total_assessments_completed = stats['total'] or 0
        if stats['average'] is None:
            self.overall_average_percentage = None
        else:
            self.overall_average_percentage = Decimal(str(stats['average'])).quantize(
                Decimal('0.01'), rounding=ROUND_HALF_UP
            )
        self.last_performance_update = timezone.now()
        self.save(update_fields=[
            'total_assessments_completed',
            'overall_average_percentage',
            'last_performance_update',
            'updated_at',
        ])
