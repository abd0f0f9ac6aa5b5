from django.conf import settings
from django.db import models
from django.utils import timezone
import uuid


class Enrollment(models.Model):
    """
    A student's request to join a course and the admin decision on it.
    Live-course enrollments may be narrowed to a subset of sessions with
    access windows; without any window the grant is full access.
    """
    STATUS_CHOICES = [
        ('pending', 'Pending Approval'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='enrollments'
    )
    course = models.ForeignKey(
        'courses.Course',
        on_delete=models.CASCADE,
        related_name='enrollments'
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')

    requested_at = models.DateTimeField(auto_now_add=True)
    decided_at = models.DateTimeField(null=True, blank=True)
    decided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='decided_enrollments',
        help_text="Admin who approved or rejected the request"
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-requested_at']
        constraints = [
            models.UniqueConstraint(fields=['student', 'course'], name='unique_enrollment_per_course'),
        ]
        indexes = [
            models.Index(fields=['course', 'status'], name='enrollment_course_status_idx'),
        ]

    def __str__(self):
        return f"{self.student.email} -> {self.course.title} ({self.status})"

    @property
    def is_approved(self):
        return self.status == 'approved'

    def mark_decided(self, new_status, decided_by):
        self.status = new_status
        self.decided_by = decided_by
        self.decided_at = timezone.now()
        self.save(update_fields=['status', 'decided_by', 'decided_at', 'updated_at'])


class AccessWindow(models.Model):
    """
    A contiguous range of sessions [start_session, end_session] an
    enrollment may access. Session count, accessible sessions and price
    are derived on read from the course's current session order.
    """
    ACCESS_TYPE_CHOICES = [
        ('partial', 'Partial'),
        ('late_join', 'Late Join'),
    ]

    TEMPLATE_CHOICES = [
        ('late_join', 'Late Join'),
        ('sample', 'Sample'),
        ('intensive', 'Intensive'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    enrollment = models.ForeignKey(Enrollment, on_delete=models.CASCADE, related_name='access_windows')
    start_session = models.ForeignKey(
        'courses.Session',
        on_delete=models.PROTECT,
        related_name='windows_starting_here'
    )
    end_session = models.ForeignKey(
        'courses.Session',
        on_delete=models.PROTECT,
        related_name='windows_ending_here'
    )
    access_type = models.CharField(max_length=20, choices=ACCESS_TYPE_CHOICES, default='partial')
    template = models.CharField(
        max_length=20,
        choices=TEMPLATE_CHOICES,
        null=True,
        blank=True,
        help_text="Pricing template whose discount applies to this window"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['enrollment'], name='access_window_enrollment_idx'),
        ]

    def __str__(self):
        return f"{self.access_type} window for {self.enrollment_id}"


class Attendance(models.Model):
    """
    Whether a student attended a live session. Only students whose
    grant covers the session are marked.
    """
    STATUS_CHOICES = [
        ('present', 'Present'),
        ('absent', 'Absent'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    session = models.ForeignKey(
        'courses.Session',
        on_delete=models.CASCADE,
        related_name='attendance_records'
    )
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='attendance_records',
        limit_choices_to={'role': 'student'}
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES)
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='recorded_attendance'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['session', 'student']
        constraints = [
            models.UniqueConstraint(fields=['session', 'student'], name='unique_attendance_per_session'),
        ]

    def __str__(self):
        return f"{self.student.email} - {self.session_id} ({self.status})"
