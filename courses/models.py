from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
import uuid
import logging

logger = logging.getLogger(__name__)


class Course(models.Model):
    """
    A SAT course. Live courses are delivered as an ordered list of
    sessions; finished (recorded) courses are sold as a whole.
    """
    TYPE_CHOICES = [
        ('live', 'Live'),
        ('finished', 'Finished'),
    ]

    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('published', 'Published'),
        ('archived', 'Archived'),
    ]

    # Basic Information
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200, help_text="Course title")
    description = models.TextField(blank=True, help_text="Short course description")
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='live')

    # Pricing
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
        help_text="Course price in EGP (required for finished courses)"
    )

    # Management
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_courses'
    )

    # Status & Metadata
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default='draft'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_live(self):
        return self.type == 'live'

    @property
    def total_sessions(self):
        return self.sessions.count()

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'type'], name='course_status_type_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.type})"

    def clean(self):
        if self.type == 'finished' and self.price is None:
            raise ValidationError({'price': 'Price is required for finished courses'})


class Session(models.Model):
    """
    A scheduled meeting of a live course. ``order`` is the session's
    zero-based index and stays contiguous (0..n-1) in date order.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='sessions')
    title = models.CharField(max_length=200, blank=True, help_text="Optional; defaults to 'Session N'")
    date = models.DateTimeField(help_text="When the session takes place")
    order = models.PositiveIntegerField(help_text="Zero-based position within the course")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['course', 'order']
        constraints = [
            models.UniqueConstraint(fields=['course', 'order'], name='unique_session_order_per_course'),
        ]
        indexes = [
            models.Index(fields=['course', 'date'], name='session_course_date_idx'),
        ]

    def __str__(self):
        return f"{self.display_title} - {self.course.title}"

    @property
    def display_title(self):
        # order is the zero-based index, kept contiguous by reindex_sessions
        return self.title or f"Session {self.order + 1}"
