import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

from assessments.models import Submission
from .models import StudentProfile, User

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_student_profile(sender, instance, created, **kwargs):
    """
    Every student account gets a profile on creation.
    """
    if created and instance.role == User.Role.STUDENT:
        StudentProfile.objects.get_or_create(user=instance)


@receiver(post_save, sender=Submission)
def update_student_assessment_aggregates(sender, instance, created, **kwargs):
    """
    Refresh the student's denormalized performance numbers when a
    submission is recorded.
    """
    if not created:
        return
    profile, _ = StudentProfile.objects.get_or_create(user=instance.student)
    profile.recalculate_assessment_aggregates()
    logger.debug(
        "Updated assessment aggregates for %s: %s submissions",
        instance.student.email,
        profile.total_assessments_completed,
    )
