from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
import uuid


class Assessment(models.Model):
    """
    A SAT test (timed) or homework (untimed). Both are an ordered list of
    reading passages, each with multiple-choice questions.
    """
    KIND_CHOICES = [
        ('test', 'Test'),
        ('homework', 'Homework'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    kind = models.CharField(max_length=20, choices=KIND_CHOICES, default='test')
    title = models.CharField(max_length=255)
    instructions = models.TextField(blank=True, max_length=2000)
    duration = models.PositiveIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(300)],
        help_text="Time limit in minutes; empty means untimed"
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_assessments'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['kind', 'created_at'], name='assessment_kind_created_idx'),
        ]

    def __str__(self):
        return f"{self.get_kind_display()}: {self.title}"

    @property
    def is_timed(self):
        return self.duration is not None

    def questions(self):
        """All questions across passages, in passage then question order."""
        return Question.objects.filter(passage__assessment=self).order_by('passage__order', 'order')

    @property
    def total_questions(self):
        return self.questions().count()


class Passage(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    assessment = models.ForeignKey(Assessment, on_delete=models.CASCADE, related_name='passages')
    title = models.CharField(max_length=255, blank=True)
    content = models.TextField(help_text="Passage text (may contain rich text markup)")
    image_url = models.URLField(blank=True, null=True)
    order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['order']

    def __str__(self):
        return self.title or f"Passage {self.order + 1}"


class Question(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    passage = models.ForeignKey(Passage, on_delete=models.CASCADE, related_name='questions')
    question_text = models.TextField()
    order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['order']

    def __str__(self):
        return self.question_text[:50]

    @property
    def correct_choice(self):
        return next((choice for choice in self.choices.all() if choice.is_correct), None)


class Choice(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    question = models.ForeignKey(Question, on_delete=models.CASCADE, related_name='choices')
    choice_text = models.TextField()
    is_correct = models.BooleanField(default=False)
    order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['order']

    def __str__(self):
        return self.choice_text[:50]


class Submission(models.Model):
    """
    A student's single graded attempt at an assessment. Immutable once
    created; a second attempt is rejected, never merged.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='assessment_submissions'
    )
    assessment = models.ForeignKey(Assessment, on_delete=models.CASCADE, related_name='submissions')
    score = models.PositiveIntegerField()
    total_questions = models.PositiveIntegerField()
    percentage = models.FloatField()
    submitted_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-submitted_at']
        constraints = [
            models.UniqueConstraint(fields=['student', 'assessment'], name='unique_submission_per_assessment'),
        ]

    def __str__(self):
        return f"{self.student.email} - {self.assessment.title} ({self.score}/{self.total_questions})"


class Answer(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    submission = models.ForeignKey(Submission, on_delete=models.CASCADE, related_name='answers')
    question = models.ForeignKey(Question, on_delete=models.CASCADE, related_name='answers')
    choice = models.ForeignKey(
        Choice,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='answers',
        help_text="Empty when the question was left unanswered"
    )
    is_correct = models.BooleanField(default=False)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['submission', 'question'], name='unique_answer_per_question'),
        ]

    def __str__(self):
        return f"Answer to {self.question_id} ({'correct' if self.is_correct else 'incorrect'})"
