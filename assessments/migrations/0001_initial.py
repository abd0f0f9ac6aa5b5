import django.core.validators
import django.db.models.deletion
import uuid
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Assessment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("kind", models.CharField(choices=[("test", "Test"), ("homework", "Homework")], default="test", max_length=20)),
                ("title", models.CharField(max_length=255)),
                ("instructions", models.TextField(blank=True, max_length=2000)),
                ("duration", models.PositiveIntegerField(blank=True, help_text="Time limit in minutes; empty means untimed", null=True, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(300)])),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="created_assessments", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["kind", "created_at"], name="assessment_kind_created_idx")],
            },
        ),
        migrations.CreateModel(
            name="Passage",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(blank=True, max_length=255)),
                ("content", models.TextField(help_text="Passage text (may contain rich text markup)")),
                ("image_url", models.URLField(blank=True, null=True)),
                ("order", models.PositiveIntegerField(default=0)),
                ("assessment", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="passages", to="assessments.assessment")),
            ],
            options={
                "ordering": ["order"],
            },
        ),
        migrations.CreateModel(
            name="Question",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("question_text", models.TextField()),
                ("order", models.PositiveIntegerField(default=0)),
                ("passage", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="questions", to="assessments.passage")),
            ],
            options={
                "ordering": ["order"],
            },
        ),
        migrations.CreateModel(
            name="Choice",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("choice_text", models.TextField()),
                ("is_correct", models.BooleanField(default=False)),
                ("order", models.PositiveIntegerField(default=0)),
                ("question", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="choices", to="assessments.question")),
            ],
            options={
                "ordering": ["order"],
            },
        ),
        migrations.CreateModel(
            name="Submission",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("score", models.PositiveIntegerField()),
                ("total_questions", models.PositiveIntegerField()),
                ("percentage", models.FloatField()),
                ("submitted_at", models.DateTimeField(auto_now_add=True)),
                ("assessment", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="submissions", to="assessments.assessment")),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="assessment_submissions", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-submitted_at"],
                "constraints": [models.UniqueConstraint(fields=("student", "assessment"), name="unique_submission_per_assessment")],
            },
        ),
        migrations.CreateModel(
            name="Answer",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("is_correct", models.BooleanField(default=False)),
                ("choice", models.ForeignKey(blank=True, help_text="Empty when the question was left unanswered", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="answers", to="assessments.choice")),
                ("question", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="answers", to="assessments.question")),
                ("submission", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="answers", to="assessments.submission")),
            ],
            options={
                "constraints": [models.UniqueConstraint(fields=("submission", "question"), name="unique_answer_per_question")],
            },
        ),
    ]
