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
            name="Course",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(help_text="Course title", max_length=200)),
                ("description", models.TextField(blank=True, help_text="Short course description")),
                ("type", models.CharField(choices=[("live", "Live"), ("finished", "Finished")], default="live", max_length=20)),
                ("price", models.DecimalField(blank=True, decimal_places=2, help_text="Course price in EGP (required for finished courses)", max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(0)])),
                ("status", models.CharField(choices=[("draft", "Draft"), ("published", "Published"), ("archived", "Archived")], default="draft", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("created_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="created_courses", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["status", "type"], name="course_status_type_idx")],
            },
        ),
        migrations.CreateModel(
            name="Session",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(blank=True, help_text="Optional; defaults to 'Session N'", max_length=200)),
                ("date", models.DateTimeField(help_text="When the session takes place")),
                ("order", models.PositiveIntegerField(help_text="Zero-based position within the course")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("course", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="sessions", to="courses.course")),
            ],
            options={
                "ordering": ["course", "order"],
                "indexes": [models.Index(fields=["course", "date"], name="session_course_date_idx")],
                "constraints": [models.UniqueConstraint(fields=("course", "order"), name="unique_session_order_per_course")],
            },
        ),
    ]
