import django.db.models.deletion
import uuid
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("courses", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Enrollment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("status", models.CharField(choices=[("pending", "Pending Approval"), ("approved", "Approved"), ("rejected", "Rejected")], default="pending", max_length=20)),
                ("requested_at", models.DateTimeField(auto_now_add=True)),
                ("decided_at", models.DateTimeField(blank=True, null=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("course", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="enrollments", to="courses.course")),
                ("decided_by", models.ForeignKey(blank=True, help_text="Admin who approved or rejected the request", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="decided_enrollments", to=settings.AUTH_USER_MODEL)),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="enrollments", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-requested_at"],
                "indexes": [models.Index(fields=["course", "status"], name="enrollment_course_status_idx")],
                "constraints": [models.UniqueConstraint(fields=("student", "course"), name="unique_enrollment_per_course")],
            },
        ),
        migrations.CreateModel(
            name="AccessWindow",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("access_type", models.CharField(choices=[("partial", "Partial"), ("late_join", "Late Join")], default="partial", max_length=20)),
                ("template", models.CharField(blank=True, choices=[("late_join", "Late Join"), ("sample", "Sample"), ("intensive", "Intensive")], help_text="Pricing template whose discount applies to this window", max_length=20, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("end_session", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="windows_ending_here", to="courses.session")),
                ("enrollment", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="access_windows", to="student.enrollment")),
                ("start_session", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="windows_starting_here", to="courses.session")),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["enrollment"], name="access_window_enrollment_idx")],
            },
        ),
    ]
