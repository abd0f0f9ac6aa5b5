from django.contrib import admin
from .models import Attendance, Enrollment, AccessWindow


class AccessWindowInline(admin.TabularInline):
    model = AccessWindow
    extra = 0
    fields = ['access_type', 'start_session', 'end_session', 'template', 'created_at']
    readonly_fields = fields
    can_delete = False

    # Windows go through the API so conflicts and pricing are checked
    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ['student', 'course', 'status', 'requested_at', 'decided_at', 'decided_by']
    list_filter = ['status', 'course__type', 'requested_at']
    search_fields = ['student__email', 'student__first_name', 'student__last_name', 'course__title']
    readonly_fields = ['id', 'requested_at', 'decided_at', 'decided_by', 'updated_at']
    raw_id_fields = ['student', 'course']
    inlines = [AccessWindowInline]


@admin.register(AccessWindow)
class AccessWindowAdmin(admin.ModelAdmin):
    list_display = ['enrollment', 'access_type', 'start_session', 'end_session', 'template', 'created_at']
    list_filter = ['access_type', 'template']
    search_fields = ['enrollment__student__email', 'enrollment__course__title']
    readonly_fields = ['id', 'enrollment', 'access_type', 'start_session', 'end_session', 'template', 'created_at', 'updated_at']

    def has_add_permission(self, request):
        return False


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    list_display = ['student', 'session', 'status', 'recorded_by', 'updated_at']
    list_filter = ['status', 'session__course']
    search_fields = ['student__email', 'student__first_name', 'student__last_name', 'session__course__title']
    readonly_fields = ['id', 'created_at', 'updated_at']
    raw_id_fields = ['student', 'session', 'recorded_by']
