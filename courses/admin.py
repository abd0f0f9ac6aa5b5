from django.contrib import admin
from .models import Course, Session
from .session_ordering import delete_course


class SessionInline(admin.TabularInline):
    model = Session
    extra = 0
    fields = ['order', 'title', 'date']
    readonly_fields = ['order', 'title', 'date']
    ordering = ['order']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        # Sessions are created through the API so the course gets re-indexed
        return False


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ['title', 'type', 'price', 'status', 'total_sessions', 'created_at']
    list_filter = ['status', 'type', 'created_at']
    search_fields = ['title', 'description']
    readonly_fields = ['id', 'created_at', 'updated_at', 'total_sessions']
    inlines = [SessionInline]
    actions = ['publish_courses', 'archive_courses']

    def publish_courses(self, request, queryset):
        updated = queryset.filter(status='draft').update(status='published')
        self.message_user(request, f'{updated} courses were published.')
    publish_courses.short_description = "Publish selected draft courses"

    def archive_courses(self, request, queryset):
        updated = queryset.update(status='archived')
        self.message_user(request, f'{updated} courses were archived.')
    archive_courses.short_description = "Archive selected courses"

    def get_deleted_objects(self, objs, request):
        # The only protected rows are the courses' own access windows, which delete_course removes
        deleted_objects, model_count, perms_needed, _ = super().get_deleted_objects(objs, request)
        return deleted_objects, model_count, perms_needed, []

    def delete_model(self, request, obj):
        delete_course(obj)

    def delete_queryset(self, request, queryset):
        for course in queryset:
            delete_course(course)

    fieldsets = (
        ('Basic Information', {
            'fields': ('title', 'description', 'type', 'price', 'status', 'created_by')
        }),
        ('Metadata', {
            'fields': ('id', 'created_at', 'updated_at', 'total_sessions'),
            'classes': ('collapse',)
        }),
    )


@admin.register(Session)
class SessionAdmin(admin.ModelAdmin):
    list_display = ['display_title', 'course', 'order', 'date']
    list_filter = ['course']
    search_fields = ['title', 'course__title']
    readonly_fields = ['id', 'course', 'order', 'date', 'created_at', 'updated_at']
    ordering = ['course', 'order']

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
