from django.contrib import admin
from .models import Assessment, Passage, Question, Choice, Submission, Answer


class PassageInline(admin.StackedInline):
    model = Passage
    extra = 0
    fields = ['order', 'title', 'content', 'image_url']
    show_change_link = True


class ChoiceInline(admin.TabularInline):
    model = Choice
    extra = 0
    max_num = 4
    fields = ['order', 'choice_text', 'is_correct']


@admin.register(Assessment)
class AssessmentAdmin(admin.ModelAdmin):
    list_display = ['title', 'kind', 'duration', 'created_by', 'created_at']
    list_filter = ['kind', 'created_at']
    search_fields = ['title', 'instructions']
    readonly_fields = ['id', 'created_at', 'updated_at']
    inlines = [PassageInline]


@admin.register(Question)
class QuestionAdmin(admin.ModelAdmin):
    list_display = ['question_text', 'passage', 'order']
    search_fields = ['question_text', 'passage__assessment__title']
    inlines = [ChoiceInline]


class AnswerInline(admin.TabularInline):
    model = Answer
    extra = 0
    fields = ['question', 'choice', 'is_correct']
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display = ['student', 'assessment', 'score', 'total_questions', 'percentage', 'submitted_at']
    list_filter = ['assessment__kind', 'submitted_at']
    search_fields = ['student__email', 'assessment__title']
    readonly_fields = ['id', 'student', 'assessment', 'score', 'total_questions', 'percentage', 'submitted_at']
    inlines = [AnswerInline]

    # Submissions are immutable
    def has_add_permission(self, request):
        return False
