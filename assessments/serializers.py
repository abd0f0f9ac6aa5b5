from django.db import transaction
from rest_framework import serializers

from backend.exceptions import AssessmentValidationError, ConflictError
from .models import Assessment, Passage, Question, Choice, Submission

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 255
INSTRUCTIONS_MAX_LENGTH = 2000
DURATION_MIN_MINUTES = 1
DURATION_MAX_MINUTES = 300
CHOICES_PER_QUESTION = 4


def _blank(value):
    return not isinstance(value, str) or not value.strip()


def collect_violations(data):
    """
    Every assessment rule broken by ``data`` (the raw request body), as
    ``[{'field': path, 'message': text}]``. Empty when the payload is valid.
    """
    if not isinstance(data, dict):
        return [{'field': 'non_field_errors', 'message': 'Expected an object'}]

    violations = []

    def violation(field, message):
        violations.append({'field': field, 'message': message})

    kind = data.get('kind', 'test')
    if kind not in dict(Assessment.KIND_CHOICES):
        violation('kind', 'Kind must be "test" or "homework"')

    title = data.get('title')
    if not isinstance(title, str) or not TITLE_MIN_LENGTH <= len(title.strip()) <= TITLE_MAX_LENGTH:
        violation('title', f'Title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters')

    instructions = data.get('instructions')
    if instructions is not None and (not isinstance(instructions, str) or len(instructions) > INSTRUCTIONS_MAX_LENGTH):
        violation('instructions', f'Instructions must be at most {INSTRUCTIONS_MAX_LENGTH} characters')

    duration = data.get('duration')
    if duration is not None:
        if kind == 'homework':
            violation('duration', 'Homework is untimed and cannot have a duration')
        elif isinstance(duration, bool) or not isinstance(duration, int) \
                or not DURATION_MIN_MINUTES <= duration <= DURATION_MAX_MINUTES:
            violation('duration', f'Duration must be between {DURATION_MIN_MINUTES} and {DURATION_MAX_MINUTES} minutes')

    passages = data.get('passages')
    if not isinstance(passages, list) or not passages:
        violation('passages', 'At least one passage is required')
        return violations

    for p_index, passage in enumerate(passages):
        p_path = f'passages[{p_index}]'
        if not isinstance(passage, dict):
            violation(p_path, 'Passage must be an object')
            continue
        if _blank(passage.get('content')):
            violation(f'{p_path}.content', 'Passage content is required')

        questions = passage.get('questions')
        if not isinstance(questions, list) or not questions:
            violation(f'{p_path}.questions', 'Each passage needs at least one question')
            continue

        for q_index, question in enumerate(questions):
            q_path = f'{p_path}.questions[{q_index}]'
            if not isinstance(question, dict):
                violation(q_path, 'Question must be an object')
                continue
            if _blank(question.get('questionText')):
                violation(f'{q_path}.questionText', 'Question text is required')

            choices = question.get('choices')
            if not isinstance(choices, list):
                choices = []
            if len(choices) != CHOICES_PER_QUESTION:
                violation(
                    f'{q_path}.choices',
                    f'Each question must have exactly {CHOICES_PER_QUESTION} choices (found {len(choices)})',
                )
            correct = 0
            for c_index, choice in enumerate(choices):
                c_path = f'{q_path}.choices[{c_index}]'
                if not isinstance(choice, dict):
                    violation(c_path, 'Choice must be an object')
                    continue
                if _blank(choice.get('choiceText')):
                    violation(f'{c_path}.choiceText', 'Choice text is required')
                if choice.get('isCorrect') is True:
                    correct += 1
            if correct != 1:
                violation(
                    f'{q_path}.choices',
                    f'Each question must have exactly one correct choice (found {correct})',
                )

    return violations


def _flatten_errors(detail, path=''):
    """DRF error detail -> ``[{'field', 'message'}]``"""
    if isinstance(detail, dict):
        flat = []
        for key, value in detail.items():
            child = key if not path else f'{path}.{key}'
            flat.extend(_flatten_errors(value, child))
        return flat
    if isinstance(detail, list):
        if all(not isinstance(item, (dict, list)) for item in detail):
            return [{'field': path or 'non_field_errors', 'message': str(item)} for item in detail]
        flat = []
        for index, item in enumerate(detail):
            if item:
                flat.extend(_flatten_errors(item, f'{path}[{index}]'))
        return flat
    return [{'field': path or 'non_field_errors', 'message': str(detail)}]


# ===== WRITE SERIALIZERS =====

class ChoiceInputSerializer(serializers.Serializer):
    choiceText = serializers.CharField(allow_blank=True, trim_whitespace=False)
    isCorrect = serializers.BooleanField(default=False)


class QuestionInputSerializer(serializers.Serializer):
    questionText = serializers.CharField(allow_blank=True)
    choices = ChoiceInputSerializer(many=True, allow_empty=True)


class PassageInputSerializer(serializers.Serializer):
    title = serializers.CharField(required=False, allow_blank=True, max_length=255)
    content = serializers.CharField(allow_blank=True)
    imageUrl = serializers.URLField(required=False, allow_blank=True, allow_null=True)
    questions = QuestionInputSerializer(many=True, allow_empty=True)


class AssessmentWriteSerializer(serializers.Serializer):
    """
    Nested create/replace of an assessment.

    Invalid payloads raise AssessmentValidationError (422) listing every
    violated rule, not only the first one.
    """
    kind = serializers.ChoiceField(choices=Assessment.KIND_CHOICES, default='test')
    title = serializers.CharField(allow_blank=True)
    instructions = serializers.CharField(required=False, allow_blank=True, default='')
    duration = serializers.IntegerField(required=False, allow_null=True, default=None)
    passages = PassageInputSerializer(many=True, allow_empty=True)

    def is_valid(self, raise_exception=False):
        super().is_valid(raise_exception=False)
        violations = collect_violations(self.initial_data)
        reported = {item['field'] for item in violations}
        for error in _flatten_errors(self._errors):
            if error['field'] not in reported:
                violations.append(error)

        if violations:
            self._errors = {'violations': violations}
            self._validated_data = {}
            if raise_exception:
                raise AssessmentValidationError(
                    f'Assessment has {len(violations)} validation error(s)',
                    details={'violations': violations},
                )
        return not violations

    def _create_passages(self, assessment, passages):
        for p_order, passage_data in enumerate(passages):
            passage = Passage.objects.create(
                assessment=assessment,
                title=passage_data.get('title', ''),
                content=passage_data['content'],
                image_url=passage_data.get('imageUrl') or None,
                order=p_order,
            )
            for q_order, question_data in enumerate(passage_data['questions']):
                question = Question.objects.create(
                    passage=passage,
                    question_text=question_data['questionText'],
                    order=q_order,
                )
                Choice.objects.bulk_create([
                    Choice(
                        question=question,
                        choice_text=choice_data['choiceText'],
                        is_correct=choice_data['isCorrect'],
                        order=c_order,
                    )
                    for c_order, choice_data in enumerate(question_data['choices'])
                ])

    def create(self, validated_data):
        passages = validated_data.pop('passages')
        with transaction.atomic():
            assessment = Assessment.objects.create(
                kind=validated_data['kind'],
                title=validated_data['title'].strip(),
                instructions=validated_data.get('instructions', ''),
                duration=validated_data.get('duration'),
                created_by=validated_data.get('created_by'),
            )
            self._create_passages(assessment, passages)
        return assessment

    def update(self, instance, validated_data):
        passages = validated_data.pop('passages')
        with transaction.atomic():
            instance = Assessment.objects.select_for_update().get(id=instance.id)
            if instance.submissions.exists():
                raise ConflictError('Assessment already has submissions; its questions cannot be replaced')
            instance.kind = validated_data['kind']
            instance.title = validated_data['title'].strip()
            instance.instructions = validated_data.get('instructions', '')
            instance.duration = validated_data.get('duration')
            instance.save()
            instance.passages.all().delete()
            self._create_passages(instance, passages)
        return instance


# ===== READ SERIALIZERS =====

class ChoiceSerializer(serializers.ModelSerializer):
    choiceText = serializers.CharField(source='choice_text')
    isCorrect = serializers.BooleanField(source='is_correct')

    class Meta:
        model = Choice
        fields = ['id', 'choiceText', 'isCorrect', 'order']


class QuestionSerializer(serializers.ModelSerializer):
    questionText = serializers.CharField(source='question_text')
    choices = ChoiceSerializer(many=True, read_only=True)

    class Meta:
        model = Question
        fields = ['id', 'questionText', 'order', 'choices']


class PassageSerializer(serializers.ModelSerializer):
    imageUrl = serializers.URLField(source='image_url', allow_null=True)
    questions = QuestionSerializer(many=True, read_only=True)

    class Meta:
        model = Passage
        fields = ['id', 'title', 'content', 'imageUrl', 'order', 'questions']


class AssessmentListSerializer(serializers.ModelSerializer):
    questionCount = serializers.IntegerField(source='question_count', read_only=True)
    submissionCount = serializers.IntegerField(source='submission_count', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Assessment
        fields = ['id', 'kind', 'title', 'duration', 'questionCount', 'submissionCount', 'createdAt']


class AssessmentDetailSerializer(serializers.ModelSerializer):
    """
    Full assessment including the answer key (admins only)
    """
    passages = PassageSerializer(many=True, read_only=True)
    totalQuestions = serializers.IntegerField(source='total_questions', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Assessment
        fields = [
            'id', 'kind', 'title', 'instructions', 'duration', 'totalQuestions',
            'passages', 'createdAt', 'updatedAt'
        ]


class StudentChoiceSerializer(serializers.ModelSerializer):
    choiceText = serializers.CharField(source='choice_text')

    class Meta:
        model = Choice
        fields = ['id', 'choiceText', 'order']


class StudentQuestionSerializer(serializers.ModelSerializer):
    questionText = serializers.CharField(source='question_text')
    choices = StudentChoiceSerializer(many=True, read_only=True)

    class Meta:
        model = Question
        fields = ['id', 'questionText', 'order', 'choices']


class StudentPassageSerializer(serializers.ModelSerializer):
    imageUrl = serializers.URLField(source='image_url', allow_null=True)
    questions = StudentQuestionSerializer(many=True, read_only=True)

    class Meta:
        model = Passage
        fields = ['id', 'title', 'content', 'imageUrl', 'order', 'questions']


class StudentAssessmentSerializer(serializers.ModelSerializer):
    """
    Assessment for taking an attempt: no choice carries ``isCorrect``
    """
    passages = StudentPassageSerializer(many=True, read_only=True)
    totalQuestions = serializers.IntegerField(source='total_questions', read_only=True)

    class Meta:
        model = Assessment
        fields = ['id', 'kind', 'title', 'instructions', 'duration', 'totalQuestions', 'passages']


class SubmissionResultSerializer(serializers.ModelSerializer):
    assessmentId = serializers.UUIDField(source='assessment_id', read_only=True)
    totalQuestions = serializers.IntegerField(source='total_questions', read_only=True)
    submittedAt = serializers.DateTimeField(source='submitted_at', read_only=True)

    class Meta:
        model = Submission
        fields = ['id', 'assessmentId', 'score', 'totalQuestions', 'percentage', 'submittedAt']


class SubmissionReviewSerializer(SubmissionResultSerializer):
    """
    Submission with every question, the student's pick and the correct answer
    """
    assessmentTitle = serializers.CharField(source='assessment.title', read_only=True)
    questions = serializers.SerializerMethodField()

    class Meta(SubmissionResultSerializer.Meta):
        fields = SubmissionResultSerializer.Meta.fields + ['assessmentTitle', 'questions']

    def get_questions(self, obj):
        answers = {answer.question_id: answer for answer in obj.answers.select_related('choice')}
        review = []
        questions = obj.assessment.questions().select_related('passage').prefetch_related('choices')
        for number, question in enumerate(questions, start=1):
            answer = answers.get(question.id)
            selected = answer.choice if answer else None
            correct = question.correct_choice
            review.append({
                'number': number,
                'questionId': str(question.id),
                'questionText': question.question_text,
                'passage': {
                    'id': str(question.passage.id),
                    'title': question.passage.title,
                    'content': question.passage.content,
                    'imageUrl': question.passage.image_url,
                },
                'selectedChoiceId': str(selected.id) if selected else None,
                'selectedAnswer': selected.choice_text if selected else 'Not answered',
                'correctChoiceId': str(correct.id) if correct else None,
                'correctAnswer': correct.choice_text if correct else None,
                'isCorrect': bool(answer and answer.is_correct),
                'choices': [
                    {
                        'id': str(choice.id),
                        'choiceText': choice.choice_text,
                        'isCorrect': choice.is_correct,
                        'isSelected': selected is not None and choice.id == selected.id,
                    }
                    for choice in question.choices.all()
                ],
            })
        return review
