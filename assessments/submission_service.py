"""
One-shot assessment submission.

``submit_assessment`` checks, in order: an earlier submission exists,
the answer list is empty, an answer is malformed or names a question of
another assessment. Only then are the answers graded and stored, in one
transaction with the unique (student, assessment) constraint as the
final word on duplicates.
"""
import logging
import uuid

from django.db import IntegrityError, transaction

from backend.exceptions import DuplicateSubmission, EmptyAnswers, InvalidAnswerShape
from .grading import build_answer_key, grade_against_key
from .models import Answer, Submission

logger = logging.getLogger(__name__)


def _parse_uuid(value):
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str):
        raise ValueError(value)
    return uuid.UUID(value)


def normalize_answers(answers, answer_key):
    """
    Validate the answer list shape and return ``[{'questionId', 'choiceId'}]``
    with string ids. Raises EmptyAnswers or InvalidAnswerShape; only the
    questionId is checked, a choiceId that names no choice is just wrong.
    """
    if answers is None or (isinstance(answers, (list, tuple)) and not answers):
        raise EmptyAnswers()
    if not isinstance(answers, (list, tuple)):
        raise InvalidAnswerShape('Answers must be a list')

    normalized = []
    seen = set()
    for position, answer in enumerate(answers):
        if not isinstance(answer, dict) or 'questionId' not in answer:
            raise InvalidAnswerShape(
                'Each answer must be an object with a questionId',
                details={'index': position},
            )
        try:
            question_id = str(_parse_uuid(answer['questionId']))
        except ValueError:
            raise InvalidAnswerShape('questionId must be a valid UUID', details={'index': position})
        if question_id not in answer_key:
            raise InvalidAnswerShape(
                'Answer references a question that is not part of this assessment',
                details={'index': position, 'questionId': question_id},
            )
        if question_id in seen:
            raise InvalidAnswerShape(
                'Question answered more than once',
                details={'index': position, 'questionId': question_id},
            )
        seen.add(question_id)

        choice_id = answer.get('choiceId')
        if choice_id is not None:
            try:
                choice_id = str(_parse_uuid(choice_id))
            except ValueError:
                # Matches no choice, so it is graded wrong and stored as unanswered
                choice_id = str(choice_id)
        normalized.append({'questionId': question_id, 'choiceId': choice_id})
    return normalized


def submit_assessment(student, assessment, answers):
    """
    Grade and store ``student``'s only submission for ``assessment``.

    Returns ``(submission, grade_result)``.
    """
    if Submission.objects.filter(student=student, assessment=assessment).exists():
        logger.warning("Duplicate submission for assessment %s by %s", assessment.id, student.email)
        raise DuplicateSubmission()

    answer_key = build_answer_key(assessment)
    normalized = normalize_answers(answers, answer_key)

    try:
        with transaction.atomic():
            result = grade_against_key(answer_key, normalized)
            submission = Submission.objects.create(
                student=student,
                assessment=assessment,
                score=result.score,
                total_questions=result.total_questions,
                percentage=result.percentage,
            )
            Answer.objects.bulk_create([
                Answer(
                    submission=submission,
                    question_id=graded.question_id,
                    # A choice from another question is stored as unanswered
                    choice_id=graded.choice_id if graded.choice_id in answer_key[graded.question_id] else None,
                    is_correct=graded.is_correct,
                )
                for graded in result.answers
            ])
    except IntegrityError:
        # Lost a race with a concurrent submission of the same student
        logger.warning("Concurrent duplicate submission for assessment %s by %s", assessment.id, student.email)
        raise DuplicateSubmission()

    logger.info(
        "Submission %s graded for %s on assessment %s: %s/%s",
        submission.id, student.email, assessment.id, result.score, result.total_questions,
    )
    return submission, result
