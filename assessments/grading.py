"""
Scoring of multiple-choice answers.

Every question counts toward the total. A question scores only when the
submitted choice belongs to it and is the correct one; unanswered
questions and choices from another question score nothing but never
fail the submission.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from backend.exceptions import ValidationError


@dataclass
class GradedAnswer:
    question_id: str
    choice_id: Optional[str]
    is_correct: bool


@dataclass
class GradeResult:
    score: int
    total_questions: int
    percentage: float
    answers: List[GradedAnswer] = field(default_factory=list)

    def as_dict(self):
        return {
            'score': self.score,
            'totalQuestions': self.total_questions,
            'percentage': self.percentage,
        }


def build_answer_key(assessment) -> Dict[str, Dict[str, bool]]:
    """``{question_id: {choice_id: is_correct}}`` for every question of ``assessment``."""
    answer_key = {}
    for question in assessment.questions().prefetch_related('choices'):
        answer_key[str(question.id)] = {str(choice.id): choice.is_correct for choice in question.choices.all()}
    return answer_key


def grade_against_key(answer_key: Dict[str, Dict[str, bool]], answers) -> GradeResult:
    """
    Grade ``answers`` (``[{'questionId', 'choiceId'}]``) against an answer key.

    The percentage is not rounded; display code does that.
    """
    submitted = {}
    for answer in answers:
        choice_id = answer.get('choiceId')
        submitted[str(answer['questionId'])] = str(choice_id) if choice_id is not None else None

    graded = []
    score = 0
    for question_id, choices in answer_key.items():
        choice_id = submitted.get(question_id)
        is_correct = choice_id is not None and choices.get(choice_id, False)
        if is_correct:
            score += 1
        graded.append(GradedAnswer(question_id, choice_id, is_correct))

    total = len(answer_key)
    if not total:
        # Creation-time validation guarantees at least one question
        raise ValidationError('Cannot grade an assessment without questions')

    return GradeResult(
        score=score,
        total_questions=total,
        percentage=score / total * 100,
        answers=graded,
    )


def grade(assessment, answers) -> GradeResult:
    return grade_against_key(build_answer_key(assessment), answers)
