from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, List

from .models import AssessmentDefinition, ScoreResult, QuestionReview, QuestionId

DEFAULT_POINTS_PER_CORRECT = 4


def score(
    assessment: AssessmentDefinition,
    answers: Mapping[QuestionId, int],
    points_per_correct: int = DEFAULT_POINTS_PER_CORRECT,
) -> ScoreResult:
    """
    Score an answer sheet against an assessment.

    Wrong and empty answers are both worth zero points; there is no negative
    marking for guessing.
    """
    correct = wrong = empty = 0
    for question in assessment.questions:
        if question.id not in answers:
            empty += 1
        elif answers[question.id] == question.correct_answer_index:
            correct += 1
        else:
            wrong += 1

    return ScoreResult(
        score=correct * points_per_correct,
        correct_count=correct,
        wrong_count=wrong,
        empty_count=empty,
        max_score=len(assessment.questions) * points_per_correct,
    )


def round_half_up(value) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3), unlike round()."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percentage(part: float, whole: float) -> int:
    if not whole:
        return 0
    return round_half_up(Decimal(str(part)) * 100 / Decimal(str(whole)))


def review(assessment: AssessmentDefinition, answers: Mapping[QuestionId, int]) -> List[QuestionReview]:
    return [
        QuestionReview(
            question_id=q.id,
            selected_index=answers.get(q.id),
            correct_answer_index=q.correct_answer_index,
            is_correct=answers.get(q.id) == q.correct_answer_index,
            explanation=q.explanation,
        )
        for q in assessment.questions
    ]
