from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List

from .models import AttemptRecord
from .scorer import percentage, round_half_up

TREND_THRESHOLD = 5


@dataclass
class AssessmentProgress:
    assessment_id: str
    attempts: int
    best_score: int
    average_score: int
    last_attempt_at: datetime
    trend: str


@dataclass
class ProgressOverview:
    total_attempts: int
    questions_answered: int
    correct_answers: int
    accuracy: int
    assessments: List[AssessmentProgress]


def _mean(values: List[int]) -> float:
    return sum(values) / len(values) if values else 0.0


def score_trend(scores: List[int]) -> str:
    """
    Compare the mean of the last three scores with the mean of all but the last two.
    Scores are in chronological order.
    """
    if len(scores) < 2:
        return "stable"
    recent = _mean(scores[-3:])
    earlier = sum(scores[:-2]) / max(1, len(scores) - 2)
    if recent > earlier + TREND_THRESHOLD:
        return "improving"
    if recent < earlier - TREND_THRESHOLD:
        return "declining"
    return "stable"


def summarize_progress(attempts: Iterable[AttemptRecord]) -> ProgressOverview:
    ordered = sorted(attempts, key=lambda a: a.completed_at)

    grouped: "OrderedDict[str, List[AttemptRecord]]" = OrderedDict()
    for attempt in ordered:
        grouped.setdefault(attempt.assessment_id, []).append(attempt)

    per_assessment = []
    for assessment_id, records in grouped.items():
        scores = [r.score for r in records]
        per_assessment.append(
            AssessmentProgress(
                assessment_id=assessment_id,
                attempts=len(records),
                best_score=max(scores),
                average_score=round_half_up(_mean(scores)),
                last_attempt_at=records[-1].completed_at,
                trend=score_trend(scores),
            )
        )

    answered = sum(a.question_count for a in ordered)
    correct = sum(a.correct_count for a in ordered)
    return ProgressOverview(
        total_attempts=len(ordered),
        questions_answered=answered,
        correct_answers=correct,
        accuracy=percentage(correct, answered),
        assessments=per_assessment,
    )
