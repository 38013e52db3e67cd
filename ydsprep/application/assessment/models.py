from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Union

from .errors import InvalidAssessment

QuestionId = Union[str, int]


# ---------------------------
# Content
# ---------------------------

@dataclass(frozen=True)
class QuestionDefinition:
    id: QuestionId
    text: str
    options: Tuple[str, ...]
    correct_answer_index: int
    explanation: str = ""
    category: Optional[str] = None

    def validate(self) -> None:
        if not self.text or not self.text.strip():
            raise InvalidAssessment(f"Question {self.id!r} has no text")
        if len(self.options) < 2:
            raise InvalidAssessment(f"Question {self.id!r} must have at least 2 options")
        if not 0 <= self.correct_answer_index < len(self.options):
            raise InvalidAssessment(
                f"Question {self.id!r} has correct answer index {self.correct_answer_index} "
                f"outside 0..{len(self.options) - 1}"
            )


@dataclass(frozen=True)
class AssessmentDefinition:
    id: str
    title: str
    description: str
    time_limit_seconds: int
    passing_score: float
    questions: Tuple[QuestionDefinition, ...]

    def validate(self) -> None:
        """Raise InvalidAssessment unless the definition is playable."""
        if not self.questions:
            raise InvalidAssessment(f"Assessment {self.id!r} has no questions")
        if self.time_limit_seconds <= 0:
            raise InvalidAssessment(f"Assessment {self.id!r} needs a positive time limit")
        seen = set()
        for question in self.questions:
            question.validate()
            if question.id in seen:
                raise InvalidAssessment(
                    f"Assessment {self.id!r} repeats question id {question.id!r}"
                )
            seen.add(question.id)

    def find_question(self, question_id: QuestionId) -> Optional[QuestionDefinition]:
        # Ids coming over HTTP are strings even when the catalog uses integers
        for question in self.questions:
            if question.id == question_id:
                return question
        for question in self.questions:
            if str(question.id) == str(question_id):
                return question
        return None


# ---------------------------
# Results
# ---------------------------

@dataclass(frozen=True)
class ScoreResult:
    score: int
    correct_count: int
    wrong_count: int
    empty_count: int
    max_score: int

    @property
    def total(self) -> int:
        return self.correct_count + self.wrong_count + self.empty_count


@dataclass(frozen=True)
class AttemptRecord:
    """One finished pass through an assessment. Never mutated after creation."""

    attempt_id: str
    user_id: Optional[str]
    assessment_id: str
    answers: Dict[QuestionId, int]
    score: int
    max_score: int
    correct_count: int
    wrong_count: int
    empty_count: int
    passed: bool
    started_at: datetime
    completed_at: datetime
    time_spent_seconds: int = 0
    auto_submitted: bool = False

    @property
    def question_count(self) -> int:
        return self.correct_count + self.wrong_count + self.empty_count


@dataclass(frozen=True)
class QuestionReview:
    question_id: QuestionId
    selected_index: Optional[int]
    correct_answer_index: int
    is_correct: bool
    explanation: str = ""


@dataclass
class AssessmentSummary:
    id: str
    title: str
    description: str
    question_count: int
    time_limit_seconds: int
    passing_score: float
    source: str = "catalog"
    categories: List[str] = field(default_factory=list)
