from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Set

from .errors import InvalidState, OutOfRange
from .models import AssessmentDefinition, AttemptRecord, QuestionDefinition, QuestionId, QuestionReview
from .scorer import DEFAULT_POINTS_PER_CORRECT, review, score
from .timer import CountdownTimer

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    CANCELLED = "cancelled"


@dataclass
class SessionState:
    assessment: AssessmentDefinition
    remaining_seconds: int
    started_at: datetime
    current_question_index: int = 0
    answers: Dict[QuestionId, int] = field(default_factory=dict)
    flagged: Set[QuestionId] = field(default_factory=set)
    submitted: bool = False
    cancelled: bool = False


class AssessmentSession:
    """
    Owns the single live attempt at an assessment.

    in_progress --submit() / timer at zero--> submitted (terminal)
    in_progress --cancel()-->                 cancelled (terminal, nothing recorded)
    """

    def __init__(
        self,
        assessment: AssessmentDefinition,
        user_id: Optional[str] = None,
        points_per_correct: int = DEFAULT_POINTS_PER_CORRECT,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = _utcnow,
    ):
        assessment.validate()
        self.user_id = user_id
        self.points_per_correct = points_per_correct
        self._now = now
        self.state = SessionState(
            assessment=assessment,
            remaining_seconds=assessment.time_limit_seconds,
            started_at=now(),
        )
        self.timer = CountdownTimer(
            assessment.time_limit_seconds, on_expire=self._on_timer_expired, clock=clock
        )
        self._record: Optional[AttemptRecord] = None

    @classmethod
    def start(cls, assessment: AssessmentDefinition, **kwargs) -> "AssessmentSession":
        session = cls(assessment, **kwargs)
        session.timer.start()
        logger.info(
            f"Started session on assessment {assessment.id} for user {session.user_id} "
            f"({len(assessment.questions)} questions, {assessment.time_limit_seconds}s)"
        )
        return session

    # ---------------------------
    # Read-only views
    # ---------------------------

    @property
    def assessment(self) -> AssessmentDefinition:
        return self.state.assessment

    @property
    def status(self) -> SessionStatus:
        if self.state.submitted:
            return SessionStatus.SUBMITTED
        if self.state.cancelled:
            return SessionStatus.CANCELLED
        return SessionStatus.IN_PROGRESS

    @property
    def current_question(self) -> QuestionDefinition:
        return self.assessment.questions[self.state.current_question_index]

    @property
    def answered_count(self) -> int:
        return len(self.state.answers)

    @property
    def flagged_count(self) -> int:
        return len(self.state.flagged)

    @property
    def time_spent_seconds(self) -> int:
        return self.assessment.time_limit_seconds - self.state.remaining_seconds

    @property
    def result(self) -> Optional[AttemptRecord]:
        return self._record

    def review(self) -> List[QuestionReview]:
        if not self.state.submitted:
            raise InvalidState("Review is only available after submission")
        return review(self.assessment, self.state.answers)

    # ---------------------------
    # Mutations
    # ---------------------------

    def select_answer(self, question_id: QuestionId, option_index: int) -> None:
        self._require_in_progress("select an answer")
        question = self._question(question_id)
        if isinstance(option_index, bool) or not isinstance(option_index, int):
            raise OutOfRange(f"Option index must be an integer, got {option_index!r}")
        if not 0 <= option_index < len(question.options):
            raise OutOfRange(
                f"Option {option_index} is outside 0..{len(question.options) - 1} "
                f"for question {question.id!r}"
            )
        self.state.answers[question.id] = option_index

    def toggle_flag(self, question_id: QuestionId) -> bool:
        self._require_in_progress("flag a question")
        question = self._question(question_id)
        if question.id in self.state.flagged:
            self.state.flagged.discard(question.id)
            return False
        self.state.flagged.add(question.id)
        return True

    def go_to(self, index: int) -> int:
        last = len(self.assessment.questions) - 1
        self.state.current_question_index = max(0, min(int(index), last))
        return self.state.current_question_index

    def next(self) -> int:
        return self.go_to(self.state.current_question_index + 1)

    def previous(self) -> int:
        return self.go_to(self.state.current_question_index - 1)

    def tick(self) -> None:
        self.timer.tick()
        self.state.remaining_seconds = self.timer.remaining

    def poll(self) -> None:
        """Bring the countdown up to date with the clock; may auto-submit."""
        self.timer.poll()
        self.state.remaining_seconds = self.timer.remaining

    def submit(self, auto: bool = False) -> AttemptRecord:
        """Finish the attempt. Calling it again returns the same record."""
        if self._record is not None:
            return self._record
        if self.state.cancelled:
            raise InvalidState("Cannot submit a cancelled session")

        self.state.submitted = True
        self.timer.stop()
        self.state.remaining_seconds = self.timer.remaining

        result = score(self.assessment, self.state.answers, self.points_per_correct)
        self._record = AttemptRecord(
            attempt_id=uuid.uuid4().hex,
            user_id=self.user_id,
            assessment_id=self.assessment.id,
            answers=dict(self.state.answers),
            score=result.score,
            max_score=result.max_score,
            correct_count=result.correct_count,
            wrong_count=result.wrong_count,
            empty_count=result.empty_count,
            passed=result.score >= self.assessment.passing_score,
            started_at=self.state.started_at,
            completed_at=self._now(),
            time_spent_seconds=self.time_spent_seconds,
            auto_submitted=auto,
        )
        logger.info(
            f"Submitted assessment {self.assessment.id} for user {self.user_id}: "
            f"score={result.score}/{result.max_score} correct={result.correct_count} "
            f"wrong={result.wrong_count} empty={result.empty_count} auto={auto}"
        )
        return self._record

    def cancel(self) -> None:
        """Leave the session: the timer stops and nothing is recorded."""
        if self.state.submitted or self.state.cancelled:
            return
        self.timer.stop()
        self.state.cancelled = True
        logger.info(f"Cancelled session on assessment {self.assessment.id} for user {self.user_id}")

    # ---------------------------
    # Internal helpers
    # ---------------------------

    def _on_timer_expired(self) -> None:
        if self.state.submitted or self.state.cancelled:
            return
        self.state.remaining_seconds = 0
        self.submit(auto=True)

    def _require_in_progress(self, action: str) -> None:
        if self.status is not SessionStatus.IN_PROGRESS:
            raise InvalidState(f"Cannot {action}: session is {self.status.value}")

    def _question(self, question_id: QuestionId) -> QuestionDefinition:
        question = self.assessment.find_question(question_id)
        if question is None:
            raise OutOfRange(
                f"Question {question_id!r} is not part of assessment {self.assessment.id}"
            )
        return question
