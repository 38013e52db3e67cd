from datetime import datetime
from pydantic import BaseModel
from typing import Dict, List, Literal, Optional, Union

QuestionIdIn = Union[int, str]


class AssessmentSummaryOut(BaseModel):
    id: str
    title: str
    description: str
    question_count: int
    time_limit_seconds: int
    passing_score: float
    max_score: int
    source: str
    categories: List[str] = []


class QuestionPublicOut(BaseModel):
    """Question as shown while the assessment is running: no answer, no explanation."""
    id: QuestionIdIn
    text: str
    options: List[str]


class AssessmentOut(BaseModel):
    id: str
    title: str
    description: str
    time_limit_seconds: int
    passing_score: float
    max_score: int
    questions: List[QuestionPublicOut]


class AnswerRequest(BaseModel):
    question_id: QuestionIdIn
    option_index: int


class NavigateRequest(BaseModel):
    action: Literal["next", "previous", "goto"]
    index: Optional[int] = None


class QuestionReviewOut(BaseModel):
    question_id: QuestionIdIn
    selected_index: Optional[int] = None
    correct_answer_index: int
    is_correct: bool
    explanation: str = ""


class AttemptOut(BaseModel):
    attempt_id: str
    assessment_id: str
    answers: Dict[str, int]
    score: int
    max_score: int
    percentage: int
    correct_count: int
    wrong_count: int
    empty_count: int
    passed: bool
    auto_submitted: bool
    time_spent_seconds: int
    started_at: datetime
    completed_at: datetime


class SessionOut(BaseModel):
    assessment_id: str
    status: str
    current_question_index: int
    current_question: QuestionPublicOut
    answers: Dict[str, int]
    flagged: List[str]
    answered_count: int
    flagged_count: int
    total_questions: int
    remaining_seconds: int
    result: Optional[AttemptOut] = None
    review: Optional[List[QuestionReviewOut]] = None
    warning: Optional[str] = None


class AnswerResponse(BaseModel):
    accepted: bool
    session: SessionOut


class FlagResponse(BaseModel):
    question_id: QuestionIdIn
    flagged: bool


class AssessmentProgressOut(BaseModel):
    assessment_id: str
    attempts: int
    best_score: int
    average_score: int
    last_attempt_at: datetime
    trend: str


class ProgressOut(BaseModel):
    total_attempts: int
    questions_answered: int
    correct_answers: int
    accuracy: int
    assessments: List[AssessmentProgressOut]


class StudentOverviewOut(BaseModel):
    user_id: str
    attempts: int
    average_score: float
    best_score: int
    last_attempt_at: Optional[datetime] = None
