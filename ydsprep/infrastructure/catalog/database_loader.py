import logging
from typing import List

from sqlalchemy.orm import Session

from ydsprep.application.assessment.errors import InvalidAssessment, NotFound
from ydsprep.application.assessment.models import (
    AssessmentDefinition,
    AssessmentSummary,
    QuestionDefinition,
)
from ydsprep.infrastructure.db.models.exam_model import ExamModel
from .content_loader import ContentLoader, summarize

logger = logging.getLogger(__name__)

EXAM_ID_PREFIX = "exam-"


def exam_assessment_id(exam_id: int) -> str:
    return f"{EXAM_ID_PREFIX}{exam_id}"


def exam_to_definition(exam: ExamModel) -> AssessmentDefinition:
    assessment = AssessmentDefinition(
        id=exam_assessment_id(exam.id),
        title=exam.title,
        description=exam.description or "",
        time_limit_seconds=exam.duration_minutes * 60,
        passing_score=exam.passing_score,
        questions=tuple(
            QuestionDefinition(
                id=q.id,
                text=q.question_text,
                options=tuple(q.options or ()),
                correct_answer_index=q.correct_answer_index,
                explanation=q.explanation or "",
                category=q.category,
            )
            for q in exam.questions
        ),
    )
    assessment.validate()
    return assessment


class DatabaseContentLoader(ContentLoader):
    """Admin-authored, active exams exposed as assessments ``exam-<id>``."""

    def __init__(self, db: Session):
        self.db = db

    def load(self, assessment_id: str) -> AssessmentDefinition:
        if not assessment_id.startswith(EXAM_ID_PREFIX):
            raise NotFound(f"Assessment {assessment_id!r} not found")
        raw_id = assessment_id[len(EXAM_ID_PREFIX):]
        if not raw_id.isdigit():
            raise NotFound(f"Assessment {assessment_id!r} not found")

        exam = (
            self.db.query(ExamModel)
            .filter(ExamModel.id == int(raw_id), ExamModel.is_active.is_(True))
            .first()
        )
        if exam is None:
            raise NotFound(f"Assessment {assessment_id!r} not found")
        return exam_to_definition(exam)

    def list_assessments(self) -> List[AssessmentSummary]:
        summaries = []
        exams = self.db.query(ExamModel).filter(ExamModel.is_active.is_(True)).order_by(ExamModel.id).all()
        for exam in exams:
            try:
                summaries.append(summarize(exam_to_definition(exam), "exam"))
            except InvalidAssessment as e:
                # Exams without questions yet are not playable
                logger.debug(f"Exam {exam.id} not listed: {e}")
        return summaries
