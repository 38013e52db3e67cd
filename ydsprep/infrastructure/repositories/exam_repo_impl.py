from typing import List
from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from ydsprep.infrastructure.db.models.exam_model import ExamModel, ExamQuestionModel
from ydsprep.presentation.schemas.exam_schema import ExamCreate, ExamUpdate, QuestionCreate
import logging

logger = logging.getLogger(__name__)


def validate_question(data: QuestionCreate) -> None:
    if not data.question_text or not data.question_text.strip():
        raise ValueError("Question text must not be empty")
    if len(data.options) < 2:
        raise ValueError("Question must have at least 2 options")
    if any(not o.strip() for o in data.options):
        raise ValueError("Options must not be empty")
    if not 0 <= data.correct_answer_index < len(data.options):
        raise ValueError(
            f"Correct answer index {data.correct_answer_index} is outside 0..{len(data.options) - 1}"
        )


def _build_question(data: QuestionCreate, order_index: int) -> ExamQuestionModel:
    return ExamQuestionModel(
        question_text=data.question_text.strip(),
        options=[o.strip() for o in data.options],
        correct_answer_index=data.correct_answer_index,
        explanation=data.explanation,
        category=data.category,
        difficulty=data.difficulty,
        order_index=order_index,
    )


def create_exam(db: Session, exam_data: ExamCreate, admin_id: str) -> ExamModel:
    """Create an exam together with its (optional) initial questions"""
    try:
        for q in exam_data.questions:
            validate_question(q)

        logger.info(f"Creating exam '{exam_data.title}' for admin {admin_id}")
        exam = ExamModel(
            title=exam_data.title,
            description=exam_data.description,
            duration_minutes=exam_data.duration_minutes,
            passing_score=exam_data.passing_score,
            is_active=exam_data.is_active,
            created_by=admin_id,
        )
        exam.questions = [_build_question(q, i) for i, q in enumerate(exam_data.questions)]
        db.add(exam)
        db.commit()
        db.refresh(exam)
        logger.info(f"Created exam {exam.id} with {len(exam.questions)} questions")
        return exam
    except ValueError:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Database integrity error creating exam: {e}")
        raise ValueError(f"Database error: {str(e)}")
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating exam by admin {admin_id}: {e}", exc_info=True)
        raise


def get_all_exams(db: Session, active_only: bool = False) -> List[ExamModel]:
    """Get all exams"""
    try:
        query = db.query(ExamModel)
        if active_only:
            query = query.filter(ExamModel.is_active.is_(True))
        exams = query.order_by(ExamModel.id).all()
        logger.info(f"Retrieved {len(exams)} exams")
        return exams
    except Exception as e:
        logger.error(f"Error fetching exams: {e}", exc_info=True)
        raise


def get_exam_by_id(db: Session, exam_id: int) -> ExamModel:
    """Get a specific exam by ID"""
    exam = db.query(ExamModel).filter(ExamModel.id == exam_id).first()
    if not exam:
        logger.warning(f"Exam with id {exam_id} not found")
        raise ValueError(f"Exam with id {exam_id} not found")
    return exam


def update_exam(db: Session, exam_id: int, exam_data: ExamUpdate) -> ExamModel:
    """Update exam metadata; only the provided fields change"""
    try:
        exam = get_exam_by_id(db, exam_id)
        for field, value in exam_data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(exam, field, value)
        db.commit()
        db.refresh(exam)
        logger.info(f"Updated exam: {exam.title} (ID: {exam_id})")
        return exam
    except ValueError:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error updating exam {exam_id}: {e}", exc_info=True)
        raise


def delete_exam(db: Session, exam_id: int) -> dict:
    """Delete an exam and its questions"""
    try:
        exam = get_exam_by_id(db, exam_id)
        title = exam.title
        db.delete(exam)
        db.commit()
        logger.info(f"Deleted exam: {title} (ID: {exam_id})")
        return {"message": f"Exam '{title}' deleted successfully"}
    except ValueError:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error deleting exam {exam_id}: {e}", exc_info=True)
        raise


def add_question(db: Session, exam_id: int, data: QuestionCreate, commit: bool = True) -> ExamQuestionModel:
    """Append a question at the end of an exam"""
    validate_question(data)
    exam = get_exam_by_id(db, exam_id)
    try:
        next_index = (
            db.query(func.max(ExamQuestionModel.order_index))
            .filter(ExamQuestionModel.exam_id == exam.id)
            .scalar()
        )
        question = _build_question(data, 0 if next_index is None else next_index + 1)
        question.exam_id = exam.id
        db.add(question)
        if commit:
            db.commit()
            db.refresh(question)
        else:
            db.flush()
        logger.info(f"Added question {question.id} to exam {exam.id}")
        return question
    except Exception as e:
        db.rollback()
        logger.error(f"Error adding question to exam {exam_id}: {e}", exc_info=True)
        raise


def get_question_by_id(db: Session, question_id: int) -> ExamQuestionModel:
    question = db.query(ExamQuestionModel).filter(ExamQuestionModel.id == question_id).first()
    if not question:
        logger.warning(f"Question with id {question_id} not found")
        raise ValueError(f"Question with id {question_id} not found")
    return question


def update_question(db: Session, question_id: int, data: QuestionCreate) -> ExamQuestionModel:
    validate_question(data)
    question = get_question_by_id(db, question_id)
    try:
        question.question_text = data.question_text.strip()
        question.options = [o.strip() for o in data.options]
        question.correct_answer_index = data.correct_answer_index
        question.explanation = data.explanation
        question.category = data.category
        question.difficulty = data.difficulty
        db.commit()
        db.refresh(question)
        logger.info(f"Updated question {question_id}")
        return question
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating question {question_id}: {e}", exc_info=True)
        raise


def delete_question(db: Session, question_id: int) -> dict:
    question = get_question_by_id(db, question_id)
    try:
        db.delete(question)
        db.commit()
        logger.info(f"Deleted question {question_id}")
        return {"message": f"Question {question_id} deleted successfully"}
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting question {question_id}: {e}", exc_info=True)
        raise
