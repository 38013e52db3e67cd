from datetime import timezone
from typing import Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import logging

from ydsprep.application.assessment.errors import PersistenceError
from ydsprep.application.assessment.models import AttemptRecord
from ydsprep.application.assessment.recorder import AttemptRecorder
from ydsprep.infrastructure.db.models.attempt_model import AttemptModel

logger = logging.getLogger(__name__)


def _as_utc(value):
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlAttemptRecorder(AttemptRecorder):
    def __init__(self, db: Session):
        self.db = db

    def record(self, user_id: str, attempt: AttemptRecord) -> None:
        if not user_id:
            raise PersistenceError("Cannot record an attempt without a user id")
        try:
            row = AttemptModel(
                attempt_id=attempt.attempt_id,
                user_id=user_id,
                assessment_id=attempt.assessment_id,
                answers={str(k): v for k, v in attempt.answers.items()},
                score=attempt.score,
                max_score=attempt.max_score,
                correct_count=attempt.correct_count,
                wrong_count=attempt.wrong_count,
                empty_count=attempt.empty_count,
                passed=attempt.passed,
                auto_submitted=attempt.auto_submitted,
                time_spent_seconds=attempt.time_spent_seconds,
                started_at=attempt.started_at,
                completed_at=attempt.completed_at,
            )
            self.db.add(row)
            self.db.commit()
            logger.info(f"Recorded attempt {attempt.attempt_id} for user {user_id} on {attempt.assessment_id}")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to record attempt {attempt.attempt_id} for user {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Attempt could not be saved: {e}") from e

    def list_attempts(self, user_id: str, assessment_id: Optional[str] = None) -> List[AttemptRecord]:
        query = self.db.query(AttemptModel).filter(AttemptModel.user_id == user_id)
        if assessment_id is not None:
            query = query.filter(AttemptModel.assessment_id == assessment_id)
        rows = query.order_by(AttemptModel.completed_at, AttemptModel.id).all()
        return [self._to_record(r) for r in rows]

    @staticmethod
    def _to_record(row: AttemptModel) -> AttemptRecord:
        return AttemptRecord(
            attempt_id=row.attempt_id,
            user_id=row.user_id,
            assessment_id=row.assessment_id,
            answers=dict(row.answers or {}),
            score=row.score,
            max_score=row.max_score,
            correct_count=row.correct_count,
            wrong_count=row.wrong_count,
            empty_count=row.empty_count,
            passed=row.passed,
            started_at=_as_utc(row.started_at),
            completed_at=_as_utc(row.completed_at),
            time_spent_seconds=row.time_spent_seconds,
            auto_submitted=row.auto_submitted,
        )


def get_student_overview(db: Session) -> List[Dict]:
    """Attempt statistics per learner for the admin student list"""
    try:
        rows = (
            db.query(
                AttemptModel.user_id,
                func.count(AttemptModel.id),
                func.avg(AttemptModel.score),
                func.max(AttemptModel.score),
                func.max(AttemptModel.completed_at),
            )
            .group_by(AttemptModel.user_id)
            .order_by(AttemptModel.user_id)
            .all()
        )
        logger.info(f"Built attempt overview for {len(rows)} students")
        return [
            {
                "user_id": user_id,
                "attempts": count,
                "average_score": float(avg or 0),
                "best_score": best or 0,
                "last_attempt_at": _as_utc(last),
            }
            for user_id, count, avg, best, last in rows
        ]
    except Exception as e:
        logger.error(f"Error building student overview: {e}", exc_info=True)
        raise
