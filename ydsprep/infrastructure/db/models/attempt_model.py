from sqlalchemy import Column, Integer, String, DateTime, Boolean, JSON
from ..base import Base


class AttemptModel(Base):
    __tablename__ = "attempts"

    id = Column(Integer, primary_key=True, index=True)
    attempt_id = Column(String, unique=True, nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)  # opaque id from the identity provider
    assessment_id = Column(String, nullable=False, index=True)
    answers = Column(JSON, nullable=False)  # question id (as str) -> option index
    score = Column(Integer, nullable=False)
    max_score = Column(Integer, nullable=False)
    correct_count = Column(Integer, nullable=False)
    wrong_count = Column(Integer, nullable=False)
    empty_count = Column(Integer, nullable=False)
    passed = Column(Boolean, nullable=False)
    auto_submitted = Column(Boolean, default=False, nullable=False)
    time_spent_seconds = Column(Integer, nullable=False, default=0)
    started_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=False)
