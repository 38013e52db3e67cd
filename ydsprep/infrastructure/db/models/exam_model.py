from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Boolean, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..base import Base


class ExamModel(Base):
    __tablename__ = "exams"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=False, default=120)
    passing_score = Column(Integer, nullable=False, default=0)  # same scale as the computed score
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    questions = relationship(
        "ExamQuestionModel",
        back_populates="exam",
        cascade="all, delete-orphan",
        order_by="ExamQuestionModel.order_index",
    )


class ExamQuestionModel(Base):
    __tablename__ = "exam_questions"

    id = Column(Integer, primary_key=True, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False)
    question_text = Column(Text, nullable=False)
    options = Column(JSON, nullable=False)  # ordered list of option texts
    correct_answer_index = Column(Integer, nullable=False)
    explanation = Column(Text, nullable=True)
    category = Column(String, default="general")
    difficulty = Column(String, default="medium")
    order_index = Column(Integer, nullable=False, default=0)

    # Relationships
    exam = relationship("ExamModel", back_populates="questions")
