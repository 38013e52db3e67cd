# exam_schema.py
from pydantic import BaseModel, Field
from typing import List, Optional


class QuestionCreate(BaseModel):
    question_text: str
    options: List[str]
    correct_answer_index: int
    explanation: Optional[str] = None
    category: str = "general"
    difficulty: str = "medium"


class QuestionOut(BaseModel):
    id: int
    question_text: str
    options: List[str]
    correct_answer_index: int
    explanation: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[str] = None
    order_index: int

    class Config:
        from_attributes = True


class ExamCreate(BaseModel):
    title: str
    description: Optional[str] = None
    duration_minutes: int = Field(default=120, gt=0)
    passing_score: int = Field(default=0, ge=0)
    is_active: bool = True
    questions: List[QuestionCreate] = []


class ExamUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    passing_score: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class ExamOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    duration_minutes: int
    passing_score: int
    is_active: bool
    total_questions: int


class ExamDetailOut(ExamOut):
    questions: List[QuestionOut]
