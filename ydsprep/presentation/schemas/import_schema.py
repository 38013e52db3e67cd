from pydantic import BaseModel, Field
from typing import List, Optional


class QuestionDumpRequest(BaseModel):
    raw_text: str


class ParsedQuestionOut(BaseModel):
    number: int
    question_text: str
    options: List[str]
    correct_answer_index: int
    category: str = "general"
    difficulty: str = "medium"


class ParsePreviewResponse(BaseModel):
    questions: List[ParsedQuestionOut]
    skipped_blocks: List[int] = []


class QuestionImportRequest(BaseModel):
    title: str
    description: Optional[str] = None
    duration_minutes: int = Field(default=120, gt=0)
    passing_score: int = Field(default=0, ge=0)
    raw_text: str


class QuestionImportResponse(BaseModel):
    exam_id: int
    imported: int
    skipped_blocks: List[int] = []


class BulkUploadResponse(BaseModel):
    total_rows: int
    inserted: int
    failed: int
    errors: List[str] = []
