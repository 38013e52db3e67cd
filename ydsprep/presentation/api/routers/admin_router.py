from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session
from typing import List
from ydsprep.core.config import settings
from ydsprep.presentation.dependencies import get_db, admin_required
from ydsprep.presentation.schemas.exam_schema import (
    ExamCreate,
    ExamDetailOut,
    ExamOut,
    ExamUpdate,
    QuestionCreate,
    QuestionOut,
)
from ydsprep.presentation.schemas.import_schema import (
    BulkUploadResponse,
    ParsePreviewResponse,
    ParsedQuestionOut,
    QuestionDumpRequest,
    QuestionImportRequest,
    QuestionImportResponse,
)
from ydsprep.presentation.schemas.assessment_schema import StudentOverviewOut
from ydsprep.infrastructure.repositories.exam_repo_impl import (
    add_question,
    create_exam,
    delete_exam,
    delete_question,
    get_all_exams,
    get_exam_by_id,
    update_exam,
    update_question,
)
from ydsprep.infrastructure.repositories.attempt_repository import get_student_overview
from ydsprep.application.admin.question_import_usecase import import_question_dump, parse_question_dump
from ydsprep.application.admin.bulk_upload_usecase import process_bulk_upload
from dataclasses import asdict
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


def _exam_out(exam) -> ExamOut:
    return ExamOut(
        id=exam.id,
        title=exam.title,
        description=exam.description,
        duration_minutes=exam.duration_minutes,
        passing_score=exam.passing_score,
        is_active=exam.is_active,
        total_questions=len(exam.questions),
    )


def _exam_detail_out(exam) -> ExamDetailOut:
    return ExamDetailOut(
        **_exam_out(exam).model_dump(),
        questions=[QuestionOut.model_validate(q) for q in exam.questions],
    )


# ------------------ Exams ------------------

@router.post("/exams", response_model=ExamDetailOut)
def add_exam(exam: ExamCreate, db: Session = Depends(get_db), admin: dict = Depends(admin_required)):
    try:
        logger.info(f"Admin {admin['user_id']} is creating exam: {exam.title}")
        return _exam_detail_out(create_exam(db, exam, admin["user_id"]))
    except ValueError as e:
        logger.warning(f"Validation error during exam creation by admin {admin['user_id']}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error during exam creation by admin {admin['user_id']}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.get("/exams", response_model=List[ExamOut])
def list_exams(db: Session = Depends(get_db), admin: dict = Depends(admin_required)):
    return [_exam_out(e) for e in get_all_exams(db)]


@router.get("/exams/{exam_id}", response_model=ExamDetailOut)
def get_exam(exam_id: int, db: Session = Depends(get_db), admin: dict = Depends(admin_required)):
    try:
        return _exam_detail_out(get_exam_by_id(db, exam_id))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/exams/{exam_id}", response_model=ExamOut)
def modify_exam(
    exam_id: int,
    exam: ExamUpdate,
    db: Session = Depends(get_db),
    admin: dict = Depends(admin_required),
):
    try:
        return _exam_out(update_exam(db, exam_id, exam))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/exams/{exam_id}")
def remove_exam(exam_id: int, db: Session = Depends(get_db), admin: dict = Depends(admin_required)):
    try:
        return delete_exam(db, exam_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


# ------------------ Questions ------------------

@router.post("/exams/{exam_id}/questions", response_model=QuestionOut)
def add_exam_question(
    exam_id: int,
    question: QuestionCreate,
    db: Session = Depends(get_db),
    admin: dict = Depends(admin_required),
):
    try:
        get_exam_by_id(db, exam_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    try:
        return add_question(db, exam_id, question)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/questions/{question_id}", response_model=QuestionOut)
def modify_question(
    question_id: int,
    question: QuestionCreate,
    db: Session = Depends(get_db),
    admin: dict = Depends(admin_required),
):
    try:
        return update_question(db, question_id, question)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/questions/{question_id}")
def remove_question(question_id: int, db: Session = Depends(get_db), admin: dict = Depends(admin_required)):
    try:
        return delete_question(db, question_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


# ------------------ Import ------------------

@router.post("/import/preview", response_model=ParsePreviewResponse)
def preview_import(request: QuestionDumpRequest, admin: dict = Depends(admin_required)):
    parsed = parse_question_dump(request.raw_text)
    return ParsePreviewResponse(
        questions=[ParsedQuestionOut(**asdict(q)) for q in parsed.questions],
        skipped_blocks=parsed.skipped_blocks,
    )


@router.post("/import", response_model=QuestionImportResponse)
def import_questions(
    request: QuestionImportRequest,
    db: Session = Depends(get_db),
    admin: dict = Depends(admin_required),
):
    try:
        exam, parsed = import_question_dump(db, request, admin["user_id"])
        return QuestionImportResponse(
            exam_id=exam.id,
            imported=len(parsed.questions),
            skipped_blocks=parsed.skipped_blocks,
        )
    except ValueError as e:
        logger.warning(f"Import rejected for admin {admin['user_id']}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error importing questions: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal Server Error")


@router.post("/exams/{exam_id}/bulk-upload", response_model=BulkUploadResponse)
def bulk_upload_questions(
    exam_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    admin: dict = Depends(admin_required),
):
    content = file.file.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="Uploaded file is too large")
    logger.info(f"Admin {admin['user_id']} initiated bulk upload for exam {exam_id}: {file.filename}")
    try:
        get_exam_by_id(db, exam_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    try:
        return process_bulk_upload(db, exam_id, content, file.filename or "", admin["user_id"])
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error processing bulk upload: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal Server Error")


# ------------------ Students ------------------

@router.get("/students", response_model=List[StudentOverviewOut])
def list_students(db: Session = Depends(get_db), admin: dict = Depends(admin_required)):
    return get_student_overview(db)
