import logging
from dataclasses import asdict
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from ydsprep.presentation.dependencies import get_current_user, get_session_service
from ydsprep.application.assessment.errors import (
    AssessmentError,
    InvalidAssessment,
    InvalidState,
    LoadFailure,
    NotFound,
    OutOfRange,
)
from ydsprep.application.assessment.models import AssessmentDefinition, AttemptRecord, QuestionDefinition
from ydsprep.application.assessment.scorer import percentage
from ydsprep.application.assessment.session_service import AssessmentSessionService, SessionHandle
from ydsprep.presentation.schemas.assessment_schema import (
    AnswerRequest,
    AnswerResponse,
    AssessmentOut,
    AssessmentSummaryOut,
    AttemptOut,
    FlagResponse,
    NavigateRequest,
    ProgressOut,
    QuestionPublicOut,
    QuestionReviewOut,
    SessionOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Assessments"])

ERROR_STATUS = {
    NotFound: status.HTTP_404_NOT_FOUND,
    LoadFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
    InvalidAssessment: 422,
    InvalidState: status.HTTP_409_CONFLICT,
    OutOfRange: status.HTTP_400_BAD_REQUEST,
}


def to_http_error(e: AssessmentError) -> HTTPException:
    for error_type, code in ERROR_STATUS.items():
        if isinstance(e, error_type):
            return HTTPException(status_code=code, detail=str(e))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


def _internal_error(action: str, e: Exception) -> HTTPException:
    logger.error(f"Unexpected error while {action}: {e}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected error occurred.",
    )


# --------------------------------------------------
# Response builders
# --------------------------------------------------
def _public_question(question: QuestionDefinition) -> QuestionPublicOut:
    return QuestionPublicOut(id=question.id, text=question.text, options=list(question.options))


def _attempt_out(record: AttemptRecord) -> AttemptOut:
    return AttemptOut(
        attempt_id=record.attempt_id,
        assessment_id=record.assessment_id,
        answers={str(k): v for k, v in record.answers.items()},
        score=record.score,
        max_score=record.max_score,
        percentage=percentage(record.score, record.max_score),
        correct_count=record.correct_count,
        wrong_count=record.wrong_count,
        empty_count=record.empty_count,
        passed=record.passed,
        auto_submitted=record.auto_submitted,
        time_spent_seconds=record.time_spent_seconds,
        started_at=record.started_at,
        completed_at=record.completed_at,
    )


def _session_out(handle: SessionHandle) -> SessionOut:
    session = handle.session
    state = session.state
    result = session.result
    review = None
    if result is not None:
        review = [QuestionReviewOut(**asdict(item)) for item in session.review()]
    return SessionOut(
        assessment_id=session.assessment.id,
        status=session.status.value,
        current_question_index=state.current_question_index,
        current_question=_public_question(session.current_question),
        answers={str(k): v for k, v in state.answers.items()},
        flagged=sorted(str(q) for q in state.flagged),
        answered_count=session.answered_count,
        flagged_count=session.flagged_count,
        total_questions=len(session.assessment.questions),
        remaining_seconds=state.remaining_seconds,
        result=_attempt_out(result) if result is not None else None,
        review=review,
        warning=handle.warning,
    )


def _assessment_out(assessment: AssessmentDefinition, points_per_correct: int) -> AssessmentOut:
    return AssessmentOut(
        id=assessment.id,
        title=assessment.title,
        description=assessment.description,
        time_limit_seconds=assessment.time_limit_seconds,
        passing_score=assessment.passing_score,
        max_score=len(assessment.questions) * points_per_correct,
        questions=[_public_question(q) for q in assessment.questions],
    )


# --------------------------------------------------
# 1. Catalog
# --------------------------------------------------
@router.get("/assessments", response_model=List[AssessmentSummaryOut])
def list_assessments(
    current_user: dict = Depends(get_current_user),
    service: AssessmentSessionService = Depends(get_session_service),
):
    try:
        summaries = service.list_assessments()
        logger.info(f"User {current_user['user_id']} listed {len(summaries)} assessments")
        return [
            AssessmentSummaryOut(
                **asdict(s), max_score=s.question_count * service.points_per_correct
            )
            for s in summaries
        ]
    except AssessmentError as e:
        logger.warning(f"Catalog listing failed: {e}")
        raise to_http_error(e)
    except Exception as e:
        raise _internal_error("listing assessments", e)


@router.get("/assessments/{assessment_id}", response_model=AssessmentOut)
def get_assessment(
    assessment_id: str,
    current_user: dict = Depends(get_current_user),
    service: AssessmentSessionService = Depends(get_session_service),
):
    try:
        assessment = service.get_assessment(assessment_id)
        return _assessment_out(assessment, service.points_per_correct)
    except AssessmentError as e:
        logger.warning(f"Assessment {assessment_id} unavailable: {e}")
        raise to_http_error(e)
    except Exception as e:
        raise _internal_error(f"loading assessment {assessment_id}", e)


@router.get("/assessments/{assessment_id}/attempts", response_model=List[AttemptOut])
def list_assessment_attempts(
    assessment_id: str,
    current_user: dict = Depends(get_current_user),
    service: AssessmentSessionService = Depends(get_session_service),
):
    """
    Attempt history of the current user for one assessment, oldest first.
    """
    try:
        attempts = service.history(current_user["user_id"], assessment_id)
        return [_attempt_out(a) for a in attempts]
    except Exception as e:
        raise _internal_error(f"fetching attempts for {assessment_id}", e)


# --------------------------------------------------
# 2. Start a session
# --------------------------------------------------
@router.post(
    "/assessments/{assessment_id}/session",
    response_model=SessionOut,
    status_code=status.HTTP_201_CREATED,
)
def start_session(
    assessment_id: str,
    current_user: dict = Depends(get_current_user),
    service: AssessmentSessionService = Depends(get_session_service),
):
    """
    Starts a fresh attempt. Any session the user still had open is discarded
    without being recorded, unless its time already ran out: then it is
    auto-submitted and recorded first.
    """
    user_id = current_user["user_id"]
    try:
        logger.info(f"User {user_id} starting session for assessment {assessment_id}")
        handle = service.start(user_id, assessment_id)
        return _session_out(handle)
    except AssessmentError as e:
        logger.warning(f"User {user_id} could not start assessment {assessment_id}: {e}")
        raise to_http_error(e)
    except Exception as e:
        raise _internal_error(f"starting assessment {assessment_id} for user {user_id}", e)


# --------------------------------------------------
# 3. Live session
# --------------------------------------------------
@router.get("/session", response_model=SessionOut)
def get_session(
    current_user: dict = Depends(get_current_user),
    service: AssessmentSessionService = Depends(get_session_service),
):
    """
    Current session state. Time that ran out since the last request is applied
    first, which may auto-submit the attempt.
    """
    try:
        return _session_out(service.current(current_user["user_id"]))
    except AssessmentError as e:
        raise to_http_error(e)
    except Exception as e:
        raise _internal_error("reading session", e)


@router.post("/session/answers", response_model=AnswerResponse)
def select_answer(
    answer: AnswerRequest,
    current_user: dict = Depends(get_current_user),
    service: AssessmentSessionService = Depends(get_session_service),
):
    user_id = current_user["user_id"]
    try:
        accepted = service.select_answer(user_id, answer.question_id, answer.option_index)
        return AnswerResponse(accepted=accepted, session=_session_out(service.current(user_id)))
    except AssessmentError as e:
        raise to_http_error(e)
    except Exception as e:
        raise _internal_error(f"saving answer for user {user_id}", e)


@router.post("/session/navigate", response_model=SessionOut)
def navigate(
    request: NavigateRequest,
    current_user: dict = Depends(get_current_user),
    service: AssessmentSessionService = Depends(get_session_service),
):
    try:
        handle = service.navigate(current_user["user_id"], request.action, request.index)
        return _session_out(handle)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except AssessmentError as e:
        raise to_http_error(e)
    except Exception as e:
        raise _internal_error("navigating session", e)


@router.post("/session/flags/{question_id}", response_model=FlagResponse)
def toggle_flag(
    question_id: str,
    current_user: dict = Depends(get_current_user),
    service: AssessmentSessionService = Depends(get_session_service),
):
    try:
        flagged = service.toggle_flag(current_user["user_id"], question_id)
        return FlagResponse(question_id=question_id, flagged=flagged)
    except AssessmentError as e:
        logger.warning(f"Flag toggle rejected for user {current_user['user_id']}: {e}")
        raise to_http_error(e)
    except Exception as e:
        raise _internal_error("toggling flag", e)


# --------------------------------------------------
# 4. Submission / leaving
# --------------------------------------------------
@router.post("/session/submit", response_model=SessionOut)
def submit_session(
    current_user: dict = Depends(get_current_user),
    service: AssessmentSessionService = Depends(get_session_service),
):
    """
    Submits the attempt and returns the result. Submitting again returns the
    same result. If the history write fails the result is still returned with
    a warning.
    """
    user_id = current_user["user_id"]
    try:
        logger.info(f"User {user_id} submitting session")
        return _session_out(service.submit(user_id))
    except AssessmentError as e:
        logger.warning(f"Submission failed for user {user_id}: {e}")
        raise to_http_error(e)
    except Exception as e:
        raise _internal_error(f"submitting session for user {user_id}", e)


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
def leave_session(
    current_user: dict = Depends(get_current_user),
    service: AssessmentSessionService = Depends(get_session_service),
):
    try:
        service.cancel(current_user["user_id"])
    except AssessmentError as e:
        raise to_http_error(e)


# --------------------------------------------------
# 5. History & progress
# --------------------------------------------------
@router.get("/attempts", response_model=List[AttemptOut])
def list_attempts(
    current_user: dict = Depends(get_current_user),
    service: AssessmentSessionService = Depends(get_session_service),
):
    try:
        return [_attempt_out(a) for a in service.history(current_user["user_id"])]
    except Exception as e:
        raise _internal_error("fetching attempt history", e)


@router.get("/progress", response_model=ProgressOut)
def get_progress(
    current_user: dict = Depends(get_current_user),
    service: AssessmentSessionService = Depends(get_session_service),
):
    try:
        overview = service.progress(current_user["user_id"])
        return ProgressOut(**asdict(overview))
    except Exception as e:
        raise _internal_error("building progress overview", e)
