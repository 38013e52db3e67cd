from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .errors import InvalidState, OutOfRange, PersistenceError, SessionNotFound
from .models import AssessmentDefinition, AssessmentSummary, AttemptRecord, QuestionId
from .progress import ProgressOverview, summarize_progress
from .recorder import AttemptRecorder
from .scorer import DEFAULT_POINTS_PER_CORRECT
from .session_manager import AssessmentSession

logger = logging.getLogger(__name__)

FINISHED_SESSION_RETENTION_SECONDS = 3600


@dataclass
class SessionHandle:
    session: AssessmentSession
    recorded: bool = False
    warning: Optional[str] = None
    finished_at: Optional[float] = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class SessionRegistry:
    """
    Process-local map of learner id -> live session (one per learner).

    Finished sessions stay readable for `retention_seconds` after they were
    recorded, then `prune()` drops them.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        retention_seconds: float = FINISHED_SESSION_RETENTION_SECONDS,
    ):
        self.clock = clock
        self.retention_seconds = retention_seconds
        self._sessions: Dict[str, SessionHandle] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> Optional[SessionHandle]:
        with self._lock:
            return self._sessions.get(user_id)

    def replace(self, user_id: str, handle: SessionHandle) -> Optional[SessionHandle]:
        with self._lock:
            previous = self._sessions.get(user_id)
            self._sessions[user_id] = handle
            return previous

    def pop(self, user_id: str) -> Optional[SessionHandle]:
        with self._lock:
            return self._sessions.pop(user_id, None)

    def prune(self) -> int:
        """Drop finished sessions older than the retention window. Returns how many went."""
        cutoff = self.clock() - self.retention_seconds
        with self._lock:
            stale = [
                user_id
                for user_id, handle in self._sessions.items()
                if handle.finished_at is not None and handle.finished_at <= cutoff
            ]
            for user_id in stale:
                del self._sessions[user_id]
        if stale:
            logger.info(f"Pruned {len(stale)} finished sessions")
        return len(stale)


class AssessmentSessionService:
    """
    Glue between the HTTP layer and the engine: loads content, keeps the
    learner's live session in the registry and records each submitted
    attempt exactly once.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        loader,
        recorder: AttemptRecorder,
        points_per_correct: int = DEFAULT_POINTS_PER_CORRECT,
    ):
        self.registry = registry
        self.loader = loader
        self.recorder = recorder
        self.points_per_correct = points_per_correct

    # ---------------------------
    # Catalog
    # ---------------------------

    def list_assessments(self) -> List[AssessmentSummary]:
        return self.loader.list_assessments()

    def get_assessment(self, assessment_id: str) -> AssessmentDefinition:
        return self.loader.load(assessment_id)

    # ---------------------------
    # Session lifecycle
    # ---------------------------

    def start(self, user_id: str, assessment_id: str) -> SessionHandle:
        self.registry.prune()
        # NotFound / LoadFailure / InvalidAssessment leave the learner without a session
        assessment = self.loader.load(assessment_id)
        session = AssessmentSession.start(
            assessment,
            user_id=user_id,
            points_per_correct=self.points_per_correct,
            clock=self.registry.clock,
        )
        handle = SessionHandle(session=session)
        previous = self.registry.replace(user_id, handle)
        if previous is not None:
            with previous.lock:
                # Time that ran out before the restart still submits the old attempt
                self._sync(previous)
                previous.session.cancel()
            logger.info(
                f"User {user_id} left assessment {previous.session.assessment.id} to start {assessment_id}"
            )
        return handle

    def current(self, user_id: str) -> SessionHandle:
        handle = self._handle(user_id)
        with handle.lock:
            self._sync(handle)
        return handle

    def select_answer(self, user_id: str, question_id: QuestionId, option_index: int) -> bool:
        """Returns False when the selection was rejected (logged, not raised)."""
        handle = self._handle(user_id)
        with handle.lock:
            self._sync(handle)
            try:
                handle.session.select_answer(question_id, option_index)
                return True
            except (InvalidState, OutOfRange) as e:
                logger.warning(f"Ignored answer from user {user_id}: {e}")
                return False

    def navigate(self, user_id: str, action: str, index: Optional[int] = None) -> SessionHandle:
        handle = self._handle(user_id)
        with handle.lock:
            self._sync(handle)
            if action == "next":
                handle.session.next()
            elif action == "previous":
                handle.session.previous()
            elif action == "goto":
                if index is None:
                    raise ValueError("goto needs an index")
                handle.session.go_to(index)
            else:
                raise ValueError(f"Unknown navigation action {action!r}")
        return handle

    def toggle_flag(self, user_id: str, question_id: QuestionId) -> bool:
        handle = self._handle(user_id)
        with handle.lock:
            self._sync(handle)
            return handle.session.toggle_flag(question_id)

    def submit(self, user_id: str) -> SessionHandle:
        handle = self._handle(user_id)
        with handle.lock:
            self._sync(handle)
            handle.session.submit()
            self._finalize(handle)
        return handle

    def cancel(self, user_id: str) -> None:
        handle = self.registry.pop(user_id)
        if handle is None:
            raise SessionNotFound(f"User {user_id} has no active session")
        with handle.lock:
            self._sync(handle)
            handle.session.cancel()

    # ---------------------------
    # History
    # ---------------------------

    def history(self, user_id: str, assessment_id: Optional[str] = None) -> List[AttemptRecord]:
        return self.recorder.list_attempts(user_id, assessment_id)

    def progress(self, user_id: str) -> ProgressOverview:
        return summarize_progress(self.recorder.list_attempts(user_id))

    # ---------------------------
    # Internal helpers
    # ---------------------------

    def _handle(self, user_id: str) -> SessionHandle:
        handle = self.registry.get(user_id)
        if handle is None:
            raise SessionNotFound(f"User {user_id} has no active session")
        return handle

    def _sync(self, handle: SessionHandle) -> None:
        handle.session.poll()
        self._finalize(handle)

    def _finalize(self, handle: SessionHandle) -> None:
        record = handle.session.result
        if record is None or handle.recorded:
            return
        handle.recorded = True
        handle.finished_at = self.registry.clock()
        try:
            self.recorder.record(handle.session.user_id, record)
        except PersistenceError as e:
            handle.warning = f"Your result could not be saved to your history: {e}"
            logger.warning(f"Attempt {record.attempt_id} not persisted for user {handle.session.user_id}: {e}")
