import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, List, Optional

from .errors import PersistenceError
from .models import AttemptRecord

logger = logging.getLogger(__name__)


class AttemptRecorder(ABC):
    """Append-only attempt history keyed by user (and assessment)."""

    @abstractmethod
    def record(self, user_id: str, attempt: AttemptRecord) -> None:
        """Append ``attempt``; raise PersistenceError when the store is unavailable."""

    @abstractmethod
    def list_attempts(self, user_id: str, assessment_id: Optional[str] = None) -> List[AttemptRecord]:
        """Attempts of ``user_id``, oldest first."""


class InMemoryAttemptRecorder(AttemptRecorder):
    def __init__(self):
        self._history: Dict[str, List[AttemptRecord]] = defaultdict(list)

    def record(self, user_id: str, attempt: AttemptRecord) -> None:
        if not user_id:
            raise PersistenceError("Cannot record an attempt without a user id")
        self._history[user_id].append(attempt)
        logger.debug(f"Recorded attempt {attempt.attempt_id} in memory for user {user_id}")

    def list_attempts(self, user_id: str, assessment_id: Optional[str] = None) -> List[AttemptRecord]:
        attempts = self._history.get(user_id, [])
        if assessment_id is not None:
            attempts = [a for a in attempts if a.assessment_id == assessment_id]
        return list(attempts)
