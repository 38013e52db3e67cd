import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ydsprep.application.assessment.errors import InvalidAssessment, LoadFailure, NotFound
from ydsprep.application.assessment.models import (
    AssessmentDefinition,
    AssessmentSummary,
    QuestionDefinition,
)

logger = logging.getLogger(__name__)

OPTION_LETTERS = "ABCDE"

# Field-name variants seen in catalog dumps, canonical name first
TEXT_KEYS = ("text", "question", "question_text")
CORRECT_KEYS = ("correctAnswerIndex", "correct_answer_index", "correctAnswer", "correct_answer")


class ContentLoader(ABC):
    """Read-only source of assessment definitions."""

    @abstractmethod
    def load(self, assessment_id: str) -> AssessmentDefinition:
        """Return the assessment or raise NotFound / LoadFailure / InvalidAssessment."""

    @abstractmethod
    def list_assessments(self) -> List[AssessmentSummary]:
        ...


# ---------------------------
# Normalization
# ---------------------------

def _first_present(raw: Dict[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def letter_to_index(value: str) -> int:
    letter = value.strip().upper().rstrip(")")
    if len(letter) != 1 or letter not in OPTION_LETTERS:
        raise InvalidAssessment(f"Unrecognised answer letter {value!r}")
    return OPTION_LETTERS.index(letter)


def _normalize_correct_index(value: Any, question_ref: str) -> int:
    if value is None:
        raise InvalidAssessment(f"Question {question_ref} has no correct answer")
    if isinstance(value, bool):
        raise InvalidAssessment(f"Question {question_ref} has a boolean correct answer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
        return letter_to_index(stripped)
    raise InvalidAssessment(f"Question {question_ref} has an unusable correct answer {value!r}")


def normalize_question(raw: Dict[str, Any], position: int) -> QuestionDefinition:
    """Map any tolerated record shape onto the canonical QuestionDefinition."""
    if not isinstance(raw, dict):
        raise InvalidAssessment(f"Question #{position + 1} is not an object")

    question_id = raw.get("id", position + 1)
    if isinstance(question_id, bool) or not isinstance(question_id, (str, int)):
        raise InvalidAssessment(f"Question #{position + 1} has an unusable id {question_id!r}")
    ref = f"{question_id!r}"

    text = _first_present(raw, TEXT_KEYS)
    if not isinstance(text, str):
        raise InvalidAssessment(f"Question {ref} has no text")

    options = raw.get("options")
    if options is None:
        # Flat exam shape: option_a .. option_e
        options = []
        for letter in OPTION_LETTERS.lower():
            value = raw.get(f"option_{letter}")
            if value is None or value == "":
                break
            options.append(value)
    if not isinstance(options, list):
        raise InvalidAssessment(f"Question {ref} options must be a list")

    question = QuestionDefinition(
        id=question_id,
        text=text.strip(),
        options=tuple(str(o) for o in options),
        correct_answer_index=_normalize_correct_index(_first_present(raw, CORRECT_KEYS), ref),
        explanation=str(raw.get("explanation") or ""),
        category=raw.get("category"),
    )
    question.validate()
    return question


def normalize_assessment(raw: Dict[str, Any], fallback_id: Optional[str] = None) -> AssessmentDefinition:
    if not isinstance(raw, dict):
        raise InvalidAssessment(f"Assessment {fallback_id!r} is not an object")

    assessment_id = str(raw.get("id") or fallback_id or "")
    if not assessment_id:
        raise InvalidAssessment("Assessment without an id")

    try:
        if raw.get("timeLimitSeconds") is not None:
            time_limit = int(raw["timeLimitSeconds"])
        elif raw.get("timeLimit") is not None:
            time_limit = int(raw["timeLimit"]) * 60
        elif raw.get("duration_minutes") is not None:
            time_limit = int(raw["duration_minutes"]) * 60
        else:
            raise InvalidAssessment(f"Assessment {assessment_id!r} has no time limit")
        passing_score = float(_first_present(raw, ("passingScore", "passing_score")) or 0)
    except (TypeError, ValueError) as e:
        raise InvalidAssessment(f"Assessment {assessment_id!r} has malformed limits: {e}") from e

    questions = raw.get("questions")
    if not isinstance(questions, list):
        raise InvalidAssessment(f"Assessment {assessment_id!r} has no question list")

    assessment = AssessmentDefinition(
        id=assessment_id,
        title=str(raw.get("title") or assessment_id),
        description=str(raw.get("description") or ""),
        time_limit_seconds=time_limit,
        passing_score=passing_score,
        questions=tuple(normalize_question(q, i) for i, q in enumerate(questions)),
    )
    assessment.validate()
    return assessment


def summarize(assessment: AssessmentDefinition, source: str) -> AssessmentSummary:
    categories = sorted({q.category for q in assessment.questions if q.category})
    return AssessmentSummary(
        id=assessment.id,
        title=assessment.title,
        description=assessment.description,
        question_count=len(assessment.questions),
        time_limit_seconds=assessment.time_limit_seconds,
        passing_score=assessment.passing_score,
        source=source,
        categories=categories,
    )


# ---------------------------
# Loaders
# ---------------------------

class JsonCatalogLoader(ContentLoader):
    """
    Static JSON catalog: either ``{"<id>": {...}, ...}`` or ``[{"id": ...}, ...]``.

    The file is read once; definitions are normalized lazily and cached.
    """

    def __init__(self, path):
        self.path = Path(path)
        self._raw: Optional[Dict[str, Any]] = None
        self._cache: Dict[str, AssessmentDefinition] = {}

    def _catalog(self) -> Dict[str, Any]:
        if self._raw is not None:
            return self._raw
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load catalog {self.path}: {e}")
            raise LoadFailure(f"Assessment catalog could not be loaded: {e}") from e

        if isinstance(data, list):
            try:
                data = {str(item["id"]): item for item in data}
            except (TypeError, KeyError) as e:
                raise LoadFailure("Catalog list entries must be objects with an id") from e
        if not isinstance(data, dict):
            raise LoadFailure("Catalog must be an object keyed by assessment id or a list")

        logger.info(f"Loaded catalog {self.path} with {len(data)} assessments")
        self._raw = data
        return data

    def load(self, assessment_id: str) -> AssessmentDefinition:
        if assessment_id in self._cache:
            return self._cache[assessment_id]
        raw = self._catalog().get(assessment_id)
        if raw is None:
            raise NotFound(f"Assessment {assessment_id!r} not found")
        assessment = normalize_assessment(raw, fallback_id=assessment_id)
        self._cache[assessment_id] = assessment
        return assessment

    def list_assessments(self) -> List[AssessmentSummary]:
        summaries = []
        for assessment_id in self._catalog():
            try:
                summaries.append(summarize(self.load(assessment_id), "catalog"))
            except InvalidAssessment as e:
                logger.warning(f"Skipping malformed catalog entry {assessment_id!r}: {e}")
        return summaries


class ChainedContentLoader(ContentLoader):
    """Ask each loader in turn; NotFound only when none of them knows the id."""

    def __init__(self, loaders: List[ContentLoader]):
        self.loaders = loaders

    def load(self, assessment_id: str) -> AssessmentDefinition:
        for loader in self.loaders:
            try:
                return loader.load(assessment_id)
            except NotFound:
                continue
        raise NotFound(f"Assessment {assessment_id!r} not found")

    def list_assessments(self) -> List[AssessmentSummary]:
        summaries = []
        for loader in self.loaders:
            summaries.extend(loader.list_assessments())
        return summaries
