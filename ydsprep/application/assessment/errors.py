"""Error taxonomy of the assessment engine."""


class AssessmentError(Exception):
    """Base class for every failure raised by the assessment engine."""


class NotFound(AssessmentError):
    """The catalog is valid but holds no assessment with the requested id."""


class LoadFailure(AssessmentError):
    """The catalog itself could not be fetched or parsed."""


class InvalidAssessment(AssessmentError):
    """The assessment definition is empty or structurally malformed."""


class InvalidState(AssessmentError):
    """A mutation was attempted on a session that is no longer in progress."""


class OutOfRange(AssessmentError):
    """An answer index (or question id) lies outside the assessment's bounds."""


class PersistenceError(AssessmentError):
    """A finished attempt could not be written to the attempt history."""


class SessionNotFound(NotFound):
    """The learner has no live session to act on."""
