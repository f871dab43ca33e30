"""
Exception types for adaptest.

Most anomalies in a session degrade to a default value instead of raising.
The exceptions here cover the few cases a caller has to act on.
"""


class AdaptestError(Exception):
    """Base class for all adaptest errors."""


class ConfigurationAbsentError(AdaptestError):
    """Raised when a session is started without a learner or algorithm config.

    Callers are expected to send the learner back to a safe entry point
    rather than show this as an error.
    """

    def __init__(self, missing: str):
        self.missing = missing
        super().__init__(f"Cannot start session: no {missing} supplied")


class QuestionFormatError(AdaptestError):
    """Raised when question data cannot be turned into a Question."""

    def __init__(self, message: str, question_id: str | None = None):
        self.question_id = question_id
        if question_id:
            message = f"{question_id}: {message}"
        super().__init__(message)


class EmptySessionError(AdaptestError):
    """Raised when generation yields no questions to present."""
