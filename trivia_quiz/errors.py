"""
Exception hierarchy for the trivia quiz.
"""


class QuizError(Exception):
    """Base exception for quiz errors."""
    pass


class LoadFailure(QuizError):
    """Raised when the question set cannot be fetched or parsed."""
    pass


class InvalidEventError(QuizError):
    """Raised when an event arrives in a status where its precondition does not hold."""

    def __init__(self, event, status, reason: str):
        self.event = event
        self.status = status
        self.reason = reason
        super().__init__(
            f"{type(event).__name__} rejected in status '{status.value}': {reason}"
        )


class UnknownEventError(QuizError, TypeError):
    """Raised when something that is not a quiz event is dispatched."""
    pass
