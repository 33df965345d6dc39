"""Exception hierarchy shared by the quiz engine, its stores and the API."""

from __future__ import annotations


class QuizzyError(Exception):
    """Base class for all errors raised by the quiz engine."""


class EmptyPoolError(QuizzyError):
    """Raised when no valid questions are available to start a quiz."""


class InvalidQuestionError(QuizzyError, ValueError):
    """Raised when a question is structurally invalid and cannot enter the pool."""


class InvalidRecordError(QuizzyError, ValueError):
    """Raised when a result record would violate its invariants."""


class QuizSessionError(QuizzyError):
    """Misuse of the quiz session state machine by the caller."""


class NoSelectionError(QuizSessionError):
    """Raised when advancing without a selected option."""


class NotCompleteError(QuizSessionError):
    """Raised when finishing a session that still has unanswered questions."""


class InvalidStateError(QuizSessionError):
    """Raised when a transition is not allowed in the current session state."""


class InvalidSelectionError(QuizSessionError, ValueError):
    """Raised when the selected option index does not exist."""


class NoActiveSessionError(QuizSessionError):
    """Raised when an owner has no quiz in progress."""


class PersistenceError(QuizzyError):
    """Raised when a result record could not be written to the store."""


class SourceUnavailableError(QuizzyError):
    """Raised when questions or records cannot be loaded."""


class QuestionImportError(SourceUnavailableError):
    """Raised when a question bank file cannot be parsed."""
