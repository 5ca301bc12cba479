"""Exception hierarchy for the exam engine."""

from __future__ import annotations


class ExamEngineError(Exception):
    """Base class for every error raised by the exam engine."""


class SourceUnavailable(ExamEngineError):
    """The question source could not be reached or failed while loading."""


class NotFound(ExamEngineError):
    """The question source holds no questions for the requested exam."""


class ScoringCollaboratorFailure(ExamEngineError):
    """The similarity scorer failed for a single answer."""


class PersistenceFailure(ExamEngineError):
    """An attempt record could not be read or written."""


class QuestionImportError(ExamEngineError):
    """Raised when a question set definition cannot be parsed."""
