"""Domain models for the exam engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import re

from exam_app.constants.exam_constants import DEFAULT_POINT_VALUE

_OPTION_LABEL = re.compile(r"^([A-Z])[.)]\s+(.*)$", re.DOTALL)
_BLANK_MARKER = "_____"


class QuestionType(str, Enum):
    """Question types the grading strategies know about."""

    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TRUE_FALSE = "TRUE_FALSE"
    SHORT_ANSWER = "SHORT_ANSWER"
    FILL_IN_THE_BLANK = "FILL_IN_THE_BLANK"
    MATCHING = "MATCHING"
    ESSAY = "ESSAY"


@dataclass(frozen=True, slots=True)
class Question:
    """A single exam question. Immutable once loaded for a session."""

    id: str
    text: str
    correct_answer: str = ""
    type: str = QuestionType.MULTIPLE_CHOICE.value
    options: tuple[str, ...] | None = None  # None for free-text types
    points: int | None = None
    number: int = 0

    @property
    def point_value(self) -> int:
        return DEFAULT_POINT_VALUE if self.points is None else self.points

    @property
    def option_count(self) -> int:
        return len(self.options) if self.options else 0


@dataclass(slots=True)
class QuestionAttempt:
    """Grading detail for one question, created at submission time."""

    question_id: str
    question_text: str
    correct_answer: str
    student_answer: str
    is_correct: bool
    type: str
    options: tuple[str, ...] | None
    point_value: int
    awarded_points: int


@dataclass(slots=True)
class ExamAttemptRecord:
    """Persisted result of one student's exam attempt."""

    exam_id: str
    title: str
    subject: str
    submitted_at: datetime
    score: int
    total_points: int
    answered_count: int
    total_questions: int
    question_attempts: list[QuestionAttempt]
    student_id: str
    student_name: str
    record_id: str | None = None  # assigned by the repository on save


@dataclass(frozen=True, slots=True)
class StudentIdentity:
    student_id: str
    display_name: str


@dataclass(slots=True)
class SessionState:
    """Mutable per-session state, owned by exactly one ExamSession."""

    current_question_index: int = 0
    is_reviewing_unanswered: bool = False
    current_unanswered_index: int = 0
    unanswered_snapshot: list[str] = field(default_factory=list)  # question ids
    focused_element: int = 0
    remaining_seconds: int = 0
    is_completed: bool = False
    timer_warning_visible: bool = False
    exit_warning_visible: bool = False
    using_fallback_questions: bool = False
    violation_count: int = 0


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Read-only view of the session handed to rendering hosts."""

    exam_id: str | None
    question_count: int
    current_question_index: int
    current_question_id: str | None
    is_reviewing_unanswered: bool
    current_unanswered_index: int
    unanswered_question_ids: tuple[str, ...]
    focused_element: int
    remaining_seconds: int
    is_completed: bool
    timer_warning_visible: bool
    exit_warning_visible: bool
    using_fallback_questions: bool
    violation_count: int
    answered_count: int


class SubmitMode(str, Enum):
    MANUAL = "manual"
    TIMEOUT = "timeout"
    FORCED = "forced"


class NavigationAction(str, Enum):
    NEXT = "next"
    PREVIOUS = "previous"
    REVIEW_UNANSWERED = "review_unanswered"
    REVIEW_NEXT = "review_next"
    REVIEW_PREVIOUS = "review_previous"
    EXIT_REVIEW = "exit_review"
    FOCUS_NEXT = "focus_next"
    FOCUS_PREVIOUS = "focus_previous"
    ACTIVATE = "activate"


class NavigationSignal(Enum):
    MOVED = "moved"
    FIRST_QUESTION = "first_question"
    LAST_QUESTION = "last_question"
    REVIEW_STARTED = "review_started"
    NOTHING_TO_REVIEW = "nothing_to_review"
    FIRST_UNANSWERED = "first_unanswered"
    LAST_UNANSWERED = "last_unanswered"
    NOT_REVIEWING = "not_reviewing"
    REVIEW_EXITED = "review_exited"
    FOCUS_MOVED = "focus_moved"
    ANSWER_SELECTED = "answer_selected"
    SUBMIT_REQUESTED = "submit_requested"
    SESSION_CLOSED = "session_closed"


_BOUNDARY_SIGNALS = frozenset(
    {
        NavigationSignal.FIRST_QUESTION,
        NavigationSignal.LAST_QUESTION,
        NavigationSignal.FIRST_UNANSWERED,
        NavigationSignal.LAST_UNANSWERED,
    }
)


@dataclass(slots=True)
class NavigationResult:
    """Outcome of a navigation transition plus the text it announces."""

    signal: NavigationSignal
    announcements: list[str] = field(default_factory=list)
    followups: list[str] = field(default_factory=list)  # spoken after a short delay

    @property
    def is_boundary(self) -> bool:
        return self.signal in _BOUNDARY_SIGNALS


class FocusKind(Enum):
    QUESTION = "question"
    OPTION = "option"
    PREVIOUS = "previous"
    NEXT = "next"
    SUBMIT = "submit"


@dataclass(frozen=True, slots=True)
class FocusTarget:
    kind: FocusKind
    option_index: int | None = None


@dataclass(frozen=True, slots=True)
class ScoreResult:
    """Final outcome of the scoring pipeline."""

    score: int
    total_points: int
    record_id: str | None = None
    persisted: bool = False
    already_submitted: bool = False
    enhanced: bool = False


class ViolationSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True, slots=True)
class SecurityViolation:
    description: str
    severity: ViolationSeverity
    occurred_at: datetime


def is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def option_display_text(option: str) -> str:
    """Return the option text without a leading "A." / "A)" label."""
    match = _OPTION_LABEL.match(option)
    return match.group(2) if match else option


def option_answer_value(option: str) -> str:
    """Answer stored when an option is chosen: its letter if labelled, else its text."""
    match = _OPTION_LABEL.match(option)
    return match.group(1) if match else option


def option_letter(index: int) -> str:
    return chr(ord("A") + index)


def infer_question_type(text: str, options: list[str] | tuple[str, ...] | None) -> str:
    """Guess a question type for sources that do not provide one."""
    if options and len(options) == 2 and options[0] == "True" and options[1] == "False":
        return QuestionType.TRUE_FALSE.value
    if options:
        return QuestionType.MULTIPLE_CHOICE.value
    if _BLANK_MARKER in text:
        return QuestionType.FILL_IN_THE_BLANK.value
    return QuestionType.SHORT_ANSWER.value
