"""Per-session tunables with defaults taken from the exam constants."""

from __future__ import annotations

from dataclasses import dataclass

from exam_app.constants.exam_constants import (
    DEFAULT_DURATION_MINUTES,
    ENHANCEMENT_SIMILARITY_THRESHOLD,
    EXIT_WARNING_DISPLAY_SECONDS,
    FIRST_QUESTION_DETAILS_DELAY_SECONDS,
    OPTIONS_ANNOUNCEMENT_DELAY_SECONDS,
    SIMILARITY_THRESHOLD,
    TICK_INTERVAL_SECONDS,
)


@dataclass(slots=True)
class SessionSettings:
    """Values a host may override per session (tests shorten the delays)."""

    duration_minutes: int = DEFAULT_DURATION_MINUTES
    tick_interval_seconds: float = TICK_INTERVAL_SECONDS
    options_delay_seconds: float = OPTIONS_ANNOUNCEMENT_DELAY_SECONDS
    first_question_delay_seconds: float = FIRST_QUESTION_DETAILS_DELAY_SECONDS
    exit_warning_seconds: float = EXIT_WARNING_DISPLAY_SECONDS
    similarity_threshold: float = SIMILARITY_THRESHOLD
    enhancement_threshold: float = ENHANCEMENT_SIMILARITY_THRESHOLD
    prepare_speech: bool = False
    use_fallback_questions: bool = True

    def __post_init__(self) -> None:
        if self.duration_minutes < 0:
            raise ValueError("Exam duration must not be negative.")
        if self.tick_interval_seconds < 0:
            raise ValueError("Tick interval must not be negative.")
