"""Exam-related constants shared across the engine and host layers."""

DEFAULT_DURATION_MINUTES: int = 60
DEFAULT_POINT_VALUE: int = 1
DEFAULT_SUBJECT: str = "General"

TICK_INTERVAL_SECONDS: float = 1.0
PERIODIC_NOTICE_INTERVAL_SECONDS: int = 30 * 60
TEN_MINUTE_WARNING_SECONDS: int = 10 * 60
FIVE_MINUTE_WARNING_SECONDS: int = 5 * 60
CRITICAL_WARNING_SECONDS: int = 60

OPTIONS_ANNOUNCEMENT_DELAY_SECONDS: float = 2.0
FIRST_QUESTION_DETAILS_DELAY_SECONDS: float = 3.0
EXIT_WARNING_DISPLAY_SECONDS: float = 3.0

SIMILARITY_THRESHOLD: float = 0.70
ENHANCEMENT_SIMILARITY_THRESHOLD: float = 0.75
MAX_SIMILARITY_TOKENS: int = 512

CONTROL_SLOT_COUNT: int = 3
MIN_SWIPE_DISTANCE_PX: float = 100.0

QUESTION_TYPE_PRECEDENCE: tuple[str, ...] = (
    "MULTIPLE_CHOICE",
    "TRUE_FALSE",
    "FILL_IN_THE_BLANK",
    "MATCHING",
    "SHORT_ANSWER",
    "ESSAY",
)
