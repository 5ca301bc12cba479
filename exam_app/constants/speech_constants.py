"""Announcement text emitted by the exam engine for speech clients."""

EXAM_LOADED_TEMPLATE: str = "Exam loaded: {title}. Starting with question 1."
FALLBACK_QUESTIONS_NOTICE: str = (
    "The exam questions could not be loaded from the server. A practice question set is being used instead."
)
NO_QUESTIONS_MESSAGE: str = "Error: No questions found for this exam."

QUESTION_TEMPLATE: str = "Question {number} of {total}: {text}"
OPTIONS_TEMPLATE: str = "Options: {options}"
OPTION_TEMPLATE: str = "Option {letter}: {text}"
QUESTION_TEXT_TEMPLATE: str = "Question text: {text}"
FIRST_QUESTION_BOUNDARY: str = "This is the first question. No previous questions available."
LAST_QUESTION_BOUNDARY: str = "This is the last question. No next question available."

TYPE_HINTS: dict[str, str] = {
    "MULTIPLE_CHOICE": "This is a multiple choice question. Select one of the options.",
    "TRUE_FALSE": "This is a true or false question. Select true or false.",
    "FILL_IN_THE_BLANK": "This is a fill in the blank question. Enter the missing word.",
    "SHORT_ANSWER": "This is a short answer question. Provide a brief response.",
    "MATCHING": "This is a matching question. Match items from the left with those on the right.",
    "ESSAY": "This is an essay question. Use the text field to write your answer.",
}
DEFAULT_TYPE_HINT: str = "Answer the question using the appropriate input method."
NAVIGATION_HINT: str = (
    "Use the previous and next buttons to move between questions. "
    "You can also use the tab key or swipe to move through elements and the enter key to activate them."
)

REVIEW_STARTED_TEMPLATE: str = (
    "Reviewing unanswered questions. Question {number} of {total}. "
    "You have {remaining} unanswered questions remaining. {text}"
)
REVIEW_NEXT_TEMPLATE: str = (
    "Next unanswered question. Question {number} of {total}. "
    "Unanswered question {position} of {count}. {text}"
)
REVIEW_PREVIOUS_TEMPLATE: str = (
    "Previous unanswered question. Question {number} of {total}. "
    "Unanswered question {position} of {count}. {text}"
)
REVIEW_FIRST_BOUNDARY: str = "This is the first unanswered question."
REVIEW_LAST_BOUNDARY: str = "This is the last unanswered question."
REVIEW_NOTHING_UNANSWERED: str = "All questions have been answered. Review your answers before submitting."
REVIEW_EXITED: str = "Exiting unanswered questions review. You can now navigate normally or submit your exam."
NOT_REVIEWING: str = "You are not reviewing unanswered questions."

PREVIOUS_BUTTON: str = "Previous question button"
NEXT_BUTTON: str = "Next question button"
SUBMIT_BUTTON: str = "Submit button"

ANSWER_SELECTED_TEMPLATE: str = "You selected: {answer}"
STATUS_TEMPLATE: str = (
    "You have answered {answered} of {total} questions. {minutes} minutes remaining."
)
UNANSWERED_REMAINING_TEMPLATE: str = (
    "You have {count} unanswered questions. Please review them before submitting."
)
ALL_ANSWERED: str = "All questions have been answered. You can submit your exam."

PERIODIC_TIME_TEMPLATE: str = "You have {minutes} minutes remaining."
TEN_MINUTE_WARNING: str = "Warning: Only 10 minutes remaining."
FIVE_MINUTE_WARNING: str = "Warning: Only 5 minutes remaining. Please finish your exam soon."
CRITICAL_WARNING: str = "Critical warning: Only 1 minute remaining."
TIME_UP: str = "Time's up. Your exam will be submitted automatically."

SECURITY_VIOLATION: str = "Security violation detected. Please continue your exam."

SUBMITTING: str = "Submitting your exam."
SUBMITTED: str = "Your exam has been submitted successfully."
SUBMITTED_WITH_BONUS_TEMPLATE: str = (
    "Your exam has been submitted. Additional review awarded you {bonus} more points for short answer accuracy."
)
ALREADY_SUBMITTED: str = "You have already submitted this exam. Your previous submission is kept."
SAVE_FAILED: str = "There was an error saving your exam. Please contact your instructor."
SCORE_TEMPLATE: str = "Your score is {score} out of {total} points."
