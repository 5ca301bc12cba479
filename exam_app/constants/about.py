"""Static metadata describing AccessExam."""

APP_NAME = "AccessExam"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "AccessExam runs timed, screen-reader friendly exam sessions. "
    "Every state change is announced as plain text so any speech client can read it aloud."
)
