"""Service holding the student's current response for every question."""

from __future__ import annotations

from exam_app.core.models import Question, is_blank


class AnswerStore:
    """Mutable mapping of question id to raw response. Last write wins."""

    def __init__(self) -> None:
        self._answers: dict[str, str] = {}

    def set(self, question_id: str, value: str) -> None:
        self._answers[question_id] = value

    def get(self, question_id: str) -> str | None:
        """Return the stored response, or None when the question is unanswered."""
        return self._answers.get(question_id)

    def is_answered(self, question_id: str) -> bool:
        return not is_blank(self._answers.get(question_id))

    def unanswered_questions(self, ordered_questions: list[Question]) -> list[Question]:
        return [question for question in ordered_questions if not self.is_answered(question.id)]

    def answered_count(self, ordered_questions: list[Question]) -> int:
        return sum(1 for question in ordered_questions if self.is_answered(question.id))

    def snapshot(self) -> dict[str, str]:
        return dict(self._answers)
