"""Service for fetching and deterministically ordering an exam's questions."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Mapping, Protocol

from exam_app.constants.exam_constants import QUESTION_TYPE_PRECEDENCE
from exam_app.core.errors import NotFound, SourceUnavailable
from exam_app.core.models import Question
from exam_app.core.question_importer import load_questions_from_file

logger = logging.getLogger(__name__)

_TYPE_RANK = {question_type: rank for rank, question_type in enumerate(QUESTION_TYPE_PRECEDENCE)}
_UNKNOWN_TYPE_RANK = len(QUESTION_TYPE_PRECEDENCE)


class QuestionSource(Protocol):
    """Remote or local provider of the questions belonging to an exam."""

    async def load_questions(self, exam_id: str) -> list[Question]:
        ...


def order_questions(questions: list[Question]) -> list[Question]:
    """Sort by type precedence, then by ascending number. Stable and idempotent."""
    return sorted(
        questions,
        key=lambda question: (_TYPE_RANK.get(question.type, _UNKNOWN_TYPE_RANK), question.number),
    )


class QuestionSetLoader:
    """Loads the ordered question list for an exam from a question source."""

    def __init__(self, source: QuestionSource) -> None:
        self._source = source

    async def load(self, exam_id: str) -> list[Question]:
        try:
            questions = await self._source.load_questions(exam_id)
        except (NotFound, SourceUnavailable):
            raise
        except Exception as exc:
            raise SourceUnavailable(f"Could not load questions for exam {exam_id}: {exc}") from exc

        if not questions:
            raise NotFound(f"No questions found for exam {exam_id}.")

        ordered = order_questions(list(questions))
        logger.info("Loaded %d questions for exam %s", len(ordered), exam_id)
        return ordered


class InMemoryQuestionSource:
    """Question source backed by a mapping of exam id to questions."""

    def __init__(self, questions_by_exam: Mapping[str, list[Question]] | None = None) -> None:
        self._questions: dict[str, list[Question]] = {
            exam_id: list(questions) for exam_id, questions in (questions_by_exam or {}).items()
        }

    def add_exam(self, exam_id: str, questions: list[Question]) -> None:
        self._questions[exam_id] = list(questions)

    async def load_questions(self, exam_id: str) -> list[Question]:
        return list(self._questions.get(exam_id, []))


class DirectoryQuestionSource:
    """Question source reading ``<exam_id>.txt`` files from a directory."""

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    async def load_questions(self, exam_id: str) -> list[Question]:
        if not self._directory.is_dir():
            raise SourceUnavailable(f"Question directory {self._directory} does not exist.")
        file_path = self._directory / f"{exam_id}.txt"
        if file_path.parent != self._directory or not file_path.is_file():
            return []
        imported = await asyncio.to_thread(load_questions_from_file, file_path, exam_id)
        return imported.questions
