import asyncio

import pytest

from exam_app.core.errors import NotFound, SourceUnavailable
from exam_app.core.models import Question, QuestionType
from exam_app.core.services.question_loader import (
    DirectoryQuestionSource,
    InMemoryQuestionSource,
    QuestionSetLoader,
    order_questions,
)


def _question(question_id, question_type, number):
    return Question(id=question_id, text=f"Question {question_id}", type=question_type, number=number)


MIXED = [
    _question("essay-1", QuestionType.ESSAY.value, 1),
    _question("mc-2", QuestionType.MULTIPLE_CHOICE.value, 2),
    _question("sa-1", QuestionType.SHORT_ANSWER.value, 1),
    _question("mc-1", QuestionType.MULTIPLE_CHOICE.value, 1),
    _question("odd-0", "DRAWING", 0),
    _question("tf-3", QuestionType.TRUE_FALSE.value, 3),
    _question("fitb-2", QuestionType.FILL_IN_THE_BLANK.value, 2),
    _question("match-1", QuestionType.MATCHING.value, 1),
]


class FailingSource:
    async def load_questions(self, exam_id):
        raise ConnectionError("backend offline")


def test_order_follows_type_precedence_then_number():
    ordered = order_questions(MIXED)

    assert [question.id for question in ordered] == [
        "mc-1",
        "mc-2",
        "tf-3",
        "fitb-2",
        "match-1",
        "sa-1",
        "essay-1",
        "odd-0",
    ]


def test_order_is_idempotent_and_stable():
    first = _question("first", QuestionType.MULTIPLE_CHOICE.value, 4)
    second = _question("second", QuestionType.MULTIPLE_CHOICE.value, 4)

    ordered = order_questions([first, second] + MIXED)

    assert order_questions(ordered) == ordered
    assert ordered.index(first) < ordered.index(second)


def test_loader_returns_ordered_questions():
    source = InMemoryQuestionSource({"exam-1": MIXED})

    questions = asyncio.run(QuestionSetLoader(source).load("exam-1"))

    assert questions == order_questions(MIXED)


def test_loader_raises_not_found_for_empty_exam():
    source = InMemoryQuestionSource()

    with pytest.raises(NotFound):
        asyncio.run(QuestionSetLoader(source).load("missing"))


def test_loader_wraps_source_errors():
    with pytest.raises(SourceUnavailable) as excinfo:
        asyncio.run(QuestionSetLoader(FailingSource()).load("exam-1"))

    assert isinstance(excinfo.value.__cause__, ConnectionError)


def test_directory_source_reads_exam_file(tmp_path):
    (tmp_path / "algebra.txt").write_text(
        "Q: 2 + 2?\nA: A. 3\nB: B. 4\nCORRECT: B\n\nQ: Name the operation in 2 * 3.\nCORRECT: multiplication\n",
        encoding="utf-8",
    )

    questions = asyncio.run(QuestionSetLoader(DirectoryQuestionSource(tmp_path)).load("algebra"))

    assert [question.id for question in questions] == ["algebra-1", "algebra-2"]
    assert questions[1].type == QuestionType.SHORT_ANSWER.value


def test_directory_source_missing_exam_is_not_found(tmp_path):
    with pytest.raises(NotFound):
        asyncio.run(QuestionSetLoader(DirectoryQuestionSource(tmp_path)).load("nothing"))


def test_directory_source_ignores_paths_outside_directory(tmp_path):
    exams = tmp_path / "exams"
    exams.mkdir()
    (tmp_path / "secret.txt").write_text("Q: hidden\nCORRECT: x\n", encoding="utf-8")

    questions = asyncio.run(DirectoryQuestionSource(exams).load_questions("../secret"))

    assert questions == []


def test_directory_source_missing_directory_is_unavailable(tmp_path):
    with pytest.raises(SourceUnavailable):
        asyncio.run(QuestionSetLoader(DirectoryQuestionSource(tmp_path / "gone")).load("exam"))
