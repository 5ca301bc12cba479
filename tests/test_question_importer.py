import pytest

from exam_app.core.errors import QuestionImportError
from exam_app.core.models import QuestionType
from exam_app.core.question_importer import load_fallback_questions, load_questions_from_file, parse_question_text


def test_parses_blocks_with_defaults_and_inferred_types():
    text = """
Q: Which planet is largest?
A: A. Mars
B: B. Jupiter
CORRECT: B

---
Q: Water boils at 100 degrees Celsius at sea level.
A: True
B: False
CORRECT: True

Q: A baby cat is called a _____.
CORRECT: kitten

Q: Describe photosynthesis
in one sentence.
POINTS: 3
CORRECT: Plants turn light into chemical energy.
"""
    questions = parse_question_text(text)

    assert [question.id for question in questions] == ["q-1", "q-2", "q-3", "q-4"]
    assert [question.number for question in questions] == [1, 2, 3, 4]
    assert [question.type for question in questions] == [
        QuestionType.MULTIPLE_CHOICE.value,
        QuestionType.TRUE_FALSE.value,
        QuestionType.FILL_IN_THE_BLANK.value,
        QuestionType.SHORT_ANSWER.value,
    ]
    assert questions[0].options == ("A. Mars", "B. Jupiter")
    assert questions[0].point_value == 1
    assert questions[3].text == "Describe photosynthesis\nin one sentence."
    assert questions[3].options is None
    assert questions[3].point_value == 3


def test_explicit_metadata_overrides_defaults():
    questions = parse_question_text("ID: essay-7\nNUMBER: 7\nTYPE: essay\nQ: Discuss.\n", id_prefix="exam")

    assert questions[0].id == "essay-7"
    assert questions[0].number == 7
    assert questions[0].type == QuestionType.ESSAY.value


@pytest.mark.parametrize(
    "text",
    [
        "Q: Pick one\nA: one\nC: three\nCORRECT: A",
        "Q: Typed\nTYPE: POEM",
        "Q: Points\nPOINTS: many",
        "A: orphan option",
        "Q: First\nCORRECT: x\nstray line",
        "ID: same\nQ: one\n\nID: same\nQ: two",
    ],
)
def test_invalid_definitions_raise(text):
    with pytest.raises(QuestionImportError):
        parse_question_text(text)


def test_load_from_file_uses_stem_as_prefix(tmp_path):
    path = tmp_path / "history.txt"
    path.write_text("Q: Who was the first Roman emperor?\nCORRECT: Augustus\n", encoding="utf-8")

    imported = load_questions_from_file(path)

    assert imported.source_path == path
    assert imported.questions[0].id == "history-1"


def test_empty_file_is_rejected(tmp_path):
    path = tmp_path / "empty.txt"
    path.write_text("\n\n---\n", encoding="utf-8")

    with pytest.raises(QuestionImportError):
        load_questions_from_file(path)


def test_fallback_set_is_bundled():
    questions = load_fallback_questions()

    assert [question.id for question in questions] == [f"fallback-{n}" for n in range(1, 6)]
    assert {question.type for question in questions} == {
        QuestionType.MULTIPLE_CHOICE.value,
        QuestionType.TRUE_FALSE.value,
        QuestionType.SHORT_ANSWER.value,
        QuestionType.FILL_IN_THE_BLANK.value,
    }
