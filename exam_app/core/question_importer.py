"""Utilities for reading question sets from a human-friendly text file.

File format (repeat blocks separated by blank lines or '---'):

    ID: q1                 (optional - defaults to "<prefix>-<position>")
    NUMBER: 1              (optional - defaults to the block position)
    TYPE: MULTIPLE_CHOICE  (optional - inferred from the options otherwise)
    POINTS: 2              (optional - defaults to one point)
    Q: Question text. Additional lines until the next marker are treated
       as part of the question.
    A: A. First option
    B: B. Second option
    CORRECT: B

Free-text questions simply omit the option lines. Any number of options
A-Z may be given, in order.

Architecture note:
    The fallback question set shipped with the package uses this same
    format, so demo and disconnected sessions go through the exact parser
    used for instructor-authored files.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import string

from exam_app.core.errors import QuestionImportError
from exam_app.core.models import Question, QuestionType, infer_question_type

_OPTION_LETTERS = string.ascii_uppercase
_KNOWN_TYPES = {question_type.value for question_type in QuestionType}
_FALLBACK_PATH = Path(__file__).resolve().parent.parent / "data" / "fallback_questions.txt"


@dataclass(slots=True)
class ImportedQuestionSet:
    """Container for imported question set metadata and questions."""

    source_path: Path
    questions: list[Question]


def load_questions_from_file(file_path: Path, id_prefix: str | None = None) -> ImportedQuestionSet:
    text = file_path.read_text(encoding="utf-8")
    questions = parse_question_text(text, id_prefix=id_prefix or file_path.stem)
    if not questions:
        raise QuestionImportError(f"Question file {file_path.name} did not contain any questions.")
    return ImportedQuestionSet(source_path=file_path, questions=questions)


def load_fallback_questions() -> list[Question]:
    """Return the static practice set used when the question source is unreachable."""
    return load_questions_from_file(_FALLBACK_PATH, id_prefix="fallback").questions


def parse_question_text(text: str, id_prefix: str = "q") -> list[Question]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        if stripped:
            current_block.append(raw_line)
        elif current_block:
            blocks.append("\n".join(current_block).strip())
            current_block = []
    if current_block:
        blocks.append("\n".join(current_block).strip())

    questions: list[Question] = []
    seen_ids: set[str] = set()
    for position, block in enumerate((b for b in blocks if b), start=1):
        question = _parse_block(block, position, id_prefix)
        if question.id in seen_ids:
            raise QuestionImportError(f"Duplicate question id '{question.id}'.")
        seen_ids.add(question.id)
        questions.append(question)
    return questions


def _parse_block(block: str, position: int, id_prefix: str) -> Question:
    question_lines: list[str] = []
    options: dict[str, str] = {}
    correct_answer = ""
    question_type: str | None = None
    points: int | None = None
    number = position
    question_id = f"{id_prefix}-{position}"
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        key, _, value = line.partition(":")
        upper_key = key.strip().upper()
        value = value.strip()

        if upper_key == "Q":
            question_lines = [value]
            current_section = "Q"
            continue
        if upper_key == "CORRECT":
            correct_answer = value
            current_section = None
            continue
        if upper_key == "TYPE":
            question_type = value.upper().replace(" ", "_")
            if question_type not in _KNOWN_TYPES:
                raise QuestionImportError(f"Unknown question type '{value}'.")
            current_section = None
            continue
        if upper_key == "POINTS":
            points = _parse_int(value, "POINTS", minimum=0)
            current_section = None
            continue
        if upper_key == "NUMBER":
            number = _parse_int(value, "NUMBER", minimum=0)
            current_section = None
            continue
        if upper_key == "ID":
            if not value:
                raise QuestionImportError("ID must not be empty.")
            question_id = value
            current_section = None
            continue

        if len(key) == 1 and key.upper() in _OPTION_LETTERS and line[1:2] == ":":
            letter = key.upper()
            if letter in options:
                raise QuestionImportError(f"Option {letter} is defined twice.")
            options[letter] = value
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in options:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuestionImportError(f"Encountered text outside of a known section: '{line}'.")

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuestionImportError("Question text missing (Q: ...)")

    option_list = _ordered_options(options)
    if question_type is None:
        question_type = infer_question_type(question_text, option_list)

    return Question(
        id=question_id,
        text=question_text,
        correct_answer=correct_answer,
        type=question_type,
        options=tuple(option_list) if option_list else None,
        points=points,
        number=number,
    )


def _ordered_options(options: dict[str, str]) -> list[str]:
    expected = _OPTION_LETTERS[: len(options)]
    if set(options) != set(expected):
        raise QuestionImportError("Options must be lettered consecutively starting at A.")
    cleaned = [options[letter].strip() for letter in expected]
    if any(not option for option in cleaned):
        raise QuestionImportError("Option text cannot be empty.")
    return cleaned


def _parse_int(raw_value: str, field_name: str, minimum: int) -> int:
    if not raw_value:
        raise QuestionImportError(f"{field_name} must include an integer value.")
    try:
        parsed_value = int(raw_value)
    except ValueError as exc:
        raise QuestionImportError(f"{field_name} must be an integer.") from exc
    if parsed_value < minimum:
        raise QuestionImportError(f"{field_name} must be at least {minimum}.")
    return parsed_value
