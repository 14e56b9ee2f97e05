"""Utilities for importing questions from a human-friendly text file.

File format (repeat blocks separated by blank lines or '---'):

    Q: Question statement. Additional lines until the next marker are
       treated as part of the statement.
    A: First alternative
    B: Second alternative
    C: Third alternative        (up to E:)
    CORRECT: A|B|C|D|E
    POINTS: 10                  (optional, defaults to 10)
    PENALTY: 2                  (optional, defaults to 0)

Example:

    Q: Which planet is known as the red planet?
    A: Venus
    B: Mars
    C: Jupiter
    CORRECT: B
    POINTS: 5
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from quizroom.constants.quiz_constants import (
    DEFAULT_PENALTY,
    DEFAULT_POINTS,
    MAX_ALTERNATIVES,
    MIN_ALTERNATIVES,
)
from quizroom.core.models import Alternative, Question


class QuizImportError(Exception):
    """Raised when a quiz definition cannot be parsed."""


@dataclass(slots=True)
class ImportedQuiz:
    """Container for imported questions and where they came from."""

    source_path: Path | None
    questions: list[Question]


ALTERNATIVE_LETTERS = ("A", "B", "C", "D", "E")[:MAX_ALTERNATIVES]


def load_quiz_from_file(file_path: Path) -> ImportedQuiz:
    text = file_path.read_text(encoding="utf-8")
    return ImportedQuiz(source_path=file_path, questions=parse_quiz_text(text))


def parse_quiz_text(text: str) -> list[Question]:
    questions = [_parse_block(block) for block in _split_blocks(text)]
    if not questions:
        raise QuizImportError("Quiz text did not contain any questions.")
    return questions


def _split_blocks(text: str) -> list[str]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---" or not stripped:
            if current_block:
                blocks.append("\n".join(current_block))
                current_block = []
            continue
        current_block.append(raw_line)
    if current_block:
        blocks.append("\n".join(current_block))
    return blocks


def _parse_block(block: str) -> Question:
    statement_lines: list[str] = []
    alternatives: dict[str, str] = {}
    correct_letter: str | None = None
    points = DEFAULT_POINTS
    penalty = DEFAULT_PENALTY
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        upper = line.upper()

        if upper.startswith("Q:"):
            statement_lines = [line[2:].strip()]
            current_section = "Q"
        elif upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
        elif upper.startswith("POINTS:"):
            points = _parse_number(line, "POINTS", minimum=1)
            current_section = None
        elif upper.startswith("PENALTY:"):
            penalty = _parse_number(line, "PENALTY", minimum=0)
            current_section = None
        elif len(line) > 2 and line[0].upper() in ALTERNATIVE_LETTERS and line[1] == ":":
            letter = line[0].upper()
            alternatives[letter] = line[2:].strip()
            current_section = letter
        elif current_section == "Q":
            statement_lines.append(line)
        elif current_section in ALTERNATIVE_LETTERS:
            alternatives[current_section] += f"\n{line}"
        else:
            raise QuizImportError(f"Encountered text outside of a known section: '{line}'.")

    statement = "\n".join(statement_lines).strip()
    if not statement:
        raise QuizImportError("Question statement missing (Q: ...)")

    letters = ALTERNATIVE_LETTERS[: len(alternatives)]
    if len(alternatives) < MIN_ALTERNATIVES or set(alternatives) != set(letters):
        raise QuizImportError(
            f"Each question needs {MIN_ALTERNATIVES} to {len(ALTERNATIVE_LETTERS)} "
            f"alternatives lettered consecutively from A."
        )
    if any(not alternatives[letter].strip() for letter in letters):
        raise QuizImportError("Alternative text cannot be empty.")
    if correct_letter is None:
        raise QuizImportError("CORRECT is required for every question.")
    if correct_letter not in letters:
        raise QuizImportError(f"CORRECT must be one of {', '.join(letters)}.")

    return Question(
        statement=statement,
        points=points,
        penalty=penalty,
        alternatives=[
            Alternative(text=alternatives[letter].strip(), is_correct=letter == correct_letter)
            for letter in letters
        ],
    )


def _parse_number(line: str, label: str, minimum: int) -> int:
    raw_value = line.split(":", 1)[1].strip()
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise QuizImportError(f"{label} must be an integer.") from exc
    if value < minimum:
        raise QuizImportError(f"{label} must be at least {minimum}.")
    return value
