"""Utilities for exporting questions to the plain-text import format."""

from __future__ import annotations

from pathlib import Path

from quizroom.core.models import Question
from quizroom.core.quiz_importer import ALTERNATIVE_LETTERS


def save_quiz_to_file(file_path: Path, questions: list[Question]) -> None:
    """Persist the provided questions to disk in the text import format."""

    file_path = file_path.resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(serialize_questions(questions), encoding="utf-8")


def serialize_questions(questions: list[Question]) -> str:
    if not questions:
        raise ValueError("Cannot export an empty quiz.")
    blocks = [_serialize_question(question) for question in questions]
    return "\n\n---\n\n".join(blocks) + "\n"


def _serialize_question(question: Question) -> str:
    if len(question.alternatives) > len(ALTERNATIVE_LETTERS):
        raise ValueError(f"Cannot export more than {len(ALTERNATIVE_LETTERS)} alternatives.")

    statement_lines = _text_lines(question.statement, "Statement")
    lines = [f"Q: {statement_lines[0]}", *statement_lines[1:]]

    correct_letter: str | None = None
    for letter, alternative in zip(ALTERNATIVE_LETTERS, question.alternatives):
        alternative_lines = _text_lines(alternative.text, f"Alternative {letter}")
        lines.append(f"{letter}: {alternative_lines[0]}")
        lines.extend(alternative_lines[1:])
        if alternative.is_correct:
            correct_letter = letter

    if correct_letter is not None:
        lines.append(f"CORRECT: {correct_letter}")
    lines.append(f"POINTS: {question.points}")
    lines.append(f"PENALTY: {question.penalty}")
    return "\n".join(lines)


def _text_lines(text: str, label: str) -> list[str]:
    """Split ``text`` into lines; blank lines would end the question block on import."""
    lines = [line.strip() for line in text.strip().splitlines()] or [""]
    if len(lines) > 1 and not all(lines):
        raise ValueError(f"{label} cannot contain blank lines.")
    return lines
