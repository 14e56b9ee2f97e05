"""Domain models for the quiz application.

The ``to_payload``/``from_payload`` pairs define the JSON-equivalent wire
shapes exchanged with the persistence and grading services. Keys follow the
client contract (``className``, ``questionId``, ``is_correct``...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from quizroom.constants.quiz_constants import DEFAULT_PENALTY, DEFAULT_POINTS


def _first_present(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass(slots=True)
class Alternative:
    """One selectable option of a question."""

    text: str = ""
    is_correct: bool = False
    id: str | None = None

    def clone(self) -> Alternative:
        return Alternative(text=self.text, is_correct=self.is_correct, id=self.id)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"text": self.text, "is_correct": self.is_correct}
        if self.id is not None:
            payload["id"] = self.id
        return payload

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> Alternative:
        return cls(
            text=str(data.get("text") or ""),
            is_correct=bool(_first_present(data, "is_correct", "isCorrect", default=False)),
            id=data.get("id"),
        )


@dataclass(slots=True)
class Question:
    """Multiple-choice question owned by a single quiz."""

    statement: str = ""
    points: int = DEFAULT_POINTS
    penalty: int = DEFAULT_PENALTY
    alternatives: list[Alternative] = field(default_factory=list)
    id: str | None = None

    def clone(self) -> Question:
        return Question(
            statement=self.statement,
            points=self.points,
            penalty=self.penalty,
            alternatives=[alternative.clone() for alternative in self.alternatives],
            id=self.id,
        )

    def correct_alternatives(self) -> list[Alternative]:
        return [alternative for alternative in self.alternatives if alternative.is_correct]

    def find_alternative(self, alternative_id: str) -> Alternative | None:
        return next((a for a in self.alternatives if a.id == alternative_id), None)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "statement": self.statement,
            "points": self.points,
            "penalty": self.penalty,
            "alternatives": [alternative.to_payload() for alternative in self.alternatives],
        }
        if self.id is not None:
            payload["id"] = self.id
        return payload

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> Question:
        return cls(
            statement=str(data.get("statement") or ""),
            points=_first_present(data, "points", default=DEFAULT_POINTS),
            penalty=_first_present(data, "penalty", default=DEFAULT_PENALTY),
            alternatives=[Alternative.from_payload(item) for item in data.get("alternatives") or []],
            id=data.get("id"),
        )


@dataclass(slots=True)
class Quiz:
    """A named quiz owned by the teacher who created it."""

    title: str
    class_name: str
    theme: str
    created_by: str
    id: str | None = None
    is_active: bool = True
    created_at: datetime | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "className": self.class_name,
            "theme": self.theme,
            "isActive": self.is_active,
            "createdBy": self.created_by,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> Quiz:
        created_at = data.get("createdAt") or data.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        return cls(
            title=str(data.get("title") or ""),
            class_name=str(_first_present(data, "className", "class_name", default="")),
            theme=str(data.get("theme") or ""),
            created_by=str(_first_present(data, "createdBy", "created_by", default="")),
            id=data.get("id"),
            is_active=bool(_first_present(data, "isActive", "is_active", default=True)),
            created_at=created_at,
        )


@dataclass(slots=True)
class QuizFilter:
    """Optional criteria for listing quizzes. ``None`` fields match everything."""

    title: str | None = None
    class_name: str | None = None
    theme: str | None = None
    is_active: bool | None = None
    created_by: str | None = None

    def matches(self, quiz: Quiz) -> bool:
        if self.title and self.title.casefold() not in quiz.title.casefold():
            return False
        if self.class_name is not None and quiz.class_name != self.class_name:
            return False
        if self.theme is not None and quiz.theme != self.theme:
            return False
        if self.is_active is not None and quiz.is_active != self.is_active:
            return False
        if self.created_by is not None and quiz.created_by != self.created_by:
            return False
        return True


@dataclass(slots=True)
class Answer:
    """A student's chosen alternative for one question."""

    question_id: str
    alternative_id: str
    alternative_text: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "questionId": self.question_id,
            "alternativeId": self.alternative_id,
            "alternativeText": self.alternative_text,
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> Answer:
        return cls(
            question_id=str(data["questionId"]),
            alternative_id=str(data["alternativeId"]),
            alternative_text=str(data.get("alternativeText") or ""),
        )


@dataclass(slots=True)
class AnswerResult:
    """Server-side grading outcome for one answer."""

    question_id: str
    alternative_id: str
    alternative_text: str
    correct: bool
    score_change: float

    def to_payload(self) -> dict[str, Any]:
        return {
            "questionId": self.question_id,
            "alternativeId": self.alternative_id,
            "alternativeText": self.alternative_text,
            "correct": self.correct,
            "scoreChange": self.score_change,
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> AnswerResult:
        return cls(
            question_id=str(data["questionId"]),
            alternative_id=str(data["alternativeId"]),
            alternative_text=str(data.get("alternativeText") or ""),
            correct=bool(data["correct"]),
            score_change=data.get("scoreChange", 0),
        )


@dataclass(slots=True)
class AnswerError:
    """Per-item grading failure; independent of the other items."""

    question_id: str
    alternative_id: str
    error: str
    status: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "questionId": self.question_id,
            "alternativeId": self.alternative_id,
            "error": self.error,
            "status": self.status,
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> AnswerError:
        return cls(
            question_id=str(data.get("questionId") or ""),
            alternative_id=str(data.get("alternativeId") or ""),
            error=str(data.get("error") or ""),
            status=str(data.get("status") or ""),
        )


@dataclass(slots=True)
class SubmitQuizResult:
    """Aggregate grading response for one submission."""

    total_score_change: float
    success_count: int
    error_count: int
    answers: list[AnswerResult] = field(default_factory=list)
    errors: list[AnswerError] | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "totalScoreChange": self.total_score_change,
            "successCount": self.success_count,
            "errorCount": self.error_count,
            "answers": [result.to_payload() for result in self.answers],
        }
        if self.errors is not None:
            payload["errors"] = [error.to_payload() for error in self.errors]
        return payload

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> SubmitQuizResult:
        raw_errors = data.get("errors")
        return cls(
            total_score_change=data.get("totalScoreChange", 0),
            success_count=int(data.get("successCount", 0)),
            error_count=int(data.get("errorCount", 0)),
            answers=[AnswerResult.from_payload(item) for item in data.get("answers") or []],
            errors=None if raw_errors is None else [AnswerError.from_payload(item) for item in raw_errors],
        )
