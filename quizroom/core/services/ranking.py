"""Service for per-quiz student rankings."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from itertools import count

from quizroom.core.models import AnswerResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class RankingEntry:
    """Mutable ranking entry used internally."""

    student_id: str
    total_score: float = 0
    correct_answers: int = 0
    total_answers: int = 0
    last_updated: datetime = field(default_factory=_utcnow)
    sequence: int = 0


@dataclass(slots=True)
class RankingRow:
    """Immutable snapshot returned to consumers."""

    position: int
    student_id: str
    total_score: float
    correct_answers: int
    total_answers: int

    def to_payload(self) -> dict[str, object]:
        return {
            "position": self.position,
            "studentId": self.student_id,
            "totalScore": self.total_score,
            "correctAnswers": self.correct_answers,
            "totalAnswers": self.total_answers,
        }


class Ranking:
    """Tracks graded results per quiz and student."""

    def __init__(self) -> None:
        self._entries: dict[str, dict[str, RankingEntry]] = {}
        self._sequence = count(1)

    def record_results(self, quiz_id: str, student_id: str, results: list[AnswerResult]) -> None:
        """Add graded answers to a student's totals for one quiz."""
        if not results:
            return
        entries = self._entries.setdefault(quiz_id, {})
        entry = entries.get(student_id)
        if entry is None:
            entry = RankingEntry(student_id=student_id)
            entries[student_id] = entry

        for result in results:
            entry.total_answers += 1
            entry.total_score += result.score_change
            if result.correct:
                entry.correct_answers += 1
        entry.last_updated = _utcnow()
        entry.sequence = next(self._sequence)

    def get_ranking(self, quiz_id: str, limit: int | None = None) -> list[RankingRow]:
        """Return students sorted by score, then correct answers, then who got there first."""
        sorted_entries = sorted(
            self._entries.get(quiz_id, {}).values(),
            key=lambda e: (-e.total_score, -e.correct_answers, e.sequence),
        )
        if limit is not None:
            sorted_entries = sorted_entries[:limit]
        return [
            RankingRow(
                position=position,
                student_id=entry.student_id,
                total_score=entry.total_score,
                correct_answers=entry.correct_answers,
                total_answers=entry.total_answers,
            )
            for position, entry in enumerate(sorted_entries, start=1)
        ]

    def clear(self, quiz_id: str | None = None) -> None:
        if quiz_id is None:
            self._entries.clear()
        else:
            self._entries.pop(quiz_id, None)
