"""Service for storing quizzes and their questions."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from uuid import uuid4

from quizroom.constants.quiz_constants import (
    MIN_CLASS_NAME_LENGTH,
    MIN_THEME_LENGTH,
    MIN_TITLE_LENGTH,
)
from quizroom.core.authoring import AuthoringLimits, validate_questions
from quizroom.core.identity import SessionContext
from quizroom.core.models import Alternative, Question, Quiz, QuizFilter

logger = logging.getLogger(__name__)


class QuizNotFoundError(LookupError):
    """Raised when a quiz id does not exist."""

    def __init__(self, quiz_id: str) -> None:
        super().__init__(f"Quiz {quiz_id!r} not found.")
        self.quiz_id = quiz_id


class QuizRepository:
    """Manages the lifecycle and storage of quizzes and questions."""

    def __init__(self, limits: AuthoringLimits | None = None) -> None:
        self._limits = limits or AuthoringLimits()
        self._quizzes: dict[str, Quiz] = {}
        self._questions: dict[str, list[Question]] = {}

    # --- Quizzes ---

    def create_quiz(self, quiz: Quiz, context: SessionContext) -> Quiz:
        if not context.is_teacher:
            raise PermissionError("Only teachers can create quizzes.")
        title = self._require_text(quiz.title, "Title", MIN_TITLE_LENGTH)
        class_name = self._require_text(quiz.class_name, "Class name", MIN_CLASS_NAME_LENGTH)
        theme = self._require_text(quiz.theme, "Theme", MIN_THEME_LENGTH)

        stored = Quiz(
            title=title,
            class_name=class_name,
            theme=theme,
            created_by=context.user_id,
            id=self._new_id(),
            is_active=quiz.is_active,
            created_at=datetime.now(timezone.utc),
        )
        self._quizzes[stored.id] = stored
        self._questions[stored.id] = []
        logger.info("Quiz %s created by %s", stored.id, context.user_id)
        return self._copy_quiz(stored)

    def list_quizzes(self, quiz_filter: QuizFilter | None = None) -> list[Quiz]:
        quiz_filter = quiz_filter or QuizFilter()
        # Insertion order is creation order; newest first.
        matches = [quiz for quiz in reversed(self._quizzes.values()) if quiz_filter.matches(quiz)]
        return [self._copy_quiz(quiz) for quiz in matches]

    def get_quiz(self, quiz_id: str) -> Quiz:
        return self._copy_quiz(self._require_quiz(quiz_id))

    def has_quiz(self, quiz_id: str) -> bool:
        return quiz_id in self._quizzes

    def delete_quiz(self, quiz_id: str, context: SessionContext) -> None:
        quiz = self._require_quiz(quiz_id)
        self._require_owner(quiz, context)
        del self._quizzes[quiz_id]
        self._questions.pop(quiz_id, None)
        logger.info("Quiz %s deleted by %s", quiz_id, context.user_id)

    # --- Questions ---

    def get_questions(self, quiz_id: str) -> list[Question]:
        self._require_quiz(quiz_id)
        return [question.clone() for question in self._questions.get(quiz_id, [])]

    def save_questions(self, quiz_id: str, questions: list[Question], context: SessionContext) -> list[Question]:
        """Replace every question of the quiz. Nothing is stored if any question is invalid."""
        quiz = self._require_quiz(quiz_id)
        self._require_owner(quiz, context)

        report = validate_questions(questions, self._limits)
        if not report.passed:
            raise ValueError(report.summary())

        prepared = [self._prepare_question(question) for question in questions]
        self._questions[quiz_id] = prepared
        logger.info("Saved %d questions for quiz %s", len(prepared), quiz_id)
        return [question.clone() for question in prepared]

    # --- Internals ---

    def _prepare_question(self, question: Question) -> Question:
        """Normalize a validated question and give it stable ids."""
        return Question(
            statement=question.statement.strip(),
            points=question.points,
            penalty=question.penalty,
            alternatives=[
                Alternative(
                    text=alternative.text.strip(),
                    is_correct=alternative.is_correct,
                    id=alternative.id or self._new_id(),
                )
                for alternative in question.alternatives
            ],
            id=question.id or self._new_id(),
        )

    def _require_quiz(self, quiz_id: str) -> Quiz:
        quiz = self._quizzes.get(quiz_id)
        if quiz is None:
            raise QuizNotFoundError(quiz_id)
        return quiz

    @staticmethod
    def _require_owner(quiz: Quiz, context: SessionContext) -> None:
        if not context.is_teacher or quiz.created_by != context.user_id:
            raise PermissionError("Only the teacher who created this quiz can change it.")

    @staticmethod
    def _require_text(value: str, label: str, min_length: int) -> str:
        cleaned = (value or "").strip()
        if len(cleaned) < min_length:
            raise ValueError(f"{label} must have at least {min_length} characters.")
        return cleaned

    @staticmethod
    def _copy_quiz(quiz: Quiz) -> Quiz:
        return Quiz(
            title=quiz.title,
            class_name=quiz.class_name,
            theme=quiz.theme,
            created_by=quiz.created_by,
            id=quiz.id,
            is_active=quiz.is_active,
            created_at=quiz.created_at,
        )

    @staticmethod
    def _new_id() -> str:
        return uuid4().hex
