"""Business logic shared between the core engines and the API."""

from __future__ import annotations

import logging
from threading import Lock

from quizroom.constants.messages import (
    INCOMPLETE_QUIZ_MESSAGE,
    NO_QUESTIONS_MESSAGE,
    QUESTIONS_SAVED_MESSAGE,
    READ_ONLY_MESSAGE,
    SAVE_QUESTIONS_FAILED_MESSAGE,
)
from quizroom.constants.quiz_constants import FEEDBACK_DURATION_MS
from quizroom.core.authoring import AuthoringLimits, EditorMode, QuestionEditor
from quizroom.core.identity import SessionContext
from quizroom.core.models import Answer, Question, Quiz, QuizFilter, SubmitQuizResult
from quizroom.core.notifications import Notifier
from quizroom.core.play_session import PlaySession
from quizroom.core.services.grader import Grader
from quizroom.core.services.quiz_repository import QuizNotFoundError, QuizRepository
from quizroom.core.services.ranking import Ranking, RankingRow

logger = logging.getLogger(__name__)


class QuizManager:
    """Facade for quiz services: Repository, Grader and Ranking."""

    def __init__(self, limits: AuthoringLimits | None = None) -> None:
        self._lock = Lock()
        self._limits = limits or AuthoringLimits()

        # Services
        self._repository = QuizRepository(self._limits)
        self._ranking = Ranking()
        self._grader = Grader(self._repository, self._ranking)

    @property
    def limits(self) -> AuthoringLimits:
        """Bounds shared by every editor and the repository."""
        return self._limits

    # --- Quizzes ---

    def create_quiz(self, quiz: Quiz, context: SessionContext) -> Quiz:
        """Create a quiz owned by the calling teacher."""
        with self._lock:
            return self._repository.create_quiz(quiz, context)

    def list_quizzes(self, quiz_filter: QuizFilter | None = None) -> list[Quiz]:
        """Return the quizzes matching ``quiz_filter``, newest first."""
        with self._lock:
            return self._repository.list_quizzes(quiz_filter)

    def list_quizzes_for(self, context: SessionContext) -> list[Quiz]:
        """Teachers see the quizzes they created; students see every active quiz."""
        if context.is_teacher:
            quiz_filter = QuizFilter(created_by=context.user_id)
        else:
            quiz_filter = QuizFilter(is_active=True)
        return self.list_quizzes(quiz_filter)

    def get_quiz(self, quiz_id: str) -> Quiz:
        """Return one quiz or raise ``QuizNotFoundError``."""
        with self._lock:
            return self._repository.get_quiz(quiz_id)

    def delete_quiz(self, quiz_id: str, context: SessionContext) -> None:
        """Delete a quiz with its questions and ranking."""
        with self._lock:
            self._repository.delete_quiz(quiz_id, context)
            self._ranking.clear(quiz_id)

    # --- Questions ---

    def get_questions(self, quiz_id: str) -> list[Question]:
        """Return the stored questions of a quiz."""
        with self._lock:
            return self._repository.get_questions(quiz_id)

    def save_questions(self, quiz_id: str, questions: list[Question], context: SessionContext) -> list[Question]:
        """Replace the questions of a quiz and return them with their ids."""
        with self._lock:
            return self._repository.save_questions(quiz_id, questions, context)

    # --- Grading & ranking ---

    def submit_answers(
        self,
        quiz_id: str,
        answers: list[Answer],
        student_id: str | None = None,
    ) -> SubmitQuizResult:
        """Grade a submission and record it in the ranking."""
        with self._lock:
            return self._grader.submit_answers(quiz_id, answers, student_id=student_id)

    def get_ranking(self, quiz_id: str, limit: int | None = None) -> list[RankingRow]:
        """Return the ranking rows of an existing quiz."""
        with self._lock:
            if not self._repository.has_quiz(quiz_id):
                raise QuizNotFoundError(quiz_id)
            return self._ranking.get_ranking(quiz_id, limit)

    # --- Authoring ---

    def open_editor(
        self,
        quiz_id: str,
        context: SessionContext,
        mode: EditorMode | None = None,
        notifier: Notifier | None = None,
    ) -> QuestionEditor:
        """Load the quiz questions into a new editor.

        Without an explicit mode, the quiz owner edits and everyone else views.
        An editable quiz without questions opens with empty slots; a read-only
        one (including an unknown quiz) opens empty with the no-questions flag.
        """
        if mode is None:
            mode = EditorMode.EDITABLE if self._is_owner(quiz_id, context) else EditorMode.READ_ONLY

        try:
            existing = self.get_questions(quiz_id)
        except QuizNotFoundError as exc:
            logger.info("Opening editor without stored questions: %s", exc)
            existing = []

        editor = QuestionEditor(self._limits, notifier)
        editor.load(existing, mode)
        if editor.no_questions and notifier is not None:
            notifier.info(NO_QUESTIONS_MESSAGE)
        return editor

    def save_editor(
        self,
        editor: QuestionEditor,
        quiz_id: str,
        context: SessionContext,
        notifier: Notifier | None = None,
    ) -> bool:
        """Persist the editor contents; refuse the whole save when anything is incomplete."""
        if editor.read_only:
            self._notify_error(notifier, READ_ONLY_MESSAGE)
            return False

        report = editor.validate()
        if not report.passed:
            logger.info("Refusing to save quiz %s: %s", quiz_id, report.summary())
            self._notify_error(notifier, INCOMPLETE_QUIZ_MESSAGE)
            return False

        questions = [Question.from_payload(item) for item in editor.to_persistable_payload()]
        try:
            saved = self.save_questions(quiz_id, questions, context)
        except (LookupError, PermissionError, ValueError) as exc:
            logger.warning("Saving questions for quiz %s failed: %s", quiz_id, exc)
            self._notify_error(notifier, SAVE_QUESTIONS_FAILED_MESSAGE)
            return False

        editor.apply_saved(saved)
        if notifier is not None:
            notifier.success(QUESTIONS_SAVED_MESSAGE)
        return True

    # --- Play ---

    def start_play_session(
        self,
        quiz_id: str,
        context: SessionContext,
        notifier: Notifier | None = None,
        feedback_duration_ms: int = FEEDBACK_DURATION_MS,
    ) -> PlaySession:
        """Create a play session for ``quiz_id`` and start loading it."""
        session = PlaySession(
            quiz_id,
            question_source=self,
            grading=self,
            context=context,
            notifier=notifier,
            feedback_duration_ms=feedback_duration_ms,
        )
        session.start()
        return session

    # --- Internals ---

    def _is_owner(self, quiz_id: str, context: SessionContext) -> bool:
        if not context.is_teacher:
            return False
        with self._lock:
            if not self._repository.has_quiz(quiz_id):
                return False
            return self._repository.get_quiz(quiz_id).created_by == context.user_id

    @staticmethod
    def _notify_error(notifier: Notifier | None, message: str) -> None:
        if notifier is not None:
            notifier.error(message)
