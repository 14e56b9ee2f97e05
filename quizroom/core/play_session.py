"""State machine driving one student through a quiz.

States::

    LOADING -> IN_PROGRESS -> FEEDBACK -> IN_PROGRESS ... -> SUBMITTING -> COMPLETED
       |            |
       +------------+--> ABORTED

Each session owns a single-shot ``QTimer`` for the feedback auto-advance, so
all transitions run on the Qt event loop of the thread that created the
session. Tearing the session down stops the timer; results delivered after
teardown are dropped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Protocol
from uuid import uuid4

from PySide6.QtCore import QObject, QTimer, Signal

from quizroom.constants.messages import (
    INVALID_QUIZ_MESSAGE,
    QUIZ_UNAVAILABLE_MESSAGE,
    SUBMIT_FAILED_MESSAGE,
)
from quizroom.constants.quiz_constants import FEEDBACK_DURATION_MS
from quizroom.core.identity import SessionContext
from quizroom.core.models import Answer, Question, SubmitQuizResult
from quizroom.core.notifications import Notifier
from quizroom.core.submission import SubmissionSummary, summarize_submission

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    LOADING = "loading"
    IN_PROGRESS = "in_progress"
    FEEDBACK = "feedback"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    ABORTED = "aborted"


class FeedbackKind(str, Enum):
    NONE = "none"
    CORRECT = "correct"
    INCORRECT = "incorrect"


@dataclass(slots=True)
class Feedback:
    visible: bool = False
    kind: FeedbackKind = FeedbackKind.NONE


@dataclass(slots=True)
class RecordedAnswer:
    alternative_id: str
    alternative_text: str


@dataclass(slots=True)
class PlaySessionState:
    """Snapshot of a session's progress."""

    current_question_index: int = 0
    answers: dict[str, RecordedAnswer] = field(default_factory=dict)
    feedback: Feedback = field(default_factory=Feedback)
    completed: bool = False


class InvalidTransitionError(RuntimeError):
    """Raised when an operation is not allowed in the session's current state."""


class QuestionSource(Protocol):
    def get_questions(self, quiz_id: str) -> list[Question]: ...


class GradingService(Protocol):
    def submit_answers(
        self,
        quiz_id: str,
        answers: list[Answer],
        student_id: str | None = None,
    ) -> SubmitQuizResult: ...


_TERMINAL_STATES = {SessionState.COMPLETED, SessionState.ABORTED}


class PlaySession(QObject):
    """Drives one pass through a quiz with immediate feedback and timed advance."""

    stateChanged = Signal(object)
    feedbackShown = Signal(bool)
    completed = Signal(object)
    # Carries the abort reason; empty when the session was torn down.
    aborted = Signal(str)

    def __init__(
        self,
        quiz_id: str,
        question_source: QuestionSource,
        grading: GradingService,
        context: SessionContext | None = None,
        notifier: Notifier | None = None,
        feedback_duration_ms: int = FEEDBACK_DURATION_MS,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self.session_id = uuid4().hex
        self._quiz_id = quiz_id
        self._question_source = question_source
        self._grading = grading
        self._context = context
        self._notifier = notifier

        self._state = SessionState.LOADING
        self._questions: list[Question] = []
        self._progress = PlaySessionState()
        self._visited: list[int] = []
        self._final_result: SubmitQuizResult | None = None
        self._summary: SubmissionSummary | None = None
        self._abort_reason: str | None = None
        self._submission_error: Exception | None = None
        self._torn_down = False

        self._feedback_timer = QTimer(self)
        self._feedback_timer.setObjectName(f"feedback-{self.session_id}")
        self._feedback_timer.setSingleShot(True)
        self._feedback_timer.setInterval(feedback_duration_ms)
        self._feedback_timer.timeout.connect(self._on_feedback_elapsed)

    # --- Read access ---

    @property
    def quiz_id(self) -> str:
        return self._quiz_id

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def questions(self) -> list[Question]:
        return list(self._questions)

    @property
    def current_question_index(self) -> int:
        return self._progress.current_question_index

    @property
    def current_question(self) -> Question | None:
        if self._state not in (SessionState.IN_PROGRESS, SessionState.FEEDBACK):
            return None
        index = self._progress.current_question_index
        if index < len(self._questions):
            return self._questions[index]
        return None

    @property
    def feedback(self) -> Feedback:
        return Feedback(self._progress.feedback.visible, self._progress.feedback.kind)

    @property
    def answers(self) -> dict[str, RecordedAnswer]:
        return dict(self._progress.answers)

    @property
    def visited_indices(self) -> list[int]:
        return list(self._visited)

    @property
    def final_result(self) -> SubmitQuizResult | None:
        return self._final_result

    @property
    def summary(self) -> SubmissionSummary | None:
        return self._summary

    @property
    def abort_reason(self) -> str | None:
        return self._abort_reason

    @property
    def submission_error(self) -> Exception | None:
        return self._submission_error

    @property
    def is_torn_down(self) -> bool:
        return self._torn_down

    def is_feedback_pending(self) -> bool:
        return self._feedback_timer.isActive()

    def snapshot(self) -> PlaySessionState:
        return PlaySessionState(
            current_question_index=self._progress.current_question_index,
            answers=self.answers,
            feedback=self.feedback,
            completed=self._progress.completed,
        )

    def progress_percentage(self) -> float:
        if not self._questions:
            return 0.0
        return (self._progress.current_question_index / len(self._questions)) * 100

    # --- Transitions ---

    def start(self) -> None:
        """Load the quiz questions and enter the first question."""
        if self._state is not SessionState.LOADING or self._questions:
            raise InvalidTransitionError("Session has already been started.")
        if not self._quiz_id:
            self._abort(INVALID_QUIZ_MESSAGE)
            return

        try:
            questions = list(self._question_source.get_questions(self._quiz_id))
        except Exception as exc:
            if self._torn_down:
                logger.info("Dropping load failure for torn-down session %s: %s", self.session_id, exc)
                return
            logger.warning("Could not load questions for quiz %s: %s", self._quiz_id, exc)
            self._abort(QUIZ_UNAVAILABLE_MESSAGE)
            return

        self.handle_questions_loaded(questions)

    def handle_questions_loaded(self, questions: list[Question]) -> None:
        """Deliver the load result; also usable by callers that fetch asynchronously."""
        if self._torn_down:
            logger.info("Dropping loaded questions for torn-down session %s", self.session_id)
            return
        if self._state is not SessionState.LOADING:
            raise InvalidTransitionError(f"Cannot load questions while {self._state.value}.")
        if not questions:
            logger.warning("Quiz %s has no questions", self._quiz_id)
            self._abort(QUIZ_UNAVAILABLE_MESSAGE)
            return

        self._questions = list(questions)
        self._progress = PlaySessionState()
        logger.info("Session %s loaded %d questions for quiz %s", self.session_id, len(questions), self._quiz_id)
        self._enter_question(0)

    def select_answer(self, alternative_id: str, alternative_text: str) -> FeedbackKind:
        """Record the answer for the current question and show feedback."""
        if self._torn_down:
            raise InvalidTransitionError("Session has been torn down.")
        if self._state is SessionState.FEEDBACK or self._feedback_timer.isActive():
            raise InvalidTransitionError("An answer is already awaiting its feedback transition.")
        if self._state is not SessionState.IN_PROGRESS:
            raise InvalidTransitionError(f"Cannot select an answer while {self._state.value}.")
        question = self.current_question
        if question is None or question.id is None:
            raise InvalidTransitionError("There is no current question to answer.")

        self._progress.answers[question.id] = RecordedAnswer(alternative_id, alternative_text)
        is_correct = any(
            alternative.id == alternative_id and alternative.is_correct
            for alternative in question.alternatives
        )
        kind = FeedbackKind.CORRECT if is_correct else FeedbackKind.INCORRECT
        self._progress.feedback = Feedback(visible=True, kind=kind)
        self._set_state(SessionState.FEEDBACK)
        self.feedbackShown.emit(is_correct)
        self._feedback_timer.start()
        return kind

    def retry_submission(self) -> None:
        """Resend the answers after a failed submission call."""
        if self._torn_down:
            raise InvalidTransitionError("Session has been torn down.")
        if self._state is not SessionState.SUBMITTING or self._submission_error is None:
            raise InvalidTransitionError("There is no failed submission to retry.")
        self._submit()

    def teardown(self) -> None:
        """Cancel any pending transition; later results are ignored."""
        if self._torn_down:
            return
        self._feedback_timer.stop()
        self._torn_down = True
        if self._state in (SessionState.LOADING, SessionState.IN_PROGRESS, SessionState.FEEDBACK):
            self._progress.feedback = Feedback()
            self._abort_reason = None
            self._set_state(SessionState.ABORTED)
            self.aborted.emit("")
        logger.debug("Session %s torn down in state %s", self.session_id, self._state.value)

    def submitted_answers(self) -> list[Answer]:
        """Answers in question order; unanswered questions are omitted."""
        answers: list[Answer] = []
        for question in self._questions:
            if question.id is None:
                continue
            recorded = self._progress.answers.get(question.id)
            if recorded is None:
                continue
            answers.append(Answer(question.id, recorded.alternative_id, recorded.alternative_text))
        return answers

    # --- Internals ---

    def _enter_question(self, index: int) -> None:
        if self._visited and index != self._visited[-1] + 1:
            raise InvalidTransitionError(f"Question {index} is out of order.")
        self._progress.current_question_index = index
        self._visited.append(index)
        self._set_state(SessionState.IN_PROGRESS)

    def _on_feedback_elapsed(self) -> None:
        if self._torn_down or self._state is not SessionState.FEEDBACK:
            return
        self._progress.feedback = Feedback()
        next_index = self._progress.current_question_index + 1
        if next_index < len(self._questions):
            self._enter_question(next_index)
            return
        self._set_state(SessionState.SUBMITTING)
        self._submit()

    def _submit(self) -> None:
        answers = self.submitted_answers()
        student_id = self._context.user_id if self._context is not None else None
        self._submission_error = None
        try:
            result = self._grading.submit_answers(self._quiz_id, answers, student_id=student_id)
        except Exception as exc:
            if self._torn_down:
                logger.info("Dropping submission failure for torn-down session %s: %s", self.session_id, exc)
                return
            logger.warning("Submission for quiz %s failed: %s", self._quiz_id, exc)
            self._submission_error = exc
            if self._notifier is not None:
                self._notifier.error(SUBMIT_FAILED_MESSAGE)
            return

        if self._torn_down:
            logger.info("Dropping submission result for torn-down session %s", self.session_id)
            return

        self._summary = summarize_submission(answers, result)
        if self._notifier is not None:
            self._summary.publish(self._notifier)
        self._final_result = result
        self._progress.completed = True
        self._set_state(SessionState.COMPLETED)
        self.completed.emit(result)

    def _abort(self, reason: str) -> None:
        self._feedback_timer.stop()
        self._abort_reason = reason
        if self._notifier is not None:
            self._notifier.error(reason)
        self._set_state(SessionState.ABORTED)
        self.aborted.emit(reason)

    def _set_state(self, state: SessionState) -> None:
        if self._state in _TERMINAL_STATES and state is not self._state:
            raise InvalidTransitionError(f"Session already {self._state.value}.")
        logger.debug("Session %s: %s -> %s", self.session_id, self._state.value, state.value)
        self._state = state
        self.stateChanged.emit(state)
