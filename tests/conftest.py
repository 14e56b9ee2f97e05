import os

import pytest
from PySide6.QtCore import QCoreApplication

from quizroom.core.identity import SessionContext, UserRole
from quizroom.core.models import Alternative, Answer, AnswerError, AnswerResult, Question, Quiz, SubmitQuizResult
from quizroom.core.quiz_manager import QuizManager

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def qapp_cls():
    """Core event loop only; nothing under test needs widgets."""
    return QCoreApplication


def make_question(index: int, alternative_count: int = 3, correct: int = 0, with_ids: bool = True) -> Question:
    """Build a valid question; ids look like ``q1`` and ``q1-a0``."""
    qid = f"q{index}" if with_ids else None
    return Question(
        statement=f"Question number {index}?",
        points=10,
        penalty=2,
        alternatives=[
            Alternative(
                text=f"Alternative {a}",
                is_correct=a == correct,
                id=f"{qid}-a{a}" if with_ids else None,
            )
            for a in range(alternative_count)
        ],
        id=qid,
    )


class StubQuestionSource:
    def __init__(self, questions=None, error: Exception | None = None) -> None:
        self.questions = list(questions or [])
        self.error = error
        self.calls: list[str] = []

    def get_questions(self, quiz_id):
        self.calls.append(quiz_id)
        if self.error is not None:
            raise self.error
        return [question.clone() for question in self.questions]


class RecordingGrader:
    """Grades by the stored questions; can be told to fail the whole call."""

    def __init__(self, questions=None, error: Exception | None = None) -> None:
        self.questions = {q.id: q for q in questions or []}
        self.error = error
        self.calls: list[tuple[str, list[Answer], str | None]] = []

    def submit_answers(self, quiz_id, answers, student_id=None):
        self.calls.append((quiz_id, list(answers), student_id))
        if self.error is not None:
            raise self.error
        results, errors = [], []
        for answer in answers:
            question = self.questions.get(answer.question_id)
            alternative = question.find_alternative(answer.alternative_id) if question else None
            if alternative is None:
                errors.append(AnswerError(answer.question_id, answer.alternative_id, "Not found", "404"))
                continue
            results.append(
                AnswerResult(
                    answer.question_id,
                    answer.alternative_id,
                    alternative.text,
                    alternative.is_correct,
                    question.points if alternative.is_correct else -question.penalty,
                )
            )
        return SubmitQuizResult(
            total_score_change=sum(r.score_change for r in results),
            success_count=len(results),
            error_count=len(errors),
            answers=results,
            errors=errors or None,
        )


@pytest.fixture
def teacher():
    return SessionContext(user_id="teacher-1", role=UserRole.TEACHER, name="Ana")


@pytest.fixture
def other_teacher():
    return SessionContext(user_id="teacher-2", role=UserRole.TEACHER)


@pytest.fixture
def student():
    return SessionContext(user_id="student-1", role=UserRole.STUDENT, name="Bruno")


@pytest.fixture
def sample_questions():
    return [make_question(i) for i in range(1, 4)]


@pytest.fixture
def manager():
    return QuizManager()


@pytest.fixture
def seeded_quiz(manager, teacher):
    """A quiz owned by ``teacher`` with three saved questions."""
    quiz = manager.create_quiz(Quiz(title="Planets", class_name="5A", theme="Science", created_by=""), teacher)
    questions = [make_question(i, with_ids=False) for i in range(1, 4)]
    manager.save_questions(quiz.id, questions, teacher)
    return quiz
