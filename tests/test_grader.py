import pytest

from quizroom.core.models import Answer, Quiz
from quizroom.core.services.grader import (
    ALTERNATIVE_NOT_FOUND,
    QUESTION_ALREADY_ANSWERED,
    QUESTION_NOT_FOUND,
    Grader,
)
from quizroom.core.services.quiz_repository import QuizNotFoundError, QuizRepository
from quizroom.core.services.ranking import Ranking


@pytest.fixture
def graded_quiz(teacher, sample_questions):
    repository = QuizRepository()
    quiz = repository.create_quiz(Quiz("Rivers", "6B", "Geography", ""), teacher)
    repository.save_questions(quiz.id, sample_questions, teacher)
    ranking = Ranking()
    return Grader(repository, ranking), ranking, quiz.id


def test_correct_and_incorrect_scoring(graded_quiz):
    grader, _, quiz_id = graded_quiz
    answers = [
        Answer("q1", "q1-a0", "Alternative 0"),
        Answer("q2", "q2-a2", "Alternative 2"),
    ]

    result = grader.submit_answers(quiz_id, answers)

    assert result.success_count == 2
    assert result.error_count == 0
    assert result.errors is None
    assert [r.correct for r in result.answers] == [True, False]
    assert [r.score_change for r in result.answers] == [10, -2]
    assert result.total_score_change == 8


def test_item_errors_do_not_block_other_answers(graded_quiz):
    grader, _, quiz_id = graded_quiz
    answers = [
        Answer("missing", "x", "?"),
        Answer("q1", "q1-a7", "?"),
        Answer("q2", "q2-a0", "Alternative 0"),
        Answer("q2", "q2-a1", "Alternative 1"),
    ]

    result = grader.submit_answers(quiz_id, answers)

    assert result.success_count == 1
    assert result.error_count == 3
    assert [(e.error, e.status) for e in result.errors] == [
        (QUESTION_NOT_FOUND, "404"),
        (ALTERNATIVE_NOT_FOUND, "404"),
        (QUESTION_ALREADY_ANSWERED, "409"),
    ]
    assert result.success_count + result.error_count == len(answers)


def test_unknown_quiz_rejects_whole_submission(graded_quiz):
    grader, _, _ = graded_quiz

    with pytest.raises(QuizNotFoundError):
        grader.submit_answers("nope", [Answer("q1", "q1-a0", "")])


def test_results_feed_ranking_only_with_student(graded_quiz):
    grader, ranking, quiz_id = graded_quiz

    grader.submit_answers(quiz_id, [Answer("q1", "q1-a0", "")])
    assert ranking.get_ranking(quiz_id) == []

    grader.submit_answers(quiz_id, [Answer("q1", "q1-a0", "")], student_id="student-1")
    (row,) = ranking.get_ranking(quiz_id)
    assert row.student_id == "student-1"
    assert row.total_score == 10
