"""Server-side grading of submitted answers."""

from __future__ import annotations

import logging

from quizroom.core.models import Answer, AnswerError, AnswerResult, Question, SubmitQuizResult
from quizroom.core.services.quiz_repository import QuizRepository
from quizroom.core.services.ranking import Ranking

logger = logging.getLogger(__name__)

QUESTION_NOT_FOUND = "Question not found"
ALTERNATIVE_NOT_FOUND = "Alternative not found"
QUESTION_ALREADY_ANSWERED = "Question already answered"


class Grader:
    """Grades each answer independently against the stored questions."""

    def __init__(self, repository: QuizRepository, ranking: Ranking | None = None) -> None:
        self._repository = repository
        self._ranking = ranking

    def submit_answers(
        self,
        quiz_id: str,
        answers: list[Answer],
        student_id: str | None = None,
    ) -> SubmitQuizResult:
        """Grade ``answers``; an unknown quiz rejects the whole call."""
        questions = {q.id: q for q in self._repository.get_questions(quiz_id) if q.id is not None}

        results: list[AnswerResult] = []
        errors: list[AnswerError] = []
        graded: set[str] = set()
        for answer in answers:
            outcome = self._grade(answer, questions.get(answer.question_id), graded)
            if isinstance(outcome, AnswerError):
                errors.append(outcome)
            else:
                results.append(outcome)
                graded.add(answer.question_id)

        total = sum(result.score_change for result in results)
        logger.info(
            "Graded quiz %s for %s: %d ok, %d errors, score change %s",
            quiz_id,
            student_id or "anonymous",
            len(results),
            len(errors),
            total,
        )
        if student_id and self._ranking is not None:
            self._ranking.record_results(quiz_id, student_id, results)

        return SubmitQuizResult(
            total_score_change=total,
            success_count=len(results),
            error_count=len(errors),
            answers=results,
            errors=errors or None,
        )

    @staticmethod
    def _grade(answer: Answer, question: Question | None, graded: set[str]) -> AnswerResult | AnswerError:
        if question is None:
            return AnswerError(answer.question_id, answer.alternative_id, QUESTION_NOT_FOUND, "404")
        if answer.question_id in graded:
            return AnswerError(answer.question_id, answer.alternative_id, QUESTION_ALREADY_ANSWERED, "409")
        alternative = question.find_alternative(answer.alternative_id)
        if alternative is None:
            return AnswerError(answer.question_id, answer.alternative_id, ALTERNATIVE_NOT_FOUND, "404")

        correct = alternative.is_correct
        return AnswerResult(
            question_id=answer.question_id,
            alternative_id=answer.alternative_id,
            alternative_text=alternative.text,
            correct=correct,
            score_change=question.points if correct else -question.penalty,
        )
