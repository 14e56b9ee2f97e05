"""Derived views over a grading response.

The grading service is authoritative for correctness; this module never
re-grades. It exposes counts and accuracy, keeps per-item errors reportable
one by one, and checks the count invariants of the response.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging

from quizroom.constants.messages import (
    SUBMISSION_ERRORS_TEMPLATE,
    SUBMISSION_ITEM_ERROR_TEMPLATE,
    SUBMISSION_SUCCESS_TEMPLATE,
)
from quizroom.core.models import Answer, AnswerError, AnswerResult, SubmitQuizResult
from quizroom.core.notifications import Notifier

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SubmissionSummary:
    submitted: list[Answer]
    result: SubmitQuizResult
    violations: list[str] = field(default_factory=list)

    @property
    def total_answered(self) -> int:
        return len(self.submitted)

    @property
    def successes(self) -> list[AnswerResult]:
        return list(self.result.answers)

    @property
    def errors(self) -> list[AnswerError]:
        return list(self.result.errors or [])

    @property
    def has_errors(self) -> bool:
        return bool(self.result.errors)

    @property
    def correct_count(self) -> int:
        return sum(1 for answer in self.result.answers if answer.correct)

    @property
    def graded_count(self) -> int:
        return len(self.result.answers)

    @property
    def accuracy(self) -> float:
        """Share of graded answers that were correct, 0.0 when nothing was graded."""
        if not self.result.answers:
            return 0.0
        return self.correct_count / len(self.result.answers)

    @property
    def percentage(self) -> float:
        return self.accuracy * 100

    @property
    def total_score_change(self) -> float:
        return self.result.total_score_change

    @property
    def is_consistent(self) -> bool:
        return not self.violations

    def error_messages(self) -> list[str]:
        return [
            SUBMISSION_ITEM_ERROR_TEMPLATE.format(error=error.error, status=error.status)
            for error in self.errors
        ]

    def error_summary(self) -> str | None:
        if not self.has_errors:
            return None
        return SUBMISSION_ERRORS_TEMPLATE.format(count=self.result.error_count)

    def publish(self, notifier: Notifier) -> None:
        """Emit the summary warning, one error per failed item, then the success count."""
        summary = self.error_summary()
        if summary is not None:
            notifier.warning(summary)
            for message in self.error_messages():
                notifier.error(message)
        if self.result.success_count > 0:
            notifier.success(SUBMISSION_SUCCESS_TEMPLATE.format(count=self.result.success_count))


def check_invariants(answers: list[Answer], result: SubmitQuizResult) -> list[str]:
    """Return a description of every count invariant the response breaks."""
    violations: list[str] = []
    error_total = len(result.errors or [])
    if result.success_count != len(result.answers):
        violations.append(
            f"successCount={result.success_count} but {len(result.answers)} answer results were returned"
        )
    if result.error_count != error_total:
        violations.append(f"errorCount={result.error_count} but {error_total} errors were returned")
    if result.success_count + result.error_count != len(answers):
        violations.append(
            f"successCount + errorCount = {result.success_count + result.error_count} "
            f"but {len(answers)} answers were submitted"
        )
    return violations


def summarize_submission(answers: list[Answer], result: SubmitQuizResult) -> SubmissionSummary:
    violations = check_invariants(answers, result)
    for violation in violations:
        logger.warning("Inconsistent grading response: %s", violation)
    return SubmissionSummary(submitted=list(answers), result=result, violations=violations)
