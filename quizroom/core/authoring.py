"""Editable question collection that stays within the authoring bounds.

The editor owns an ordered list of draft questions, each with an ordered list
of alternatives. Every structural edit is checked against ``AuthoringLimits``
before it is applied; an edit that would cross a bound is refused and reported
through the returned ``EditResult`` (and a warning notification when a
notifier is attached). The collection is therefore never observable with an
out-of-bounds question or alternative count.

Correctness selection is a toggle with group-exclusive semantics: selecting
the already-correct alternative clears the whole question, selecting any other
one makes it the only correct alternative.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Any, Iterable, Sequence

from quizroom.constants.messages import (
    ALTERNATIVES_AT_CAPACITY_TEMPLATE,
    ALTERNATIVES_AT_MINIMUM_TEMPLATE,
    QUESTIONS_AT_CAPACITY_TEMPLATE,
    QUESTIONS_AT_MINIMUM_TEMPLATE,
    READ_ONLY_MESSAGE,
)
from quizroom.constants.quiz_constants import (
    DEFAULT_ALTERNATIVE_COUNT,
    MAX_ALTERNATIVES,
    MAX_QUESTIONS,
    MIN_ALTERNATIVES,
    MIN_QUESTIONS,
    MIN_STATEMENT_LENGTH,
)
from quizroom.core.models import Alternative, Question
from quizroom.core.notifications import Notifier

logger = logging.getLogger(__name__)


class EditorMode(str, Enum):
    EDITABLE = "editable"
    READ_ONLY = "read_only"


class EditStatus(Enum):
    APPLIED = "applied"
    AT_CAPACITY = "at_capacity"
    AT_MINIMUM = "at_minimum"
    READ_ONLY = "read_only"


@dataclass(frozen=True, slots=True)
class EditResult:
    """Outcome of a structural edit. Refusals carry the bound that was hit."""

    status: EditStatus
    limit: int | None = None
    message: str | None = None

    @property
    def applied(self) -> bool:
        return self.status is EditStatus.APPLIED


_APPLIED = EditResult(EditStatus.APPLIED)


@dataclass(frozen=True, slots=True)
class AuthoringLimits:
    min_questions: int = MIN_QUESTIONS
    max_questions: int = MAX_QUESTIONS
    min_alternatives: int = MIN_ALTERNATIVES
    max_alternatives: int = MAX_ALTERNATIVES
    default_alternative_count: int = DEFAULT_ALTERNATIVE_COUNT
    min_statement_length: int = MIN_STATEMENT_LENGTH

    def __post_init__(self) -> None:
        if not 0 <= self.min_questions <= self.max_questions:
            raise ValueError("Question bounds must satisfy 0 <= min <= max.")
        if not 1 <= self.min_alternatives <= self.max_alternatives:
            raise ValueError("Alternative bounds must satisfy 1 <= min <= max.")
        if not self.min_alternatives <= self.default_alternative_count <= self.max_alternatives:
            raise ValueError("Default alternative count must lie within the alternative bounds.")


class IssueKind(str, Enum):
    TOO_FEW_QUESTIONS = "too_few_questions"
    TOO_MANY_QUESTIONS = "too_many_questions"
    EMPTY_STATEMENT = "empty_statement"
    STATEMENT_TOO_SHORT = "statement_too_short"
    INVALID_POINTS = "invalid_points"
    INVALID_PENALTY = "invalid_penalty"
    TOO_FEW_ALTERNATIVES = "too_few_alternatives"
    TOO_MANY_ALTERNATIVES = "too_many_alternatives"
    MISSING_CORRECT_ALTERNATIVE = "missing_correct_alternative"
    MULTIPLE_CORRECT_ALTERNATIVES = "multiple_correct_alternatives"
    BLANK_ALTERNATIVE = "blank_alternative"


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    kind: IssueKind
    message: str
    question_index: int | None = None
    alternative_index: int | None = None


@dataclass(slots=True)
class ValidationReport:
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.issues

    def incomplete_questions(self) -> list[int]:
        return sorted({i.question_index for i in self.issues if i.question_index is not None})

    def incomplete_alternatives(self, question_index: int) -> list[int]:
        return sorted(
            {
                i.alternative_index
                for i in self.issues
                if i.question_index == question_index and i.alternative_index is not None
            }
        )

    def issues_for(self, question_index: int) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.question_index == question_index]

    def summary(self) -> str:
        return "; ".join(issue.message for issue in self.issues)


def validate_questions(
    questions: Iterable[Question],
    limits: AuthoringLimits | None = None,
) -> ValidationReport:
    """Check a question list against the rules a savable quiz must meet."""
    limits = limits or AuthoringLimits()
    questions = list(questions)
    report = ValidationReport()

    if len(questions) < limits.min_questions:
        report.issues.append(
            ValidationIssue(
                IssueKind.TOO_FEW_QUESTIONS,
                f"The quiz needs at least {limits.min_questions} questions.",
            )
        )
    elif len(questions) > limits.max_questions:
        report.issues.append(
            ValidationIssue(
                IssueKind.TOO_MANY_QUESTIONS,
                f"The quiz can have at most {limits.max_questions} questions.",
            )
        )

    for index, question in enumerate(questions):
        report.issues.extend(_question_issues(index, question, limits))
    return report


def _question_issues(index: int, question: Question, limits: AuthoringLimits) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    label = f"Question {index + 1}"

    statement = (question.statement or "").strip()
    if not statement:
        issues.append(ValidationIssue(IssueKind.EMPTY_STATEMENT, f"{label}: statement is empty.", index))
    elif len(statement) < limits.min_statement_length:
        issues.append(
            ValidationIssue(
                IssueKind.STATEMENT_TOO_SHORT,
                f"{label}: statement must have at least {limits.min_statement_length} characters.",
                index,
            )
        )

    if not _is_number(question.points) or question.points < 1:
        issues.append(ValidationIssue(IssueKind.INVALID_POINTS, f"{label}: points must be at least 1.", index))
    if not _is_number(question.penalty) or question.penalty < 0:
        issues.append(ValidationIssue(IssueKind.INVALID_PENALTY, f"{label}: penalty cannot be negative.", index))

    count = len(question.alternatives)
    if count < limits.min_alternatives:
        issues.append(
            ValidationIssue(
                IssueKind.TOO_FEW_ALTERNATIVES,
                f"{label}: needs at least {limits.min_alternatives} alternatives.",
                index,
            )
        )
    elif count > limits.max_alternatives:
        issues.append(
            ValidationIssue(
                IssueKind.TOO_MANY_ALTERNATIVES,
                f"{label}: can have at most {limits.max_alternatives} alternatives.",
                index,
            )
        )

    for alt_index, alternative in enumerate(question.alternatives):
        if not (alternative.text or "").strip():
            issues.append(
                ValidationIssue(
                    IssueKind.BLANK_ALTERNATIVE,
                    f"{label}: alternative {alt_index + 1} is blank.",
                    index,
                    alt_index,
                )
            )

    correct = sum(1 for alternative in question.alternatives if alternative.is_correct)
    if correct == 0:
        issues.append(
            ValidationIssue(
                IssueKind.MISSING_CORRECT_ALTERNATIVE,
                f"{label}: mark the correct alternative.",
                index,
            )
        )
    elif correct > 1:
        issues.append(
            ValidationIssue(
                IssueKind.MULTIPLE_CORRECT_ALTERNATIVES,
                f"{label}: only one alternative can be correct.",
                index,
            )
        )
    return issues


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(slots=True)
class DraftQuestion:
    """A question being edited, plus editor-only bookkeeping."""

    question: Question
    is_new: bool = False
    is_saved: bool = True


class QuestionEditor:
    """Bounded, editable sequence of questions for one quiz."""

    def __init__(
        self,
        limits: AuthoringLimits | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._limits = limits or AuthoringLimits()
        self._notifier = notifier
        self._drafts: list[DraftQuestion] = []
        self._mode = EditorMode.EDITABLE
        self._no_questions = False

    # --- Loading ---

    def load(self, existing: Iterable[Question], mode: EditorMode = EditorMode.EDITABLE) -> None:
        """Replace the editable sequence with ``existing`` fitted to the bounds."""
        self._mode = EditorMode(mode)
        loaded = [question.clone() for question in existing]
        if len(loaded) > self._limits.max_questions:
            logger.info(
                "Truncating %d loaded questions to the maximum of %d",
                len(loaded),
                self._limits.max_questions,
            )
            loaded = loaded[: self._limits.max_questions]

        self._drafts = [DraftQuestion(self._fit_alternatives(question)) for question in loaded]

        if not self._drafts and self.read_only:
            self._no_questions = True
            return

        self._no_questions = False
        if not self.read_only:
            while len(self._drafts) < self._limits.min_questions:
                self._drafts.append(self._new_draft())

    def _fit_alternatives(self, question: Question) -> Question:
        question.alternatives = question.alternatives[: self._limits.max_alternatives]
        while len(question.alternatives) < self._limits.default_alternative_count:
            question.alternatives.append(Alternative())
        return question

    def _new_draft(self) -> DraftQuestion:
        alternatives = [Alternative() for _ in range(self._limits.default_alternative_count)]
        return DraftQuestion(Question(alternatives=alternatives), is_new=True, is_saved=False)

    # --- Read access ---

    @property
    def limits(self) -> AuthoringLimits:
        return self._limits

    @property
    def mode(self) -> EditorMode:
        return self._mode

    @property
    def read_only(self) -> bool:
        return self._mode is EditorMode.READ_ONLY

    @property
    def no_questions(self) -> bool:
        return self._no_questions

    @property
    def questions(self) -> list[Question]:
        return [draft.question.clone() for draft in self._drafts]

    def question_count(self) -> int:
        """Number of questions currently in the editor."""
        return len(self._drafts)

    def question_at(self, index: int) -> Question:
        """Copy of the question at ``index``."""
        return self._draft(index).question.clone()

    def alternative_count(self, question_index: int) -> int:
        """Number of alternatives of one question."""
        return len(self._draft(question_index).question.alternatives)

    def correct_indices(self, question_index: int) -> list[int]:
        """Indices of the alternatives currently marked correct."""
        alternatives = self._draft(question_index).question.alternatives
        return [i for i, alternative in enumerate(alternatives) if alternative.is_correct]

    def is_new(self, question_index: int) -> bool:
        """Whether the question was created in this editor and never saved."""
        return self._draft(question_index).is_new

    def has_unsaved_changes(self) -> bool:
        """Whether any question changed since it was loaded or saved."""
        return any(not draft.is_saved for draft in self._drafts)

    # --- Structural edits ---

    def add_question(self) -> EditResult:
        """Append an empty question unless the editor is at the maximum."""
        if self.read_only:
            return self._refuse(EditStatus.READ_ONLY, None, READ_ONLY_MESSAGE)
        limit = self._limits.max_questions
        if len(self._drafts) >= limit:
            return self._refuse(EditStatus.AT_CAPACITY, limit, QUESTIONS_AT_CAPACITY_TEMPLATE.format(limit=limit))
        self._drafts.append(self._new_draft())
        logger.debug("Added question %d", len(self._drafts))
        return _APPLIED

    def remove_question(self, index: int) -> EditResult:
        """Remove the question at ``index`` unless the editor is at the minimum."""
        self._draft(index)
        if self.read_only:
            return self._refuse(EditStatus.READ_ONLY, None, READ_ONLY_MESSAGE)
        limit = self._limits.min_questions
        if len(self._drafts) <= limit:
            return self._refuse(EditStatus.AT_MINIMUM, limit, QUESTIONS_AT_MINIMUM_TEMPLATE.format(limit=limit))
        self._drafts.pop(index)
        logger.debug("Removed question %d", index + 1)
        return _APPLIED

    def add_alternative(self, question_index: int) -> EditResult:
        """Append an empty alternative unless the question is at the maximum."""
        draft = self._draft(question_index)
        if self.read_only:
            return self._refuse(EditStatus.READ_ONLY, None, READ_ONLY_MESSAGE)
        limit = self._limits.max_alternatives
        if len(draft.question.alternatives) >= limit:
            return self._refuse(
                EditStatus.AT_CAPACITY, limit, ALTERNATIVES_AT_CAPACITY_TEMPLATE.format(limit=limit)
            )
        draft.question.alternatives.append(Alternative())
        draft.is_saved = False
        return _APPLIED

    def remove_alternative(self, question_index: int, alternative_index: int) -> EditResult:
        """Remove one alternative unless the question is at the minimum."""
        draft = self._draft(question_index)
        self._check_alternative_index(draft, alternative_index)
        if self.read_only:
            return self._refuse(EditStatus.READ_ONLY, None, READ_ONLY_MESSAGE)
        limit = self._limits.min_alternatives
        if len(draft.question.alternatives) <= limit:
            return self._refuse(
                EditStatus.AT_MINIMUM, limit, ALTERNATIVES_AT_MINIMUM_TEMPLATE.format(limit=limit)
            )
        draft.question.alternatives.pop(alternative_index)
        draft.is_saved = False
        return _APPLIED

    def set_correct(self, question_index: int, alternative_index: int) -> EditResult:
        """Toggle ``alternative_index`` as the single correct alternative."""
        draft = self._draft(question_index)
        self._check_alternative_index(draft, alternative_index)
        if self.read_only:
            return self._refuse(EditStatus.READ_ONLY, None, READ_ONLY_MESSAGE)

        alternatives = draft.question.alternatives
        if alternatives[alternative_index].is_correct:
            for alternative in alternatives:
                alternative.is_correct = False
        else:
            for index, alternative in enumerate(alternatives):
                alternative.is_correct = index == alternative_index
        draft.is_saved = False
        return _APPLIED

    # --- Field edits ---

    def update_question(
        self,
        index: int,
        *,
        statement: str | None = None,
        points: int | None = None,
        penalty: int | None = None,
    ) -> EditResult:
        """Change the statement, points or penalty of one question."""
        draft = self._draft(index)
        if self.read_only:
            return self._refuse(EditStatus.READ_ONLY, None, READ_ONLY_MESSAGE)
        if statement is not None:
            draft.question.statement = statement
        if points is not None:
            draft.question.points = points
        if penalty is not None:
            draft.question.penalty = penalty
        draft.is_saved = False
        return _APPLIED

    def set_alternative_text(self, question_index: int, alternative_index: int, text: str) -> EditResult:
        """Replace the text of one alternative."""
        draft = self._draft(question_index)
        self._check_alternative_index(draft, alternative_index)
        if self.read_only:
            return self._refuse(EditStatus.READ_ONLY, None, READ_ONLY_MESSAGE)
        draft.question.alternatives[alternative_index].text = text
        draft.is_saved = False
        return _APPLIED

    # --- Validation & output ---

    def validate(self) -> ValidationReport:
        """Check every draft against the rules a savable quiz must meet."""
        return validate_questions((draft.question for draft in self._drafts), self._limits)

    def to_persistable_payload(self) -> list[dict[str, Any]]:
        """Project the drafts onto the wire shape accepted by ``save_questions``."""
        payload: list[dict[str, Any]] = []
        for draft in self._drafts:
            question = draft.question
            item: dict[str, Any] = {
                "statement": question.statement.strip(),
                "points": question.points,
                "penalty": question.penalty,
                "alternatives": [
                    {"text": alternative.text.strip(), "is_correct": alternative.is_correct}
                    | ({"id": alternative.id} if alternative.id is not None else {})
                    for alternative in question.alternatives
                ],
            }
            if question.id is not None:
                item["id"] = question.id
            payload.append(item)
        return payload

    def apply_saved(self, saved: Sequence[Question]) -> None:
        """Adopt the ids of the stored questions and mark every draft saved."""
        if len(saved) != len(self._drafts):
            raise ValueError(f"Expected {len(self._drafts)} saved questions, got {len(saved)}.")
        pairs = list(zip(self._drafts, saved))
        for draft, stored in pairs:
            if len(stored.alternatives) != len(draft.question.alternatives):
                raise ValueError(f"Saved question {stored.id} does not match its draft.")
        for draft, stored in pairs:
            draft.question.id = stored.id
            for alternative, stored_alternative in zip(draft.question.alternatives, stored.alternatives):
                alternative.id = stored_alternative.id
        self.mark_saved()

    def mark_saved(self) -> None:
        """Clear the new/unsaved flags of every draft."""
        for draft in self._drafts:
            draft.is_saved = True
            draft.is_new = False

    # --- Internals ---

    def _draft(self, index: int) -> DraftQuestion:
        if not 0 <= index < len(self._drafts):
            raise IndexError(f"Question index {index} out of range")
        return self._drafts[index]

    @staticmethod
    def _check_alternative_index(draft: DraftQuestion, alternative_index: int) -> None:
        if not 0 <= alternative_index < len(draft.question.alternatives):
            raise IndexError(f"Alternative index {alternative_index} out of range")

    def _refuse(self, status: EditStatus, limit: int | None, message: str) -> EditResult:
        logger.debug("Edit refused (%s): %s", status.value, message)
        if self._notifier is not None:
            self._notifier.warning(message)
        return EditResult(status=status, limit=limit, message=message)
