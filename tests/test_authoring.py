"""Tests for the bounded question editor."""

import random

import pytest

from conftest import make_question
from quizroom.core.authoring import (
    AuthoringLimits,
    EditorMode,
    EditStatus,
    IssueKind,
    QuestionEditor,
    validate_questions,
)
from quizroom.core.models import Alternative, Question
from quizroom.core.notifications import NotificationKind, Notifier


def _fill_valid(editor: QuestionEditor) -> None:
    for q in range(editor.question_count()):
        editor.update_question(q, statement=f"What is {q} plus {q}?", points=5, penalty=1)
        for a in range(editor.alternative_count(q)):
            editor.set_alternative_text(q, a, f"Answer {a}")
        if editor.correct_indices(q) != [0]:
            editor.set_correct(q, 0)


class TestLoad:
    def test_editable_empty_input_pads_to_minimum(self):
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)

        assert editor.question_count() == 3
        assert not editor.no_questions
        for index in range(3):
            question = editor.question_at(index)
            assert question.statement == ""
            assert question.id is None
            assert len(question.alternatives) == 3
            assert all(not a.text and not a.is_correct for a in question.alternatives)
            assert editor.is_new(index)

    def test_read_only_empty_input_sets_no_questions_flag(self):
        editor = QuestionEditor()
        editor.load([], EditorMode.READ_ONLY)

        assert editor.no_questions
        assert editor.question_count() == 0

    def test_read_only_does_not_pad(self):
        editor = QuestionEditor()
        editor.load([make_question(1)], EditorMode.READ_ONLY)

        assert editor.question_count() == 1
        assert not editor.no_questions

    def test_editable_truncates_beyond_maximum(self):
        editor = QuestionEditor()
        editor.load([make_question(i) for i in range(1, 8)], EditorMode.EDITABLE)

        assert editor.question_count() == 5
        assert [q.id for q in editor.questions] == ["q1", "q2", "q3", "q4", "q5"]

    def test_existing_questions_are_kept_and_padded(self):
        editor = QuestionEditor()
        editor.load([make_question(1)], EditorMode.EDITABLE)

        assert editor.question_count() == 3
        assert editor.question_at(0).id == "q1"
        assert not editor.is_new(0)
        assert editor.is_new(1) and editor.is_new(2)

    def test_loaded_question_with_two_alternatives_gets_empty_slot(self):
        editor = QuestionEditor()
        editor.load([make_question(1, alternative_count=2)], EditorMode.EDITABLE)

        alternatives = editor.question_at(0).alternatives
        assert len(alternatives) == 3
        assert alternatives[2].text == ""

    def test_load_does_not_alias_input(self):
        source = make_question(1)
        editor = QuestionEditor()
        editor.load([source], EditorMode.EDITABLE)

        editor.update_question(0, statement="Changed statement")

        assert source.statement == "Question number 1?"

    def test_mode_accepts_string_value(self):
        editor = QuestionEditor()
        editor.load([], "read_only")

        assert editor.read_only


class TestQuestionBounds:
    def test_add_question_until_capacity(self):
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)

        assert editor.add_question().applied
        assert editor.add_question().applied
        result = editor.add_question()

        assert result.status is EditStatus.AT_CAPACITY
        assert result.limit == 5
        assert editor.question_count() == 5

    def test_remove_question_at_minimum_is_refused(self):
        notifier = Notifier()
        editor = QuestionEditor(notifier=notifier)
        editor.load([make_question(i) for i in range(1, 4)], EditorMode.EDITABLE)

        result = editor.remove_question(0)

        assert result.status is EditStatus.AT_MINIMUM
        assert result.limit == 3
        assert editor.question_count() == 3
        assert notifier.messages(NotificationKind.WARNING) == ["The quiz needs at least 3 questions."]

    def test_remove_question_above_minimum(self):
        editor = QuestionEditor()
        editor.load([make_question(i) for i in range(1, 5)], EditorMode.EDITABLE)

        assert editor.remove_question(1).applied
        assert [q.id for q in editor.questions] == ["q1", "q3", "q4"]

    def test_remove_question_out_of_range_raises(self):
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)

        with pytest.raises(IndexError):
            editor.remove_question(7)

    def test_random_edits_keep_count_within_bounds(self):
        rng = random.Random(1234)
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)

        for _ in range(300):
            before = editor.question_count()
            if rng.random() < 0.5:
                result = editor.add_question()
            else:
                result = editor.remove_question(rng.randrange(before))
            if not result.applied:
                assert editor.question_count() == before
            assert 3 <= editor.question_count() <= 5

    def test_custom_limits(self):
        editor = QuestionEditor(AuthoringLimits(min_questions=1, max_questions=2))
        editor.load([], EditorMode.EDITABLE)

        assert editor.question_count() == 1
        assert editor.add_question().applied
        assert editor.add_question().status is EditStatus.AT_CAPACITY

    def test_invalid_limits_rejected(self):
        with pytest.raises(ValueError):
            AuthoringLimits(min_questions=6, max_questions=5)


class TestAlternativeBounds:
    def test_add_alternative_until_capacity(self):
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)

        assert editor.add_alternative(0).applied
        assert editor.add_alternative(0).applied
        result = editor.add_alternative(0)

        assert result.status is EditStatus.AT_CAPACITY
        assert result.limit == 5
        assert editor.alternative_count(0) == 5

    def test_remove_alternative_stops_at_two(self):
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)

        assert editor.remove_alternative(0, 2).applied
        result = editor.remove_alternative(0, 0)

        assert result.status is EditStatus.AT_MINIMUM
        assert result.limit == 2
        assert editor.alternative_count(0) == 2

    def test_random_alternative_edits_stay_within_bounds(self):
        rng = random.Random(99)
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)

        for _ in range(300):
            q = rng.randrange(editor.question_count())
            before = editor.alternative_count(q)
            if rng.random() < 0.5:
                result = editor.add_alternative(q)
            else:
                result = editor.remove_alternative(q, rng.randrange(before))
            if not result.applied:
                assert editor.alternative_count(q) == before
            assert 2 <= editor.alternative_count(q) <= 5

    def test_alternative_index_out_of_range_raises(self):
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)

        with pytest.raises(IndexError):
            editor.remove_alternative(0, 3)


class TestSetCorrect:
    def test_select_marks_only_target(self):
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)

        editor.set_correct(0, 1)

        assert editor.correct_indices(0) == [1]

    def test_selecting_another_moves_the_mark(self):
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)

        editor.set_correct(0, 1)
        editor.set_correct(0, 2)

        assert editor.correct_indices(0) == [2]

    def test_selecting_same_twice_clears_all(self):
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)

        editor.set_correct(0, 0)
        editor.set_correct(0, 0)

        assert editor.correct_indices(0) == []

    def test_does_not_touch_other_questions(self):
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)

        editor.set_correct(1, 2)
        editor.set_correct(0, 0)

        assert editor.correct_indices(1) == [2]

    def test_loaded_question_with_several_correct_is_normalized_by_selection(self):
        question = make_question(1)
        question.alternatives[1].is_correct = True
        editor = QuestionEditor()
        editor.load([question], EditorMode.EDITABLE)

        editor.set_correct(0, 2)

        assert editor.correct_indices(0) == [2]

    def test_at_most_one_correct_after_every_call(self):
        rng = random.Random(7)
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)
        editor.add_alternative(0)

        for index in (rng.randrange(4) for _ in range(200)):
            editor.set_correct(0, index)
            assert len(editor.correct_indices(0)) <= 1


class TestReadOnly:
    def test_all_edits_refused(self):
        editor = QuestionEditor()
        editor.load([make_question(i) for i in range(1, 4)], EditorMode.READ_ONLY)
        before = editor.questions

        results = [
            editor.add_question(),
            editor.remove_question(0),
            editor.add_alternative(0),
            editor.remove_alternative(0, 0),
            editor.set_correct(0, 1),
            editor.update_question(0, statement="Another statement"),
            editor.set_alternative_text(0, 0, "x"),
        ]

        assert all(r.status is EditStatus.READ_ONLY for r in results)
        assert editor.questions == before


class TestValidation:
    def test_fresh_editor_fails_with_details(self):
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)

        report = editor.validate()

        assert not report.passed
        assert report.incomplete_questions() == [0, 1, 2]
        kinds = {issue.kind for issue in report.issues_for(0)}
        assert IssueKind.EMPTY_STATEMENT in kinds
        assert IssueKind.MISSING_CORRECT_ALTERNATIVE in kinds
        assert IssueKind.BLANK_ALTERNATIVE in kinds
        assert report.incomplete_alternatives(0) == [0, 1, 2]

    def test_filled_editor_passes(self):
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)
        _fill_valid(editor)

        assert editor.validate().passed

    def test_toggled_off_correct_fails(self):
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)
        _fill_valid(editor)
        editor.set_correct(1, 0)

        report = editor.validate()

        assert report.incomplete_questions() == [1]
        assert report.issues_for(1)[0].kind is IssueKind.MISSING_CORRECT_ALTERNATIVE

    def test_short_statement_and_bad_numbers(self):
        question = make_question(1)
        question.statement = "Why"
        question.points = 0
        question.penalty = -1

        report = validate_questions([question], AuthoringLimits(min_questions=1))
        kinds = {issue.kind for issue in report.issues}

        assert kinds == {IssueKind.STATEMENT_TOO_SHORT, IssueKind.INVALID_POINTS, IssueKind.INVALID_PENALTY}

    def test_blank_only_alternative_flagged(self):
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)
        _fill_valid(editor)
        editor.set_alternative_text(2, 1, "   ")

        report = editor.validate()

        assert report.incomplete_alternatives(2) == [1]

    def test_question_count_checked(self):
        report = validate_questions([make_question(1)])

        assert report.issues[0].kind is IssueKind.TOO_FEW_QUESTIONS

    def test_multiple_correct_flagged(self):
        question = make_question(1)
        question.alternatives[2].is_correct = True

        report = validate_questions([question], AuthoringLimits(min_questions=1))

        assert [i.kind for i in report.issues] == [IssueKind.MULTIPLE_CORRECT_ALTERNATIVES]


class TestPayload:
    def test_payload_shape(self):
        editor = QuestionEditor()
        editor.load([make_question(1)], EditorMode.EDITABLE)
        _fill_valid(editor)
        editor.update_question(1, statement="  Padded statement  ")

        payload = editor.to_persistable_payload()

        assert len(payload) == 3
        assert payload[0]["id"] == "q1"
        assert payload[0]["alternatives"][0] == {"text": "Answer 0", "is_correct": True, "id": "q1-a0"}
        assert "id" not in payload[1]
        assert payload[1]["statement"] == "Padded statement"
        assert set(payload[1]) == {"statement", "points", "penalty", "alternatives"}
        assert set(payload[1]["alternatives"][0]) == {"text", "is_correct"}

    def test_unsaved_tracking(self):
        editor = QuestionEditor()
        editor.load([make_question(i) for i in range(1, 4)], EditorMode.EDITABLE)
        assert not editor.has_unsaved_changes()

        editor.set_alternative_text(0, 0, "New text")
        assert editor.has_unsaved_changes()

        editor.mark_saved()
        assert not editor.has_unsaved_changes()

    def test_payload_round_trips_into_questions(self):
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)
        _fill_valid(editor)

        questions = [Question.from_payload(item) for item in editor.to_persistable_payload()]

        assert questions[0].alternatives[0] == Alternative(text="Answer 0", is_correct=True)
        assert validate_questions(questions).passed

    def test_apply_saved_adopts_stored_ids(self):
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)
        _fill_valid(editor)

        editor.apply_saved([make_question(i) for i in range(1, 4)])

        payload = editor.to_persistable_payload()
        assert [item["id"] for item in payload] == ["q1", "q2", "q3"]
        assert [a["id"] for a in payload[0]["alternatives"]] == ["q1-a0", "q1-a1", "q1-a2"]
        assert payload[0]["alternatives"][0]["text"] == "Answer 0"
        assert not editor.has_unsaved_changes()
        assert not editor.is_new(0)

    def test_apply_saved_rejects_mismatched_questions(self):
        editor = QuestionEditor()
        editor.load([], EditorMode.EDITABLE)

        with pytest.raises(ValueError):
            editor.apply_saved([make_question(1)])
        with pytest.raises(ValueError):
            editor.apply_saved([make_question(i, alternative_count=2) for i in range(1, 4)])

        assert editor.is_new(0)
