import uuid
from types import SimpleNamespace

import pytest

from lms.helpers.quiz_answer_evaluator import (
    AnswerVerdict, compare_answer, correct_answer_view, grade_quiz_answers,
    is_passing, percentage_score,
)
from lms.models import QuestionType


def question(type, correct_answers=None, points=1):
    return SimpleNamespace(
        id=uuid.uuid4(),
        type=type,
        correct_answers=correct_answers,
        points=points,
        explanation=None,
    )


# ---------------------------
# Comparator
# ---------------------------
@pytest.mark.parametrize("answer, expected", [
    ("B", AnswerVerdict.CORRECT),
    ("A", AnswerVerdict.INCORRECT),
    ("b", AnswerVerdict.INCORRECT),
    (None, AnswerVerdict.INCORRECT),
])
def test_mcq_is_exact_match(answer, expected):
    assert compare_answer(QuestionType.MCQ, ["B"], answer) == expected


def test_true_false_compares_booleans():
    assert compare_answer(QuestionType.TRUE_FALSE, [True], True) == AnswerVerdict.CORRECT
    assert compare_answer(QuestionType.TRUE_FALSE, [True], False) == AnswerVerdict.INCORRECT


def test_ints_do_not_stand_in_for_booleans():
    assert compare_answer(QuestionType.TRUE_FALSE, [True], 1) == AnswerVerdict.INCORRECT
    assert compare_answer(QuestionType.TRUE_FALSE, [False], 0) == AnswerVerdict.INCORRECT
    assert compare_answer(QuestionType.MCQ, ["1"], 1) == AnswerVerdict.INCORRECT


def test_mcq_without_accepted_answer_is_never_correct():
    assert compare_answer(QuestionType.MCQ, [], "A") == AnswerVerdict.INCORRECT
    assert compare_answer(QuestionType.MCQ, None, None) == AnswerVerdict.INCORRECT


def test_multiple_ignores_order():
    assert compare_answer(QuestionType.MULTIPLE, ["a", "b"], ["a", "b"]) == AnswerVerdict.CORRECT
    assert compare_answer(QuestionType.MULTIPLE, ["a", "b"], ["b", "a"]) == AnswerVerdict.CORRECT


def test_multiple_requires_same_cardinality():
    assert compare_answer(QuestionType.MULTIPLE, ["a", "b"], ["a"]) == AnswerVerdict.INCORRECT
    assert compare_answer(QuestionType.MULTIPLE, ["a", "b"], ["a", "b", "c"]) == AnswerVerdict.INCORRECT


def test_multiple_rejects_non_collections():
    assert compare_answer(QuestionType.MULTIPLE, ["a"], "a") == AnswerVerdict.INCORRECT


def test_fill_blank_ignores_case_and_surrounding_whitespace():
    assert compare_answer(QuestionType.FILL_BLANK, ["paris"], " Paris ") == AnswerVerdict.CORRECT
    assert compare_answer(QuestionType.FILL_BLANK, ["Lyon", "PARIS "], "paris") == AnswerVerdict.CORRECT
    assert compare_answer(QuestionType.FILL_BLANK, ["paris"], "pari s") == AnswerVerdict.INCORRECT
    assert compare_answer(QuestionType.FILL_BLANK, ["paris"], 42) == AnswerVerdict.INCORRECT


@pytest.mark.parametrize("qtype", [QuestionType.DESCRIPTIVE, QuestionType.CODE])
def test_manual_types_are_ungraded(qtype):
    assert compare_answer(qtype, ["anything"], "anything") == AnswerVerdict.UNGRADED


# ---------------------------
# Scorer
# ---------------------------
def test_four_question_quiz_scores_75_and_passes():
    questions = [
        question(QuestionType.MCQ, ["A"]),
        question(QuestionType.MCQ, ["B"]),
        question(QuestionType.MCQ, ["C"]),
        question(QuestionType.FILL_BLANK, ["paris"]),
    ]
    answers = {
        str(questions[0].id): "A",
        str(questions[1].id): "B",
        str(questions[2].id): "D",
        str(questions[3].id): "Paris",
    }

    result = grade_quiz_answers(questions, answers)

    assert result.earned_points == 3
    assert result.total_points == 4
    assert result.score == 75
    assert result.correct_count == 3
    assert not result.pending_manual_grading
    assert is_passing(result.score, 70)


def test_grading_is_deterministic():
    questions = [question(QuestionType.MCQ, ["A"], points=2), question(QuestionType.MULTIPLE, ["x", "y"])]
    answers = {str(questions[0].id): "A", str(questions[1].id): ["y"]}

    assert grade_quiz_answers(questions, answers) == grade_quiz_answers(questions, answers)


def test_empty_quiz_scores_zero():
    result = grade_quiz_answers([], {})
    assert result.total_points == 0
    assert result.score == 0


def test_missing_answer_counts_as_incorrect():
    questions = [question(QuestionType.MCQ, ["A"]), question(QuestionType.MCQ, ["B"])]
    result = grade_quiz_answers(questions, {str(questions[0].id): "A"})

    assert result.score == 50
    assert result.verdicts[str(questions[1].id)] == AnswerVerdict.INCORRECT


def test_manual_questions_count_towards_total_only():
    questions = [
        question(QuestionType.MCQ, ["A"], points=1),
        question(QuestionType.DESCRIPTIVE, points=3),
    ]
    result = grade_quiz_answers(questions, {str(questions[0].id): "A"})

    assert result.earned_points == 1
    assert result.total_points == 4
    assert result.score == 25
    assert result.pending_manual_grading
    assert result.verdicts[str(questions[1].id)] == AnswerVerdict.UNGRADED


def test_points_weight_the_score():
    questions = [question(QuestionType.MCQ, ["A"], points=3), question(QuestionType.MCQ, ["B"], points=1)]
    result = grade_quiz_answers(questions, {str(questions[0].id): "A"})
    assert result.score == 75


@pytest.mark.parametrize("earned, total, expected", [
    (1, 3, 33),
    (2, 3, 67),
    (1, 8, 13),  # 12.5 rounds up
    (0, 5, 0),
    (5, 5, 100),
    (3, 0, 0),
])
def test_percentage_score_rounding(earned, total, expected):
    assert percentage_score(earned, total) == expected


def test_is_passing_needs_a_score():
    assert is_passing(70, 70)
    assert not is_passing(69, 70)
    assert not is_passing(None, 0)


def test_answer_key_leaves_out_manual_questions():
    questions = [question(QuestionType.MCQ, ["A"]), question(QuestionType.CODE)]
    key = correct_answer_view(questions)

    assert [entry["question_id"] for entry in key] == [questions[0].id]
    assert key[0]["correct_answers"] == ["A"]
