import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from lms.models import QuestionType


class AnswerVerdict(str, enum.Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    UNGRADED = "ungraded"  # needs a human grader


MANUAL_GRADING_TYPES = frozenset({QuestionType.DESCRIPTIVE, QuestionType.CODE})


def _normalize_text(value: str) -> str:
    return value.strip().casefold()


def compare_answer(
    question_type: QuestionType,
    correct_answers: Optional[Sequence[Any]],
    answer: Any,
) -> AnswerVerdict:
    """
    Compare one submitted answer against the question's accepted answers.

    - MCQ / TRUE_FALSE: exact match with the single accepted answer
    - MULTIPLE: same size and same members, order ignored
    - FILL_BLANK: trimmed, case-insensitive match against any accepted answer
    - DESCRIPTIVE / CODE: never auto-graded
    """
    question_type = QuestionType(question_type)

    if question_type in MANUAL_GRADING_TYPES:
        return AnswerVerdict.UNGRADED

    accepted = list(correct_answers or [])
    is_correct = False

    if question_type in (QuestionType.MCQ, QuestionType.TRUE_FALSE):
        # Strict equality: 1 is not True, "1" is not 1
        is_correct = bool(accepted) and type(answer) is type(accepted[0]) and answer == accepted[0]

    elif question_type == QuestionType.MULTIPLE:
        is_correct = (
            isinstance(answer, (list, tuple))
            and len(answer) == len(accepted)
            and all(a in accepted for a in answer)
            and all(c in answer for c in accepted)
        )

    elif question_type == QuestionType.FILL_BLANK:
        if isinstance(answer, str):
            submitted = _normalize_text(answer)
            is_correct = any(
                isinstance(c, str) and _normalize_text(c) == submitted
                for c in accepted
            )

    return AnswerVerdict.CORRECT if is_correct else AnswerVerdict.INCORRECT


@dataclass(frozen=True)
class QuizGradeResult:
    earned_points: int
    total_points: int
    score: int
    pending_manual_grading: bool
    verdicts: Dict[str, AnswerVerdict] = field(default_factory=dict)

    @property
    def correct_count(self) -> int:
        return sum(1 for v in self.verdicts.values() if v == AnswerVerdict.CORRECT)


def percentage_score(earned_points: int, total_points: int) -> int:
    """Whole-number percentage, halves rounded up; 0 for an empty quiz."""
    if total_points <= 0:
        return 0
    return (200 * earned_points + total_points) // (2 * total_points)


def grade_quiz_answers(questions: Iterable, answers: Dict[str, Any]) -> QuizGradeResult:
    """
    Auto-grade a full set of answers.

    `questions` are QuizQuestion rows (or anything with id/type/points/correct_answers),
    `answers` maps question id (as string) to the submitted value.
    Missing answers count as incorrect; manual-grading questions count towards
    the total but never towards the earned points.
    """
    answers = answers or {}
    earned_points = 0
    total_points = 0
    pending_manual = False
    verdicts: Dict[str, AnswerVerdict] = {}

    for question in questions:
        question_id = str(question.id)
        total_points += question.points

        if question_id in answers:
            verdict = compare_answer(question.type, question.correct_answers, answers[question_id])
        elif QuestionType(question.type) in MANUAL_GRADING_TYPES:
            verdict = AnswerVerdict.UNGRADED
        else:
            verdict = AnswerVerdict.INCORRECT

        if verdict == AnswerVerdict.CORRECT:
            earned_points += question.points
        elif verdict == AnswerVerdict.UNGRADED:
            pending_manual = True

        verdicts[question_id] = verdict

    return QuizGradeResult(
        earned_points=earned_points,
        total_points=total_points,
        score=percentage_score(earned_points, total_points),
        pending_manual_grading=pending_manual,
        verdicts=verdicts,
    )


def is_passing(score: Optional[int], passing_score: int) -> bool:
    return score is not None and score >= passing_score


def correct_answer_view(questions: Iterable) -> List[dict]:
    """Answer key shown to students when the quiz allows it."""
    return [
        {
            "question_id": q.id,
            "correct_answers": q.correct_answers or [],
            "explanation": q.explanation,
        }
        for q in questions
        if QuestionType(q.type) not in MANUAL_GRADING_TYPES
    ]
