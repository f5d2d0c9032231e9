import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lms.auth.course_access import ensure_course_instructor, ensure_student_enrolled, get_course_for_item
from lms.errors import LimitExceededError, NotFoundError
from lms.helpers.progress_calculator import CompletionSyncResult, record_item_completion
from lms.helpers.quiz_answer_evaluator import QuizGradeResult, grade_quiz_answers, is_passing
from lms.models import Quiz, QuizSubmission, User, utc_now

logger = logging.getLogger(__name__)


@dataclass
class QuizAttemptResult:
    submission: QuizSubmission
    attempt_number: int
    grade: Optional[QuizGradeResult] = None
    completion: Optional[CompletionSyncResult] = None


async def load_quiz(quiz_id: UUID, db: AsyncSession) -> Quiz:
    quiz = await db.scalar(
        select(Quiz)
        .options(selectinload(Quiz.questions))
        .where(Quiz.id == quiz_id)
        .execution_options(populate_existing=True)
    )
    if not quiz:
        raise NotFoundError("Quiz not found")
    return quiz


async def get_owned_quiz(quiz_id: UUID, current_user: User, db: AsyncSession) -> Quiz:
    quiz = await load_quiz(quiz_id, db)
    _, course = await get_course_for_item(quiz.item_id, db)
    ensure_course_instructor(course, current_user)
    return quiz


async def count_attempts(quiz_id: UUID, student_id: UUID, db: AsyncSession) -> int:
    count = await db.scalar(
        select(func.count(QuizSubmission.id)).where(
            QuizSubmission.quiz_id == quiz_id,
            QuizSubmission.student_id == student_id,
        )
    )
    return count or 0


def ensure_attempts_available(quiz: Quiz, previous_attempts: int):
    # Count-then-insert is not locked: two simultaneous submissions can
    # exceed the cap by one.
    if quiz.attempts_allowed and quiz.attempts_allowed > 0 and previous_attempts >= quiz.attempts_allowed:
        raise LimitExceededError("Maximum attempts reached")


async def submit_quiz_attempt(
    quiz_id: UUID,
    student_id: UUID,
    answers: Dict[str, Any],
    db: AsyncSession,
    time_taken_minutes: Optional[int] = None,
) -> QuizAttemptResult:
    # --------------------------
    # Quiz + enrollment
    # --------------------------
    quiz = await load_quiz(quiz_id, db)
    _, course = await get_course_for_item(quiz.item_id, db)
    await ensure_student_enrolled(course.id, student_id, db)

    # --------------------------
    # Attempt limit (before anything is written)
    # --------------------------
    previous_attempts = await count_attempts(quiz.id, student_id, db)
    try:
        ensure_attempts_available(quiz, previous_attempts)
    except LimitExceededError:
        logger.info(
            "Rejected quiz %s attempt for student %s: %d of %d attempts used",
            quiz.id, student_id, previous_attempts, quiz.attempts_allowed,
        )
        raise

    # --------------------------
    # Auto-grade
    # --------------------------
    grade = None
    score = None
    passed = False

    if quiz.auto_grade:
        grade = grade_quiz_answers(quiz.questions, answers)
        score = grade.score
        passed = is_passing(score, quiz.passing_score)

    submission = QuizSubmission(
        quiz_id=quiz.id,
        student_id=student_id,
        answers=answers,
        score=score,
        passed=passed,
        time_taken_minutes=time_taken_minutes,
        # Partly auto-graded attempts stay ungraded until an instructor reviews them
        graded_at=utc_now() if grade and not grade.pending_manual_grading else None,
    )
    db.add(submission)
    await db.commit()
    await db.refresh(submission)

    # --------------------------
    # Passing the quiz completes its section item
    # --------------------------
    completion = None
    if passed:
        completion = await record_item_completion(quiz.item_id, student_id, db)

    return QuizAttemptResult(
        submission=submission,
        attempt_number=previous_attempts + 1,
        grade=grade,
        completion=completion,
    )


async def grade_quiz_submission(
    submission_id: UUID,
    score: int,
    grader: User,
    db: AsyncSession,
) -> QuizSubmission:
    """Manual grading for quizzes with descriptive/code questions or auto-grading off."""
    submission = await db.scalar(
        select(QuizSubmission)
        .options(selectinload(QuizSubmission.quiz))
        .where(QuizSubmission.id == submission_id)
    )
    if not submission:
        raise NotFoundError("Submission not found")

    _, course = await get_course_for_item(submission.quiz.item_id, db)
    ensure_course_instructor(course, grader)

    submission.score = score
    submission.passed = is_passing(score, submission.quiz.passing_score)
    submission.graded_at = utc_now()
    submission.graded_by = grader.id

    await db.commit()

    if submission.passed:
        await record_item_completion(submission.quiz.item_id, submission.student_id, db)

    return submission
