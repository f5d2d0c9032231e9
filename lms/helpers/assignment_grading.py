import logging
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from lms.auth.course_access import ensure_course_instructor, ensure_student_enrolled, get_course_for_item
from lms.errors import NotFoundError, ValidationFailedError
from lms.helpers.late_penalty import apply_late_penalty, is_late
from lms.models import Assignment, AssignmentSubmission, User, utc_now

logger = logging.getLogger(__name__)


async def submit_assignment(
    assignment_id: UUID,
    student_id: UUID,
    content: Optional[str],
    file_url: Optional[str],
    db: AsyncSession,
) -> Tuple[AssignmentSubmission, bool]:
    """
    Create the student's submission, or overwrite it on re-submission.
    Re-submitting clears any grade so the work goes back to review.
    Returns (submission, resubmitted).
    """
    if not content and not file_url:
        raise ValidationFailedError("Either content or file_url is required")

    assignment = await db.get(Assignment, assignment_id)
    if not assignment:
        raise NotFoundError("Assignment not found")

    _, course = await get_course_for_item(assignment.item_id, db)
    await ensure_student_enrolled(course.id, student_id, db)

    submission = await db.scalar(
        select(AssignmentSubmission).where(
            AssignmentSubmission.assignment_id == assignment.id,
            AssignmentSubmission.student_id == student_id,
        )
    )

    resubmitted = submission is not None
    if submission:
        submission.content = content
        submission.file_url = file_url
        submission.submitted_at = utc_now()
        submission.grade = None
        submission.feedback = None
        submission.graded_at = None
        submission.graded_by = None
    else:
        submission = AssignmentSubmission(
            assignment_id=assignment.id,
            student_id=student_id,
            content=content,
            file_url=file_url,
        )
        db.add(submission)

    await db.commit()
    await db.refresh(submission)
    return submission, resubmitted


async def grade_assignment_submission(
    submission_id: UUID,
    raw_grade: float,
    feedback: Optional[str],
    grader: User,
    db: AsyncSession,
) -> AssignmentSubmission:
    """Store the grade after applying the assignment's late penalty."""
    submission = await db.scalar(
        select(AssignmentSubmission)
        .options(selectinload(AssignmentSubmission.assignment))
        .where(AssignmentSubmission.id == submission_id)
    )
    if not submission:
        raise NotFoundError("Submission not found")

    assignment = submission.assignment
    _, course = await get_course_for_item(assignment.item_id, db)
    ensure_course_instructor(course, grader)

    final_grade = apply_late_penalty(
        raw_grade,
        submission.submitted_at,
        assignment.deadline,
        assignment.late_penalty_percentage,
    )
    if final_grade != raw_grade:
        logger.info(
            "Late submission %s: grade %.2f reduced to %.2f (%d%% penalty)",
            submission.id, raw_grade, final_grade, assignment.late_penalty_percentage,
        )

    submission.grade = final_grade
    submission.feedback = feedback
    submission.graded_at = utc_now()
    submission.graded_by = grader.id

    await db.commit()
    return submission


def submission_is_late(submission: AssignmentSubmission, assignment: Assignment) -> bool:
    return is_late(submission.submitted_at, assignment.deadline)
