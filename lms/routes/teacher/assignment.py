from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from uuid import UUID
from typing import List

from lms.database import get_db
from lms.auth.dependencies import is_teacher
from lms.auth.course_access import ensure_course_instructor, get_course_for_item
from lms.helpers.assignment_grading import grade_assignment_submission, submission_is_late
from lms.models import Assignment, AssignmentSubmission, ItemType, User
from lms.schemas.assignment import (
    AssignmentCreate, AssignmentRead, AssignmentSubmissionRead,
    AssignmentSubmissionGrade, AssignmentGradeResponse,
)

router = APIRouter(
    prefix="/teacher/assignment",
    tags=["Teacher Assignment Endpoints"]
)


@router.post("/create-assignment/{item_id}", response_model=AssignmentRead, status_code=201)
async def create_assignment(
    item_id: UUID,
    assignment_in: AssignmentCreate,
    current_user: User = Depends(is_teacher),
    db: AsyncSession = Depends(get_db),
):
    item, course = await get_course_for_item(item_id, db)
    ensure_course_instructor(course, current_user)

    if item.type != ItemType.ASSIGNMENT:
        raise HTTPException(404, "Assignment item not found")

    existing = await db.scalar(select(Assignment).where(Assignment.item_id == item.id))
    if existing:
        raise HTTPException(400, "This item already has an assignment")

    assignment = Assignment(item_id=item.id, **assignment_in.model_dump())
    db.add(assignment)
    await db.commit()
    await db.refresh(assignment)
    return assignment


# ------------------------------------
# List all student submissions
# ------------------------------------
@router.get(
    "/list-submissions/{assignment_id}",
    response_model=List[AssignmentSubmissionRead]
)
async def list_assignment_submissions(
    assignment_id: UUID,
    current_user: User = Depends(is_teacher),
    db: AsyncSession = Depends(get_db),
):
    assignment = await db.get(Assignment, assignment_id)
    if not assignment:
        raise HTTPException(404, "Assignment not found")

    _, course = await get_course_for_item(assignment.item_id, db)
    ensure_course_instructor(course, current_user)

    result = await db.execute(
        select(AssignmentSubmission)
        .where(AssignmentSubmission.assignment_id == assignment_id)
        .order_by(AssignmentSubmission.submitted_at.desc())
    )
    return result.scalars().all()


# ---------------------------
# Grade Assignment Submission (late penalty applied here)
# ---------------------------
@router.patch(
    "/grade-submission/{submission_id}",
    response_model=AssignmentGradeResponse
)
async def grade_submission(
    submission_id: UUID,
    grade_in: AssignmentSubmissionGrade,
    current_user: User = Depends(is_teacher),
    db: AsyncSession = Depends(get_db),
):
    submission = await grade_assignment_submission(
        submission_id,
        grade_in.grade,
        grade_in.feedback,
        current_user,
        db,
    )

    return AssignmentGradeResponse(
        **AssignmentSubmissionRead.model_validate(submission).model_dump(),
        raw_grade=grade_in.grade,
        is_late=submission_is_late(submission, submission.assignment),
    )
