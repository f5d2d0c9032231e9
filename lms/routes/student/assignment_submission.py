from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from uuid import UUID

from lms.models import AssignmentSubmission, User
from lms.database import get_db
from lms.auth.dependencies import is_student
from lms.helpers.assignment_grading import submit_assignment
from lms.schemas.assignment import AssignmentSubmit, AssignmentSubmissionRead, AssignmentSubmitResponse

router = APIRouter(
    prefix="/student/assignment-submission",
    tags=["Student Assignment Endpoints"]
)


# ---------------------------
# Submit Assignment
# ---------------------------
@router.post("/submit-assignment/{assignment_id}", response_model=AssignmentSubmitResponse)
async def submit_assignment_route(
    assignment_id: UUID,
    payload: AssignmentSubmit,
    current_user: User = Depends(is_student),
    db: AsyncSession = Depends(get_db),
):
    # Late work is accepted; the penalty is applied when it is graded
    submission, resubmitted = await submit_assignment(
        assignment_id,
        current_user.id,
        payload.content,
        payload.file_url,
        db,
    )

    return AssignmentSubmitResponse(
        **AssignmentSubmissionRead.model_validate(submission).model_dump(),
        resubmitted=resubmitted,
    )


# ---------------------------
# View own submission
# ---------------------------
@router.get("/my-submission/{assignment_id}", response_model=AssignmentSubmissionRead)
async def my_submission(
    assignment_id: UUID,
    current_user: User = Depends(is_student),
    db: AsyncSession = Depends(get_db),
):
    submission = await db.scalar(
        select(AssignmentSubmission).where(
            AssignmentSubmission.assignment_id == assignment_id,
            AssignmentSubmission.student_id == current_user.id,
        )
    )
    if not submission:
        raise HTTPException(404, "You have not submitted this assignment")
    return submission
