from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from uuid import UUID
from typing import List, Optional

from lms.database import get_db
from lms.auth.dependencies import is_teacher
from lms.helpers.quiz_attempts import get_owned_quiz, grade_quiz_submission
from lms.models import QuizSubmission, User
from lms.schemas.quiz_submission import QuizSubmissionRead, QuizSubmissionGrade

router = APIRouter(
    prefix="/teacher/quiz-submission",
    tags=["Teacher Quiz Submission Endpoints"]
)


@router.get(
    "/list-submissions/{quiz_id}",
    response_model=List[QuizSubmissionRead],
)
async def list_quiz_submissions(
    quiz_id: UUID,
    student_id: Optional[UUID] = None,
    pending_only: bool = False,
    current_user: User = Depends(is_teacher),
    db: AsyncSession = Depends(get_db),
):
    await get_owned_quiz(quiz_id, current_user, db)

    stmt = (
        select(QuizSubmission)
        .where(QuizSubmission.quiz_id == quiz_id)
        .order_by(QuizSubmission.submitted_at.desc())
    )
    if student_id:
        stmt = stmt.where(QuizSubmission.student_id == student_id)
    if pending_only:
        stmt = stmt.where(QuizSubmission.graded_at.is_(None))

    result = await db.execute(stmt)
    return result.scalars().all()


@router.patch(
    "/grade-submission/{submission_id}",
    response_model=QuizSubmissionRead,
)
async def grade_submission(
    submission_id: UUID,
    grade_in: QuizSubmissionGrade,
    current_user: User = Depends(is_teacher),
    db: AsyncSession = Depends(get_db),
):
    return await grade_quiz_submission(submission_id, grade_in.score, current_user, db)
