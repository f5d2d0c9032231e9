from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from uuid import UUID
from typing import List

from lms.database import get_db
from lms.auth.dependencies import is_student
from lms.auth.course_access import ensure_student_enrolled, get_course_for_item
from lms.helpers.certificate_assigner import IssueOutcome
from lms.helpers.quiz_answer_evaluator import correct_answer_view
from lms.helpers.quiz_attempts import load_quiz, submit_quiz_attempt
from lms.models import QuizSubmission, User
from lms.schemas.quiz import QuizDetailView
from lms.schemas.quiz_submission import (
    AnswerKeyEntry, QuestionVerdict, QuizSubmitRequest,
    QuizSubmitResponse, QuizSubmissionRead,
)

router = APIRouter(
    prefix="/student/quiz",
    tags=["Student Quiz Endpoints"]
)


@router.get("/view-quiz/{quiz_id}", response_model=QuizDetailView)
async def view_quiz(
    quiz_id: UUID,
    current_user: User = Depends(is_student),
    db: AsyncSession = Depends(get_db),
):
    # Response model hides correct answers and explanations
    quiz = await load_quiz(quiz_id, db)
    _, course = await get_course_for_item(quiz.item_id, db)
    await ensure_student_enrolled(course.id, current_user.id, db)
    return quiz


@router.post(
    "/submit-quiz/{quiz_id}",
    response_model=QuizSubmitResponse,
    status_code=201,
)
async def submit_quiz(
    quiz_id: UUID,
    payload: QuizSubmitRequest,
    current_user: User = Depends(is_student),
    db: AsyncSession = Depends(get_db),
):
    attempt = await submit_quiz_attempt(
        quiz_id,
        current_user.id,
        payload.answers,
        db,
        time_taken_minutes=payload.time_taken_minutes,
    )
    submission = attempt.submission
    grade = attempt.grade
    completion = attempt.completion

    response = QuizSubmitResponse(
        submission_id=submission.id,
        quiz_id=submission.quiz_id,
        attempt_number=attempt.attempt_number,
        score=submission.score,
        passed=submission.passed,
        course_progress=completion.progress_percentage if completion else None,
        certificate_issued=bool(
            completion
            and completion.certificate
            and completion.certificate.outcome == IssueOutcome.ISSUED
        ),
    )

    if grade:
        response.earned_points = grade.earned_points
        response.total_points = grade.total_points
        response.pending_manual_grading = grade.pending_manual_grading
        response.results = [
            QuestionVerdict(question_id=UUID(qid), verdict=verdict)
            for qid, verdict in grade.verdicts.items()
        ]

    quiz = await load_quiz(quiz_id, db)
    if quiz.show_answers:
        response.answer_key = [AnswerKeyEntry(**entry) for entry in correct_answer_view(quiz.questions)]

    return response


@router.get("/my-attempts/{quiz_id}", response_model=List[QuizSubmissionRead])
async def my_attempts(
    quiz_id: UUID,
    current_user: User = Depends(is_student),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(QuizSubmission)
        .where(
            QuizSubmission.quiz_id == quiz_id,
            QuizSubmission.student_id == current_user.id,
        )
        .order_by(QuizSubmission.submitted_at)
    )
    return result.scalars().all()
