from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from uuid import UUID

from lms.database import get_db
from lms.auth.dependencies import is_teacher
from lms.auth.course_access import ensure_course_instructor, get_course_for_item
from lms.helpers.quiz_attempts import get_owned_quiz, load_quiz
from lms.models import ItemType, Quiz, QuizQuestion, User
from lms.schemas.quiz import (
    QuizCreate, QuizUpdate, QuizTeacherView, QuizQuestionCreate,
    QuizQuestionTeacherView, ReorderQuestionsRequest, question_columns,
)

router = APIRouter(
    prefix="/teacher/quiz",
    tags=["Teacher Quiz Endpoints"]
)


@router.post(
    "/create-quiz/{item_id}",
    response_model=QuizTeacherView,
    status_code=201
)
async def create_quiz(
    item_id: UUID,
    quiz_in: QuizCreate,
    current_user: User = Depends(is_teacher),
    db: AsyncSession = Depends(get_db),
):
    # --------------------------
    # Item must be a QUIZ item of a course this teacher owns
    # --------------------------
    item, course = await get_course_for_item(item_id, db)
    ensure_course_instructor(course, current_user)

    if item.type != ItemType.QUIZ:
        raise HTTPException(404, "Quiz item not found")

    existing = await db.scalar(select(Quiz).where(Quiz.item_id == item.id))
    if existing:
        raise HTTPException(400, "This item already has a quiz")

    # --------------------------
    # Create quiz and questions in one transaction
    # --------------------------
    quiz = Quiz(
        item_id=item.id,
        passing_score=quiz_in.passing_score,
        time_limit_minutes=quiz_in.time_limit_minutes,
        attempts_allowed=quiz_in.attempts_allowed,
        auto_grade=quiz_in.auto_grade,
        show_answers=quiz_in.show_answers,
    )
    db.add(quiz)
    await db.flush()

    for q in quiz_in.questions:
        db.add(QuizQuestion(quiz_id=quiz.id, **question_columns(q)))

    await db.commit()

    return await load_quiz(quiz.id, db)


@router.get("/view-quiz/{quiz_id}", response_model=QuizTeacherView)
async def view_quiz(
    quiz_id: UUID,
    current_user: User = Depends(is_teacher),
    db: AsyncSession = Depends(get_db),
):
    return await get_owned_quiz(quiz_id, current_user, db)


@router.patch("/update-quiz/{quiz_id}", response_model=QuizTeacherView)
async def update_quiz(
    quiz_id: UUID,
    quiz_in: QuizUpdate,
    current_user: User = Depends(is_teacher),
    db: AsyncSession = Depends(get_db),
):
    quiz = await get_owned_quiz(quiz_id, current_user, db)

    for field, value in quiz_in.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(quiz, field, value)

    await db.commit()
    return await load_quiz(quiz.id, db)


@router.post(
    "/add-question/{quiz_id}",
    response_model=QuizQuestionTeacherView,
    status_code=201,
)
async def add_question(
    quiz_id: UUID,
    question_in: QuizQuestionCreate,
    current_user: User = Depends(is_teacher),
    db: AsyncSession = Depends(get_db),
):
    quiz = await get_owned_quiz(quiz_id, current_user, db)

    question = QuizQuestion(quiz_id=quiz.id, **question_columns(question_in))
    db.add(question)
    await db.commit()
    await db.refresh(question)
    return question


@router.put("/update-question/{question_id}", response_model=QuizQuestionTeacherView)
async def replace_question(
    question_id: UUID,
    question_in: QuizQuestionCreate,
    current_user: User = Depends(is_teacher),
    db: AsyncSession = Depends(get_db),
):
    """
    Replace a question. Stored submissions keep the score they were given.
    """
    question = await db.get(QuizQuestion, question_id)
    if not question:
        raise HTTPException(404, "Question not found")
    await get_owned_quiz(question.quiz_id, current_user, db)

    for field, value in question_columns(question_in).items():
        setattr(question, field, value)

    await db.commit()
    await db.refresh(question)
    return question


@router.delete("/delete-question/{question_id}", status_code=204)
async def delete_question(
    question_id: UUID,
    current_user: User = Depends(is_teacher),
    db: AsyncSession = Depends(get_db),
):
    question = await db.get(QuizQuestion, question_id)
    if not question:
        raise HTTPException(404, "Question not found")
    await get_owned_quiz(question.quiz_id, current_user, db)

    await db.delete(question)
    await db.commit()


@router.put("/reorder-questions/{quiz_id}")
async def reorder_questions(
    quiz_id: UUID,
    payload: ReorderQuestionsRequest,
    current_user: User = Depends(is_teacher),
    db: AsyncSession = Depends(get_db),
):
    quiz = await get_owned_quiz(quiz_id, current_user, db)

    ids = [o.id for o in payload.question_orders]
    questions = {q.id: q for q in quiz.questions if q.id in set(ids)}

    # All or nothing: unknown ids abort before any change
    if len(questions) != len(set(ids)):
        raise HTTPException(404, "One or more questions not found in this quiz")

    for order in payload.question_orders:
        questions[order.id].order_index = order.order_index

    await db.commit()
    return {"success": True, "updated": len(questions)}
