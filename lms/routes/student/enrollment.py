from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from uuid import UUID
from typing import List, Optional

from lms.database import get_db
from lms.auth.dependencies import is_student, get_franchise_scope
from lms.auth.course_access import ensure_student_enrolled
from lms.helpers.certificate_assigner import is_enrollment_complete
from lms.helpers.franchise_scope import course_visible_to_franchise
from lms.helpers.progress_calculator import get_course_progress, record_item_completion
from lms.models import Course, Enrollment, EnrollmentStatus, User
from lms.schemas.enrollment import CourseProgressRead, EnrollmentRead, ItemCompletionResponse

router = APIRouter(
    prefix="/student/enrollment",
    tags=["Student Enrollment Endpoints"]
)


@router.post("/enroll/{course_id}", response_model=EnrollmentRead, status_code=status.HTTP_201_CREATED)
async def enroll_in_course(
    course_id: UUID,
    current_user: User = Depends(is_student),
    franchise_id: Optional[UUID] = Depends(get_franchise_scope),
    db: AsyncSession = Depends(get_db),
):
    course = await db.get(Course, course_id)
    if not course:
        raise HTTPException(404, "Course not found")

    if not course_visible_to_franchise(course, franchise_id):
        raise HTTPException(403, "Cannot enroll in course from another franchise")

    # One row per (student, course): re-enrolling reactivates it
    enrollment = await db.scalar(
        select(Enrollment).where(
            Enrollment.student_id == current_user.id,
            Enrollment.course_id == course.id,
        )
    )
    if enrollment:
        if enrollment.status == EnrollmentStatus.CANCELLED:
            enrollment.status = (
                EnrollmentStatus.COMPLETED if is_enrollment_complete(enrollment) else EnrollmentStatus.ACTIVE
            )
            await db.commit()
        return enrollment

    enrollment = Enrollment(
        student_id=current_user.id,
        course_id=course.id,
        franchise_id=course.franchise_id or franchise_id,
        status=EnrollmentStatus.ACTIVE,
        progress_percentage=0,
    )
    db.add(enrollment)
    await db.commit()
    await db.refresh(enrollment)
    return enrollment


@router.get("/my-enrollments", response_model=List[EnrollmentRead])
async def my_enrollments(
    current_user: User = Depends(is_student),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Enrollment)
        .where(Enrollment.student_id == current_user.id)
        .order_by(Enrollment.enrolled_at.desc())
    )
    return result.scalars().all()


@router.get("/progress/{course_id}", response_model=CourseProgressRead)
async def course_progress(
    course_id: UUID,
    current_user: User = Depends(is_student),
    db: AsyncSession = Depends(get_db),
):
    enrollment = await ensure_student_enrolled(course_id, current_user.id, db)
    progress = await get_course_progress(course_id, current_user.id, db)
    completed = is_enrollment_complete(enrollment)

    return CourseProgressRead(
        course_id=course_id,
        total_mandatory_items=progress["total_mandatory_items"],
        completed_mandatory_items=progress["completed_mandatory_items"],
        progress_percentage=enrollment.progress_percentage if completed else progress["progress_percentage"],
        completed=completed,
    )


@router.post("/complete-item/{item_id}", response_model=ItemCompletionResponse)
async def complete_item(
    item_id: UUID,
    current_user: User = Depends(is_student),
    db: AsyncSession = Depends(get_db),
):
    result = await record_item_completion(item_id, current_user.id, db)

    return ItemCompletionResponse(
        item_id=item_id,
        progress_percentage=result.progress_percentage,
        completed=result.completed,
        newly_completed=result.newly_completed,
        certificate_outcome=result.certificate.outcome if result.certificate else None,
    )
