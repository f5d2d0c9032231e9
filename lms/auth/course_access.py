from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from lms.errors import NotFoundError, PermissionDeniedError
from lms.models import Course, CourseSection, Enrollment, EnrollmentStatus, SectionItem, User


async def get_course_for_item(item_id: UUID, db: AsyncSession):
    """Returns (item, course) for a section item or raises NotFoundError."""
    result = await db.execute(
        select(SectionItem, Course)
        .join(CourseSection, SectionItem.section_id == CourseSection.id)
        .join(Course, CourseSection.course_id == Course.id)
        .where(SectionItem.id == item_id)
    )
    row = result.first()
    if not row:
        raise NotFoundError("Section item not found")
    return row[0], row[1]


def ensure_course_instructor(course: Course, current_user: User):
    """Only the course instructor (or a super admin) may author or grade it."""
    if course.instructor_id != current_user.id and not current_user.super_admin:
        raise PermissionDeniedError("Only the course instructor can manage this course")


async def ensure_student_enrolled(
    course_id: UUID,
    student_id: UUID,
    db: AsyncSession,
) -> Enrollment:
    enrollment = await db.scalar(
        select(Enrollment).where(
            Enrollment.course_id == course_id,
            Enrollment.student_id == student_id,
        )
    )
    if not enrollment or enrollment.status == EnrollmentStatus.CANCELLED:
        raise PermissionDeniedError("You are not enrolled in this course")
    return enrollment
