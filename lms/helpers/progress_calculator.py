import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms.auth.course_access import ensure_student_enrolled, get_course_for_item
from lms.helpers.certificate_assigner import (
    IssueResult,
    is_enrollment_complete,
    issue_certificate_if_completed,
)
from lms.models import (
    Course, CourseSection, Enrollment, EnrollmentStatus, ItemCompletion, SectionItem, utc_now
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionDecision:
    progress_percentage: int
    mark_complete: bool
    already_completed: bool

    @property
    def completed(self) -> bool:
        return self.mark_complete or self.already_completed


@dataclass
class CompletionSyncResult:
    progress_percentage: int
    completed: bool
    newly_completed: bool
    certificate: Optional[IssueResult] = None


def calculate_progress_percentage(completed_mandatory: int, total_mandatory: int) -> int:
    """Share of mandatory items completed, rounded down; 0 when nothing is mandatory."""
    if total_mandatory <= 0:
        return 0
    completed_mandatory = max(0, min(completed_mandatory, total_mandatory))
    return completed_mandatory * 100 // total_mandatory


def evaluate_completion(progress_percentage: int, already_completed: bool) -> CompletionDecision:
    # Once complete, the stored state wins
    if already_completed:
        return CompletionDecision(100, mark_complete=False, already_completed=True)

    return CompletionDecision(
        progress_percentage=progress_percentage,
        mark_complete=progress_percentage >= 100,
        already_completed=False,
    )


async def get_course_progress(course_id: UUID, student_id: UUID, db: AsyncSession):
    # 1. Mandatory items in the course
    total = await db.scalar(
        select(func.count(SectionItem.id))
        .join(CourseSection, SectionItem.section_id == CourseSection.id)
        .where(
            CourseSection.course_id == course_id,
            SectionItem.is_mandatory.is_(True),
        )
    )

    # 2. Mandatory items this student has completed
    completed = await db.scalar(
        select(func.count(ItemCompletion.id))
        .join(SectionItem, ItemCompletion.item_id == SectionItem.id)
        .join(CourseSection, SectionItem.section_id == CourseSection.id)
        .where(
            CourseSection.course_id == course_id,
            SectionItem.is_mandatory.is_(True),
            ItemCompletion.student_id == student_id,
        )
    )

    total = total or 0
    completed = completed or 0

    return {
        "total_mandatory_items": total,
        "completed_mandatory_items": completed,
        "progress_percentage": calculate_progress_percentage(completed, total),
    }


def mark_enrollment_complete(enrollment: Enrollment, completed_at: Optional[datetime] = None):
    """Force an enrollment into the completed state (admin completion). Caller commits."""
    enrollment.status = EnrollmentStatus.COMPLETED
    enrollment.progress_percentage = 100
    enrollment.completed_at = completed_at or utc_now()


def reset_enrollment_progress(enrollment: Enrollment):
    enrollment.status = EnrollmentStatus.ACTIVE
    enrollment.progress_percentage = 0
    enrollment.completed_at = None


async def sync_enrollment_progress(
    enrollment: Enrollment,
    db: AsyncSession,
    now: Optional[datetime] = None,
) -> CompletionSyncResult:
    """
    Recompute progress from mandatory item completions and complete the
    enrollment when it reaches 100. Issues the certificate on completion.
    """
    if is_enrollment_complete(enrollment):
        return CompletionSyncResult(
            progress_percentage=enrollment.progress_percentage,
            completed=True,
            newly_completed=False,
        )

    progress = await get_course_progress(enrollment.course_id, enrollment.student_id, db)
    decision = evaluate_completion(progress["progress_percentage"], already_completed=False)

    enrollment.progress_percentage = decision.progress_percentage
    if decision.mark_complete:
        mark_enrollment_complete(enrollment, now)

    await db.commit()

    certificate = None
    if decision.mark_complete:
        logger.info("Enrollment %s completed", enrollment.id)
        course = await db.get(Course, enrollment.course_id)
        certificate = await issue_certificate_if_completed(enrollment, course, db)

    return CompletionSyncResult(
        progress_percentage=decision.progress_percentage,
        completed=decision.completed,
        newly_completed=decision.mark_complete,
        certificate=certificate,
    )


async def find_item_completion(item_id: UUID, student_id: UUID, db: AsyncSession) -> Optional[ItemCompletion]:
    return await db.scalar(
        select(ItemCompletion).where(
            ItemCompletion.item_id == item_id,
            ItemCompletion.student_id == student_id,
        )
    )


async def record_item_completion(item_id: UUID, student_id: UUID, db: AsyncSession) -> CompletionSyncResult:
    """Mark a section item done for a student, then re-run the completion gate."""
    item, course = await get_course_for_item(item_id, db)
    enrollment = await ensure_student_enrolled(course.id, student_id, db)

    if not await find_item_completion(item.id, student_id, db):
        try:
            async with db.begin_nested():
                db.add(ItemCompletion(item_id=item.id, student_id=student_id))
                await db.flush()
        except IntegrityError:
            # A concurrent request recorded the same item first
            logger.info("Item %s already completed by student %s", item.id, student_id)
        await db.commit()

    return await sync_enrollment_progress(enrollment, db)
