import logging
from fastapi import APIRouter, Depends, HTTPException, status as http_status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from uuid import UUID
from typing import List, Optional

from lms.database import get_db
from lms.auth.dependencies import is_admin, get_franchise_scope
from lms.helpers.certificate_assigner import (
    IssueOutcome, issue_certificate_if_completed, sync_certificate_issue_dates,
)
from lms.helpers.franchise_scope import certificate_in_franchise, enrollment_in_franchise
from lms.helpers.progress_calculator import mark_enrollment_complete, reset_enrollment_progress
from lms.models import Certificate, Course, Enrollment, EnrollmentStatus, User, UserRole
from lms.schemas.enrollment import (
    AdminEnrollRequest, BulkCompleteRequest, BulkDateUpdateRequest, BulkEnrollError,
    BulkEnrollmentRequest, BulkEnrollResponse, BulkEnrollStudentsRequest, BulkOperationResponse,
    CompletionDateUpdate, CompletionStats, EnrollmentRead, ManualCompleteRequest, ManualCompleteResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/enrollment",
    tags=["Admin Enrollment Endpoints"],
    dependencies=[Depends(is_admin)]
)


def _scoped(stmt, franchise_id: Optional[UUID]):
    if franchise_id:
        stmt = stmt.where(enrollment_in_franchise(franchise_id))
    return stmt


async def _load_scoped_enrollments(ids: List[UUID], franchise_id: Optional[UUID], db: AsyncSession):
    """All requested enrollments or a 404; nothing is changed on a partial match."""
    wanted = set(ids)
    result = await db.execute(
        _scoped(
            select(Enrollment)
            .options(selectinload(Enrollment.course))
            .where(Enrollment.id.in_(wanted)),
            franchise_id,
        )
    )
    enrollments = result.scalars().all()
    if len(enrollments) != len(wanted):
        raise HTTPException(404, "One or more enrollments not found")
    return enrollments


@router.get("/list-enrollments", response_model=List[EnrollmentRead])
async def list_enrollments(
    status: Optional[EnrollmentStatus] = None,
    course_id: Optional[UUID] = None,
    franchise_id: Optional[UUID] = Depends(get_franchise_scope),
    db: AsyncSession = Depends(get_db),
):
    stmt = _scoped(select(Enrollment).order_by(Enrollment.enrolled_at.desc()), franchise_id)
    if status:
        stmt = stmt.where(Enrollment.status == status)
    if course_id:
        stmt = stmt.where(Enrollment.course_id == course_id)

    result = await db.execute(stmt)
    return result.scalars().all()


# ---------------------------
# Manual completion
# ---------------------------
@router.post("/complete/{enrollment_id}", response_model=ManualCompleteResponse)
async def manual_complete(
    enrollment_id: UUID,
    payload: ManualCompleteRequest,
    current_user: User = Depends(is_admin),
    franchise_id: Optional[UUID] = Depends(get_franchise_scope),
    db: AsyncSession = Depends(get_db),
):
    enrollment = (await _load_scoped_enrollments([enrollment_id], franchise_id, db))[0]

    mark_enrollment_complete(enrollment, payload.completion_date)
    if payload.completion_date:
        # An existing certificate follows the backdated completion
        await sync_certificate_issue_dates([enrollment], enrollment.completed_at, db)
    await db.commit()
    logger.info("Enrollment %s completed manually by admin %s", enrollment.id, current_user.id)

    issued = await issue_certificate_if_completed(enrollment, enrollment.course, db)

    return ManualCompleteResponse(
        **EnrollmentRead.model_validate(enrollment).model_dump(),
        certificate_outcome=issued.outcome,
    )


@router.post("/bulk-complete", response_model=BulkOperationResponse)
async def bulk_complete(
    payload: BulkCompleteRequest,
    franchise_id: Optional[UUID] = Depends(get_franchise_scope),
    db: AsyncSession = Depends(get_db),
):
    enrollments = await _load_scoped_enrollments(payload.enrollment_ids, franchise_id, db)

    for enrollment in enrollments:
        mark_enrollment_complete(enrollment, payload.completion_date)
    await db.commit()

    issued_count = 0
    for enrollment in enrollments:
        issued = await issue_certificate_if_completed(enrollment, enrollment.course, db)
        if issued.outcome == IssueOutcome.ISSUED:
            issued_count += 1

    logger.info("Bulk completed %d enrollments, %d certificates issued", len(enrollments), issued_count)
    return BulkOperationResponse(
        updated=len(enrollments),
        certificates_issued=issued_count,
        message=f"{len(enrollments)} enrollments marked as completed",
    )


@router.post("/bulk-incomplete", response_model=BulkOperationResponse)
async def bulk_incomplete(
    payload: BulkEnrollmentRequest,
    franchise_id: Optional[UUID] = Depends(get_franchise_scope),
    db: AsyncSession = Depends(get_db),
):
    enrollments = await _load_scoped_enrollments(payload.enrollment_ids, franchise_id, db)

    for enrollment in enrollments:
        reset_enrollment_progress(enrollment)

    # Progress reset and certificate removal land in the same commit
    removed = await db.execute(
        delete(Certificate)
        .where(or_(*[
            and_(Certificate.student_id == e.student_id, Certificate.course_id == e.course_id)
            for e in enrollments
        ]))
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    logger.info(
        "Bulk reset %d enrollments, %d certificates removed", len(enrollments), removed.rowcount,
    )
    return BulkOperationResponse(
        updated=len(enrollments),
        certificates_removed=removed.rowcount,
        message=f"{len(enrollments)} enrollments marked as incomplete",
    )


# ---------------------------
# Admin enrollment
# ---------------------------
def _outside_scope(owner_franchise_id: Optional[UUID], franchise_id: Optional[UUID]) -> bool:
    # Rows without a franchise are global
    return bool(franchise_id and owner_franchise_id and owner_franchise_id != franchise_id)


async def _find_enrollment(student_id: UUID, course_id: UUID, db: AsyncSession):
    return await db.scalar(
        select(Enrollment).where(
            Enrollment.student_id == student_id,
            Enrollment.course_id == course_id,
        )
    )


@router.post("/enroll", response_model=EnrollmentRead, status_code=http_status.HTTP_201_CREATED)
async def admin_enroll(
    payload: AdminEnrollRequest,
    current_user: User = Depends(is_admin),
    franchise_id: Optional[UUID] = Depends(get_franchise_scope),
    db: AsyncSession = Depends(get_db),
):
    student = await db.scalar(select(User).where(User.email == payload.student_email))
    if not student:
        raise HTTPException(404, "Student not found with this email")
    if student.role != UserRole.STUDENT:
        raise HTTPException(400, "User is not a student")
    if _outside_scope(student.franchise_id, franchise_id):
        raise HTTPException(403, "Cannot enroll student from another franchise")

    course = await db.get(Course, payload.course_id)
    if not course:
        raise HTTPException(404, "Course not found")
    if _outside_scope(course.franchise_id, franchise_id):
        raise HTTPException(403, "Cannot enroll in course from another franchise")

    if await _find_enrollment(student.id, course.id, db):
        raise HTTPException(400, "Student is already enrolled in this course")

    enrollment = Enrollment(
        student_id=student.id,
        course_id=course.id,
        franchise_id=course.franchise_id or franchise_id,
        status=EnrollmentStatus.ACTIVE,
        progress_percentage=0,
    )
    db.add(enrollment)
    await db.commit()
    await db.refresh(enrollment)

    logger.info("Admin %s enrolled student %s in course %s", current_user.id, student.id, course.id)
    return enrollment


@router.post("/bulk-enroll", response_model=BulkEnrollResponse)
async def bulk_enroll(
    payload: BulkEnrollStudentsRequest,
    franchise_id: Optional[UUID] = Depends(get_franchise_scope),
    db: AsyncSession = Depends(get_db),
):
    """
    Enroll every listed student in every listed course. Pairs that fail are
    reported individually and do not stop the rest.
    """
    results = BulkEnrollResponse(total=len(payload.student_ids) * len(payload.course_ids))

    for student_id in payload.student_ids:
        for course_id in payload.course_ids:
            error = None
            student = await db.get(User, student_id)
            course = await db.get(Course, course_id)

            if not student or student.role != UserRole.STUDENT:
                error = "Student not found"
            elif not course:
                error = "Course not found"
            elif _outside_scope(student.franchise_id, franchise_id):
                error = "Student not in franchise"
            elif _outside_scope(course.franchise_id, franchise_id):
                error = "Course not in franchise"

            if error:
                results.failed += 1
                results.errors.append(BulkEnrollError(student_id=student_id, course_id=course_id, error=error))
                continue

            if await _find_enrollment(student_id, course_id, db):
                results.already_enrolled += 1
                continue

            try:
                async with db.begin_nested():
                    db.add(Enrollment(
                        student_id=student_id,
                        course_id=course_id,
                        franchise_id=course.franchise_id or franchise_id,
                        status=EnrollmentStatus.ACTIVE,
                        progress_percentage=0,
                    ))
                    await db.flush()
            except IntegrityError:
                results.already_enrolled += 1
                continue

            results.success += 1

    await db.commit()
    logger.info(
        "Bulk enroll: %d created, %d already enrolled, %d failed of %d",
        results.success, results.already_enrolled, results.failed, results.total,
    )
    return results


# ---------------------------
# Date corrections
# ---------------------------
@router.patch("/completion-date/{enrollment_id}", response_model=EnrollmentRead)
async def update_completion_date(
    enrollment_id: UUID,
    payload: CompletionDateUpdate,
    franchise_id: Optional[UUID] = Depends(get_franchise_scope),
    db: AsyncSession = Depends(get_db),
):
    enrollment = (await _load_scoped_enrollments([enrollment_id], franchise_id, db))[0]

    enrollment.completed_at = payload.completion_date
    await sync_certificate_issue_dates([enrollment], payload.completion_date, db)
    await db.commit()

    logger.info("Enrollment %s completion date set to %s", enrollment.id, payload.completion_date)
    return enrollment


@router.post("/bulk-update-dates", response_model=BulkOperationResponse)
async def bulk_update_dates(
    payload: BulkDateUpdateRequest,
    franchise_id: Optional[UUID] = Depends(get_franchise_scope),
    db: AsyncSession = Depends(get_db),
):
    if not payload.enrollment_date and not payload.completion_date:
        return BulkOperationResponse(updated=0, message="No dates provided for update")

    enrollments = await _load_scoped_enrollments(payload.enrollment_ids, franchise_id, db)

    for enrollment in enrollments:
        if payload.enrollment_date:
            enrollment.enrolled_at = payload.enrollment_date
        if payload.completion_date:
            enrollment.completed_at = payload.completion_date

    if payload.completion_date:
        await sync_certificate_issue_dates(enrollments, payload.completion_date, db)
    await db.commit()

    logger.info("Bulk updated dates for %d enrollments", len(enrollments))
    return BulkOperationResponse(
        updated=len(enrollments),
        message=f"Successfully updated dates for {len(enrollments)} enrollment(s)",
    )


@router.get("/stats", response_model=CompletionStats)
async def completion_stats(
    franchise_id: Optional[UUID] = Depends(get_franchise_scope),
    db: AsyncSession = Depends(get_db),
):
    counts = await db.execute(
        _scoped(
            select(Enrollment.status, func.count(Enrollment.id)).group_by(Enrollment.status),
            franchise_id,
        )
    )
    by_status = {row[0]: row[1] for row in counts.all()}

    cert_stmt = select(func.count(Certificate.id))
    if franchise_id:
        cert_stmt = cert_stmt.where(certificate_in_franchise(franchise_id))

    return CompletionStats(
        total_enrollments=sum(by_status.values()),
        active_enrollments=by_status.get(EnrollmentStatus.ACTIVE, 0),
        completed_enrollments=by_status.get(EnrollmentStatus.COMPLETED, 0),
        certificates_issued=await db.scalar(cert_stmt) or 0,
    )
