import enum
import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from lms.config import CERTIFICATE_NUMBER_PREFIX, FRONTEND_URL
from lms.errors import ConflictError
from lms.helpers.franchise_scope import enrollment_in_franchise
from lms.models import Certificate, Course, Enrollment, utc_now

logger = logging.getLogger(__name__)

MAX_NUMBER_ATTEMPTS = 5
_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


class IssueOutcome(str, enum.Enum):
    ISSUED = "issued"
    ALREADY_ISSUED = "already_issued"
    CERTIFICATES_DISABLED = "certificates_disabled"
    NOT_COMPLETED = "not_completed"


@dataclass
class IssueResult:
    outcome: IssueOutcome
    certificate: Optional[Certificate] = None

    @property
    def has_certificate(self) -> bool:
        return self.certificate is not None


def generate_certificate_number(now: Optional[datetime] = None, prefix: str = CERTIFICATE_NUMBER_PREFIX) -> str:
    """
    Human readable, practically unique number, e.g. CERT-2026-K3V9QZ4821.
    Collisions are caught by the unique constraint and retried.
    """
    now = now or utc_now()
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    millis = str(int(now.timestamp() * 1000))[-4:]
    return f"{prefix}-{now.year}-{suffix}{millis}"


def build_verification_url(course_slug: str, student_id: UUID, base_url: str = FRONTEND_URL) -> str:
    return f"{base_url}/courses/{course_slug}/validation/{student_id}"


def build_certificate_url(student_id: UUID, course_id: UUID) -> str:
    return f"/api/certificates/{student_id}/{course_id}.pdf"


def is_enrollment_complete(enrollment: Enrollment) -> bool:
    return (enrollment.progress_percentage or 0) >= 100 and enrollment.completed_at is not None


async def find_certificate(student_id: UUID, course_id: UUID, db: AsyncSession) -> Optional[Certificate]:
    return await db.scalar(
        select(Certificate).where(
            Certificate.student_id == student_id,
            Certificate.course_id == course_id,
        )
    )


async def sync_certificate_issue_dates(enrollments, issued_at: datetime, db: AsyncSession) -> int:
    """Re-date the certificates belonging to these enrollments. Caller commits."""
    if not enrollments:
        return 0

    result = await db.execute(
        update(Certificate)
        .where(or_(*[
            and_(Certificate.student_id == e.student_id, Certificate.course_id == e.course_id)
            for e in enrollments
        ]))
        .values(issued_at=issued_at)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def issue_certificate_if_completed(
    enrollment: Enrollment,
    course: Course,
    db: AsyncSession,
) -> IssueResult:
    """
    Issue the certificate for a completed enrollment.

    Safe to call any number of times for the same (student, course): an existing
    certificate, including one inserted concurrently, is returned as ALREADY_ISSUED.
    """
    student_id = enrollment.student_id
    course_id = enrollment.course_id

    if not is_enrollment_complete(enrollment):
        return IssueResult(IssueOutcome.NOT_COMPLETED)

    existing = await find_certificate(student_id, course_id, db)
    if existing:
        return IssueResult(IssueOutcome.ALREADY_ISSUED, existing)

    if not course.certificate_enabled:
        logger.info("Certificates disabled for course %s, skipping student %s", course_id, student_id)
        return IssueResult(IssueOutcome.CERTIFICATES_DISABLED)

    verification_url = build_verification_url(course.slug, student_id)
    certificate_url = build_certificate_url(student_id, course_id)
    franchise_id = enrollment.franchise_id or course.franchise_id
    issued_at = enrollment.completed_at

    for attempt in range(1, MAX_NUMBER_ATTEMPTS + 1):
        cert = Certificate(
            student_id=student_id,
            course_id=course_id,
            franchise_id=franchise_id,
            certificate_number=generate_certificate_number(),
            verification_url=verification_url,
            certificate_url=certificate_url,
            issued_at=issued_at,
        )

        try:
            async with db.begin_nested():
                db.add(cert)
                await db.flush()
        except IntegrityError:
            existing = await find_certificate(student_id, course_id, db)
            if existing:
                logger.info(
                    "Certificate for student %s / course %s was issued concurrently",
                    student_id, course_id,
                )
                return IssueResult(IssueOutcome.ALREADY_ISSUED, existing)

            logger.warning(
                "Certificate number %s collided, retrying (%d/%d)",
                cert.certificate_number, attempt, MAX_NUMBER_ATTEMPTS,
            )
            continue

        await db.commit()
        logger.info(
            "Issued certificate %s to student %s for course %s",
            cert.certificate_number, student_id, course_id,
        )
        return IssueResult(IssueOutcome.ISSUED, cert)

    raise ConflictError("Could not allocate a unique certificate number")


async def generate_missing_certificates(db: AsyncSession, franchise_id: Optional[UUID] = None) -> dict:
    """
    Batch job: issue certificates for every completed enrollment that lacks one.
    Running it again only produces skips.
    """
    stmt = (
        select(Enrollment)
        .options(selectinload(Enrollment.course))
        .where(
            Enrollment.progress_percentage >= 100,
            Enrollment.completed_at.is_not(None),
        )
    )
    if franchise_id:
        stmt = stmt.where(enrollment_in_franchise(franchise_id))

    result = await db.execute(stmt)
    enrollments = result.scalars().all()

    summary = {
        "total": len(enrollments),
        "generated": 0,
        "skipped_existing": 0,
        "skipped_disabled": 0,
    }

    for enrollment in enrollments:
        issued = await issue_certificate_if_completed(enrollment, enrollment.course, db)

        if issued.outcome == IssueOutcome.ISSUED:
            summary["generated"] += 1
        elif issued.outcome == IssueOutcome.ALREADY_ISSUED:
            summary["skipped_existing"] += 1
        elif issued.outcome == IssueOutcome.CERTIFICATES_DISABLED:
            summary["skipped_disabled"] += 1

    logger.info(
        "Certificate generation finished: %(generated)d generated, "
        "%(skipped_existing)d already issued, %(skipped_disabled)d disabled, %(total)d total",
        summary,
    )
    return summary
