from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from uuid import UUID

from lms.database import get_db
from lms.models import Certificate, Course
from lms.schemas.certificate import CertificateValidation

router = APIRouter(
    prefix="/certificates",
    tags=["Certificate Validation"]
)


def _validation_view(certificate: Certificate) -> CertificateValidation:
    return CertificateValidation(
        valid=True,
        certificate_number=certificate.certificate_number,
        student_name=certificate.student.name,
        course_title=certificate.course.title,
        issued_at=certificate.issued_at,
    )


@router.get("/validate/{certificate_number}", response_model=CertificateValidation)
async def validate_certificate(certificate_number: str, db: AsyncSession = Depends(get_db)):
    """Public lookup by certificate number. No authentication."""
    certificate = await db.scalar(
        select(Certificate)
        .options(selectinload(Certificate.student), selectinload(Certificate.course))
        .where(Certificate.certificate_number == certificate_number)
    )
    if not certificate:
        raise HTTPException(404, "Certificate not found")

    return _validation_view(certificate)


@router.get("/validate/{student_id}/{course_slug}", response_model=CertificateValidation)
async def validate_student_certificate(
    student_id: UUID,
    course_slug: str,
    db: AsyncSession = Depends(get_db),
):
    """
    Resolves the identifiers embedded in a certificate's verification URL
    (`/courses/<slug>/validation/<student id>`). No authentication.
    """
    certificate = await db.scalar(
        select(Certificate)
        .join(Course, Certificate.course_id == Course.id)
        .options(selectinload(Certificate.student), selectinload(Certificate.course))
        .where(
            Certificate.student_id == student_id,
            Course.slug == course_slug,
        )
    )
    if not certificate:
        raise HTTPException(404, "Certificate not found")

    return _validation_view(certificate)
