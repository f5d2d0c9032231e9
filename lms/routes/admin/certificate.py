from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from uuid import UUID
from typing import Optional

from lms.database import get_db
from lms.auth.dependencies import is_admin, get_franchise_scope
from lms.helpers.certificate_assigner import generate_missing_certificates, issue_certificate_if_completed
from lms.helpers.franchise_scope import enrollment_in_franchise
from lms.models import Enrollment
from lms.schemas.certificate import (
    CertificateGenerationSummary, CertificateIssueRequest, CertificateIssueResponse, CertificateRead,
)

router = APIRouter(
    prefix="/admin/certificate",
    tags=["Admin Certificate Endpoints"],
    dependencies=[Depends(is_admin)]
)


@router.post("/issue", response_model=CertificateIssueResponse)
async def issue_certificate(
    payload: CertificateIssueRequest,
    franchise_id: Optional[UUID] = Depends(get_franchise_scope),
    db: AsyncSession = Depends(get_db),
):
    stmt = (
        select(Enrollment)
        .options(selectinload(Enrollment.course))
        .where(
            Enrollment.student_id == payload.student_id,
            Enrollment.course_id == payload.course_id,
        )
    )
    if franchise_id:
        stmt = stmt.where(enrollment_in_franchise(franchise_id))

    enrollment = await db.scalar(stmt)
    if not enrollment:
        raise HTTPException(404, "Enrollment not found")

    issued = await issue_certificate_if_completed(enrollment, enrollment.course, db)
    certificate = CertificateRead.model_validate(issued.certificate) if issued.has_certificate else None
    return CertificateIssueResponse(outcome=issued.outcome, certificate=certificate)


@router.post("/generate-missing", response_model=CertificateGenerationSummary)
async def generate_missing(
    franchise_id: Optional[UUID] = Depends(get_franchise_scope),
    db: AsyncSession = Depends(get_db),
):
    return await generate_missing_certificates(db, franchise_id)
