from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import List

from lms.database import get_db
from lms.auth.dependencies import is_student
from lms.models import Certificate, User
from lms.schemas.certificate import CertificateRead

router = APIRouter(
    prefix="/student/certificate",
    tags=["Student Certificate Endpoints"]
)


@router.get("/my-certificates", response_model=List[CertificateRead])
async def my_certificates(
    current_user: User = Depends(is_student),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Certificate)
        .where(Certificate.student_id == current_user.id)
        .order_by(Certificate.issued_at.desc())
    )
    return result.scalars().all()
