from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import datetime

from lms.helpers.certificate_assigner import IssueOutcome


class CertificateRead(BaseModel):
    id: UUID
    student_id: UUID
    course_id: UUID
    certificate_number: str
    verification_url: Optional[str]
    certificate_url: Optional[str]
    issued_at: datetime

    model_config = {"from_attributes": True}


class CertificateIssueRequest(BaseModel):
    student_id: UUID
    course_id: UUID


class CertificateIssueResponse(BaseModel):
    outcome: IssueOutcome
    certificate: Optional[CertificateRead] = None


class CertificateValidation(BaseModel):
    valid: bool
    certificate_number: str
    student_name: str
    course_title: str
    issued_at: datetime


class CertificateGenerationSummary(BaseModel):
    total: int
    generated: int
    skipped_existing: int
    skipped_disabled: int
