from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from lms.models import EnrollmentStatus
from lms.helpers.certificate_assigner import IssueOutcome


class EnrollmentRead(BaseModel):
    id: UUID
    student_id: UUID
    course_id: UUID
    franchise_id: Optional[UUID]
    status: EnrollmentStatus
    progress_percentage: int
    enrolled_at: datetime
    completed_at: Optional[datetime]

    model_config = {"from_attributes": True}


class CourseProgressRead(BaseModel):
    course_id: UUID
    total_mandatory_items: int
    completed_mandatory_items: int
    progress_percentage: int
    completed: bool


class ItemCompletionResponse(BaseModel):
    item_id: UUID
    progress_percentage: int
    completed: bool
    newly_completed: bool
    certificate_outcome: Optional[IssueOutcome] = None


#for admins
class ManualCompleteRequest(BaseModel):
    completion_date: Optional[datetime] = None


class ManualCompleteResponse(EnrollmentRead):
    certificate_outcome: IssueOutcome


class BulkCompleteRequest(BaseModel):
    enrollment_ids: List[UUID] = Field(min_length=1)
    completion_date: Optional[datetime] = None


class BulkEnrollmentRequest(BaseModel):
    enrollment_ids: List[UUID] = Field(min_length=1)


class BulkOperationResponse(BaseModel):
    updated: int
    certificates_issued: int = 0
    certificates_removed: int = 0
    message: str


class CompletionStats(BaseModel):
    total_enrollments: int
    active_enrollments: int
    completed_enrollments: int
    certificates_issued: int


class CompletionDateUpdate(BaseModel):
    completion_date: datetime


class BulkDateUpdateRequest(BaseModel):
    enrollment_ids: List[UUID] = Field(min_length=1)
    enrollment_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None


class AdminEnrollRequest(BaseModel):
    student_email: EmailStr
    course_id: UUID


class BulkEnrollStudentsRequest(BaseModel):
    student_ids: List[UUID] = Field(min_length=1)
    course_ids: List[UUID] = Field(min_length=1)


class BulkEnrollError(BaseModel):
    student_id: UUID
    course_id: UUID
    error: str


class BulkEnrollResponse(BaseModel):
    total: int
    success: int = 0
    already_enrolled: int = 0
    failed: int = 0
    errors: List[BulkEnrollError] = []
