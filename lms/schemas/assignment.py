from pydantic import BaseModel, Field, model_validator
from typing import Optional
from uuid import UUID
from datetime import datetime


class AssignmentCreate(BaseModel):
    instructions: Optional[str] = None
    max_score: int = Field(100, ge=1)
    deadline: Optional[datetime] = None
    late_penalty_percentage: int = Field(0, ge=0, le=100)


class AssignmentRead(BaseModel):
    id: UUID
    item_id: UUID
    instructions: Optional[str]
    max_score: int
    deadline: Optional[datetime]
    late_penalty_percentage: int

    model_config = {"from_attributes": True}


#for students
class AssignmentSubmit(BaseModel):
    content: Optional[str] = None
    file_url: Optional[str] = None

    @model_validator(mode="after")
    def something_submitted(self):
        if not self.content and not self.file_url:
            raise ValueError("Either content or file_url is required")
        return self


class AssignmentSubmissionRead(BaseModel):
    id: UUID
    assignment_id: UUID
    student_id: UUID
    content: Optional[str] = None
    file_url: Optional[str] = None
    submitted_at: datetime
    grade: Optional[float] = None
    feedback: Optional[str] = None
    graded_at: Optional[datetime] = None
    graded_by: Optional[UUID] = None

    model_config = {"from_attributes": True}


class AssignmentSubmitResponse(AssignmentSubmissionRead):
    resubmitted: bool = False


#for teachers
class AssignmentSubmissionGrade(BaseModel):
    grade: float = Field(ge=0, le=100)
    feedback: Optional[str] = None


class AssignmentGradeResponse(AssignmentSubmissionRead):
    raw_grade: float
    is_late: bool
