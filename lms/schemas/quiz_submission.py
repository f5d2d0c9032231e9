from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from uuid import UUID
from datetime import datetime

from lms.helpers.quiz_answer_evaluator import AnswerVerdict

#for students
class QuizSubmitRequest(BaseModel):
    answers: Dict[str, Any]  # question id -> submitted value
    time_taken_minutes: Optional[int] = Field(None, ge=0)


class QuestionVerdict(BaseModel):
    question_id: UUID
    verdict: AnswerVerdict


class AnswerKeyEntry(BaseModel):
    question_id: UUID
    correct_answers: list
    explanation: Optional[str] = None


class QuizSubmitResponse(BaseModel):
    submission_id: UUID
    quiz_id: UUID
    attempt_number: int
    score: Optional[int]
    passed: bool
    earned_points: Optional[int] = None
    total_points: Optional[int] = None
    pending_manual_grading: bool = False
    course_progress: Optional[int] = None
    certificate_issued: bool = False
    results: List[QuestionVerdict] = []
    answer_key: Optional[List[AnswerKeyEntry]] = None


class QuizSubmissionRead(BaseModel):
    id: UUID
    quiz_id: UUID
    student_id: UUID
    answers: Dict[str, Any]
    score: Optional[int]
    passed: bool
    time_taken_minutes: Optional[int]
    submitted_at: datetime
    graded_at: Optional[datetime]
    graded_by: Optional[UUID]

    model_config = {"from_attributes": True}


#for teachers
class QuizSubmissionGrade(BaseModel):
    score: int = Field(ge=0, le=100)
