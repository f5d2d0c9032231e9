from pydantic import BaseModel, Field, model_validator
from typing import Annotated, List, Literal, Optional, Union
from uuid import UUID

from lms.models import QuestionType


# ---------------------------
# Question payloads, one variant per question type
# ---------------------------
class _QuestionBase(BaseModel):
    question_text: str
    points: int = Field(1, ge=1)
    order_index: int = Field(0, ge=0)
    explanation: Optional[str] = None


class MCQQuestionCreate(_QuestionBase):
    type: Literal["MCQ"]
    options: List[str] = Field(min_length=2)
    correct_answers: List[str] = Field(min_length=1, max_length=1)

    @model_validator(mode="after")
    def answer_is_an_option(self):
        if self.correct_answers[0] not in self.options:
            raise ValueError("Correct answer must be one of the options")
        return self


class MultipleQuestionCreate(_QuestionBase):
    type: Literal["MULTIPLE"]
    options: List[str] = Field(min_length=2)
    correct_answers: List[str] = Field(min_length=1)

    @model_validator(mode="after")
    def answers_are_options(self):
        if any(a not in self.options for a in self.correct_answers):
            raise ValueError("Every correct answer must be one of the options")
        return self


class TrueFalseQuestionCreate(_QuestionBase):
    type: Literal["TRUE_FALSE"]
    correct_answers: List[bool] = Field(min_length=1, max_length=1)


class FillBlankQuestionCreate(_QuestionBase):
    type: Literal["FILL_BLANK"]
    correct_answers: List[str] = Field(min_length=1)


class DescriptiveQuestionCreate(_QuestionBase):
    type: Literal["DESCRIPTIVE"]


class CodeQuestionCreate(_QuestionBase):
    type: Literal["CODE"]
    code_template: Optional[str] = None


QuizQuestionCreate = Annotated[
    Union[
        MCQQuestionCreate,
        MultipleQuestionCreate,
        TrueFalseQuestionCreate,
        FillBlankQuestionCreate,
        DescriptiveQuestionCreate,
        CodeQuestionCreate,
    ],
    Field(discriminator="type"),
]


def question_columns(question_in) -> dict:
    """Flatten a question payload into QuizQuestion column values."""
    return {
        "type": QuestionType(question_in.type),
        "question_text": question_in.question_text,
        "points": question_in.points,
        "order_index": question_in.order_index,
        "explanation": question_in.explanation,
        "options": getattr(question_in, "options", None),
        "correct_answers": getattr(question_in, "correct_answers", None),
        "code_template": getattr(question_in, "code_template", None),
    }


# ---------------------------
# Quiz
# ---------------------------
class QuizCreate(BaseModel):
    passing_score: int = Field(70, ge=0, le=100)
    time_limit_minutes: Optional[int] = Field(None, ge=0)
    attempts_allowed: int = Field(0, ge=0)  # 0 = unlimited
    auto_grade: bool = True
    show_answers: bool = False
    questions: List[QuizQuestionCreate] = []


class QuizUpdate(BaseModel):
    passing_score: Optional[int] = Field(None, ge=0, le=100)
    time_limit_minutes: Optional[int] = Field(None, ge=0)
    attempts_allowed: Optional[int] = Field(None, ge=0)
    auto_grade: Optional[bool] = None
    show_answers: Optional[bool] = None


class QuestionOrder(BaseModel):
    id: UUID
    order_index: int = Field(ge=0)


class ReorderQuestionsRequest(BaseModel):
    question_orders: List[QuestionOrder] = Field(min_length=1)


#Views

class QuizQuestionView(BaseModel):
    id: UUID
    type: QuestionType
    question_text: str
    points: int
    order_index: int
    options: Optional[list] = None
    code_template: Optional[str] = None

    model_config = {"from_attributes": True}


class QuizQuestionTeacherView(QuizQuestionView):
    correct_answers: Optional[list] = None
    explanation: Optional[str] = None


class QuizDetailView(BaseModel):
    id: UUID
    item_id: UUID
    passing_score: int
    time_limit_minutes: Optional[int]
    attempts_allowed: int
    auto_grade: bool
    show_answers: bool
    questions: List[QuizQuestionView]

    model_config = {"from_attributes": True}


class QuizTeacherView(QuizDetailView):
    questions: List[QuizQuestionTeacherView]
