import uuid
import enum
from datetime import datetime, timezone
from sqlalchemy import (
    Column, String, Boolean, DateTime, Integer, Float, Enum, ForeignKey, Text, JSON, UniqueConstraint
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from lms.database import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------
# Enums
# ---------------------------
class UserRole(str, enum.Enum):
    ADMIN = "admin"
    STUDENT = "student"
    INSTRUCTOR = "instructor"


class ItemType(str, enum.Enum):
    LECTURE = "LECTURE"
    QUIZ = "QUIZ"
    ASSIGNMENT = "ASSIGNMENT"
    RESOURCE = "RESOURCE"


class QuestionType(str, enum.Enum):
    MCQ = "MCQ"
    MULTIPLE = "MULTIPLE"
    TRUE_FALSE = "TRUE_FALSE"
    FILL_BLANK = "FILL_BLANK"
    DESCRIPTIVE = "DESCRIPTIVE"
    CODE = "CODE"


class EnrollmentStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# ---------------------------
# Franchise (tenant)
# ---------------------------
class Franchise(Base):
    __tablename__ = "franchises"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    domain = Column(String(255), unique=True, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)


# ---------------------------
# User Model
# ---------------------------
class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    role = Column(Enum(UserRole, name="user_role_enum"), nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True)
    super_admin = Column(Boolean, default=False)

    franchise_id = Column(UUID(as_uuid=True), ForeignKey("franchises.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    last_login = Column(DateTime(timezone=True), nullable=True)

    franchise = relationship("Franchise")


# ---------------------------
# Course structure
# ---------------------------
class Course(Base):
    __tablename__ = "courses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False)
    description = Column(Text, nullable=True)

    instructor_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    franchise_id = Column(UUID(as_uuid=True), ForeignKey("franchises.id"), nullable=True)

    certificate_enabled = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    instructor = relationship("User")
    sections = relationship(
        "CourseSection",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="CourseSection.order_index",
    )


class CourseSection(Base):
    __tablename__ = "course_sections"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    course_id = Column(UUID(as_uuid=True), ForeignKey("courses.id"), nullable=False)

    title = Column(String(255), nullable=False)
    order_index = Column(Integer, default=0, nullable=False)

    course = relationship("Course", back_populates="sections")
    items = relationship(
        "SectionItem",
        back_populates="section",
        cascade="all, delete-orphan",
        order_by="SectionItem.order_index",
    )


class SectionItem(Base):
    __tablename__ = "section_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    section_id = Column(UUID(as_uuid=True), ForeignKey("course_sections.id"), nullable=False)

    type = Column(Enum(ItemType, name="item_type_enum"), nullable=False)
    title = Column(String(255), nullable=False)
    order_index = Column(Integer, default=0, nullable=False)

    # Mandatory items count towards the enrollment's progress percentage
    is_mandatory = Column(Boolean, default=True, nullable=False)

    section = relationship("CourseSection", back_populates="items")
    quiz = relationship("Quiz", back_populates="item", uselist=False, cascade="all, delete-orphan")
    assignment = relationship("Assignment", back_populates="item", uselist=False, cascade="all, delete-orphan")


class ItemCompletion(Base):
    __tablename__ = "item_completions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    item_id = Column(UUID(as_uuid=True), ForeignKey("section_items.id"), nullable=False)
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)

    completed_at = Column(DateTime(timezone=True), default=utc_now)

    item = relationship("SectionItem")

    __table_args__ = (
        UniqueConstraint("item_id", "student_id", name="unique_item_completion"),
    )


# ---------------------------
# Quiz Models
# ---------------------------
class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    item_id = Column(UUID(as_uuid=True), ForeignKey("section_items.id"), unique=True, nullable=False)

    passing_score = Column(Integer, default=70, nullable=False)
    time_limit_minutes = Column(Integer, nullable=True)
    attempts_allowed = Column(Integer, default=0, nullable=False)  # 0 = unlimited
    auto_grade = Column(Boolean, default=True, nullable=False)
    show_answers = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utc_now)

    item = relationship("SectionItem", back_populates="quiz")
    questions = relationship(
        "QuizQuestion",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="QuizQuestion.order_index",
    )
    submissions = relationship("QuizSubmission", back_populates="quiz", cascade="all, delete-orphan")


class QuizQuestion(Base):
    __tablename__ = "quiz_questions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    quiz_id = Column(UUID(as_uuid=True), ForeignKey("quizzes.id"), nullable=False)

    type = Column(Enum(QuestionType, name="question_type_enum"), nullable=False)
    question_text = Column(Text, nullable=False)
    points = Column(Integer, default=1, nullable=False)
    order_index = Column(Integer, default=0, nullable=False)

    options = Column(JSON, nullable=True)
    correct_answers = Column(JSON, nullable=True)
    explanation = Column(Text, nullable=True)
    code_template = Column(Text, nullable=True)

    quiz = relationship("Quiz", back_populates="questions")


class QuizSubmission(Base):
    __tablename__ = "quiz_submissions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    quiz_id = Column(UUID(as_uuid=True), ForeignKey("quizzes.id"), nullable=False)
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)

    answers = Column(JSON, nullable=False, default=dict)
    # NULL score means manual grading is pending
    score = Column(Integer, nullable=True)
    passed = Column(Boolean, default=False, nullable=False)
    time_taken_minutes = Column(Integer, nullable=True)

    submitted_at = Column(DateTime(timezone=True), default=utc_now)
    graded_at = Column(DateTime(timezone=True), nullable=True)
    graded_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)

    quiz = relationship("Quiz", back_populates="submissions")
    student = relationship("User", foreign_keys=[student_id])


# ---------------------------
# Assignment Models
# ---------------------------
class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    item_id = Column(UUID(as_uuid=True), ForeignKey("section_items.id"), unique=True, nullable=False)

    instructions = Column(Text, nullable=True)
    max_score = Column(Integer, default=100, nullable=False)
    deadline = Column(DateTime(timezone=True), nullable=True)
    late_penalty_percentage = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utc_now)

    item = relationship("SectionItem", back_populates="assignment")
    submissions = relationship("AssignmentSubmission", back_populates="assignment", cascade="all, delete-orphan")


class AssignmentSubmission(Base):
    __tablename__ = "assignment_submissions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    assignment_id = Column(UUID(as_uuid=True), ForeignKey("assignments.id"), nullable=False)
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)

    content = Column(Text, nullable=True)
    file_url = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), default=utc_now)

    grade = Column(Float, nullable=True)
    feedback = Column(Text, nullable=True)
    graded_at = Column(DateTime(timezone=True), nullable=True)
    graded_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)

    assignment = relationship("Assignment", back_populates="submissions")
    student = relationship("User", foreign_keys=[student_id])

    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="unique_assignment_submission"),
    )


# ---------------------------
# Enrollment & Certificate
# ---------------------------
class Enrollment(Base):
    __tablename__ = "enrollments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    course_id = Column(UUID(as_uuid=True), ForeignKey("courses.id"), nullable=False)
    franchise_id = Column(UUID(as_uuid=True), ForeignKey("franchises.id"), nullable=True)

    status = Column(Enum(EnrollmentStatus, name="enrollment_status_enum"), default=EnrollmentStatus.ACTIVE, nullable=False)
    progress_percentage = Column(Integer, default=0, nullable=False)

    enrolled_at = Column(DateTime(timezone=True), default=utc_now)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    student = relationship("User")
    course = relationship("Course")

    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="unique_enrollment"),
    )


class Certificate(Base):
    __tablename__ = "certificates"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    course_id = Column(UUID(as_uuid=True), ForeignKey("courses.id"), nullable=False)
    franchise_id = Column(UUID(as_uuid=True), ForeignKey("franchises.id"), nullable=True)

    certificate_number = Column(String(64), unique=True, nullable=False)
    verification_url = Column(Text, nullable=True)
    certificate_url = Column(Text, nullable=True)
    issued_at = Column(DateTime(timezone=True), default=utc_now)

    student = relationship("User")
    course = relationship("Course")

    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="unique_certificate"),
    )
