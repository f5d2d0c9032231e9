import os

# lms.database builds its engine at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from lms.auth.jwt import create_access_token, token_claims_for
from lms.auth.password_security import hash_password
from lms.database import Base, get_db
from lms.main import app
from lms.models import (
    Assignment, Course, CourseSection, Enrollment, EnrollmentStatus, Franchise,
    ItemType, Quiz, QuizQuestion, SectionItem, User, UserRole,
)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'lms.db'}")

    # pysqlite's own transaction handling breaks SAVEPOINT; emit BEGIN ourselves
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth_headers(user: User, franchise_id=None) -> dict:
    headers = {"Authorization": f"Bearer {create_access_token(token_claims_for(user))}"}
    if franchise_id:
        headers["X-Franchise-ID"] = str(franchise_id)
    return headers


class Seeder:
    """Writes fixtures through short-lived sessions so API calls never wait on a lock."""

    def __init__(self, session_factory):
        self.session_factory = session_factory
        self._counter = 0

    async def add(self, *objects):
        async with self.session_factory() as session:
            session.add_all(objects)
            await session.commit()
        return objects[0] if len(objects) == 1 else objects

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    async def franchise(self, name="North"):
        return await self.add(Franchise(name=name))

    async def user(self, role=UserRole.STUDENT, password="secret123", **kwargs):
        n = self._next()
        kwargs.setdefault("name", f"{role.value} {n}")
        kwargs.setdefault("email", f"{role.value}{n}@example.com")
        return await self.add(User(role=role, password_hash=hash_password(password), **kwargs))

    async def course(self, instructor, certificate_enabled=True, **kwargs):
        n = self._next()
        kwargs.setdefault("title", f"Course {n}")
        kwargs.setdefault("slug", f"course-{n}")
        return await self.add(
            Course(
                instructor_id=instructor.id,
                certificate_enabled=certificate_enabled,
                **kwargs,
            )
        )

    async def section(self, course, order_index=0):
        return await self.add(CourseSection(course_id=course.id, title="Section", order_index=order_index))

    async def item(self, section, type=ItemType.LECTURE, is_mandatory=True, order_index=0):
        return await self.add(
            SectionItem(
                section_id=section.id,
                type=type,
                title=f"{type.value} item",
                is_mandatory=is_mandatory,
                order_index=order_index,
            )
        )

    async def enrollment(self, student, course, **kwargs):
        kwargs.setdefault("status", EnrollmentStatus.ACTIVE)
        kwargs.setdefault("progress_percentage", 0)
        return await self.add(Enrollment(student_id=student.id, course_id=course.id, **kwargs))

    async def quiz(self, item, questions=(), **kwargs):
        """Returns (quiz, [QuizQuestion, ...]) in the given order."""
        quiz = Quiz(item_id=item.id, **kwargs)
        rows = []
        async with self.session_factory() as session:
            session.add(quiz)
            await session.flush()
            for index, question in enumerate(questions):
                question.setdefault("points", 1)
                question.setdefault("question_text", f"Question {index + 1}")
                rows.append(QuizQuestion(quiz_id=quiz.id, order_index=index, **question))
            session.add_all(rows)
            await session.commit()
        return quiz, rows

    async def assignment(self, item, **kwargs):
        return await self.add(Assignment(item_id=item.id, **kwargs))


@pytest.fixture
def seed(session_factory):
    return Seeder(session_factory)


@pytest.fixture
def headers_for():
    return auth_headers
