from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from uuid import UUID
from typing import List

from lms.database import get_db
from lms.models import Course, CourseSection, SectionItem, User
from lms.auth.dependencies import is_teacher
from lms.auth.course_access import ensure_course_instructor
from lms.schemas.course import (
    CourseCreate, CourseRead, CourseCertificateToggle,
    SectionCreate, SectionRead, SectionItemCreate, SectionItemRead,
    ReorderItemsRequest,
)


router = APIRouter(
    prefix="/teacher/course",
    tags=["Teacher Course Endpoints"]
    )


async def _get_owned_course(course_id: UUID, current_user: User, db: AsyncSession) -> Course:
    course = await db.get(Course, course_id)
    if not course:
        raise HTTPException(404, "Course not found")
    ensure_course_instructor(course, current_user)
    return course


@router.post("/create-course", response_model=CourseRead, status_code=201)
async def create_course(
    course_in: CourseCreate,
    current_user: User = Depends(is_teacher),
    db: AsyncSession = Depends(get_db),
):
    existing = await db.execute(
        select(Course).where(Course.slug == course_in.slug)
    )
    if existing.scalars().first():
        raise HTTPException(400, "Course slug already exists")

    new_course = Course(
        title=course_in.title,
        slug=course_in.slug,
        description=course_in.description,
        certificate_enabled=course_in.certificate_enabled,
        instructor_id=current_user.id,
        franchise_id=current_user.franchise_id,
    )
    db.add(new_course)
    await db.commit()
    await db.refresh(new_course)
    return new_course


@router.patch("/certificates/{course_id}", response_model=CourseRead)
async def toggle_certificates(
    course_id: UUID,
    payload: CourseCertificateToggle,
    current_user: User = Depends(is_teacher),
    db: AsyncSession = Depends(get_db),
):
    course = await _get_owned_course(course_id, current_user, db)
    course.certificate_enabled = payload.certificate_enabled
    await db.commit()
    await db.refresh(course)
    return course


@router.get("/structure/{course_id}", response_model=List[SectionRead])
async def get_course_structure(
    course_id: UUID,
    current_user: User = Depends(is_teacher),
    db: AsyncSession = Depends(get_db),
):
    await _get_owned_course(course_id, current_user, db)

    result = await db.execute(
        select(CourseSection)
        .options(selectinload(CourseSection.items))
        .where(CourseSection.course_id == course_id)
        .order_by(CourseSection.order_index)
    )
    return result.scalars().all()


@router.post("/add-section/{course_id}", response_model=SectionRead, status_code=201)
async def add_section(
    course_id: UUID,
    section_in: SectionCreate,
    current_user: User = Depends(is_teacher),
    db: AsyncSession = Depends(get_db),
):
    await _get_owned_course(course_id, current_user, db)

    section = CourseSection(
        course_id=course_id,
        title=section_in.title,
        order_index=section_in.order_index,
    )
    db.add(section)
    await db.commit()

    return SectionRead(
        id=section.id,
        course_id=section.course_id,
        title=section.title,
        order_index=section.order_index,
        items=[],
    )


@router.post("/add-item/{section_id}", response_model=SectionItemRead, status_code=201)
async def add_section_item(
    section_id: UUID,
    item_in: SectionItemCreate,
    current_user: User = Depends(is_teacher),
    db: AsyncSession = Depends(get_db),
):
    section = await db.get(CourseSection, section_id)
    if not section:
        raise HTTPException(404, "Section not found")
    await _get_owned_course(section.course_id, current_user, db)

    item = SectionItem(
        section_id=section.id,
        type=item_in.type,
        title=item_in.title,
        order_index=item_in.order_index,
        is_mandatory=item_in.is_mandatory,
    )
    db.add(item)
    await db.commit()
    await db.refresh(item)
    return item


@router.put("/reorder-items/{section_id}")
async def reorder_section_items(
    section_id: UUID,
    payload: ReorderItemsRequest,
    current_user: User = Depends(is_teacher),
    db: AsyncSession = Depends(get_db),
):
    section = await db.get(CourseSection, section_id)
    if not section:
        raise HTTPException(404, "Section not found")
    await _get_owned_course(section.course_id, current_user, db)

    ids = [o.id for o in payload.item_orders]
    result = await db.execute(
        select(SectionItem).where(
            SectionItem.section_id == section_id,
            SectionItem.id.in_(ids),
        )
    )
    items = {item.id: item for item in result.scalars().all()}

    # All or nothing: unknown ids abort before any change
    if len(items) != len(set(ids)):
        raise HTTPException(404, "One or more items not found in this section")

    for order in payload.item_orders:
        items[order.id].order_index = order.order_index

    await db.commit()
    return {"success": True, "updated": len(items)}
