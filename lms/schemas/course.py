from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from lms.models import ItemType


class CourseCreate(BaseModel):
    title: str
    slug: str = Field(pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: Optional[str] = None
    certificate_enabled: bool = False


class CourseCertificateToggle(BaseModel):
    certificate_enabled: bool


class SectionCreate(BaseModel):
    title: str
    order_index: int = Field(0, ge=0)


class SectionItemCreate(BaseModel):
    type: ItemType
    title: str
    order_index: int = Field(0, ge=0)
    is_mandatory: bool = True


class ItemOrder(BaseModel):
    id: UUID
    order_index: int = Field(ge=0)


class ReorderItemsRequest(BaseModel):
    item_orders: List[ItemOrder] = Field(min_length=1)


class SectionItemRead(BaseModel):
    id: UUID
    section_id: UUID
    type: ItemType
    title: str
    order_index: int
    is_mandatory: bool

    model_config = {"from_attributes": True}


class SectionRead(BaseModel):
    id: UUID
    course_id: UUID
    title: str
    order_index: int
    items: List[SectionItemRead] = []

    model_config = {"from_attributes": True}


class CourseRead(BaseModel):
    id: UUID
    title: str
    slug: str
    description: Optional[str]
    instructor_id: UUID
    franchise_id: Optional[UUID]
    certificate_enabled: bool
    created_at: datetime

    model_config = {"from_attributes": True}
