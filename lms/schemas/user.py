from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime
from uuid import UUID
from lms.models import UserRole


class UserCreate(BaseModel):
    role: UserRole
    name: str
    email: EmailStr
    password: str
    franchise_id: Optional[UUID] = None
    super_admin: bool = False


class UserLoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserProfile(BaseModel):
    id: UUID
    role: UserRole
    name: str
    email: str
    is_active: bool
    super_admin: bool
    franchise_id: Optional[UUID]
    created_at: datetime
    last_login: Optional[datetime]

    model_config={
        "from_attributes":True
    }


class TokenResponse(BaseModel):

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    role:str



#for admin

class UserListBasic(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    franchise_id: Optional[str] = None

    model_config = {
        "from_attributes": True
    }
