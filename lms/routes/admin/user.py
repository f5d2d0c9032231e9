from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional
from uuid import UUID

from lms.database import get_db
from lms.models import User, UserRole
from lms.auth.dependencies import is_admin, get_franchise_scope
from lms.auth.password_security import hash_password
from lms.schemas.user import UserCreate, UserListBasic, UserProfile

router = APIRouter(
    prefix="/admin",
    tags=["Admin User Endpoints"],
)


@router.post("/create-user", response_model=UserProfile, status_code=201)
async def create_user(
    data: UserCreate,
    current_user: User = Depends(is_admin),
    franchise_id: Optional[UUID] = Depends(get_franchise_scope),
    db: AsyncSession = Depends(get_db),
):
    if data.super_admin and not current_user.super_admin:
        raise HTTPException(403, "Only super admins can create super admins")

    # Franchise admins always create users inside their own franchise
    target_franchise = data.franchise_id if current_user.super_admin else franchise_id
    if current_user.super_admin and target_franchise is None:
        target_franchise = franchise_id

    result = await db.execute(select(User).where(User.email == data.email))
    if result.scalars().first():
        raise HTTPException(400, "Email already exists")

    user = User(
        role=data.role,
        name=data.name,
        email=data.email,
        password_hash=hash_password(data.password),
        franchise_id=target_franchise,
        super_admin=data.super_admin and data.role == UserRole.ADMIN,
    )

    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@router.get("/list-users", response_model=List[UserListBasic])
async def list_all_users(
    role: Optional[UserRole] = None,
    current_user: User = Depends(is_admin),
    franchise_id: Optional[UUID] = Depends(get_franchise_scope),
    db: AsyncSession = Depends(get_db),
):
    # Fetch only required columns
    stmt = select(User.id, User.name, User.email, User.role, User.franchise_id).order_by(User.name)
    if franchise_id:
        stmt = stmt.where(User.franchise_id == franchise_id)
    if role:
        stmt = stmt.where(User.role == role)

    result = await db.execute(stmt)

    return [
        UserListBasic(
            id=str(u.id),
            name=u.name,
            email=u.email,
            role=u.role,
            franchise_id=str(u.franchise_id) if u.franchise_id else None,
        ) for u in result.all()
    ]
