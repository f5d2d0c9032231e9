from typing import Optional
import uuid

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from jose import JWTError

from lms.database import get_db
from lms.models import User, UserRole
from lms.auth.jwt import verify_token


bearer_scheme = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Resolve the logged-in User from the bearer access token.
    Raises 401 if the token is invalid, expired, or the user is gone or inactive.
    """
    token = credentials.credentials
    try:
        payload = verify_token(token, expected_type="access")
        user_id_str: str = payload.get("user_id")
        if not user_id_str:
            raise HTTPException(status_code=401, detail="Invalid token payload")

        user_id = uuid.UUID(user_id_str)

    except (JWTError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalars().first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def _require_role(role: UserRole, label: str):
    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role != role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Only {label} can access this resource"
            )
        return current_user
    return checker


is_admin = _require_role(UserRole.ADMIN, "admins")
is_teacher = _require_role(UserRole.INSTRUCTOR, "teachers")
is_student = _require_role(UserRole.STUDENT, "students")


async def get_franchise_scope(
    x_franchise_id: Optional[str] = Header(default=None),
    current_user: User = Depends(get_current_user),
) -> Optional[uuid.UUID]:
    """
    Franchise the request is scoped to, passed explicitly to handlers.

    Super admins may pick any franchise with the X-Franchise-ID header (or none
    for a platform-wide view); everyone else is pinned to their own franchise.
    """
    if current_user.super_admin:
        if not x_franchise_id:
            return None
        try:
            return uuid.UUID(x_franchise_id)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid X-Franchise-ID header")

    return current_user.franchise_id
