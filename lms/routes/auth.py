from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from lms.database import get_db
from lms.models import User, utc_now
from lms.auth.password_security import verify_password
from lms.auth.jwt import create_access_token, create_refresh_token, token_claims_for
from lms.schemas.user import TokenResponse, UserLoginRequest

router = APIRouter(tags=["User Login"])


# ---------------------------
# Login route (all roles)
# ---------------------------
@router.post("/user/login", response_model=TokenResponse)
async def user_login(request: UserLoginRequest, db: AsyncSession = Depends(get_db)):
    """
    Authenticate any user by email and password.
    Returns access and refresh JWT tokens on success.
    Raises 401 if credentials are invalid or the account is disabled.
    """
    result = await db.execute(select(User).where(User.email == request.email))
    user = result.scalars().first()

    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    valid, new_hash = verify_password(request.password, user.password_hash)
    if not valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    if new_hash:
        user.password_hash = new_hash

    # Update last login
    user.last_login = utc_now()
    await db.commit()

    claims = token_claims_for(user)
    return TokenResponse(
        access_token=create_access_token(claims),
        refresh_token=create_refresh_token(claims),
        role=user.role.value
    )
