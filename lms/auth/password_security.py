from typing import Optional, Tuple
from passlib.context import CryptContext

# ---------------------------
# Password hashing context
# ---------------------------
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> Tuple[bool, Optional[str]]:
    """
    Check a login password.

    Returns (is_valid, new_hash). new_hash is set when the stored hash uses
    outdated parameters and should be replaced.
    """
    return pwd_context.verify_and_update(plain_password, hashed_password)
