"""
Password hashing helpers.
"""

from typing import Optional
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    """Hash a plain-text password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Check a plain-text password against a stored hash.
    
    Accounts created through Google sign-in have no hash and never match.
    """
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)
