"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with JWT authentication.
"""

from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from loadmate.app.core.jwt import decode_access_token
from loadmate.app.core.token_revocation import is_token_revoked
from loadmate.app.core.exceptions import TokenRevokedError
from loadmate.app.db.session import get_db
from loadmate.app.models.user import User

# HTTP Bearer security scheme
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _authenticate(token: str, db: AsyncSession) -> dict:
    # 1. Decode and validate JWT
    payload = decode_access_token(token)
    if payload is None:
        raise _unauthorized("Not authorized, token failed")
    
    user_id = payload.get("user_id")
    if not user_id:
        raise _unauthorized("Invalid token payload")
    
    # 2. Check if this specific token has been revoked (logout)
    if await is_token_revoked(token):
        raise TokenRevokedError()
    
    # 3. Real-time database check: the user must still exist
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    
    if not user:
        raise _unauthorized("User not found")
    
    # Role comes from the database so owner upgrades and admin edits apply immediately
    return {
        **payload,
        "user_id": user.id,
        "sub": user.email,
        "role": user.role.value,
        "token": token,
    }


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    FastAPI dependency for JWT authentication.
    
    Security checks:
    1. Validates JWT token signature, expiry and type
    2. Checks if token has been explicitly revoked
    3. Verifies the user still exists (admins can hard-delete accounts)
    
    Returns:
        Token payload refreshed with the user's current id, email and role
        
    Raises:
        HTTPException: 401 if authentication fails for any reason
    """
    return await _authenticate(credentials.credentials, db)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: AsyncSession = Depends(get_db)
) -> Optional[dict]:
    """
    Like ``get_current_user`` but anonymous callers get None.
    
    Used by public endpoints whose output depends on the caller's role.
    """
    if credentials is None:
        return None
    return await _authenticate(credentials.credentials, db)
