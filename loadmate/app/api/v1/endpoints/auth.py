"""
Authentication API endpoints.

Local register/login, profile, logout and Google sign-in.
"""

import logging
import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional
from loadmate.app.db.session import get_db
from loadmate.app.models.user import User
from loadmate.app.models.enums import AuthProvider, UserRole
from loadmate.app.schemas.auth import UserRegister, UserLogin, TokenResponse, UserResponse
from loadmate.app.schemas.booking import MessageResponse
from loadmate.app.core.config import settings
from loadmate.app.core.security import get_password_hash, verify_password
from loadmate.app.core.jwt import create_access_token
from loadmate.app.core.dependencies import get_current_user
from loadmate.app.core.exceptions import AppException, ServiceUnavailableError
from loadmate.app.core.token_revocation import revoke_token
from loadmate.app.services import google_oauth
from loadmate.app.services.audit import log_event, log_auth_event, AuditAction

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger("loadmate.auth")


def issue_token(user: User) -> str:
    return create_access_token(data={
        "sub": user.email,
        "user_id": user.id,
        "role": user.role.value,
    })


def token_response(user: User) -> TokenResponse:
    return TokenResponse(
        **UserResponse.model_validate(user).model_dump(),
        access_token=issue_token(user),
        token_type="bearer"
    )


def client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new customer account.

    Self-registration always creates a CUSTOMER; owners upgrade later via
    /owner/register and admins are promoted by another admin.
    """
    email = user_data.email.lower()

    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists"
        )

    new_user = User(
        name=user_data.name,
        email=email,
        hashed_password=get_password_hash(user_data.password),
        phone=user_data.phone,
        auth_provider=AuthProvider.LOCAL,
        role=UserRole.CUSTOMER,
        is_verified=False,
        vehicles_owned=[]
    )

    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)

    await log_event(
        db=db,
        action=AuditAction.USER_REGISTERED,
        actor_id=new_user.id,
        actor_email=new_user.email,
        target_user_id=new_user.id,
        ip_address=client_ip(request)
    )

    return token_response(new_user)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Login with email and password and return a JWT token.

    Accounts that only sign in with Google have no password and are refused
    here like any other mismatch. Attempts are written to the audit log.
    """
    email = credentials.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id if user else None,
            email=email,
            ip_address=client_ip(request),
            metadata={"reason": "Invalid password" if user else "User not found"}
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    await log_auth_event(
        db=db,
        action=AuditAction.LOGIN_SUCCESS,
        user_id=user.id,
        email=user.email,
        ip_address=client_ip(request)
    )

    return token_response(user)


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current authenticated user information.

    Raises:
        404: If user not found in database
    """
    result = await db.execute(select(User).where(User.id == current_user["user_id"]))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return UserResponse.model_validate(user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Revoke the token used for this request."""
    await revoke_token(current_user["token"], current_user["user_id"])

    await log_auth_event(
        db=db,
        action=AuditAction.TOKEN_REVOKED,
        user_id=current_user["user_id"],
        email=current_user["sub"]
    )

    return MessageResponse(message="Logged out successfully")


@router.get("/google")
async def google_login():
    """Redirect to Google's consent screen."""
    if not settings.google_oauth_enabled:
        raise ServiceUnavailableError("Google OAuth is not configured")
    return RedirectResponse(google_oauth.build_authorization_url(), status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@router.get("/google/callback")
async def google_callback(
    request: Request,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """
    Finish Google sign-in and hand the session to the frontend.

    Success redirects to ``/auth-success?user=<json>``; every failure
    redirects to ``/login?error=auth_failed``.
    """
    failure = RedirectResponse(google_oauth.frontend_failure_url(), status_code=status.HTTP_302_FOUND)

    if error or not code or not google_oauth.verify_state(state):
        logger.warning("Google callback refused (error=%s, code present=%s)", error, bool(code))
        return failure

    try:
        profile = await google_oauth.fetch_google_profile(code)
        user = await google_oauth.resolve_google_user(db, profile)
    except (AppException, httpx.HTTPError):
        logger.warning("Google sign-in failed", exc_info=True)
        return failure

    await log_auth_event(
        db=db,
        action=AuditAction.GOOGLE_LOGIN,
        user_id=user.id,
        email=user.email,
        ip_address=client_ip(request)
    )

    return RedirectResponse(
        google_oauth.frontend_success_url(user, issue_token(user)),
        status_code=status.HTTP_302_FOUND
    )
