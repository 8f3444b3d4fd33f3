"""
Google OAuth 2.0 sign-in.

Authorization-code flow: the consent redirect carries a signed ``state``
token, the callback exchanges the code for an access token with httpx and
reads the user's OpenID profile. The profile is then matched to an account
by Google id, then by email (linking the account), or a new customer account
is created.
"""

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional
from urllib.parse import quote, urlencode

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from loadmate.app.core.config import settings
from loadmate.app.core.exceptions import AuthenticationError
from loadmate.app.core.jwt import OAUTH_STATE_TOKEN_TYPE, create_signed_token, decode_signed_token
from loadmate.app.models.enums import AuthProvider, UserRole
from loadmate.app.models.user import User

logger = logging.getLogger("loadmate.auth")

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
GOOGLE_SCOPES = "openid email profile"
STATE_EXPIRE_MINUTES = 10


@dataclass(frozen=True)
class GoogleProfile:
    google_id: str
    email: str
    name: Optional[str] = None
    picture: Optional[str] = None


def build_authorization_url() -> str:
    """Google consent-screen URL with a fresh signed state."""
    state = create_signed_token(
        {"nonce": uuid.uuid4().hex},
        OAUTH_STATE_TOKEN_TYPE,
        timedelta(minutes=STATE_EXPIRE_MINUTES),
    )
    params = {
        "client_id": settings.google_client_id,
        "redirect_uri": settings.google_callback_url,
        "response_type": "code",
        "scope": GOOGLE_SCOPES,
        "state": state,
        "prompt": "select_account",
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


def verify_state(state: Optional[str]) -> bool:
    return bool(state) and decode_signed_token(state, OAUTH_STATE_TOKEN_TYPE) is not None


async def fetch_google_profile(code: str) -> GoogleProfile:
    """
    Exchange an authorization code for the caller's Google profile.

    Raises:
        AuthenticationError: if Google rejects the code or the profile lacks an email
        httpx.HTTPError: on transport failures
    """
    async with httpx.AsyncClient(timeout=10.0) as client:
        token_response = await client.post(GOOGLE_TOKEN_URL, data={
            "code": code,
            "client_id": settings.google_client_id,
            "client_secret": settings.google_client_secret,
            "redirect_uri": settings.google_callback_url,
            "grant_type": "authorization_code",
        })
        if token_response.status_code != 200:
            raise AuthenticationError("Google rejected the authorization code")
        access_token = token_response.json().get("access_token")
        if not access_token:
            raise AuthenticationError("Google did not return an access token")

        profile_response = await client.get(
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if profile_response.status_code != 200:
            raise AuthenticationError("Could not read the Google profile")
        data = profile_response.json()

    if not data.get("sub") or not data.get("email"):
        raise AuthenticationError("Google profile is missing an id or email")

    return GoogleProfile(
        google_id=str(data["sub"]),
        email=data["email"].lower(),
        name=data.get("name"),
        picture=data.get("picture"),
    )


async def resolve_google_user(db: AsyncSession, profile: GoogleProfile) -> User:
    """
    Find, link or create the account for a Google profile.

    Returns:
        The account, committed
    """
    result = await db.execute(select(User).where(User.google_id == profile.google_id))
    user = result.scalar_one_or_none()
    if user:
        return user

    # Same email registered locally: link the Google identity to it
    result = await db.execute(select(User).where(User.email == profile.email))
    user = result.scalar_one_or_none()
    if user:
        user.google_id = profile.google_id
        user.auth_provider = AuthProvider.GOOGLE
        if profile.picture:
            user.profile_picture = profile.picture
        await db.commit()
        await db.refresh(user)
        logger.info("Linked Google account to user %s", user.id)
        return user

    user = User(
        name=profile.name or profile.email.split("@")[0],
        email=profile.email,
        google_id=profile.google_id,
        profile_picture=profile.picture,
        auth_provider=AuthProvider.GOOGLE,
        role=UserRole.CUSTOMER,
        vehicles_owned=[],
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("Created user %s from Google sign-in", user.id)
    return user


def frontend_success_url(user: User, token: str) -> str:
    """Frontend landing URL carrying the signed-in user as URL-encoded JSON."""
    user_data = {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "role": user.role.value,
        "profile_picture": user.profile_picture,
        "token": token,
    }
    return f"{settings.frontend_url}/auth-success?user={quote(json.dumps(user_data))}"


def frontend_failure_url() -> str:
    return f"{settings.frontend_url}/login?error=auth_failed"
