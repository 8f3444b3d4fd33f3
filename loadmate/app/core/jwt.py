"""
JWT token utilities.

Access tokens authenticate API callers. The same signing key is reused for two
short-lived token kinds: fare quotes handed out by the suggestion endpoint and
the ``state`` parameter of the Google OAuth round trip. Every token carries a
``typ`` claim so one kind can never be accepted in place of another.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from loadmate.app.core.config import settings

ACCESS_TOKEN_TYPE = "access"
FARE_QUOTE_TOKEN_TYPE = "fare_quote"
OAUTH_STATE_TOKEN_TYPE = "oauth_state"


def create_signed_token(data: Dict[str, Any], token_type: str, expires_delta: timedelta) -> str:
    """
    Sign ``data`` as a JWT of the given type.
    
    Args:
        data: Claims to encode
        token_type: Value stored in the ``typ`` claim
        expires_delta: Lifetime of the token
        
    Returns:
        Encoded JWT string
    """
    to_encode = data.copy()
    to_encode.update({
        "typ": token_type,
        "exp": datetime.now(timezone.utc) + expires_delta,
    })
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_signed_token(token: str, token_type: str) -> Optional[Dict[str, Any]]:
    """
    Decode a JWT and check its type.
    
    Returns:
        The payload, or None if the signature, expiry or type is invalid
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if payload.get("typ") != token_type:
        return None
    return payload


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.
    
    Args:
        data: Data payload to encode in the token (should include: sub, user_id, role)
        expires_delta: Optional custom expiration time
        
    Returns:
        Encoded JWT token string
        
    Example payload:
        {
            "sub": "asha@example.com",
            "user_id": 123,
            "role": "customer",
            "typ": "access",
            "exp": 1234567890
        }
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    return create_signed_token(data, ACCESS_TOKEN_TYPE, expires_delta)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a JWT access token.
    
    Args:
        token: JWT token string to decode
        
    Returns:
        Decoded token payload if valid (includes: sub, user_id, role, exp), None otherwise
    """
    return decode_signed_token(token, ACCESS_TOKEN_TYPE)
