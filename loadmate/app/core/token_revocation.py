"""
Token Revocation System using Redis.

Implements token blacklisting to immediately invalidate JWT tokens
when users log out.
"""

import logging
from loadmate.app.core.redis_client import get_redis
from loadmate.app.core.config import settings

logger = logging.getLogger("loadmate.auth")

# Redis key prefix for blacklisted tokens
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"


def _ttl_seconds() -> int:
    # Tokens expire on their own after this, so the blacklist entry can too
    return settings.access_token_expire_minutes * 60


async def revoke_token(token: str, user_id: int) -> bool:
    """
    Revoke a specific JWT token by adding it to the blacklist.
    
    Args:
        token: The JWT token string to revoke
        user_id: User ID who owns the token
        
    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        await get_redis().setex(key, _ttl_seconds(), str(user_id))
        return True
    except Exception as e:
        logger.warning("Error revoking token for user %s: %s", user_id, e)
        return False


async def is_token_revoked(token: str) -> bool:
    """
    Check if a token has been revoked.
    
    If Redis is unreachable the request is allowed (fail-open); the user row
    is still re-checked against the database on every request.
    """
    try:
        exists = await get_redis().exists(f"{TOKEN_BLACKLIST_PREFIX}{token}")
        return exists > 0
    except Exception as e:
        logger.warning("Error checking token revocation: %s", e)
        return False
