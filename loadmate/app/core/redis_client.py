"""
Redis client initialization and connection management.

Redis backs the token revocation list.
"""

import redis.asyncio as redis
from loadmate.app.core.config import settings


# Create async Redis client
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


def get_redis():
    """
    Get Redis client instance.
    
    Resolved at call time so tests can swap the module-level client.
    """
    return redis_client


async def ping_redis() -> bool:
    """
    Test Redis connection.
    
    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await get_redis().ping()
    except Exception:
        return False
