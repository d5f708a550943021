"""
Redis Connection - durable key-value storage for sessions and trip lists
"""
import redis.asyncio as redis
from typing import Optional
import logging

from travelle.config import settings

logger = logging.getLogger(__name__)

# Redis client instance
redis_client: Optional[redis.Redis] = None


async def init_redis():
    """Initialize Redis connection"""
    global redis_client
    logger.info("Initializing Redis connection...")
    redis_client = redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,  # 5 second connection timeout
        socket_timeout=5,  # 5 second operation timeout
    )
    # Test connection
    try:
        await redis_client.ping()
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Redis connection failed: {e}. Sessions and trip lists are unavailable.")


async def close_redis():
    """Close Redis connection"""
    global redis_client
    if redis_client:
        logger.info("Closing Redis connection...")
        await redis_client.aclose()
        redis_client = None
        logger.info("Redis connection closed")


async def get_redis() -> redis.Redis:
    """
    Dependency that provides Redis client
    Usage: store: redis.Redis = Depends(get_redis)
    """
    if redis_client is None:
        raise RuntimeError("Redis client not initialized")
    return redis_client


# Key builders
def session_key(token: str) -> str:
    return f"session:{token}"


def trip_lists_key(owner: str | int) -> str:
    return f"trip_lists:{owner}"
