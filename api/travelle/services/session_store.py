"""
Session Store - bearer-token sessions kept in Redis
"""
import logging
import secrets
from typing import Optional

import redis.asyncio as redis
from pydantic import ValidationError
from redis.exceptions import RedisError

from travelle.config import settings
from travelle.errors import DataAccessFailure
from travelle.schemas.user import AuthSession, UserPublic
from travelle.utils.redis import session_key

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Creates, resolves and destroys sessions.

    A session is the public user JSON stored under ``session:{token}`` with a
    sliding TTL. There is no process-wide current user: callers resolve the
    session from the request's bearer token.
    """

    def __init__(self, client: redis.Redis, ttl_seconds: int = settings.SESSION_TTL_SECONDS):
        self.client = client
        self.ttl_seconds = ttl_seconds

    async def create(self, user: UserPublic) -> AuthSession:
        token = secrets.token_urlsafe(32)
        try:
            await self.client.setex(session_key(token), self.ttl_seconds, user.model_dump_json())
        except RedisError as e:
            logger.error(f"Failed to store session for user {user.id}: {e}")
            raise DataAccessFailure(str(e)) from e
        return AuthSession(token=token, user=user)

    async def get(self, token: str) -> Optional[AuthSession]:
        if not token:
            return None
        try:
            raw = await self.client.get(session_key(token))
        except RedisError as e:
            logger.error(f"Failed to read session: {e}")
            raise DataAccessFailure(str(e)) from e
        if not raw:
            return None

        try:
            user = UserPublic.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable session payload")
            await self.delete(token)
            return None

        try:
            await self.client.expire(session_key(token), self.ttl_seconds)
        except RedisError as e:
            logger.error(f"Failed to refresh session: {e}")
            raise DataAccessFailure(str(e)) from e
        return AuthSession(token=token, user=user)

    async def delete(self, token: str) -> None:
        try:
            await self.client.delete(session_key(token))
        except RedisError as e:
            logger.error(f"Failed to delete session: {e}")
            raise DataAccessFailure(str(e)) from e
