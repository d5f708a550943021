"""
Auth Service - login, registration, sessions and password recovery
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from travelle.config import settings
from travelle.errors import DataAccessFailure, DuplicateEmail, DuplicateUsername, InvalidCredentials
from travelle.models.user import PasswordResetToken, User
from travelle.schemas.user import AuthSession, ResetRequestResult, ResetResult, TokenCheck, UserPublic
from travelle.services.notification_service import NotificationService
from travelle.services.session_store import SessionStore
from travelle.utils.database import commit, execute
from travelle.utils.security import (
    get_password_hash,
    is_password_hash,
    needs_rehash,
    verify_legacy_password,
    verify_password,
)

logger = logging.getLogger(__name__)

INVALID_LINK_MESSAGE = "The link is invalid or has expired"


def _as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; stored values are always UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AuthService:
    """
    Owns user credentials and reset tokens.

    Operations raise TravelleError subclasses on failure, except the password
    recovery flow, which must not reveal whether an email is registered.
    """

    def __init__(self, db: AsyncSession, sessions: SessionStore, notifications: NotificationService):
        self.db = db
        self.sessions = sessions
        self.notifications = notifications

    async def _get_user_by_email(self, email: str) -> Optional[User]:
        result = await execute(self.db, select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def _store_password(self, user_id: int, password: str) -> int:
        result = await execute(
            self.db,
            update(User).where(User.id == user_id).values(password_hash=get_password_hash(password)),
        )
        await commit(self.db)
        return result.rowcount

    async def login(self, email: str, password: str) -> AuthSession:
        user = await self._get_user_by_email(email)
        if user is None:
            raise InvalidCredentials(f"No account for {email}")

        stored = user.password_hash
        if is_password_hash(stored):
            valid = verify_password(password, stored)
            upgrade = valid and needs_rehash(stored)
        else:
            # Legacy row: plaintext until the first successful login
            valid = verify_legacy_password(password, stored)
            upgrade = valid

        if not valid:
            raise InvalidCredentials(f"Wrong password for user {user.id}")

        if upgrade:
            await self._store_password(user.id, password)
            logger.info(f"Upgraded stored password for user {user.id}")

        session = await self.sessions.create(UserPublic.model_validate(user))
        logger.info(f"User logged in: {user.id}")
        return session

    async def logout(self, token: str) -> None:
        await self.sessions.delete(token)

    async def email_exists(self, email: str) -> bool:
        result = await execute(self.db, select(User.id).where(User.email == email))
        return result.first() is not None

    async def username_exists(self, username: str) -> bool:
        result = await execute(self.db, select(User.id).where(User.username == username))
        return result.first() is not None

    async def register(self, username: str, name: str, email: str, password: str) -> AuthSession:
        if await self.email_exists(email):
            raise DuplicateEmail(f"Email already registered: {email}")
        if await self.username_exists(username):
            raise DuplicateUsername(f"Username already taken: {username}")

        self.db.add(User(
            username=username,
            name=name,
            email=email,
            password_hash=get_password_hash(password),
        ))
        try:
            await self.db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration
            await self.db.rollback()
            if await self.email_exists(email):
                raise DuplicateEmail(f"Email already registered: {email}") from e
            raise DuplicateUsername(f"Username already taken: {username}") from e
        except SQLAlchemyError as e:
            logger.error(f"Commit failed: {e}")
            await self.db.rollback()
            raise DataAccessFailure(str(e)) from e

        user = await self._get_user_by_email(email)
        session = await self.sessions.create(UserPublic.model_validate(user))
        logger.info(f"User registered: {user.id}")
        return session

    async def request_password_reset(self, email: str, background_tasks: BackgroundTasks) -> ResetRequestResult:
        """
        Always reports success so callers cannot probe for registered emails.

        The recovery email goes out through background_tasks after the
        response, so response time does not depend on the provider.
        """
        result = await execute(self.db, select(User.id).where(User.email == email))
        user_id = result.scalar_one_or_none()

        if user_id is None:
            logger.info("Password reset requested for unknown email")
            return ResetRequestResult(success=True)

        token = str(uuid.uuid4())
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.PASSWORD_RESET_TOKEN_TTL_MINUTES)

        await execute(self.db, delete(PasswordResetToken).where(PasswordResetToken.user_id == user_id))
        self.db.add(PasswordResetToken(user_id=user_id, token=token, expires_at=expires_at, used=False, attempts=0))
        await commit(self.db)
        logger.info(f"Password reset token issued for user {user_id}")

        background_tasks.add_task(self._send_recovery_email, user_id, email, token)
        return ResetRequestResult(success=True)

    async def _send_recovery_email(self, user_id: int, email: str, token: str) -> None:
        sent = await self.notifications.send_password_recovery(email, token)
        if not sent.success:
            logger.warning(f"Recovery email for user {user_id} was not delivered: {sent.error}")

    async def verify_reset_token(self, token: str) -> TokenCheck:
        result = await execute(
            self.db,
            select(PasswordResetToken, User.email)
            .join(User, PasswordResetToken.user_id == User.id)
            .where(PasswordResetToken.token == token, PasswordResetToken.used.is_(False))
            .execution_options(populate_existing=True),
        )
        row = result.first()
        if row is None:
            return TokenCheck(valid=False)

        reset_token, email = row

        if _as_utc(reset_token.expires_at) < datetime.now(timezone.utc):
            return TokenCheck(valid=False)

        if reset_token.attempts >= settings.PASSWORD_RESET_MAX_ATTEMPTS:
            alert = await self.notifications.send_security_alert(email)
            if not alert.success:
                logger.warning(f"Security alert for user {reset_token.user_id} was not delivered: {alert.error}")

            await execute(
                self.db,
                update(PasswordResetToken).where(PasswordResetToken.token == token).values(used=True),
            )
            await commit(self.db)
            logger.warning(f"Reset token for user {reset_token.user_id} invalidated after too many attempts")
            return TokenCheck(valid=False, max_attempts_exceeded=True)

        await execute(
            self.db,
            update(PasswordResetToken)
            .where(PasswordResetToken.token == token)
            .values(attempts=PasswordResetToken.attempts + 1),
        )
        await commit(self.db)

        return TokenCheck(valid=True, user_id=reset_token.user_id, email=email)

    async def reset_password(self, token: str, new_password: str) -> ResetResult:
        check = await self.verify_reset_token(token)
        if not check.valid:
            return ResetResult(success=False, error=INVALID_LINK_MESSAGE)

        if await self._store_password(check.user_id, new_password) == 0:
            return ResetResult(success=False, error="The password could not be updated")

        await execute(
            self.db,
            update(PasswordResetToken).where(PasswordResetToken.token == token).values(used=True),
        )
        await commit(self.db)
        logger.info(f"Password reset completed for user {check.user_id}")

        confirmation = await self.notifications.send_password_changed(check.email)
        if not confirmation.success:
            logger.warning(f"Password change confirmation for user {check.user_id} was not delivered")

        return ResetResult(success=True)
