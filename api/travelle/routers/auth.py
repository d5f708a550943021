"""
Authentication Endpoints
"""
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import redis.asyncio as redis
import logging

from travelle.errors import NotAuthenticated
from travelle.utils.database import get_db
from travelle.utils.redis import get_redis
from travelle.schemas.user import (
    AuthSession,
    AvailabilityResponse,
    LoginRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    ResetRequestResult,
    ResetResult,
    TokenCheck,
    UserCreate,
    UserPublic,
)
from travelle.services.auth_service import AuthService
from travelle.services.notification_service import NotificationService, get_notification_service
from travelle.services.session_store import SessionStore

router = APIRouter()
logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_session_store(client: redis.Redis = Depends(get_redis)) -> SessionStore:
    return SessionStore(client)


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    sessions: SessionStore = Depends(get_session_store),
    notifications: NotificationService = Depends(get_notification_service),
) -> AuthService:
    return AuthService(db, sessions, notifications)


async def get_optional_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    sessions: SessionStore = Depends(get_session_store),
) -> Optional[AuthSession]:
    """
    Resolve the bearer token to a session, or None for anonymous callers
    """
    if credentials is None:
        return None
    return await sessions.get(credentials.credentials)


async def get_current_session(
    session: Optional[AuthSession] = Depends(get_optional_session),
) -> AuthSession:
    """
    Dependency for endpoints that require a signed-in user
    Usage: session: AuthSession = Depends(get_current_session)
    """
    if session is None:
        raise NotAuthenticated("Missing or expired session token")
    return session


@router.post("/register", response_model=AuthSession, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    auth: AuthService = Depends(get_auth_service),
):
    """
    Create an account and sign it in
    """
    return await auth.register(
        username=user_data.username,
        name=user_data.name,
        email=user_data.email,
        password=user_data.password,
    )


@router.post("/login", response_model=AuthSession)
async def login(
    credentials: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
):
    return await auth.login(credentials.email, credentials.password)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    session: AuthSession = Depends(get_current_session),
    auth: AuthService = Depends(get_auth_service),
):
    await auth.logout(session.token)
    logger.info(f"User logged out: {session.user.id}")


@router.get("/me", response_model=UserPublic)
async def get_me(session: AuthSession = Depends(get_current_session)):
    """
    Get the signed-in user
    """
    return session.user


@router.get("/availability", response_model=AvailabilityResponse)
async def check_availability(
    email: Optional[str] = Query(None),
    username: Optional[str] = Query(None),
    auth: AuthService = Depends(get_auth_service),
):
    """
    Check whether an email and/or username is already registered
    """
    result = AvailabilityResponse()
    if email:
        result.email_taken = await auth.email_exists(email)
    if username:
        result.username_taken = await auth.username_exists(username)
    return result


@router.post("/password-reset/request", response_model=ResetRequestResult)
async def request_password_reset(
    body: PasswordResetRequest,
    background_tasks: BackgroundTasks,
    auth: AuthService = Depends(get_auth_service),
):
    """
    Start password recovery. Answers the same whether or not the email exists;
    the recovery email is sent after the response.
    """
    return await auth.request_password_reset(body.email, background_tasks)


@router.get("/password-reset/{token}", response_model=TokenCheck)
async def verify_reset_token(
    token: str,
    auth: AuthService = Depends(get_auth_service),
):
    check = await auth.verify_reset_token(token)
    # The reset form only needs to know whether it may proceed
    return TokenCheck(valid=check.valid, max_attempts_exceeded=check.max_attempts_exceeded)


@router.post("/password-reset/{token}", response_model=ResetResult)
async def reset_password(
    token: str,
    body: PasswordResetConfirm,
    auth: AuthService = Depends(get_auth_service),
):
    return await auth.reset_password(token, body.password)
