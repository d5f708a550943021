"""
User & Authentication Schemas
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class UserCreate(BaseModel):
    """Schema for user registration"""
    username: str = Field(..., min_length=3, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserPublic(BaseModel):
    """User record as returned to clients - never carries the password"""
    id: int
    username: str
    name: Optional[str] = None
    email: EmailStr
    profile_photo: Optional[str] = None

    class Config:
        from_attributes = True


class AuthSession(BaseModel):
    """Authenticated session: opaque bearer token plus the public user"""
    token: str
    user: UserPublic
    token_type: str = "bearer"


class AvailabilityResponse(BaseModel):
    email_taken: Optional[bool] = None
    username_taken: Optional[bool] = None


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    password: str = Field(..., min_length=6, max_length=100)


class ResetRequestResult(BaseModel):
    success: bool = True


class TokenCheck(BaseModel):
    """Outcome of a reset-token verification attempt"""
    valid: bool
    user_id: Optional[int] = None
    email: Optional[str] = None
    max_attempts_exceeded: bool = False


class ResetResult(BaseModel):
    success: bool
    error: Optional[str] = None
