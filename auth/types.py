"""Pydantic models for auth domain."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class UserRole(str, Enum):
    """Who a credential belongs to."""

    ADMIN = "admin"
    CUSTOMER = "customer"


class User(BaseModel):
    """A registered user: workshop staff (admin) or a customer."""

    id: UUID
    name: str
    email: str | None = None
    phone: str | None = None
    role: UserRole
    is_active: bool = True
    created_at: datetime
    last_login_at: datetime | None = None

    model_config = {"from_attributes": True}


class Session(BaseModel):
    """An active user session."""

    token: str = Field(..., description="Session token (opaque string)")
    user_id: UUID
    role: UserRole
    created_at: datetime
    expires_at: datetime
    last_activity_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class AdminLoginRequest(BaseModel):
    """Request payload for staff login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=200)


class OtpSendRequest(BaseModel):
    """Request payload for sending a login code."""

    phone: str = Field(..., min_length=10, max_length=20)


class OtpVerifyRequest(BaseModel):
    """Request payload for verifying a login code."""

    phone: str = Field(..., min_length=10, max_length=20)
    otp: str = Field(..., min_length=4, max_length=8)
    name: str | None = Field(None, min_length=1, max_length=100)


class OtpChallenge(BaseModel):
    """Result of issuing a login code."""

    phone: str
    expires_in_seconds: int
    otp: str | None = Field(None, description="Only set when codes are exposed for development")


class AuthenticatedUser(BaseModel):
    """User info returned after successful authentication."""

    user: User
    session: Session
    is_new_user: bool = False
