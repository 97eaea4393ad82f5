"""Auth and profile schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import EmailStr, Field

from carhire.models.enums import UserRole
from carhire.schemas.base import BaseSchema, IDMixin


class SignupRequest(BaseSchema):
    """Create a Firebase account and its profile. The role is fixed from here on."""

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    role: UserRole = UserRole.CUSTOMER


class ProfileResponse(BaseSchema, IDMixin):
    role: UserRole
    full_name: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime


class CurrentUserResponse(BaseSchema):
    """Current authenticated user info."""

    uid: str
    email: str | None = None
    profile: ProfileResponse | None = None
