"""
OpsLedger Backend — User & Auth Schemas
=========================================

What:  Request/response models for /api/auth and /api/users.
Why:   UserResponse is the only shape in which a user leaves the API, so
       the password hash can never be serialized by accident.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from app.models.enums import Role
from app.schemas.common import Password, PersonName


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════

class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    image: Optional[str] = None
    role: Role
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserListResponse(BaseModel):
    users: List[UserResponse]


class AuthResponse(BaseModel):
    """Returned by register and login; the refresh token travels in the cookie."""
    user: UserResponse
    access_token: str
    token_type: str = "bearer"


class AccessTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════

class RegisterRequest(BaseModel):
    email: EmailStr
    first_name: PersonName
    last_name: PersonName
    password: Password


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    remember_me: bool = False


class ResetPasswordRequest(BaseModel):
    email: EmailStr


class NewPasswordRequest(BaseModel):
    password: Password


class UserUpdate(BaseModel):
    """Partial update; only fields that were sent are applied."""
    email: Optional[EmailStr] = None
    first_name: Optional[PersonName] = None
    last_name: Optional[PersonName] = None
    password: Optional[Password] = None
    role: Optional[Role] = None
