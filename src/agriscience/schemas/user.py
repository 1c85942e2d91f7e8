"""Pydantic schemas for users and authentication."""

from datetime import datetime
from typing import Optional

from pydantic import Field, model_validator

from agriscience.schemas.base import ApiModel

ROLE_PATTERN = r"^(farmer|agronomist)$"


class User(ApiModel):
    """Stored user record. Never returned as-is (it carries the hash)."""

    id: str
    username: str
    email: str
    password_hash: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    is_premium: bool = False
    linked_agronomist_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UserCreate(ApiModel):
    """What the store needs to create a user (password already hashed)."""

    username: str
    email: str
    password_hash: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str = "farmer"
    is_premium: bool = False
    linked_agronomist_id: Optional[str] = None


class UserRead(ApiModel):
    id: str
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    is_premium: bool = False


class RegisterRequest(ApiModel):
    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=6)
    confirm_password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str = Field(default="farmer", pattern=ROLE_PATTERN)
    linked_agronomist_id: Optional[str] = None

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class LoginRequest(ApiModel):
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=6)


class ProfileUpdate(ApiModel):
    """Partial update: only fields present in the body are applied."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    linked_agronomist_id: Optional[str] = None


class AuthResponse(ApiModel):
    token: str
    user: UserRead
