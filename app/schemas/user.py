from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from app.models.user import Role
from app.schemas.base import BaseSchema


def _check_password_strength(v: str) -> str:
    if not any(c.isupper() for c in v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not any(c.islower() for c in v):
        raise ValueError("Password must contain at least one lowercase letter")
    if not any(c.isdigit() for c in v):
        raise ValueError("Password must contain at least one digit")
    return v


class StudentRegister(BaseSchema):
    """Schema for student self-registration."""

    roll_number: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    confirm_password: str = Field(..., min_length=8, max_length=100)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password_strength(v)

    @model_validator(mode="after")
    def validate_passwords_match(self) -> "StudentRegister":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UserLogin(BaseSchema):
    """Schema for user login."""

    email: EmailStr
    password: str


class UserResponse(BaseSchema):
    """Schema for user response."""

    id: str
    email: str
    name: str
    roll_number: Optional[str] = None
    role: Role
    is_active: bool
    created_at: datetime


class TokenResponse(BaseSchema):
    """Schema for authentication token response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshTokenRequest(BaseSchema):
    """Schema for refresh token request."""

    refresh_token: str
