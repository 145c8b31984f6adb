"""Schemas for authentication endpoints."""

from pydantic import BaseModel, Field, constr, field_validator

from app.config import get_settings

from .base import CamelModel

USERNAME_PATTERN = r"^[A-Za-z0-9_]{3,20}$"
EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"


class SignupRequest(CamelModel):
    """Payload for creating a new account."""

    email: constr(strip_whitespace=True, pattern=EMAIL_PATTERN, max_length=254) = Field(
        ..., description="Unique email address, compared case-insensitively"
    )
    username: constr(pattern=USERNAME_PATTERN) = Field(
        ..., description="3-20 characters: letters, digits and underscores"
    )
    password: constr(max_length=128) = Field(
        ..., description="Plain text password that will be hashed before storing"
    )

    @field_validator("password")
    @classmethod
    def check_password_length(cls, value: str) -> str:
        minimum = get_settings().password_min_length
        if len(value) < minimum:
            raise ValueError(f"Password must be at least {minimum} characters")
        return value


class SignupResponse(CamelModel):
    message: str = "Account created successfully"
    user_id: str


class LoginRequest(BaseModel):
    """Payload for user login."""

    email: constr(strip_whitespace=True, min_length=1) = Field(..., description="Account email")
    password: constr(min_length=1) = Field(..., description="Account password")


class Token(BaseModel):
    """Access token returned after successful authentication."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type, always 'bearer'")
    expires_in: int | None = Field(
        default=None,
        description="Number of seconds until the access token expires",
    )
