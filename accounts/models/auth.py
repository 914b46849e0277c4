"""Account request and response models with validation.

Wire fields are camelCase (``accessToken``, ``fullName``); Python
attributes stay snake_case and either form is accepted on input.
"""

import re
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from accounts.models.user import User

USERNAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# bcrypt only reads the first 72 bytes and newer releases reject longer input
MAX_PASSWORD_BYTES = 72


def _check_email(v: str) -> str:
    v = v.strip()
    if not EMAIL_RE.match(v):
        raise ValueError("Email address is not valid")
    return v


def _check_password_length(v: str) -> str:
    if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    return v


def _check_password(v: str) -> str:
    if not v.strip():
        raise ValueError("Password cannot be empty or whitespace only")
    return _check_password_length(v)


class CamelModel(BaseModel):
    """Base model serializing to camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(CamelModel):
    """New account registration.

    Attributes:
        username: Unique handle (3-100 chars, alphanumeric + underscore/hyphen)
        email: Unique email address
        full_name: Display name
        password: Plain-text password (min 6 chars), hashed before storage
        avatar: Optional URL of an already-hosted avatar image
        cover_image: Optional URL of an already-hosted cover image
    """

    username: str = Field(..., min_length=3, max_length=100)
    email: str = Field(..., max_length=255)
    full_name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=6)
    avatar: Optional[str] = None
    cover_image: Optional[str] = None

    @field_validator("username")
    @classmethod
    def username_valid_chars(cls, v: str) -> str:
        """Ensure username contains only alphanumeric, underscore, or hyphen."""
        v = v.strip()
        if not USERNAME_RE.match(v):
            raise ValueError(
                "Username must contain only alphanumeric characters, "
                "underscores, or hyphens"
            )
        return v

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("full_name")
    @classmethod
    def full_name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Full name cannot be empty")
        return v

    @field_validator("password")
    @classmethod
    def password_not_empty(cls, v: str) -> str:
        return _check_password(v)


class LoginRequest(CamelModel):
    """Login credentials."""

    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _check_email(v)


class RefreshRequest(CamelModel):
    """Body form of a refresh request; the cookie takes precedence."""

    refresh_token: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    """Password change for the authenticated user."""

    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)

    @field_validator("old_password")
    @classmethod
    def old_password_length(cls, v: str) -> str:
        return _check_password_length(v)

    @field_validator("new_password")
    @classmethod
    def password_not_empty(cls, v: str) -> str:
        return _check_password(v)


class UpdateDetailsRequest(CamelModel):
    """Profile update; only provided fields change."""

    full_name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)

    @field_validator("full_name")
    @classmethod
    def full_name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Full name cannot be empty")
        return v

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _check_email(v)

    @model_validator(mode="after")
    def at_least_one_field(self) -> "UpdateDetailsRequest":
        if self.full_name is None and self.email is None:
            raise ValueError("Provide fullName or email to update")
        return self


class ImageUpdateRequest(CamelModel):
    """Replace the avatar or cover image with a hosted image URL."""

    url: str = Field(..., min_length=1, max_length=2048)

    @field_validator("url")
    @classmethod
    def url_is_http(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("Image URL must start with http:// or https://")
        return v


class UserSummary(CamelModel):
    """Public user representation for API responses."""

    id: UUID
    username: str
    email: str
    full_name: str
    avatar: Optional[str] = None
    cover_image: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(**user.model_dump())


class TokenPair(BaseModel):
    """A freshly issued access/refresh token pair."""

    access_token: str
    refresh_token: str


class LoginResponse(CamelModel):
    """Successful authentication response with token pair.

    Attributes:
        access_token: Short-lived JWT for API access
        refresh_token: Longer-lived JWT for obtaining a new pair
        token_type: Always "bearer"
        expires_in: Access token lifetime in seconds
        user: Summary of the authenticated user
    """

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(ge=1, description="Access token lifetime in seconds")
    user: UserSummary


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str
