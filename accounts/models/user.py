"""User account models."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class User(BaseModel):
    """A registered account, without credential fields."""

    id: UUID
    username: str
    email: str
    full_name: str
    avatar: Optional[str] = None
    cover_image: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UserRecord(User):
    """A stored account including the password hash and live refresh token.

    Only the session layer reads these fields; API responses are built
    from ``User``.
    """

    password_hash: str
    refresh_token: Optional[str] = None

    def public(self) -> User:
        """Drop the credential fields."""
        return User(**self.model_dump(exclude={"password_hash", "refresh_token"}))
