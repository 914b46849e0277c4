"""Models package exports."""

from accounts.models.auth import (
    ChangePasswordRequest,
    ImageUpdateRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    TokenPair,
    UpdateDetailsRequest,
    UserSummary,
)
from accounts.models.user import User, UserRecord

__all__ = [
    "ChangePasswordRequest",
    "ImageUpdateRequest",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "RefreshRequest",
    "RegisterRequest",
    "TokenPair",
    "UpdateDetailsRequest",
    "User",
    "UserRecord",
    "UserSummary",
]
