"""Authenticated profile endpoints."""

from fastapi import APIRouter, Depends

from accounts.api.dependencies import get_current_user
from accounts.errors import AccountError, ErrorKind
from accounts.models.auth import (
    ChangePasswordRequest,
    ImageUpdateRequest,
    MessageResponse,
    UpdateDetailsRequest,
    UserSummary,
)
from accounts.models.user import User
from accounts.services.session_service import SessionService
from accounts.services.user_service import UserService

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


def _updated(user) -> UserSummary:
    if user is None:
        raise AccountError(ErrorKind.NOT_FOUND, "User not found")
    return UserSummary.from_user(user)


# POST kept for clients of the earlier route table
@router.api_route("/currentUser", methods=["GET", "POST"])
async def current_user(current_user: User = Depends(get_current_user)) -> UserSummary:
    """Get the authenticated user."""
    return UserSummary.from_user(current_user)


@router.post("/changePassword")
async def change_password(
    request: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    """Change the authenticated user's password.

    Raises:
        AccountError 401: If the old password is wrong
    """
    session_service = SessionService()
    await session_service.change_password(
        current_user.id, request.old_password, request.new_password
    )
    return MessageResponse(message="Password changed successfully")


@router.patch("/updateDetails")
async def update_details(
    request: UpdateDetailsRequest,
    current_user: User = Depends(get_current_user),
) -> UserSummary:
    """Update full name and/or email.

    Raises:
        AccountError 409: If the new email belongs to another account
    """
    user_service = UserService()
    user = await user_service.update_fields(
        current_user.id, full_name=request.full_name, email=request.email
    )
    return _updated(user)


@router.patch("/avatar")
async def update_avatar(
    request: ImageUpdateRequest,
    current_user: User = Depends(get_current_user),
) -> UserSummary:
    """Point the avatar at an already-hosted image URL."""
    user_service = UserService()
    user = await user_service.update_fields(current_user.id, avatar=request.url)
    return _updated(user)


@router.patch("/coverPhoto")
async def update_cover_photo(
    request: ImageUpdateRequest,
    current_user: User = Depends(get_current_user),
) -> UserSummary:
    """Point the cover image at an already-hosted image URL."""
    user_service = UserService()
    user = await user_service.update_fields(current_user.id, cover_image=request.url)
    return _updated(user)
