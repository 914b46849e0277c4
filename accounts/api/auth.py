"""Registration and session endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status

from accounts.api.dependencies import get_current_user
from accounts.config import get_settings
from accounts.models.auth import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    TokenPair,
    UserSummary,
)
from accounts.models.user import User
from accounts.services.session_service import SessionService
from accounts.services.user_service import UserService

router = APIRouter(prefix="/api/v1/users", tags=["Auth"])


def _set_token_cookies(response: Response, pair: TokenPair) -> None:
    """Set both token cookies as httpOnly and secure."""
    settings = get_settings()
    for name, value in (
        (settings.access_token_cookie, pair.access_token),
        (settings.refresh_token_cookie, pair.refresh_token),
    ):
        response.set_cookie(
            name,
            value,
            httponly=True,
            secure=settings.cookie_secure,
        )


def _clear_token_cookies(response: Response) -> None:
    settings = get_settings()
    for name in (settings.access_token_cookie, settings.refresh_token_cookie):
        response.delete_cookie(name, httponly=True, secure=settings.cookie_secure)


def _login_response(user: User, pair: TokenPair) -> LoginResponse:
    return LoginResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        token_type="bearer",
        expires_in=int(get_settings().access_token_ttl.total_seconds()),
        user=UserSummary.from_user(user),
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest) -> UserSummary:
    """Create an account.

    Raises:
        AccountError 409: If the username or email is taken
    """
    user_service = UserService()
    user = await user_service.create_user(
        username=request.username,
        email=request.email,
        full_name=request.full_name,
        password=request.password,
        avatar=request.avatar,
        cover_image=request.cover_image,
    )
    return UserSummary.from_user(user)


@router.post("/login")
async def login(request: LoginRequest, response: Response) -> LoginResponse:
    """Login with email and password.

    Sets the accessToken and refreshToken cookies and returns both tokens.

    Raises:
        AccountError 404: If no account has that email
        AccountError 401: If the password is wrong
    """
    session_service = SessionService()
    user, pair = await session_service.login(request.email, request.password)
    _set_token_cookies(response, pair)
    return _login_response(user, pair)


@router.post("/logout")
async def logout(
    response: Response,
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    """End the session: revoke the stored refresh token and clear cookies."""
    session_service = SessionService()
    await session_service.logout(current_user.id)
    _clear_token_cookies(response)
    return MessageResponse(message="User logged out successfully")


@router.post("/refresh-token")
async def refresh_token(
    http_request: Request,
    response: Response,
    request: Optional[RefreshRequest] = None,
) -> LoginResponse:
    """Rotate the session's tokens.

    The refresh token is read from the refreshToken cookie, else from the
    JSON body. The presented token is invalid afterwards.

    Raises:
        AccountError 401: If the token is missing, invalid, expired or
            already rotated
    """
    token = http_request.cookies.get(get_settings().refresh_token_cookie)
    if not token and request is not None:
        token = request.refresh_token

    session_service = SessionService()
    user, pair = await session_service.refresh(token)
    _set_token_cookies(response, pair)
    return _login_response(user, pair)
