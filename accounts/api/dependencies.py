"""FastAPI dependencies for request authentication."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from accounts.config import get_settings
from accounts.errors import AccountError, ErrorKind
from accounts.models.user import User
from accounts.services.auth_service import AuthService
from accounts.services.user_service import UserService

bearer_scheme = HTTPBearer(auto_error=False)


def extract_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    """Return the access token from the cookie, else the Bearer header."""
    cookie_token = request.cookies.get(get_settings().access_token_cookie)
    if cookie_token:
        return cookie_token
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return None


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> User:
    """Resolve the request's access token to the current user.

    The user is also attached to ``request.state.user``.

    Raises:
        AccountError(unauthorized): No token, or the account no longer exists
        AccountError(token_expired | token_malformed | invalid_token):
            The token failed verification
    """
    token = extract_access_token(request, credentials)
    if token is None:
        raise AccountError(ErrorKind.UNAUTHORIZED, "Unauthorized request")

    auth_service = AuthService()
    claims = auth_service.validate_access_token(token)
    user_id = auth_service.subject_id(claims)

    user_service = UserService(auth_service)
    user = await user_service.get_by_id(user_id)

    if user is None:
        raise AccountError(ErrorKind.UNAUTHORIZED, "User not found")

    request.state.user = user
    return user
