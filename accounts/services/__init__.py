"""Services package exports."""

from accounts.services.auth_service import AuthService, TokenType
from accounts.services.logging_service import configure_logging, get_logger
from accounts.services.session_service import SessionService
from accounts.services.user_service import UserService

__all__ = [
    "AuthService",
    "SessionService",
    "TokenType",
    "UserService",
    "configure_logging",
    "get_logger",
]
